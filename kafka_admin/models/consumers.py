from pydantic import BaseModel
from typing import List


class ConsumerGroupRow(BaseModel):
    groupId: str
    protocolType: str


class AssignedPartition(BaseModel):
    topic: str
    partition: int


class ConsumerRow(BaseModel):
    memberId: str
    clientId: str
    host: str
    assignment: List[AssignedPartition]


class GroupDetail(BaseModel):
    groupId: str
    state: str
    protocol: str
    consumers: List[ConsumerRow]


class PartitionAssignment(BaseModel):
    topic: str
    partition: int
    clientId: str

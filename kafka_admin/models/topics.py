from pydantic import BaseModel, Field
from typing import Dict, List


class TopicSummary(BaseModel):
    name: str
    partitions: int
    replicationFactor: int


class PartitionDetail(BaseModel):
    id: int
    leader: int | None
    replicas: list[int]
    isr: list[int]


class TopicDetail(BaseModel):
    name: str
    internal: bool
    replicationFactor: int
    partitions: List[PartitionDetail]


class PartitionsRequest(BaseModel):
    partitions: int = Field(..., ge=2, description="New total partition count")


class TopicConfig(BaseModel):
    name: str
    configs: Dict[str, str]


class TopicConfigUpdate(BaseModel):
    configs: Dict[str, str] = Field(..., description="Replaces every dynamic override")

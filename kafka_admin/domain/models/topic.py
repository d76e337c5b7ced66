"""Topic and partition models shared by the coordinator and the REST routes."""
from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, Field

TOPIC_NAME_PATTERN = r"^[a-zA-Z0-9._-]{1,249}$"


class Topic(BaseModel):
    """Desired topic definition, as submitted to a create mutation."""

    name: str = Field(
        ...,
        pattern=TOPIC_NAME_PATTERN,
        examples=["checkout-orders"],
        description="Kafka topic name",
    )
    partitions: int = Field(..., ge=1)
    replication_factor: int = Field(..., ge=1)
    configs: Dict[str, str] = Field(default_factory=dict)


class PartitionInfo(BaseModel):
    """Replica layout of one partition."""

    partition: int = Field(..., ge=0)
    leader: int | None = None
    replicas: List[int] = Field(default_factory=list)
    isr: List[int] = Field(default_factory=list)


class TopicDescription(BaseModel):
    """Authoritative view of a topic's partition layout."""

    name: str
    internal: bool = False
    partitions: List[PartitionInfo] = Field(default_factory=list)

    @property
    def partition_count(self) -> int:
        return len(self.partitions)

    @property
    def replication_factor(self) -> int:
        return len(self.partitions[0].replicas) if self.partitions else 0

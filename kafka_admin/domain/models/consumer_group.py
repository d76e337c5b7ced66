"""Consumer-group DTOs."""
from __future__ import annotations

from typing import List

from kafka import TopicPartition  # kafka-python
from pydantic import BaseModel, Field

DEAD_STATE = "Dead"


class ConsumerSummary(BaseModel):
    """One active member of a group and the partitions assigned to it."""

    member_id: str
    client_id: str
    host: str = ""
    assignment: List[TopicPartition] = Field(default_factory=list)


class GroupSummary(BaseModel):
    """Aggregate view of a consumer group."""

    group_id: str
    state: str  # Stable / PreparingRebalance / CompletingRebalance / Empty / Dead
    protocol_type: str = ""
    protocol: str = ""
    consumers: List[ConsumerSummary] = Field(default_factory=list)

    @property
    def is_dead(self) -> bool:
        return self.state == DEAD_STATE

    @classmethod
    def dead(cls, group_id: str) -> "GroupSummary":
        """Summary reported for a group the cluster does not know."""
        return cls(group_id=group_id, state=DEAD_STATE)

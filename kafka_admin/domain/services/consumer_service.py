"""Read-only consumer-group introspection."""
from __future__ import annotations

import logging
from typing import Dict, List, Tuple

import kafka.errors as Errors
from kafka import TopicPartition  # kafka-python

from kafka_admin.core.exceptions import AdminOperationError
from kafka_admin.domain.models.consumer_group import ConsumerSummary, GroupSummary
from kafka_admin.domain.services.metadata_reader import require_name
from kafka_admin.infra.kafka.admin import KafkaAdminFacade

logger = logging.getLogger(__name__)


class ConsumerGroupInspector:
    """Group-level queries. A group the cluster does not know is reported dead, not missing."""

    def __init__(self, admin: KafkaAdminFacade) -> None:
        self._admin = admin

    def list_groups(self) -> List[Tuple[str, str]]:
        """Return ``(group_id, protocol_type)`` pairs."""
        try:
            return self._admin.list_consumer_groups()
        except Errors.KafkaError as exc:
            raise AdminOperationError("Unable to list consumer groups", operation="list_consumer_groups") from exc

    def get_group_summary(self, group_id: str) -> GroupSummary:
        require_name(group_id, "consumerGroup")
        try:
            return self._admin.describe_consumer_group(group_id)
        except Errors.KafkaError as exc:
            raise AdminOperationError(f"Unable to retrieve summary for consumer group: {group_id}",
                                      operation="get_group_summary", target=group_id) from exc

    def get_consumer_summaries(self, group_id: str) -> List[ConsumerSummary]:
        """Active consumers of *group_id*; empty for a dead, empty or unknown group."""
        summary = self.get_group_summary(group_id)
        if summary.is_dead:
            logger.debug("Consumer group %s is dead or unknown", group_id)
            return []
        return list(summary.consumers)

    def get_partition_assignments(self, group_id: str) -> Dict[TopicPartition, str]:
        """Map each assigned partition to the client id of the consumer that owns it."""
        assignments: Dict[TopicPartition, str] = {}
        for consumer in self.get_consumer_summaries(group_id):
            for tp in consumer.assignment:
                assignments[tp] = consumer.client_id
        return assignments

"""Read-only queries over authoritative cluster metadata."""
from __future__ import annotations

import contextlib
import logging
from typing import Dict, Iterable, Iterator, Optional, Set

import kafka.errors as Errors
from kafka import TopicPartition  # kafka-python

from kafka_admin.core.exceptions import AdminOperationError, PreconditionError, TopicNotFoundError
from kafka_admin.domain.models.topic import TopicDescription
from kafka_admin.infra.kafka.admin import KafkaAdminFacade

logger = logging.getLogger(__name__)


def require_name(value: Optional[str], what: str = "topic") -> str:
    """Return *value* or raise PreconditionError when it is None or blank."""
    if value is None or not str(value).strip():
        raise PreconditionError(f"{what} cannot be null, empty or blank", target=value)
    return value


@contextlib.contextmanager
def _reading(operation: str, target: Optional[str]) -> Iterator[None]:
    """Wrap cluster errors of a metadata read; ``retriable`` is carried over."""
    try:
        yield
    except Errors.UnknownTopicOrPartitionError as exc:
        raise TopicNotFoundError(f"Unknown topic: {target}", operation=operation, target=target) from exc
    except Errors.KafkaError as exc:
        raise AdminOperationError(
            f"Unable to {operation.replace('_', ' ')} for {target}: {exc}",
            operation=operation, target=target, retriable=getattr(exc, "retriable", False),
        ) from exc


class MetadataReader:
    """Topic set, partition layout and dynamic configuration. No side effects."""

    def __init__(self, admin: KafkaAdminFacade) -> None:
        self._admin = admin

    # ------------------------------------------------------------------ #
    # Topics                                                              #
    # ------------------------------------------------------------------ #
    def list_topics(self) -> Set[str]:
        logger.debug("Retrieving all topics")
        with _reading("get_topics", "*"):
            topics = self._admin.list_topics()
        if not topics:
            logger.warning("Cluster reported no topics")
        return topics

    def topic_exists(self, name: str) -> bool:
        return name in self.list_topics()

    def describe_topics(self, names: Iterable[str]) -> Dict[str, TopicDescription]:
        """Describe *names*; topics not (yet) visible are left out."""
        names = list(names)
        logger.debug("Describing topics %s", names)
        with _reading("describe_topics", ",".join(names)):
            described = {d.name: d for d in self._admin.describe_topics(names)}
        if len(described) < len(names):
            logger.debug("Topics not described: %s", sorted(set(names) - set(described)))
        return described

    def describe_topic(self, name: str) -> TopicDescription:
        require_name(name)
        described = self.describe_topics([name])
        if name not in described:
            raise TopicNotFoundError(f"Unable to get description for topic: {name}",
                                     operation="describe_topics", target=name)
        return described[name]

    # ------------------------------------------------------------------ #
    # Partitions                                                          #
    # ------------------------------------------------------------------ #
    def get_partitions(self, topic: Optional[str] = None) -> Set[TopicPartition]:
        """Every partition of *topic*, or of every topic when omitted."""
        if topic is None:
            logger.debug("Retrieving all partitions")
            names = self.list_topics()
        else:
            require_name(topic)
            logger.debug("Retrieving all partitions for topic [%s]", topic)
            names = {topic}
        return {
            TopicPartition(d.name, p.partition)
            for d in self.describe_topics(names).values()
            for p in d.partitions
        }

    def get_topic_partitions(self, name: str) -> int:
        """Partition count of *name*; 0 when the topic is not (yet) visible."""
        require_name(name)
        logger.debug("Fetching topic partition count for topic [%s]", name)
        return len(self.get_partitions(name))

    def get_topic_replication_factor(self, name: str) -> int:
        logger.debug("Getting replication factor for topic [%s]", name)
        description = self.describe_topic(name)
        if not description.partitions:
            raise AdminOperationError(f"Unable to get partitions for topic: {name}",
                                      operation="describe_topics", target=name)
        return description.replication_factor

    # ------------------------------------------------------------------ #
    # Configuration                                                       #
    # ------------------------------------------------------------------ #
    def get_topic_config(self, name: str) -> Dict[str, str]:
        """Dynamic overrides of *name*; inherited defaults are not returned."""
        require_name(name)
        logger.debug("Fetching topic config for topic [%s]", name)
        with _reading("get_topic_config", name):
            return self._admin.describe_topic_config(name)

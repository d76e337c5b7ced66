"""Blocking, verifiable administration of a Kafka cluster.

:class:`KafkaAdminCoordinator` turns the cluster's asynchronous control plane
into synchronous calls: every topic mutation is submitted, classified, and then
polled until its effect is visible through the metadata read path.

A coordinator is meant for one caller at a time. Its connections are created
lazily on first use and released together by :meth:`KafkaAdminCoordinator.close`.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple

from kafka import KafkaAdminClient, TopicPartition  # kafka-python

from kafka_admin.core.config import Settings
from kafka_admin.core.exceptions import PreconditionError
from kafka_admin.domain.models.acl import AccessControlEntry, Resource
from kafka_admin.domain.models.consumer_group import ConsumerSummary, GroupSummary
from kafka_admin.domain.models.topic import TopicDescription
from kafka_admin.domain.services.acl_service import AccessControlCoordinator
from kafka_admin.domain.services.consumer_service import ConsumerGroupInspector
from kafka_admin.domain.services.convergence import ConvergencePoller
from kafka_admin.domain.services.metadata_reader import MetadataReader, require_name
from kafka_admin.domain.services.mutation_submitter import (
    AlterConfig,
    CreateTopic,
    DeleteTopic,
    GrowPartitions,
    MutationSubmitter,
    SubmissionOutcome,
)
from kafka_admin.infra.kafka.admin import KafkaAdminFacade

logger = logging.getLogger(__name__)


class KafkaAdminCoordinator:
    """
    Facade over the metadata reader, mutation submitter, convergence poller,
    ACL coordinator and consumer-group inspector.

    Parameters
    ----------
    settings : Settings
        Connection and polling configuration.
    client_factory : callable
        Builds the kafka-python admin client; defaults to ``KafkaAdminClient``.
    control, authorizer : KafkaAdminFacade, optional
        Pre-built connection handles, mainly for tests.
    poller : ConvergencePoller, optional
        Defaults to one built from ``operation_timeout_ms`` / ``operation_sleep_ms``.

    Raises
    ------
    pydantic.ValidationError
        From ``Settings`` (and so from :meth:`from_config`) when the bootstrap
        endpoint is missing or blank, or a timeout or sleep value is negative
        or not numeric. Invalid arguments to individual operations raise
        ``PreconditionError`` instead.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        client_factory: Callable[..., Any] = KafkaAdminClient,
        control: Optional[KafkaAdminFacade] = None,
        authorizer: Optional[KafkaAdminFacade] = None,
        poller: Optional[ConvergencePoller] = None,
    ) -> None:
        self.settings = settings
        self._control = control or KafkaAdminFacade(settings, client_factory, name="control")
        self._authorizer = authorizer or KafkaAdminFacade(settings, client_factory, name="authorizer")
        self._closed = False

        self.reader = MetadataReader(self._control)
        self.submitter = MutationSubmitter(self._control, self.reader, settings.operation_timeout_ms)
        self.poller = poller or ConvergencePoller(settings.operation_timeout_ms, settings.operation_sleep_ms)
        self.acls = AccessControlCoordinator(self._authorizer)
        self.groups = ConsumerGroupInspector(self._control)

    @classmethod
    def from_config(cls, **config: Any) -> "KafkaAdminCoordinator":
        """Build from keyword settings, e.g. ``from_config(bootstrap_servers="localhost:9092")``."""
        return cls(Settings(**config))

    # ---------- Topics: reads ----------
    def get_topics(self) -> Set[str]:
        return self.reader.list_topics()

    def describe_topics(self, names: Iterable[str]) -> Dict[str, TopicDescription]:
        return self.reader.describe_topics(names)

    def get_partitions(self, topic: Optional[str] = None) -> Set[TopicPartition]:
        return self.reader.get_partitions(topic)

    def get_topic_partitions(self, topic: str) -> int:
        return self.reader.get_topic_partitions(topic)

    def get_topic_replication_factor(self, topic: str) -> int:
        return self.reader.get_topic_replication_factor(topic)

    def get_topic_config(self, topic: str) -> Dict[str, str]:
        return self.reader.get_topic_config(topic)

    # ---------- Topics: mutations ----------
    def create_topic(
        self,
        topic: str,
        partitions: int,
        replication_factor: int,
        config: Optional[Dict[str, str]] = None,
        cancel: Optional[threading.Event] = None,
    ) -> None:
        """Create *topic* and block until it is listed with *partitions* partitions."""
        require_name(topic)
        if partitions < 1:
            raise PreconditionError("partitions cannot be < 1", operation="create_topic", target=topic)
        if replication_factor < 1:
            raise PreconditionError("replicationFactor cannot be < 1", operation="create_topic", target=topic)
        config = dict(config or {})

        logger.debug("Creating topic [%s] with partitions [%d] and replication factor [%d] and topic config %s",
                     topic, partitions, replication_factor, config)
        self.submitter.submit(CreateTopic(topic, partitions, replication_factor, config))
        self.poller.wait_until(
            lambda: self.reader.topic_exists(topic) and self.reader.get_topic_partitions(topic) == partitions,
            "create_topic", topic, cancel,
        )
        logger.info("Created topic [%s] with %d partition(s)", topic, partitions)

    def delete_topic(self, topic: str, cancel: Optional[threading.Event] = None) -> None:
        """Delete *topic* and block until it is no longer listed. Unknown topics are a no-op."""
        require_name(topic)
        logger.debug("Deleting topic [%s]", topic)
        if self.submitter.submit(DeleteTopic(topic)) is SubmissionOutcome.ALREADY_SATISFIED:
            return
        self.poller.wait_until(lambda: not self.reader.topic_exists(topic), "delete_topic", topic, cancel)
        logger.info("Deleted topic [%s]", topic)

    def add_topic_partitions(self, topic: str, partitions: int, cancel: Optional[threading.Event] = None) -> None:
        """Grow *topic* to *partitions* partitions in total and block until visible."""
        require_name(topic)
        if partitions <= 1:
            raise PreconditionError("partitions cannot be <= 1", operation="add_topic_partitions", target=topic)

        logger.debug("Adding topic partitions for topic [%s] with partitions [%d]", topic, partitions)
        self.submitter.submit(GrowPartitions(topic, partitions))
        self.poller.wait_until(
            lambda: self.reader.get_topic_partitions(topic) == partitions,
            "add_topic_partitions", topic, cancel,
        )

    def update_topic_config(self, topic: str, config: Optional[Dict[str, str]]) -> None:
        """Replace all dynamic overrides of *topic* with *config*."""
        require_name(topic)
        if config is None:
            raise PreconditionError("properties cannot be null", operation="update_topic_config", target=topic)
        logger.debug("Updating topic config for topic [%s] with config %s", topic, config)
        self.submitter.submit(AlterConfig(topic, dict(config)))

    # ---------- ACLs ----------
    def get_acls(self) -> Dict[Resource, Set[AccessControlEntry]]:
        return self.acls.get_acls()

    def get_acls_for_principal(self, principal: str) -> Dict[Resource, Set[AccessControlEntry]]:
        return self.acls.get_acls_for_principal(principal)

    def get_acls_for_resource(self, resource: Resource) -> Set[AccessControlEntry]:
        return self.acls.get_acls_for_resource(resource)

    def add_acls(self, aces: Iterable[AccessControlEntry], resource: Resource) -> None:
        self.acls.add_acls(aces, resource)

    def remove_acls(self, aces: Iterable[AccessControlEntry], resource: Resource) -> None:
        self.acls.remove_acls(aces, resource)

    # ---------- Consumer groups ----------
    def list_consumer_groups(self) -> List[Tuple[str, str]]:
        return self.groups.list_groups()

    def get_consumer_group_summary(self, group_id: str) -> GroupSummary:
        return self.groups.get_group_summary(group_id)

    def get_consumer_group_summaries(self, group_id: str) -> List[ConsumerSummary]:
        return self.groups.get_consumer_summaries(group_id)

    def get_consumer_group_assignments(self, group_id: str) -> Dict[TopicPartition, str]:
        return self.groups.get_partition_assignments(group_id)

    # ---------- Lifecycle ----------
    def close(self) -> None:
        """Release every held connection; idempotent.

        Each handle is closed even if closing an earlier one fails; the first
        failure is re-raised once all were attempted.
        """
        if self._closed:
            return
        self._closed = True
        first_error: Optional[Exception] = None
        for handle in (self._control, self._authorizer):
            try:
                handle.close()
            except Exception as exc:  # noqa: BLE001
                logger.warning("Failed to close admin connection: %s", exc)
                first_error = first_error or exc
        if first_error is not None:
            raise first_error

    def __enter__(self) -> "KafkaAdminCoordinator":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

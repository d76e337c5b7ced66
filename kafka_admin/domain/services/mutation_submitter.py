"""Submit one control-plane mutation and classify the immediate response."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Union

import kafka.errors as Errors

from kafka_admin.core.exceptions import AdminOperationError, ControlPlaneRejectedError
from kafka_admin.domain.services.metadata_reader import MetadataReader
from kafka_admin.infra.kafka.admin import KafkaAdminFacade

logger = logging.getLogger(__name__)


class SubmissionOutcome(str, Enum):
    ACCEPTED = "accepted"
    ALREADY_SATISFIED = "already-satisfied"


@dataclass(frozen=True)
class CreateTopic:
    name: str
    partitions: int
    replication_factor: int
    config: Dict[str, str] = field(default_factory=dict)
    operation = "create_topic"


@dataclass(frozen=True)
class DeleteTopic:
    name: str
    operation = "delete_topic"


@dataclass(frozen=True)
class GrowPartitions:
    name: str
    new_count: int
    operation = "add_topic_partitions"


@dataclass(frozen=True)
class AlterConfig:
    """Full replacement of a topic's dynamic overrides."""

    name: str
    config: Dict[str, str]
    operation = "update_topic_config"


Mutation = Union[CreateTopic, DeleteTopic, GrowPartitions, AlterConfig]


class MutationSubmitter:
    """
    Issues a mutation and waits for the control plane's acknowledgment only;
    cluster-wide visibility is the convergence poller's concern.

    Cluster rejections are wrapped in ``ControlPlaneRejectedError`` and never
    retried. Two rejections are benign races and come back as
    ``ALREADY_SATISFIED``: deleting a topic that does not exist, and growing a
    topic to the partition count it already has.
    """

    def __init__(self, admin: KafkaAdminFacade, reader: MetadataReader, timeout_ms: int) -> None:
        self._admin = admin
        self._reader = reader
        self._timeout_ms = timeout_ms

    def submit(self, mutation: Mutation) -> SubmissionOutcome:
        logger.debug("Submitting %s", mutation)
        try:
            if isinstance(mutation, CreateTopic):
                self._admin.create_topic(
                    mutation.name,
                    mutation.partitions,
                    mutation.replication_factor,
                    mutation.config,
                    self._timeout_ms,
                )
            elif isinstance(mutation, DeleteTopic):
                self._admin.delete_topic(mutation.name, self._timeout_ms)
            elif isinstance(mutation, GrowPartitions):
                self._admin.create_partitions(mutation.name, mutation.new_count, self._timeout_ms)
            elif isinstance(mutation, AlterConfig):
                self._admin.alter_topic_config(mutation.name, mutation.config)
            else:
                raise TypeError(f"unsupported mutation: {mutation!r}")
        except Errors.UnknownTopicOrPartitionError as exc:
            if isinstance(mutation, DeleteTopic):
                logger.warning("Topic [%s] to be deleted was not found", mutation.name)
                return SubmissionOutcome.ALREADY_SATISFIED
            raise self._rejected(mutation, exc) from exc
        except Errors.InvalidPartitionsError as exc:
            if isinstance(mutation, GrowPartitions):
                current = self._reader.get_topic_partitions(mutation.name)
                if current == mutation.new_count:
                    logger.info("Topic [%s] already has %d partitions", mutation.name, current)
                    return SubmissionOutcome.ALREADY_SATISFIED
            raise self._rejected(mutation, exc) from exc
        except Errors.BrokerResponseError as exc:
            raise self._rejected(mutation, exc) from exc
        except Errors.KafkaError as exc:
            raise AdminOperationError(
                f"Unable to {mutation.operation.replace('_', ' ')}: {mutation.name}",
                operation=mutation.operation, target=mutation.name,
            ) from exc
        return SubmissionOutcome.ACCEPTED

    @staticmethod
    def _rejected(mutation: Mutation, exc: Exception) -> ControlPlaneRejectedError:
        return ControlPlaneRejectedError(
            f"Cluster rejected {mutation.operation} for {mutation.name}: {exc}",
            operation=mutation.operation,
            target=mutation.name,
            error_name=type(exc).__name__,
        )

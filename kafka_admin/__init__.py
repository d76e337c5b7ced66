"""Convergence-polling administration of Kafka clusters."""
from kafka_admin.coordinator import KafkaAdminCoordinator
from kafka_admin.core.config import Settings
from kafka_admin.core.exceptions import (
    AdminError,
    AdminOperationError,
    AdminUnavailableError,
    ControlPlaneRejectedError,
    ConvergenceTimeoutError,
    InterruptedWaitError,
    PreconditionError,
    RequestTimeoutError,
    TopicNotFoundError,
)
from kafka_admin.domain.models.acl import AccessControlEntry, Resource

__all__ = [
    "AccessControlEntry",
    "AdminError",
    "AdminOperationError",
    "AdminUnavailableError",
    "ControlPlaneRejectedError",
    "ConvergenceTimeoutError",
    "InterruptedWaitError",
    "KafkaAdminCoordinator",
    "PreconditionError",
    "RequestTimeoutError",
    "Resource",
    "Settings",
    "TopicNotFoundError",
]

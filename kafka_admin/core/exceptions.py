"""Error taxonomy raised by the admin coordinator.

Every failure surfaced to a caller is an :class:`AdminError` carrying the
operation name and the target (topic, resource, group) it was about, so that
it can be logged meaningfully without inspecting the traceback.
"""
from __future__ import annotations


class AdminError(Exception):
    """Base class for all coordinator failures."""

    retriable = False

    def __init__(self, message: str, *, operation: str | None = None, target: str | None = None,
                 retriable: bool | None = None) -> None:
        super().__init__(message)
        self.operation = operation
        self.target = target
        if retriable is not None:
            self.retriable = retriable


class PreconditionError(AdminError, ValueError):
    """A caller-supplied argument is missing or invalid. Never retried."""


class AdminOperationError(AdminError):
    """An admin read or write failed for a reason not covered below."""


class ControlPlaneRejectedError(AdminError):
    """The cluster refused a mutation for a substantive reason.

    The cluster's own error is chained as ``__cause__``; ``error_name`` holds
    its class name (e.g. ``TopicAlreadyExistsError``).
    """

    def __init__(self, message: str, *, operation: str | None = None, target: str | None = None,
                 retriable: bool | None = None, error_name: str | None = None) -> None:
        super().__init__(message, operation=operation, target=target, retriable=retriable)
        self.error_name = error_name


class TopicNotFoundError(AdminOperationError):
    """The topic is not known to the cluster."""


class ConvergenceTimeoutError(AdminError):
    """The mutation was accepted but its effect was not observed in time.

    The mutation may still apply later; this is a "don't know" outcome.
    """


class InterruptedWaitError(AdminError):
    """The convergence wait was cancelled; convergence status is unknown."""


class AdminUnavailableError(AdminError):
    """The control plane or authorization store cannot be reached."""


class RequestTimeoutError(AdminError):
    """A single control API call exceeded its bounded wait."""

    retriable = True

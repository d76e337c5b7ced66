"""Fixed-interval convergence polling.

A submitted mutation becomes visible through the read path on the cluster's own
schedule. :class:`ConvergencePoller` re-reads until a readiness predicate holds
or the deadline passes:

1. record the start time;
2. sleep ``sleep_ms``, then evaluate the predicate and return when it holds;
3. once the elapsed time after a check reaches ``timeout_ms``, raise
   :class:`ConvergenceTimeoutError`. The check after the sleep that crosses the
   deadline is the final one.

The interval between checks is fixed; there is no backoff.

The predicate is assumed monotone for the duration of the call. Concurrent
changes to the same topic by other administrators are not guarded against.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

import kafka.errors as Errors

from kafka_admin.core.exceptions import AdminError, ConvergenceTimeoutError, InterruptedWaitError

logger = logging.getLogger(__name__)

Predicate = Callable[[], bool]
Clock = Callable[[], float]
# (seconds, cancel event) -> True when the sleep was cancelled
Sleeper = Callable[[float, threading.Event], bool]


def event_sleeper(seconds: float, cancel: threading.Event) -> bool:
    return cancel.wait(seconds)


class ConvergencePoller:
    """Wait until a readiness predicate holds, bounded by a hard deadline."""

    def __init__(
        self,
        timeout_ms: int,
        sleep_ms: int,
        clock: Clock = time.monotonic,
        sleeper: Sleeper = event_sleeper,
    ) -> None:
        if timeout_ms < 0:
            raise ValueError("timeout_ms cannot be < 0")
        if sleep_ms < 0:
            raise ValueError("sleep_ms cannot be < 0")
        self.timeout_ms = timeout_ms
        self.sleep_ms = sleep_ms
        self._clock = clock
        self._sleeper = sleeper

    def wait_until(
        self,
        predicate: Predicate,
        operation: str,
        target: str,
        cancel: Optional[threading.Event] = None,
    ) -> int:
        """Block until *predicate* holds; return the number of checks made.

        Raises
        ------
        ConvergenceTimeoutError
            The predicate still did not hold at the deadline.
        InterruptedWaitError
            *cancel* was set while sleeping. The mutation is not rolled back.
        """
        cancel = cancel or threading.Event()
        timeout = self.timeout_ms / 1000.0
        sleep = self.sleep_ms / 1000.0
        start = self._clock()
        checks = 0

        while True:
            logger.debug("Sleeping for %d ms for %s operation to complete for [%s]",
                         self.sleep_ms, operation, target)
            if cancel.is_set() or self._sleeper(sleep, cancel):
                raise InterruptedWaitError(
                    f"Interrupted waiting for {operation} on {target}", operation=operation, target=target
                )
            checks += 1
            if self._check(predicate, operation, target):
                logger.debug("%s on [%s] converged after %d check(s)", operation, target, checks)
                return checks
            if self._clock() - start >= timeout:
                raise ConvergenceTimeoutError(
                    f"Timeout waiting for {operation} on {target} after {self.timeout_ms} ms",
                    operation=operation, target=target,
                )

    @staticmethod
    def _check(predicate: Predicate, operation: str, target: str) -> bool:
        try:
            return bool(predicate())
        except (AdminError, Errors.KafkaError) as exc:
            # transient read failures mean "not visible yet", not "failed"
            if not getattr(exc, "retriable", False):
                raise
            logger.debug("Transient error checking %s on [%s]: %s", operation, target, exc)
            return False

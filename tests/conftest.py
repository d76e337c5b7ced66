"""Shared fixtures: an in-memory cluster with delayed metadata propagation and a fake clock."""
from __future__ import annotations

import re
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

import kafka.errors as Errors
import pytest

from kafka_admin.coordinator import KafkaAdminCoordinator
from kafka_admin.core.config import Settings
from kafka_admin.domain.models.acl import AccessControlEntry, Resource
from kafka_admin.domain.models.consumer_group import GroupSummary
from kafka_admin.domain.models.topic import TOPIC_NAME_PATTERN, PartitionInfo, TopicDescription
from kafka_admin.domain.services.convergence import ConvergencePoller

_VALID_NAME = re.compile(TOPIC_NAME_PATTERN)


class FakeClock:
    """Monotonic clock whose sleeper advances time instead of blocking."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float, cancel) -> bool:
        if cancel.is_set():
            return True
        self.now += seconds
        self.sleeps.append(seconds)
        return False


class FakeCluster:
    """
    Stand-in for ``KafkaAdminFacade``.

    Mutations update the authoritative state at once, but only become readable
    after ``propagation_reads`` metadata reads, mimicking asynchronous
    metadata propagation.
    """

    def __init__(self, brokers: int = 3, propagation_reads: int = 2) -> None:
        self.brokers = brokers
        self.propagation_reads = propagation_reads
        self.topics: Dict[str, dict] = {}
        self.visible: Dict[str, dict] = {}
        self.acls: Dict[Resource, Set[AccessControlEntry]] = {}
        self.groups: Dict[str, GroupSummary] = {}
        self.closed = 0
        self.close_error: Optional[Exception] = None
        self.acl_error: Optional[Exception] = None
        self._pending: List[Tuple[int, Callable[[], None]]] = []

    # ---------- propagation ----------
    def _schedule(self, fn: Callable[[], None]) -> None:
        if self.propagation_reads <= 0:
            fn()
        else:
            self._pending.append((self.propagation_reads, fn))

    def _tick(self) -> None:
        still = []
        for remaining, fn in self._pending:
            if remaining <= 1:
                fn()
            else:
                still.append((remaining - 1, fn))
        self._pending = still

    def add_topic(self, name: str, partitions: int, rf: int = 1, config: Optional[dict] = None) -> None:
        """Seed a topic that is already visible everywhere."""
        state = {"partitions": partitions, "rf": rf, "config": dict(config or {})}
        self.topics[name] = state
        self.visible[name] = dict(state)

    # ---------- topics ----------
    def list_topics(self) -> Set[str]:
        self._tick()
        return set(self.visible)

    def describe_topics(self, names: Iterable[str]) -> List[TopicDescription]:
        self._tick()
        out = []
        for name in names:
            state = self.visible.get(name)
            if state is None:
                continue
            out.append(
                TopicDescription(
                    name=name,
                    partitions=[
                        PartitionInfo(partition=i, leader=0, replicas=list(range(state["rf"])),
                                      isr=list(range(state["rf"])))
                        for i in range(state["partitions"])
                    ],
                )
            )
        return out

    def describe_topic_config(self, name: str) -> Dict[str, str]:
        if name not in self.topics:
            raise Errors.UnknownTopicOrPartitionError(name)
        return dict(self.topics[name]["config"])

    def alter_topic_config(self, name: str, configs: Dict[str, str]) -> None:
        if name not in self.topics:
            raise Errors.UnknownTopicOrPartitionError(name)
        self.topics[name]["config"] = dict(configs)

    def create_topic(self, name, partitions, replication_factor, configs, timeout_ms) -> None:
        if not _VALID_NAME.match(name):
            raise Errors.InvalidTopicError(name)
        if name in self.topics:
            raise Errors.TopicAlreadyExistsError(f"Topic '{name}' already exists.")
        if replication_factor > self.brokers:
            raise Errors.InvalidReplicationFactorError(
                f"Replication factor: {replication_factor} larger than available brokers: {self.brokers}."
            )
        state = {"partitions": partitions, "rf": replication_factor, "config": dict(configs)}
        self.topics[name] = state
        self._schedule(lambda: self.visible.__setitem__(name, dict(state)))

    def delete_topic(self, name, timeout_ms) -> None:
        if name not in self.topics:
            raise Errors.UnknownTopicOrPartitionError(name)
        del self.topics[name]
        self._schedule(lambda: self.visible.pop(name, None))

    def create_partitions(self, name, total_count, timeout_ms) -> None:
        if name not in self.topics:
            raise Errors.UnknownTopicOrPartitionError(name)
        current = self.topics[name]["partitions"]
        if total_count <= current:
            raise Errors.InvalidPartitionsError(
                f"Topic currently has {current} partitions, which is higher than or equal to {total_count}."
            )
        self.topics[name]["partitions"] = total_count

        def _apply() -> None:
            if name in self.visible:
                self.visible[name]["partitions"] = total_count

        self._schedule(_apply)

    # ---------- groups ----------
    def list_consumer_groups(self) -> List[Tuple[str, str]]:
        return [(g, s.protocol_type) for g, s in self.groups.items()]

    def describe_consumer_group(self, group_id: str) -> GroupSummary:
        return self.groups.get(group_id) or GroupSummary.dead(group_id)

    # ---------- acls ----------
    def describe_acls(self, resource: Optional[Resource] = None, principal: Optional[str] = None):
        if self.acl_error is not None:
            raise self.acl_error
        out = {}
        for res, aces in self.acls.items():
            if resource is not None and res != resource:
                continue
            matching = {a for a in aces if principal is None or a.principal == principal}
            if matching:
                out[res] = matching
        return out

    def create_acls(self, aces, resource: Resource) -> None:
        if self.acl_error is not None:
            raise self.acl_error
        self.acls.setdefault(resource, set()).update(aces)

    def delete_acls(self, aces, resource: Resource) -> None:
        if self.acl_error is not None:
            raise self.acl_error
        remaining = self.acls.get(resource, set()) - set(aces)
        if remaining:
            self.acls[resource] = remaining
        else:
            self.acls.pop(resource, None)

    def close(self) -> None:
        self.closed += 1
        if self.close_error is not None:
            raise self.close_error


@pytest.fixture
def settings(monkeypatch):
    monkeypatch.delenv("KAFKA_ADMIN_BOOTSTRAP_SERVERS", raising=False)
    return Settings(bootstrap_servers="localhost:9092", _env_file=None)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cluster():
    return FakeCluster()


@pytest.fixture
def store():
    """Separate fake for the authorization connection."""
    return FakeCluster()


@pytest.fixture
def coordinator(settings, cluster, store, clock):
    poller = ConvergencePoller(settings.operation_timeout_ms, settings.operation_sleep_ms,
                               clock=clock, sleeper=clock.sleep)
    return KafkaAdminCoordinator(settings, control=cluster, authorizer=store, poller=poller)

"""Kafka Admin façade built on kafka-python."""
from __future__ import annotations

import contextlib
import logging
import threading
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Set, Tuple

import kafka.errors as Errors
from kafka import KafkaAdminClient, TopicPartition  # kafka-python
from kafka.admin import (
    ACL,
    ACLFilter,
    ACLOperation,
    ACLPermissionType,
    ACLResourcePatternType,
    ConfigResource,
    ConfigResourceType,
    NewPartitions,
    NewTopic,
    ResourcePattern,
    ResourcePatternFilter,
    ResourceType,
)

from kafka_admin.core.config import Settings
from kafka_admin.core.exceptions import AdminOperationError, AdminUnavailableError, RequestTimeoutError
from kafka_admin.domain.models.acl import AccessControlEntry, Resource
from kafka_admin.domain.models.consumer_group import ConsumerSummary, GroupSummary
from kafka_admin.domain.models.topic import PartitionInfo, TopicDescription

logger = logging.getLogger(__name__)

_UNAVAILABLE = (Errors.NoBrokersAvailable, Errors.KafkaConnectionError, Errors.NodeNotReadyError)
_TIMEOUT = (Errors.KafkaTimeoutError, Errors.RequestTimedOutError)

# ConfigEntry.source for an explicit per-topic override
DYNAMIC_TOPIC_CONFIG = 1
GROUP_ID_NOT_FOUND = 69

AclMap = Dict[Resource, Set[AccessControlEntry]]


class KafkaAdminFacade:
    """
    Lazy adapter around kafka-python's ``KafkaAdminClient``.

    No network work happens until the first call. Responses are normalised
    into domain models; per-entity error codes embedded in responses are raised
    as the matching ``kafka.errors`` exception. Connection failures and request
    timeouts are translated to ``AdminUnavailableError`` and
    ``RequestTimeoutError``; every other cluster error propagates unchanged so
    that callers can classify it.
    """

    def __init__(
        self,
        settings: Settings,
        client_factory: Callable[..., Any] = KafkaAdminClient,
        name: str = "control",
    ) -> None:
        self._settings = settings
        self._client_factory = client_factory
        self._name = name
        self._admin: Any = None
        self._closed = False
        self._lock = threading.Lock()

    # ---------- connection ----------
    def _ensure_admin(self) -> Any:
        if self._closed:
            raise AdminUnavailableError(f"{self._name} connection is closed", operation="connect")
        if self._admin is not None:
            return self._admin
        with self._lock:
            if self._admin is None:
                logger.debug("Creating %s admin connection to %s", self._name, self._settings.bootstrap_servers)
                try:
                    self._admin = self._client_factory(**self._settings.kafka_kwargs())
                except _UNAVAILABLE + _TIMEOUT as exc:
                    raise AdminUnavailableError(
                        f"Unable to create {self._name} admin connection", operation="connect",
                        target=self._settings.bootstrap_servers,
                    ) from exc
        return self._admin

    @property
    def connected(self) -> bool:
        return self._admin is not None

    def close(self) -> None:
        """Release the admin client. Safe to call more than once."""
        self._closed = True
        admin, self._admin = self._admin, None
        if admin is not None:
            logger.debug("Closing %s admin connection", self._name)
            admin.close()

    @contextlib.contextmanager
    def _call(self, operation: str, target: Optional[str] = None) -> Iterator[Any]:
        admin = self._ensure_admin()
        try:
            yield admin
        except _UNAVAILABLE as exc:
            raise AdminUnavailableError(
                f"Unable to reach cluster for {operation}", operation=operation, target=target
            ) from exc
        except _TIMEOUT as exc:
            raise RequestTimeoutError(
                f"Timed out waiting for {operation}", operation=operation, target=target
            ) from exc

    # ---------- Topics ----------
    def list_topics(self) -> Set[str]:
        with self._call("list_topics") as admin:
            return set(admin.list_topics())

    def describe_topics(self, names: Iterable[str]) -> List[TopicDescription]:
        """Describe *names*; topics unknown to the cluster are left out."""
        names = list(names)
        if not names:
            return []
        with self._call("describe_topics", ",".join(names)) as admin:
            raw = admin.describe_topics(names)

        out: list[TopicDescription] = []
        for t in raw:
            code = t.get("error_code", 0)
            if code == Errors.UnknownTopicOrPartitionError.errno:
                continue
            name = t.get("topic") or t.get("name")
            if code:
                raise Errors.for_code(code)(f"describe failed for topic {name}")
            out.append(
                TopicDescription(
                    name=name,
                    internal=bool(t.get("is_internal", False)),
                    partitions=sorted(
                        (
                            PartitionInfo(
                                partition=p["partition"],
                                leader=p.get("leader"),
                                replicas=list(p.get("replicas", [])),
                                isr=list(p.get("isr", [])),
                            )
                            for p in t.get("partitions", [])
                        ),
                        key=lambda p: p.partition,
                    ),
                )
            )
        return out

    def describe_topic_config(self, name: str) -> Dict[str, str]:
        """Return only the dynamic (explicitly set) overrides of *name*."""
        resource = ConfigResource(ConfigResourceType.TOPIC, name)
        with self._call("describe_configs", name) as admin:
            responses = admin.describe_configs(config_resources=[resource])

        found = False
        overrides: dict[str, str] = {}
        for response in _as_list(responses):
            for res in _as_dict(response).get("resources", []):
                if res.get("resource_name") != name:
                    continue
                if res.get("error_code", 0):
                    raise Errors.for_code(res["error_code"])(res.get("error_message") or name)
                found = True
                for entry in res.get("config_entries", []):
                    if _is_dynamic_override(entry):
                        key = entry.get("config_names", entry.get("config_name"))
                        overrides[key] = entry.get("config_value")
        if not found:
            raise AdminOperationError(f"Unable to get topic config: {name}", operation="describe_configs", target=name)
        return overrides

    def alter_topic_config(self, name: str, configs: Dict[str, str]) -> None:
        """Replace every dynamic override of *name* with *configs*."""
        resource = ConfigResource(ConfigResourceType.TOPIC, name, configs=dict(configs))
        with self._call("alter_configs", name) as admin:
            response = admin.alter_configs(config_resources=[resource])
            for r in _as_list(response):
                _raise_for_errors(r, "resources")

    def create_topic(self, name: str, partitions: int, replication_factor: int,
                     configs: Dict[str, str], timeout_ms: int) -> None:
        new_topic = NewTopic(
            name=name,
            num_partitions=partitions,
            replication_factor=replication_factor,
            topic_configs=dict(configs),
        )
        with self._call("create_topic", name) as admin:
            response = admin.create_topics([new_topic], timeout_ms=timeout_ms)
            _raise_for_errors(response, "topic_errors", "topics")

    def delete_topic(self, name: str, timeout_ms: int) -> None:
        with self._call("delete_topic", name) as admin:
            response = admin.delete_topics([name], timeout_ms=timeout_ms)
            _raise_for_errors(response, "topic_error_codes", "responses")

    def create_partitions(self, name: str, total_count: int, timeout_ms: int) -> None:
        with self._call("create_partitions", name) as admin:
            response = admin.create_partitions({name: NewPartitions(total_count=total_count)}, timeout_ms=timeout_ms)
            _raise_for_errors(response, "topic_errors", "results")

    # ---------- Consumer Groups ----------
    def list_consumer_groups(self) -> List[Tuple[str, str]]:
        with self._call("list_consumer_groups") as admin:
            return [(g[0], g[1]) for g in admin.list_consumer_groups()]

    def describe_consumer_group(self, group_id: str) -> GroupSummary:
        """Describe *group_id*; an unknown group comes back in the ``Dead`` state."""
        with self._call("describe_consumer_group", group_id) as admin:
            try:
                infos = admin.describe_consumer_groups([group_id])
            except Errors.KafkaError as exc:
                if getattr(exc, "errno", None) == GROUP_ID_NOT_FOUND:
                    return GroupSummary.dead(group_id)
                raise

        for info in infos:
            if info.group != group_id:
                continue
            if info.error_code == GROUP_ID_NOT_FOUND:
                return GroupSummary.dead(group_id)
            if info.error_code:
                raise Errors.for_code(info.error_code)(f"describe failed for group {group_id}")
            return GroupSummary(
                group_id=group_id,
                state=info.state or "",
                protocol_type=info.protocol_type or "",
                protocol=info.protocol or "",
                consumers=[
                    ConsumerSummary(
                        member_id=m.member_id,
                        client_id=m.client_id,
                        host=m.client_host or "",
                        assignment=_assigned_partitions(m.member_assignment),
                    )
                    for m in (info.members or [])
                ],
            )
        return GroupSummary.dead(group_id)

    # ---------- ACLs ----------
    def describe_acls(self, resource: Optional[Resource] = None, principal: Optional[str] = None) -> AclMap:
        if resource is None:
            pattern = ResourcePatternFilter(ResourceType.ANY, None, ACLResourcePatternType.ANY)
        else:
            pattern = ResourcePatternFilter(resource.resource_type, resource.name, resource.pattern_type)
        acl_filter = ACLFilter(
            principal=principal,
            host=None,
            operation=ACLOperation.ANY,
            permission_type=ACLPermissionType.ANY,
            resource_pattern=pattern,
        )
        with self._call("describe_acls", str(resource) if resource else principal) as admin:
            result = admin.describe_acls(acl_filter)
        acls = result[0] if isinstance(result, tuple) else result

        out: AclMap = {}
        for acl in acls:
            res, ace = _from_acl(acl)
            out.setdefault(res, set()).add(ace)
        return out

    def create_acls(self, aces: Iterable[AccessControlEntry], resource: Resource) -> None:
        acls = [_to_acl(ace, resource) for ace in aces]
        if not acls:
            return
        with self._call("create_acls", str(resource)) as admin:
            result = admin.create_acls(acls)
        failed = result.get("failed", []) if isinstance(result, dict) else []
        if failed:
            detail = "; ".join(f"{acl}: {_error_name(err)}" for acl, err in failed)
            raise AdminOperationError(
                f"Unable to add ACLs for resource {resource}: {detail}", operation="create_acls", target=str(resource)
            )

    def delete_acls(self, aces: Iterable[AccessControlEntry], resource: Resource) -> None:
        filters = [_to_acl_filter(ace, resource) for ace in aces]
        if not filters:
            return
        with self._call("delete_acls", str(resource)) as admin:
            results = admin.delete_acls(filters)
        for _filter, matches, error in results:
            errors = [error] if _is_error(error) else []
            errors += [e for _acl, e in matches if _is_error(e)]
            if errors:
                raise AdminOperationError(
                    f"Unable to remove ACLs for resource {resource}: {_error_name(errors[0])}",
                    operation="delete_acls", target=str(resource),
                )


# ---------- Helpers ----------
def _as_dict(response: Any) -> dict:
    if isinstance(response, dict):
        return response
    return response.to_object()


def _as_list(responses: Any) -> list:
    return list(responses) if isinstance(responses, (list, tuple)) else [responses]


def _raise_for_errors(response: Any, *fields: str) -> None:
    """Raise the kafka error for the first non-zero ``error_code`` in *fields*."""
    obj = _as_dict(response)
    for field in fields:
        for item in obj.get(field) or []:
            code = item.get("error_code", 0)
            if code:
                name = item.get("topic") or item.get("name") or item.get("resource_name")
                raise Errors.for_code(code)(item.get("error_message") or name)


def _is_dynamic_override(entry: dict) -> bool:
    if "config_source" in entry:
        return entry["config_source"] == DYNAMIC_TOPIC_CONFIG
    # DescribeConfigs v0 carries only the is_default flag
    return not entry.get("is_default", True)


def _assigned_partitions(assignment: Any) -> list[TopicPartition]:
    if assignment is None or isinstance(assignment, (bytes, bytearray)):
        return []
    if hasattr(assignment, "partitions"):
        return list(assignment.partitions())
    return [TopicPartition(topic, p) for topic, parts in assignment.assignment for p in parts]


def _to_acl(ace: AccessControlEntry, resource: Resource) -> ACL:
    return ACL(
        principal=ace.principal,
        host=ace.host,
        operation=ace.operation,
        permission_type=ace.permission,
        resource_pattern=ResourcePattern(resource.resource_type, resource.name, resource.pattern_type),
    )


def _to_acl_filter(ace: AccessControlEntry, resource: Resource) -> ACLFilter:
    return ACLFilter(
        principal=ace.principal,
        host=ace.host,
        operation=ace.operation,
        permission_type=ace.permission,
        resource_pattern=ResourcePatternFilter(resource.resource_type, resource.name, resource.pattern_type),
    )


def _from_acl(acl: Any) -> tuple[Resource, AccessControlEntry]:
    pattern = acl.resource_pattern
    resource = Resource(
        resource_type=pattern.resource_type,
        name=pattern.resource_name,
        pattern_type=pattern.pattern_type,
    )
    ace = AccessControlEntry(
        principal=acl.principal,
        host=acl.host,
        operation=acl.operation,
        permission=acl.permission_type,
    )
    return resource, ace


def _is_error(error: Any) -> bool:
    if error is None or error is Errors.NoError or isinstance(error, Errors.NoError):
        return False
    return True


def _error_name(error: Any) -> str:
    return error.__name__ if isinstance(error, type) else type(error).__name__

"""Tests for KafkaAdminFacade against a scripted kafka-python client."""
from types import SimpleNamespace

import kafka.errors as Errors
import pytest
from kafka import TopicPartition
from kafka.admin import (
    ACL,
    ACLOperation,
    ACLPermissionType,
    ACLResourcePatternType,
    ResourcePattern,
    ResourceType,
)

from kafka_admin.core.exceptions import AdminOperationError, AdminUnavailableError, RequestTimeoutError
from kafka_admin.domain.models.acl import AccessControlEntry, Resource
from kafka_admin.infra.kafka.admin import KafkaAdminFacade


class ScriptedAdminClient:
    """Minimal stand-in for ``kafka.KafkaAdminClient``; responses are set per test."""

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.calls = []
        self.closed = False
        self.topics = []
        self.descriptions = []
        self.config_responses = []
        self.create_response = {"topic_errors": []}
        self.delete_response = {"topic_error_codes": []}
        self.partitions_response = {"topic_errors": []}
        self.alter_response = {"resources": []}
        self.groups = []
        self.group_infos = []
        self.acls_result = ([], Errors.NoError)
        self.create_acls_result = {"succeeded": [], "failed": []}
        self.delete_acls_result = []
        self.raise_on = {}

    def _record(self, name, *args):
        self.calls.append((name, args))
        if name in self.raise_on:
            raise self.raise_on[name]

    def list_topics(self):
        self._record("list_topics")
        return list(self.topics)

    def describe_topics(self, topics=None):
        self._record("describe_topics", topics)
        return [d for d in self.descriptions if d["topic"] in topics]

    def describe_configs(self, config_resources):
        self._record("describe_configs", config_resources)
        return self.config_responses

    def alter_configs(self, config_resources):
        self._record("alter_configs", config_resources)
        return self.alter_response

    def create_topics(self, new_topics, timeout_ms=None):
        self._record("create_topics", new_topics, timeout_ms)
        return self.create_response

    def delete_topics(self, topics, timeout_ms=None):
        self._record("delete_topics", topics, timeout_ms)
        return self.delete_response

    def create_partitions(self, topic_partitions, timeout_ms=None):
        self._record("create_partitions", topic_partitions, timeout_ms)
        return self.partitions_response

    def list_consumer_groups(self):
        self._record("list_consumer_groups")
        return list(self.groups)

    def describe_consumer_groups(self, group_ids):
        self._record("describe_consumer_groups", group_ids)
        return list(self.group_infos)

    def describe_acls(self, acl_filter):
        self._record("describe_acls", acl_filter)
        return self.acls_result

    def create_acls(self, acls):
        self._record("create_acls", acls)
        return self.create_acls_result

    def delete_acls(self, acl_filters):
        self._record("delete_acls", acl_filters)
        return self.delete_acls_result

    def close(self):
        self.closed = True


@pytest.fixture
def client():
    return ScriptedAdminClient()


@pytest.fixture
def facade(settings, client):
    def factory(**kwargs):
        client.kwargs = kwargs
        return client

    return KafkaAdminFacade(settings, factory)


def _partition(i, replicas=(0, 1)):
    return {"partition": i, "leader": replicas[0], "replicas": list(replicas), "isr": list(replicas)}


class TestConnection:
    """Test lazy connection handling and lifecycle."""

    def test_connects_on_first_call(self, facade, client):
        assert not facade.connected

        facade.list_topics()

        assert facade.connected
        assert client.kwargs["bootstrap_servers"] == "localhost:9092"
        assert client.kwargs["security_protocol"] == "PLAINTEXT"

    def test_factory_failure_is_unavailable(self, settings):
        def factory(**kwargs):
            raise Errors.NoBrokersAvailable()

        facade = KafkaAdminFacade(settings, factory)

        with pytest.raises(AdminUnavailableError) as exc_info:
            facade.list_topics()

        assert exc_info.value.operation == "connect"

    def test_close_is_idempotent(self, facade, client):
        facade.list_topics()

        facade.close()
        facade.close()

        assert client.closed
        assert not facade.connected

    def test_close_without_connecting(self, settings):
        def factory(**kwargs):
            raise AssertionError("should not connect")

        KafkaAdminFacade(settings, factory).close()

    def test_use_after_close(self, facade):
        facade.close()

        with pytest.raises(AdminUnavailableError):
            facade.list_topics()

    def test_connection_error_translated(self, facade, client):
        client.raise_on["list_topics"] = Errors.KafkaConnectionError("reset by peer")

        with pytest.raises(AdminUnavailableError) as exc_info:
            facade.list_topics()

        assert exc_info.value.operation == "list_topics"

    def test_timeout_translated(self, facade, client):
        """Test request timeouts surface as retriable errors."""
        client.raise_on["delete_topics"] = Errors.KafkaTimeoutError()

        with pytest.raises(RequestTimeoutError) as exc_info:
            facade.delete_topic("t", 1000)

        assert exc_info.value.retriable
        assert exc_info.value.target == "t"


class TestTopics:
    """Test topic reads and mutations."""

    def test_list_topics(self, facade, client):
        client.topics = ["a", "b", "a"]

        assert facade.list_topics() == {"a", "b"}

    def test_describe_topics(self, facade, client):
        client.descriptions = [
            {"error_code": 0, "topic": "orders", "is_internal": False,
             "partitions": [_partition(1), _partition(0)]},
        ]

        (description,) = facade.describe_topics(["orders"])

        assert description.name == "orders"
        assert [p.partition for p in description.partitions] == [0, 1]
        assert description.replication_factor == 2

    def test_describe_skips_unknown_topics(self, facade, client):
        client.descriptions = [
            {"error_code": 3, "topic": "ghost", "partitions": []},
            {"error_code": 0, "topic": "orders", "partitions": [_partition(0)]},
        ]

        assert [d.name for d in facade.describe_topics(["ghost", "orders"])] == ["orders"]

    def test_describe_raises_other_codes(self, facade, client):
        client.descriptions = [{"error_code": 29, "topic": "secret", "partitions": []}]

        with pytest.raises(Errors.TopicAuthorizationFailedError):
            facade.describe_topics(["secret"])

    def test_describe_is_one_request(self, facade, client):
        """Test known and unknown topics are described together in a single request."""
        client.descriptions = [
            {"error_code": 0, "topic": "orders", "partitions": [_partition(0)]},
            {"error_code": 3, "topic": "ghost", "partitions": []},
        ]

        assert [d.name for d in facade.describe_topics(["orders", "ghost"])] == ["orders"]
        assert [name for name, _ in client.calls] == ["describe_topics"]

    def test_describe_nothing(self, facade, client):
        assert facade.describe_topics([]) == []
        assert client.calls == []

    def test_topic_config_keeps_dynamic_overrides(self, facade, client):
        client.config_responses = [{
            "resources": [{
                "error_code": 0, "resource_type": 2, "resource_name": "orders",
                "config_entries": [
                    {"config_names": "retention.ms", "config_value": "1000", "config_source": 1},
                    {"config_names": "cleanup.policy", "config_value": "delete", "config_source": 5},
                    {"config_names": "segment.bytes", "config_value": "1024", "config_source": 4},
                ],
            }],
        }]

        assert facade.describe_topic_config("orders") == {"retention.ms": "1000"}

    def test_topic_config_v0_entries(self, facade, client):
        client.config_responses = [{
            "resources": [{
                "error_code": 0, "resource_type": 2, "resource_name": "orders",
                "config_entries": [
                    {"config_names": "retention.ms", "config_value": "1000", "is_default": False},
                    {"config_names": "cleanup.policy", "config_value": "delete", "is_default": True},
                ],
            }],
        }]

        assert facade.describe_topic_config("orders") == {"retention.ms": "1000"}

    def test_topic_config_unknown_topic(self, facade, client):
        client.config_responses = [{
            "resources": [{"error_code": 3, "error_message": None, "resource_type": 2,
                           "resource_name": "ghost", "config_entries": []}],
        }]

        with pytest.raises(Errors.UnknownTopicOrPartitionError):
            facade.describe_topic_config("ghost")

    def test_topic_config_missing_resource(self, facade, client):
        client.config_responses = [{"resources": []}]

        with pytest.raises(AdminOperationError):
            facade.describe_topic_config("orders")

    def test_create_topic(self, facade, client):
        facade.create_topic("orders", 3, 2, {"cleanup.policy": "compact"}, 5000)

        name, (new_topics, timeout_ms) = client.calls[-1]
        (new_topic,) = new_topics
        assert name == "create_topics"
        assert timeout_ms == 5000
        assert new_topic.name == "orders"
        assert new_topic.num_partitions == 3
        assert new_topic.replication_factor == 2
        assert new_topic.topic_configs == {"cleanup.policy": "compact"}

    def test_create_topic_error_code(self, facade, client):
        """Test an embedded error code is raised as the matching kafka error."""
        client.create_response = {
            "topic_errors": [{"topic": "orders", "error_code": 36, "error_message": "Topic 'orders' already exists."}]
        }

        with pytest.raises(Errors.TopicAlreadyExistsError):
            facade.create_topic("orders", 1, 1, {}, 5000)

    def test_delete_topic_error_code(self, facade, client):
        client.delete_response = SimpleNamespace(
            to_object=lambda: {"topic_error_codes": [{"topic": "ghost", "error_code": 3}]}
        )

        with pytest.raises(Errors.UnknownTopicOrPartitionError):
            facade.delete_topic("ghost", 5000)

    def test_create_partitions(self, facade, client):
        client.partitions_response = {
            "topic_errors": [{"topic": "orders", "error_code": 37, "error_message": "already 5"}]
        }

        with pytest.raises(Errors.InvalidPartitionsError):
            facade.create_partitions("orders", 5, 5000)

        _, (request, _timeout) = client.calls[-1]
        assert request["orders"].total_count == 5

    def test_alter_topic_config(self, facade, client):
        facade.alter_topic_config("orders", {"retention.ms": "5000"})

        _, (resources,) = client.calls[-1]
        assert resources[0].name == "orders"
        assert resources[0].configs == {"retention.ms": "5000"}


class TestConsumerGroups:
    """Test consumer-group parsing."""

    def _member(self, member_id, client_id, assignment):
        return SimpleNamespace(member_id=member_id, client_id=client_id, client_host="/10.0.0.1",
                               member_metadata=b"", member_assignment=assignment)

    def _info(self, group, members=(), error_code=0, state="Stable"):
        return SimpleNamespace(error_code=error_code, group=group, state=state, protocol_type="consumer",
                               protocol="range", members=list(members))

    def test_list_groups(self, facade, client):
        client.groups = [("billing", "consumer"), ("connect-sink", "connect")]

        assert facade.list_consumer_groups() == [("billing", "consumer"), ("connect-sink", "connect")]

    def test_describe_group(self, facade, client):
        class Assignment:
            def partitions(self):
                return [TopicPartition("orders", 0), TopicPartition("orders", 1)]

        legacy = SimpleNamespace(assignment=[("payments", [2])])
        client.group_infos = [self._info("billing", [
            self._member("m-1", "app-1", Assignment()),
            self._member("m-2", "app-2", legacy),
        ])]

        summary = facade.describe_consumer_group("billing")

        assert summary.state == "Stable"
        assert summary.protocol == "range"
        assert summary.consumers[0].assignment == [TopicPartition("orders", 0), TopicPartition("orders", 1)]
        assert summary.consumers[1].assignment == [TopicPartition("payments", 2)]
        assert summary.consumers[1].host == "/10.0.0.1"

    def test_unparsed_assignment_is_empty(self, facade, client):
        client.group_infos = [self._info("billing", [self._member("m-1", "app-1", b"\x00\x01")])]

        assert facade.describe_consumer_group("billing").consumers[0].assignment == []

    def test_unknown_group_is_dead(self, facade, client):
        client.group_infos = [self._info("ghost", error_code=69, state="")]

        assert facade.describe_consumer_group("ghost").is_dead

    def test_group_missing_from_response_is_dead(self, facade, client):
        assert facade.describe_consumer_group("ghost").is_dead

    def test_group_error(self, facade, client):
        client.group_infos = [self._info("billing", error_code=30)]

        with pytest.raises(Errors.GroupAuthorizationFailedError):
            facade.describe_consumer_group("billing")


class TestAcls:
    """Test conversion between domain ACEs and kafka-python ACL objects."""

    @pytest.fixture
    def resource(self):
        return Resource(resource_type=ResourceType.TOPIC, name="orders")

    @pytest.fixture
    def ace(self):
        return AccessControlEntry(principal="User:alice", operation=ACLOperation.READ)

    def _acl(self, principal="User:alice", operation=ACLOperation.READ):
        return ACL(
            principal=principal,
            host="*",
            operation=operation,
            permission_type=ACLPermissionType.ALLOW,
            resource_pattern=ResourcePattern(ResourceType.TOPIC, "orders", ACLResourcePatternType.LITERAL),
        )

    def test_describe_groups_by_resource(self, facade, client, resource):
        client.acls_result = ([self._acl(), self._acl("User:bob", ACLOperation.WRITE)], Errors.NoError)

        acls = facade.describe_acls()

        assert acls == {resource: {
            AccessControlEntry(principal="User:alice", operation="READ"),
            AccessControlEntry(principal="User:bob", operation="WRITE"),
        }}
        _, (acl_filter,) = client.calls[-1]
        assert acl_filter.resource_pattern.resource_type == ResourceType.ANY

    def test_describe_filters(self, facade, client, resource):
        facade.describe_acls(resource=resource, principal="User:alice")

        _, (acl_filter,) = client.calls[-1]
        assert acl_filter.principal == "User:alice"
        assert acl_filter.resource_pattern.resource_name == "orders"
        assert acl_filter.operation == ACLOperation.ANY

    def test_create(self, facade, client, resource, ace):
        facade.create_acls({ace}, resource)

        _, (acls,) = client.calls[-1]
        assert acls == [self._acl()]

    def test_create_nothing(self, facade, client, resource):
        facade.create_acls(set(), resource)

        assert client.calls == []

    def test_create_failure(self, facade, client, resource, ace):
        client.create_acls_result = {"succeeded": [], "failed": [(self._acl(), Errors.SecurityDisabledError)]}

        with pytest.raises(AdminOperationError) as exc_info:
            facade.create_acls({ace}, resource)

        assert "SecurityDisabledError" in str(exc_info.value)

    def test_delete(self, facade, client, resource, ace):
        client.delete_acls_result = [(None, [(self._acl(), Errors.NoError)], Errors.NoError)]

        facade.delete_acls({ace}, resource)

        _, (filters,) = client.calls[-1]
        assert filters[0].principal == "User:alice"
        assert filters[0].operation == ACLOperation.READ

    def test_delete_failure(self, facade, client, resource, ace):
        client.delete_acls_result = [(None, [], Errors.ClusterAuthorizationFailedError)]

        with pytest.raises(AdminOperationError):
            facade.delete_acls({ace}, resource)

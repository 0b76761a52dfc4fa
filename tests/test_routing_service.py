"""
Tests for ConnectionRoutingService.

End-to-end behavior of the routing core without HTTP: authentication,
validation, primary/replica routing, request rewriting and error envelopes.
"""
import copy
from unittest.mock import Mock

import pytest

from models.plugin_config import (
    DataConnectorNameMode,
    PluginConfig,
    SchemaOptions,
    SessionVariablesMode,
    TopologyMode,
)
from models.routing_decision import STATIC_TENANT_ID, RouteTarget
from services.replica_selector import ReplicaSelector
from services.request_validator import validate_routing_request
from services.routing_service import ConnectionRoutingService

SECRET = "test-shared-secret"
AUTH = {"hasura-m-auth": SECRET}


def static_config(**overrides) -> PluginConfig:
    values = dict(
        shared_secret=SECRET,
        topology_mode=TopologyMode.static,
        primary_connection_name="primary",
        replica_connection_names=["r1", "r2", "r3"],
    )
    values.update(overrides)
    return PluginConfig(**values)


def header_config(**overrides) -> PluginConfig:
    values = dict(
        shared_secret=SECRET,
        topology_mode=TopologyMode.headers,
        read_no_stale_header="x-hasura-query-read-no-stale",
    )
    values.update(overrides)
    return PluginConfig(**values)


def topology_headers(project="project-1", replicas="r1,r2,r3", primary="primary") -> dict:
    return {
        **AUTH,
        "hasura-primary-connection-name": primary,
        "hasura-replica-connection-names": replicas,
        "hasura-unique-project-id": project,
    }


def payload(operation_type="query", variables=None, ndc_request=None) -> dict:
    return {
        "session": {"role": "user", "variables": variables if variables is not None else {}},
        "ndcRequest": ndc_request if ndc_request is not None else {},
        "dataConnectorName": {"subgraph": "app", "name": "db1"},
        "operationType": operation_type,
        "ndcVersion": "v1",
    }


def connection_name(envelope) -> str:
    return envelope.body["ndcRequest"]["request_arguments"]["connection_name"]


class TestStaticTopologyRouting:
    """Routing with a process-wide topology."""

    def test_mutation_routes_to_primary(self):
        service = ConnectionRoutingService(static_config())

        envelope = service.handle(AUTH, payload("mutation"))

        assert envelope.status == 200
        assert connection_name(envelope) == "primary"
        assert envelope.attributes["routing_reason"] == "mutation_or_no_stale"
        assert envelope.attributes["operation_type"] == "mutation"
        assert "replica_index" not in envelope.attributes
        assert envelope.tracing.is_ok

    def test_queries_round_robin_across_replicas(self):
        service = ConnectionRoutingService(static_config())

        names = [connection_name(service.handle(AUTH, payload())) for _ in range(4)]

        assert names == ["r1", "r2", "r3", "r1"]

    def test_replica_attributes(self):
        service = ConnectionRoutingService(static_config())
        service.handle(AUTH, payload())

        envelope = service.handle(AUTH, payload("queryExplain"))

        assert envelope.attributes == {
            "connection_name": "r2",
            "routing_reason": "round_robin_replica",
            "operation_type": "queryExplain",
            "replica_index": 1,
            "tenant_id": STATIC_TENANT_ID,
        }

    def test_no_stale_session_variable_routes_query_to_primary(self):
        service = ConnectionRoutingService(static_config())

        envelope = service.handle(AUTH, payload(variables={"x-hasura-query-read-no-stale": "true"}))

        assert connection_name(envelope) == "primary"
        assert envelope.attributes["routing_reason"] == "mutation_or_no_stale"

    def test_primary_route_does_not_advance_cursor(self):
        selector = ReplicaSelector()
        service = ConnectionRoutingService(static_config(), selector=selector)

        service.handle(AUTH, payload("mutation"))
        service.handle(AUTH, payload(variables={"x-hasura-query-read-no-stale": 1}))

        assert selector.snapshot() == {}
        assert connection_name(service.handle(AUTH, payload())) == "r1"

    @pytest.mark.parametrize("operation_type,variables,expected", [
        ("query", {}, RouteTarget.replica),
        ("queryExplain", {}, RouteTarget.replica),
        ("mutation", {}, RouteTarget.primary),
        ("query", {"x-hasura-query-read-no-stale": "true"}, RouteTarget.primary),
    ])
    def test_decision_target(self, operation_type, variables, expected):
        service = ConnectionRoutingService(static_config())
        request = validate_routing_request(payload(operation_type, variables)).request
        topology = service.resolver.resolve(AUTH)

        decision = service.route(request, topology, AUTH)

        assert decision.target == expected
        assert (decision.replica_index is not None) == (expected == RouteTarget.replica)

    def test_tenant_id_reported_only_for_replica_routes(self):
        service = ConnectionRoutingService(static_config())

        assert "tenant_id" not in service.handle(AUTH, payload("mutation")).attributes
        assert service.handle(AUTH, payload()).attributes["tenant_id"] == STATIC_TENANT_ID

    def test_header_signal_ignored_when_not_configured(self):
        service = ConnectionRoutingService(static_config())

        envelope = service.handle({**AUTH, "x-hasura-query-read-no-stale": "true"}, payload())

        assert connection_name(envelope) == "r1"


class TestRequestRewriting:
    """Only request_arguments.connection_name changes."""

    def test_other_fields_pass_through(self):
        ndc_request = {
            "collection": "albums",
            "query": {"fields": {"title": {"type": "column", "column": "Title"}}, "limit": None},
            "arguments": {},
            "collection_relationships": {},
            "variables": [{"id": 1}],
            "request_arguments": {"timeout": 30},
        }
        sent = copy.deepcopy(ndc_request)
        service = ConnectionRoutingService(static_config())

        envelope = service.handle(AUTH, payload(ndc_request=ndc_request))

        expected = copy.deepcopy(sent)
        expected["request_arguments"]["connection_name"] = "r1"
        assert envelope.body == {"ndcRequest": expected}

    def test_missing_request_arguments_is_created(self):
        service = ConnectionRoutingService(static_config())

        envelope = service.handle(AUTH, payload("mutation", ndc_request={"collection": "albums"}))

        assert envelope.body == {
            "ndcRequest": {
                "collection": "albums",
                "request_arguments": {"connection_name": "primary"},
            }
        }

    def test_existing_connection_name_is_overwritten(self):
        service = ConnectionRoutingService(static_config())

        envelope = service.handle(
            AUTH, payload("mutation", ndc_request={"request_arguments": {"connection_name": "r9"}})
        )

        assert connection_name(envelope) == "primary"


class TestHeaderTopologyRouting:
    """Routing with topology supplied per request."""

    def test_tenants_round_robin_independently(self):
        service = ConnectionRoutingService(header_config())

        a1 = connection_name(service.handle(topology_headers("a"), payload()))
        a2 = connection_name(service.handle(topology_headers("a"), payload()))
        b1 = connection_name(service.handle(topology_headers("b", replicas="x1,x2"), payload()))

        assert (a1, a2, b1) == ("r1", "r2", "x1")

    def test_shrinking_replica_list_resets(self):
        service = ConnectionRoutingService(header_config())
        service.handle(topology_headers(), payload())
        service.handle(topology_headers(), payload())

        envelope = service.handle(topology_headers(replicas="r1,r2"), payload())

        assert envelope.status == 200
        assert connection_name(envelope) == "r1"
        assert envelope.attributes["replica_index"] == 0

    @pytest.mark.parametrize("value", ["true", "1"])
    def test_no_stale_header_routes_to_primary(self, value):
        service = ConnectionRoutingService(header_config())

        envelope = service.handle(
            {**topology_headers(), "x-hasura-query-read-no-stale": value}, payload()
        )

        assert connection_name(envelope) == "primary"

    @pytest.mark.parametrize(
        "missing_header, attribute",
        [
            ("hasura-primary-connection-name", "primary_connection_name_not_found"),
            ("hasura-replica-connection-names", "replica_connection_names_not_found"),
            ("hasura-unique-project-id", "project_id_not_found"),
        ],
    )
    def test_missing_topology_header_is_server_error(self, missing_header, attribute):
        service = ConnectionRoutingService(header_config())
        headers = {k: v for k, v in topology_headers().items() if k != missing_header}

        envelope = service.handle(headers, payload())

        assert envelope.status == 500
        assert envelope.attributes == {attribute: True}
        assert not envelope.tracing.is_ok

    def test_empty_static_replicas_is_server_error(self):
        service = ConnectionRoutingService(static_config(replica_connection_names=[]))

        envelope = service.handle(AUTH, payload())

        assert envelope.status == 500
        assert envelope.attributes == {"replica_connection_names_not_found": True}

    def test_empty_static_replicas_still_routes_mutations(self):
        service = ConnectionRoutingService(static_config(replica_connection_names=[]))

        assert connection_name(service.handle(AUTH, payload("mutation"))) == "primary"


class TestValidationErrors:
    """Validation failures produce itemized 400s."""

    def test_missing_role(self):
        service = ConnectionRoutingService(static_config())
        body = payload()
        del body["session"]["role"]

        envelope = service.handle(AUTH, body)

        assert envelope.status == 400
        assert envelope.attributes == {"validation_error": True}
        assert envelope.body["error"] == "Invalid request format"
        assert any("session.role" in detail for detail in envelope.body["details"])

    def test_string_variables_mode(self):
        service = ConnectionRoutingService(
            static_config(schema=SchemaOptions(session_variables=SessionVariablesMode.string))
        )

        envelope = service.handle(AUTH, payload(variables={"x-hasura-query-read-no-stale": True}))

        assert envelope.status == 400

    def test_plain_connector_name_mode(self):
        service = ConnectionRoutingService(
            static_config(schema=SchemaOptions(data_connector_name=DataConnectorNameMode.plain))
        )
        body = payload("mutation")
        body["dataConnectorName"] = "db1"

        envelope = service.handle(AUTH, body)

        assert envelope.status == 200
        assert connection_name(envelope) == "primary"


class TestUnexpectedErrors:
    """Unexpected failures become generic 500s."""

    def test_internal_error_is_not_echoed(self):
        selector = Mock(spec=ReplicaSelector)
        selector.select.side_effect = RuntimeError("database password is hunter2")
        service = ConnectionRoutingService(static_config(), selector=selector)

        envelope = service.handle(AUTH, payload())

        assert envelope.status == 500
        assert envelope.attributes == {"internal_error": True}
        assert envelope.body == {
            "error": "Internal server error",
            "message": "An unexpected error occurred",
        }
        assert "hunter2" not in str(envelope.body)

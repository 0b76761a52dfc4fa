"""
Plugin Configuration Model

This module defines the PluginConfig dataclass holding everything the routing
webhook reads from its environment: the shared secret, the connection
topology source, the schema variant accepted on the wire, and tracing export
settings.
"""

import enum
from dataclasses import dataclass, field
from typing import Dict, List, Optional


class TopologyMode(str, enum.Enum):
    """Where primary/replica connection names come from."""
    static = "static"
    headers = "headers"


class SessionVariablesMode(str, enum.Enum):
    """Accepted value types for session.variables."""
    any = "any"
    string = "string"


class DataConnectorNameMode(str, enum.Enum):
    """Accepted shape of dataConnectorName."""
    structured = "structured"
    plain = "plain"


@dataclass(frozen=True)
class SchemaOptions:
    """
    Request schema variant.

    Attributes:
        session_variables: Whether session variable values may be anything or must be strings
        data_connector_name: Whether dataConnectorName is a {subgraph, name} object or a string
    """
    session_variables: SessionVariablesMode = SessionVariablesMode.any
    data_connector_name: DataConnectorNameMode = DataConnectorNameMode.structured


@dataclass(frozen=True)
class PluginConfig:
    """
    Process configuration for the dynamic connection webhook.

    Attributes:
        shared_secret: Value the auth header must carry
        auth_header_name: Header holding the shared secret
        topology_mode: Static topology or per-request topology headers
        primary_connection_name: Primary connection (static mode)
        replica_connection_names: Ordered replica connections (static mode)
        primary_connection_name_header: Header with the primary name (headers mode)
        replica_connection_names_header: Header with comma-separated replicas (headers mode)
        project_id_header: Header with the tenant/project identifier (headers mode)
        read_no_stale_header: Header consulted for the no-stale override, if any
        schema: Accepted request schema variant
        otel_endpoint: OTLP/HTTP traces endpoint; export is disabled when None
        otel_headers: Extra headers sent to the trace collector
    """
    shared_secret: str
    auth_header_name: str = "hasura-m-auth"
    topology_mode: TopologyMode = TopologyMode.headers
    primary_connection_name: Optional[str] = None
    replica_connection_names: List[str] = field(default_factory=list)
    primary_connection_name_header: str = "hasura-primary-connection-name"
    replica_connection_names_header: str = "hasura-replica-connection-names"
    project_id_header: str = "hasura-unique-project-id"
    read_no_stale_header: Optional[str] = None
    schema: SchemaOptions = field(default_factory=SchemaOptions)
    otel_endpoint: Optional[str] = None
    otel_headers: Dict[str, str] = field(default_factory=dict)

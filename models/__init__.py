"""Data models for the dynamic connection routing webhook."""
from .plugin_config import (
    PluginConfig,
    SchemaOptions,
    TopologyMode,
    SessionVariablesMode,
    DataConnectorNameMode,
)
from .routing_request import (
    RoutingRequest,
    NdcRequest,
    Session,
    StringSession,
    DataConnectorName,
    OperationType,
    get_routing_request_model,
)
from .request_context import RoutingContext, NoStaleSource
from .routing_decision import (
    ConnectionTopology,
    RoutingDecision,
    RoutingReason,
    RouteTarget,
    STATIC_TENANT_ID,
)
from .result_envelope import (
    ResultEnvelope,
    OutcomeKind,
    TracingStatus,
    continue_,
    respond,
    user_error,
    server_error,
)

__all__ = [
    # Configuration
    "PluginConfig",
    "SchemaOptions",
    "TopologyMode",
    "SessionVariablesMode",
    "DataConnectorNameMode",
    # Request schema
    "RoutingRequest",
    "NdcRequest",
    "Session",
    "StringSession",
    "DataConnectorName",
    "OperationType",
    "get_routing_request_model",
    # Routing
    "RoutingContext",
    "NoStaleSource",
    "ConnectionTopology",
    "RoutingDecision",
    "RoutingReason",
    "RouteTarget",
    "STATIC_TENANT_ID",
    # Results
    "ResultEnvelope",
    "OutcomeKind",
    "TracingStatus",
    "continue_",
    "respond",
    "user_error",
    "server_error",
]

"""
Dynamic connection routing for pre-NDC requests.

ConnectionRoutingService is the webhook's core: it authenticates the engine,
validates the payload, resolves the connection topology, decides between
the primary and a replica, and pins the connector request to the chosen
connection. Every outcome, including unexpected failures, is returned as a
ResultEnvelope; nothing propagates to the HTTP layer.
"""

import logging
from typing import Any, Mapping, Optional

from middleware.shared_secret_auth import is_request_authorized
from models.plugin_config import PluginConfig
from models.result_envelope import ResultEnvelope, respond, server_error, user_error
from models.routing_decision import ConnectionTopology, RouteTarget, RoutingDecision, RoutingReason
from models.routing_request import RoutingRequest
from services.replica_selector import NoReplicasAvailableError, ReplicaSelector
from services.request_rewriter import apply_connection_name
from services.request_validator import validate_routing_request
from services.routing_policy import decide_route, get_routing_context
from services.topology_resolver import (
    TopologyResolutionError,
    TopologyResolver,
    build_topology_resolver,
)

logger = logging.getLogger(__name__)


class ConnectionRoutingService:
    """
    Routes pre-NDC requests to a primary or replica connection.

    The replica selector is injected so its round-robin state is owned by
    whoever owns the service (one per application in practice).
    """

    def __init__(
        self,
        config: PluginConfig,
        selector: Optional[ReplicaSelector] = None,
        resolver: Optional[TopologyResolver] = None,
    ):
        self.config = config
        self.selector = selector if selector is not None else ReplicaSelector()
        self.resolver = resolver if resolver is not None else build_topology_resolver(config)

    def handle(self, headers: Mapping[str, str], payload: Any) -> ResultEnvelope:
        """
        Handle one webhook request.

        Args:
            headers: Request headers
            payload: Parsed JSON body

        Returns:
            ResultEnvelope for the HTTP and tracing layers
        """
        try:
            return self._handle(headers, payload)
        except (TopologyResolutionError, NoReplicasAvailableError) as e:
            logger.error(f"Connection topology misconfigured: code={e.code}, error={e.message}")
            return server_error(
                attributes={e.code: True},
                body={
                    "error": "Connection topology is misconfigured",
                    "message": e.message,
                },
                message="Connection topology is misconfigured",
            )
        except Exception as e:
            logger.error(
                f"Error in dynamic connection handler: error={type(e).__name__}: {str(e)}",
                exc_info=True
            )
            return server_error(
                attributes={"internal_error": True},
                body={
                    "error": "Internal server error",
                    "message": "An unexpected error occurred",
                },
                message="Dynamic connection handler failed",
            )

    def _handle(self, headers: Mapping[str, str], payload: Any) -> ResultEnvelope:
        if not is_request_authorized(headers, self.config.auth_header_name, self.config.shared_secret):
            logger.warning("Unauthorized request: endpoint=/pre/ndc, reason=invalid_auth_header")
            return user_error(
                attributes={"unauthorized": True},
                body={
                    "error": "Unauthorized",
                    "message": "Invalid auth header",
                },
                message="Unauthorized request",
            )

        outcome = validate_routing_request(payload, self.config.schema)
        if not outcome.is_valid:
            return user_error(
                attributes={"validation_error": True},
                body={
                    "error": "Invalid request format",
                    "details": outcome.errors,
                },
                message="Request validation failed",
            )

        request = outcome.request
        topology = self.resolver.resolve(headers)
        decision = self.route(request, topology, headers)

        ndc_request = apply_connection_name(request.ndcRequest, decision.connection_name)

        return respond(
            attributes={
                "connection_name": decision.connection_name,
                "routing_reason": decision.reason.value,
                "operation_type": request.operationType.value,
                "replica_index": decision.replica_index,
                "tenant_id": topology.tenant_id if decision.target == RouteTarget.replica else None,
            },
            body={"ndcRequest": ndc_request},
            message=f"Routed to {decision.connection_name} ({decision.reason.value})",
        )

    def route(
        self,
        request: RoutingRequest,
        topology: ConnectionTopology,
        headers: Mapping[str, str],
    ) -> RoutingDecision:
        """
        Choose the connection for a validated request.

        Raises:
            NoReplicasAvailableError: If a replica is needed but none are configured
        """
        no_stale_header = (
            headers.get(self.config.read_no_stale_header)
            if self.config.read_no_stale_header
            else None
        )
        context = get_routing_context(request.session.variables, no_stale_header)
        reason = decide_route(request.operationType, context)

        if reason == RoutingReason.mutation_or_no_stale:
            logger.info(
                f"Routing to primary database: operation_type={request.operationType.value}, "
                f"reason={reason.value}, no_stale_source="
                f"{context.no_stale_source.value if context.no_stale_source else 'None'}, "
                f"connection={topology.primary_connection_name}"
            )
            return RoutingDecision(
                connection_name=topology.primary_connection_name,
                reason=reason,
            )

        connection_name, replica_index = self.selector.select(
            topology.tenant_id,
            topology.replica_connection_names,
        )
        logger.info(
            f"Routing to read replica: operation_type={request.operationType.value}, "
            f"reason={reason.value}, connection={connection_name}, "
            f"replica_index={replica_index}, tenant_id={topology.tenant_id}"
        )
        return RoutingDecision(
            connection_name=connection_name,
            reason=reason,
            replica_index=replica_index,
        )

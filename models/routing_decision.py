"""
Routing Decision Data Models

This module defines the connection topology a request is routed against and
the decision produced for it.
"""

import enum
from dataclasses import dataclass
from typing import List, Optional

# Tenant id used when the topology is process-wide rather than per project
STATIC_TENANT_ID = "default"


class RouteTarget(str, enum.Enum):
    """Which side of the topology serves a request."""
    primary = "primary"
    replica = "replica"


class RoutingReason(str, enum.Enum):
    """Why a target was chosen; reported in span attributes."""
    mutation_or_no_stale = "mutation_or_no_stale"
    round_robin_replica = "round_robin_replica"


@dataclass(frozen=True)
class ConnectionTopology:
    """
    Connections available to one tenant.

    Attributes:
        tenant_id: Unit the round-robin cursor is tracked for
        primary_connection_name: Connection serving writes and no-stale reads
        replica_connection_names: Ordered read replicas (may be empty when
            supplied per request; selection fails cleanly in that case)
    """
    tenant_id: str
    primary_connection_name: str
    replica_connection_names: List[str]


@dataclass(frozen=True)
class RoutingDecision:
    """
    Outcome of routing one request.

    Attributes:
        connection_name: Connection the request is pinned to
        reason: Why it was chosen
        replica_index: Index used in the replica list (replica routes only)
    """
    connection_name: str
    reason: RoutingReason
    replica_index: Optional[int] = None

    @property
    def target(self) -> RouteTarget:
        if self.reason == RoutingReason.round_robin_replica:
            return RouteTarget.replica
        return RouteTarget.primary

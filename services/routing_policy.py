"""
Primary/replica routing policy.

Mutations, and reads that explicitly ask not to see stale data, go to the
primary connection. Every other read goes to a replica. The policy itself is
pure; replica choice is delegated to ReplicaSelector.
"""

import logging
from typing import Any, Mapping, Optional

from models.request_context import NoStaleSource, RoutingContext
from models.routing_decision import RoutingReason
from models.routing_request import OperationType

logger = logging.getLogger(__name__)

READ_NO_STALE_SESSION_VARIABLE = "x-hasura-query-read-no-stale"


def is_no_stale_requested(value: Any) -> bool:
    """
    Interpret a read-no-stale signal.

    Truthy values are exactly: True, 1 (int or float), "1" and "true".
    String matching is case-sensitive, so "TRUE" is not truthy.
    """
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    if isinstance(value, str):
        return value in ("1", "true")
    return False


def get_routing_context(
    session_variables: Mapping[str, Any],
    no_stale_header: Optional[str] = None,
) -> RoutingContext:
    """
    Derive the per-request routing context.

    Args:
        session_variables: Validated session.variables
        no_stale_header: Value of the read-no-stale header, if one is configured and present

    Returns:
        RoutingContext with the normalized no-stale signal
    """
    if is_no_stale_requested(session_variables.get(READ_NO_STALE_SESSION_VARIABLE)):
        return RoutingContext(read_no_stale=True, no_stale_source=NoStaleSource.session_variable)

    if is_no_stale_requested(no_stale_header):
        return RoutingContext(read_no_stale=True, no_stale_source=NoStaleSource.header)

    return RoutingContext(read_no_stale=False)


def decide_route(operation_type: OperationType, context: RoutingContext) -> RoutingReason:
    """
    Decide whether a request is served by the primary or a replica.

    Mutations are checked first so they never reach replica selection,
    whatever the no-stale signal says.

    Returns:
        mutation_or_no_stale for the primary, round_robin_replica for a replica
    """
    if OperationType(operation_type).is_mutation or context.read_no_stale:
        return RoutingReason.mutation_or_no_stale

    return RoutingReason.round_robin_replica


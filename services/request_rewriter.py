"""Outgoing connector request rewriting."""

from typing import Any, Dict

from models.routing_request import NdcRequest

CONNECTION_NAME_ARGUMENT = "connection_name"


def apply_connection_name(ndc_request: NdcRequest, connection_name: str) -> Dict[str, Any]:
    """
    Pin a connector request to a connection.

    Sets request_arguments["connection_name"] and leaves every other field
    untouched.

    Returns:
        The rewritten request in wire form
    """
    if ndc_request.request_arguments is None:
        ndc_request.request_arguments = {}
    ndc_request.request_arguments[CONNECTION_NAME_ARGUMENT] = connection_name
    return ndc_request.to_payload()

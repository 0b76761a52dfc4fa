"""
Result Envelope Models

Every path through the routing handler, successful or not, ends in a
ResultEnvelope. The envelope carries what the HTTP layer needs (status and
body) and what the tracing layer needs (span status, message and attributes),
so the handler itself never touches either.

Outcome kinds are a closed set:
- SUCCESS: 200 with a body, or 204 without one
- USER_ERROR: 400, the caller sent something wrong
- SERVER_ERROR: 500, this service or its configuration is at fault
"""

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from opentelemetry.trace import StatusCode

AttributeValue = Union[str, bool, int, float]


class OutcomeKind(str, enum.Enum):
    """Tag for the kind of result a handler produced."""
    success = "success"
    user_error = "user_error"
    server_error = "server_error"


@dataclass(frozen=True)
class TracingStatus:
    """Span status to record for a result."""
    code: StatusCode
    message: str

    @property
    def is_ok(self) -> bool:
        return self.code == StatusCode.OK


@dataclass(frozen=True)
class ResultEnvelope:
    """
    Uniform result of handling one webhook request.

    Attributes:
        kind: Which outcome this is
        status: HTTP status code to return
        body: JSON body to return (None for 204)
        tracing: Span status and message
        attributes: Scalar span attributes, for observability only
    """
    kind: OutcomeKind
    status: int
    body: Optional[Dict[str, Any]]
    tracing: TracingStatus
    attributes: Dict[str, AttributeValue] = field(default_factory=dict)


def _clean_attributes(attributes: Optional[Dict[str, Any]]) -> Dict[str, AttributeValue]:
    """Drop None values; span attributes cannot hold them."""
    return {key: value for key, value in (attributes or {}).items() if value is not None}


def continue_(attributes: Optional[Dict[str, Any]] = None, message: str = "") -> ResultEnvelope:
    """Everything is fine, continue without a body."""
    return ResultEnvelope(
        kind=OutcomeKind.success,
        status=204,
        body=None,
        tracing=TracingStatus(StatusCode.OK, message),
        attributes=_clean_attributes(attributes),
    )


def respond(
    body: Dict[str, Any],
    attributes: Optional[Dict[str, Any]] = None,
    message: str = "",
) -> ResultEnvelope:
    """Everything is fine, return the given body."""
    return ResultEnvelope(
        kind=OutcomeKind.success,
        status=200,
        body=body,
        tracing=TracingStatus(StatusCode.OK, message),
        attributes=_clean_attributes(attributes),
    )


def user_error(
    body: Dict[str, Any],
    attributes: Optional[Dict[str, Any]] = None,
    message: str = "",
) -> ResultEnvelope:
    """A user-caused error occurred."""
    return ResultEnvelope(
        kind=OutcomeKind.user_error,
        status=400,
        body=body,
        tracing=TracingStatus(StatusCode.ERROR, message),
        attributes=_clean_attributes(attributes),
    )


def server_error(
    body: Dict[str, Any],
    attributes: Optional[Dict[str, Any]] = None,
    message: str = "",
) -> ResultEnvelope:
    """A server-caused error occurred."""
    return ResultEnvelope(
        kind=OutcomeKind.server_error,
        status=500,
        body=body,
        tracing=TracingStatus(StatusCode.ERROR, message),
        attributes=_clean_attributes(attributes),
    )

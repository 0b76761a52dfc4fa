"""
Pre-NDC webhook router.

This router provides the POST /pre/ndc endpoint the engine calls before it
sends a request to a data connector. The routing decision itself lives in
ConnectionRoutingService; this module only adapts it to HTTP and tracing:
it runs the service inside a span, copies the envelope's status and
attributes onto the span, logs the request, and writes the response.
"""

import json
import logging
import time
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response
from opentelemetry.trace import Span, Status, StatusCode

from models.result_envelope import ResultEnvelope
from services.routing_service import ConnectionRoutingService
from services.tracing import get_tracer

logger = logging.getLogger(__name__)

router = APIRouter(tags=["pre-ndc"])

SPAN_NAME = "dynamic-connection"


def get_routing_service(request: Request) -> ConnectionRoutingService:
    """Routing service owned by the running application."""
    return request.app.state.routing_service


async def _read_payload(request: Request) -> Any:
    """
    Parse the JSON body.

    A malformed body yields None, which validation rejects after the request
    has been authenticated.
    """
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning(f"Malformed JSON body: path={request.url.path}, error={type(e).__name__}")
        return None


def _record_on_span(span: Span, envelope: ResultEnvelope) -> None:
    if envelope.tracing.is_ok:
        span.set_status(Status(StatusCode.OK))
    else:
        span.set_status(Status(StatusCode.ERROR, envelope.tracing.message))
    for key, value in envelope.attributes.items():
        span.set_attribute(key, value)


def _to_response(envelope: ResultEnvelope) -> Response:
    if envelope.body is None:
        return Response(status_code=envelope.status)
    return JSONResponse(status_code=envelope.status, content=envelope.body)


@router.post("/pre/ndc")
async def pre_ndc(request: Request):
    """
    Route a connector request to the primary or a read replica.

    Returns:
        200 with {"ndcRequest": ...} carrying request_arguments.connection_name,
        400 for auth or validation failures, 500 for misconfiguration or
        unexpected errors
    """
    start_time = time.perf_counter()

    with get_tracer().start_as_current_span(SPAN_NAME) as span:
        try:
            payload = await _read_payload(request)
            envelope = get_routing_service(request).handle(request.headers, payload)
            _record_on_span(span, envelope)
            response = _to_response(envelope)
        except Exception as e:
            logger.error(
                f"Request handler error: method={request.method}, path={request.url.path}, "
                f"error={type(e).__name__}: {str(e)}",
                exc_info=True
            )
            span.set_status(Status(StatusCode.ERROR, str(e)))
            response = JSONResponse(status_code=500, content={"message": "Internal server error"})

    duration_ms = (time.perf_counter() - start_time) * 1000
    logger.info(
        f"HTTP {request.method} {request.url.path}: status={response.status_code}, "
        f"duration_ms={duration_ms:.1f}, user_agent={request.headers.get('user-agent')}"
    )

    return response

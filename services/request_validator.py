"""
Request validation for the /pre/ndc webhook.

Wraps the Pydantic request models so callers get a structured outcome (the
validated request, or every violation as a readable message) instead of
handling ValidationError themselves.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

from pydantic import ValidationError

from models.plugin_config import SchemaOptions
from models.routing_request import RoutingRequest, get_routing_request_model

logger = logging.getLogger(__name__)


@dataclass
class ValidationOutcome:
    """
    Result of validating a payload.

    Attributes:
        request: The validated request (None if invalid)
        errors: One message per violation, "<field path>: <message>"
    """
    request: Optional[RoutingRequest] = None
    errors: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.request is not None and not self.errors


def format_validation_errors(exc: ValidationError) -> List[str]:
    """Turn a ValidationError into "<dotted.path>: <message>" strings."""
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "body"
        messages.append(f"{location}: {error.get('msg', 'invalid value')}")
    return messages


def validate_routing_request(payload: Any, schema: SchemaOptions = SchemaOptions()) -> ValidationOutcome:
    """
    Validate a raw JSON payload against the RoutingRequest schema.

    ndcRequest.request_arguments is normalized to {} when absent.

    Args:
        payload: Parsed JSON body
        schema: Schema variant to validate against

    Returns:
        ValidationOutcome with either the request or the list of violations
    """
    if not isinstance(payload, dict):
        logger.warning(
            f"Request validation failed: body is not a JSON object, type={type(payload).__name__}"
        )
        return ValidationOutcome(errors=["body: Input should be a JSON object"])

    model = get_routing_request_model(schema)
    try:
        request = model.model_validate(payload)
    except ValidationError as e:
        errors = format_validation_errors(e)
        logger.warning(f"Request validation failed: error_count={len(errors)}, errors={errors}")
        return ValidationOutcome(errors=errors)

    return ValidationOutcome(request=request)

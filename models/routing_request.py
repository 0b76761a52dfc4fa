"""
Pre-NDC Routing Request Models

This module defines the Pydantic models for the payload the engine posts to
the /pre/ndc webhook. Two parts of the schema vary by deployment:

- session.variables values are either unrestricted or string-only
- dataConnectorName is either a {subgraph, name} object or a plain string

get_routing_request_model() returns the concrete model for a SchemaOptions
combination.
"""

import enum
from functools import lru_cache
from typing import Any, Dict, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, create_model, model_validator

from models.plugin_config import DataConnectorNameMode, SchemaOptions, SessionVariablesMode


class OperationType(str, enum.Enum):
    """Operation kinds the engine sends to a connector."""
    query = "query"
    queryExplain = "queryExplain"
    mutation = "mutation"
    mutationExplain = "mutationExplain"

    @property
    def is_mutation(self) -> bool:
        return self in (OperationType.mutation, OperationType.mutationExplain)


class Session(BaseModel):
    """Engine session with unrestricted variable values."""
    model_config = ConfigDict(extra="forbid")

    role: str = Field(
        ...,
        description="Role the request is executed as"
    )
    variables: Dict[str, Any] = Field(
        ...,
        description="Session variables (x-hasura-*)"
    )


class StringSession(BaseModel):
    """Engine session whose variables must all be strings."""
    model_config = ConfigDict(extra="forbid")

    role: str = Field(
        ...,
        description="Role the request is executed as"
    )
    variables: Dict[str, str] = Field(
        ...,
        description="Session variables (x-hasura-*), string values only"
    )


class DataConnectorName(BaseModel):
    """Subgraph-qualified connector name."""
    model_config = ConfigDict(extra="forbid")

    subgraph: str
    name: str


class NdcRequest(BaseModel):
    """
    Connector request forwarded by the engine.

    Only the well-known fields are typed; anything else the engine sends is
    kept as-is so newer connector versions pass through unchanged.
    """
    model_config = ConfigDict(extra="allow")

    collection: Optional[str] = None
    query: Optional[Dict[str, Any]] = None
    arguments: Optional[Dict[str, Any]] = None
    collection_relationships: Optional[Dict[str, Any]] = None
    request_arguments: Optional[Dict[str, Any]] = None

    @model_validator(mode="after")
    def default_request_arguments(self) -> "NdcRequest":
        """Normalize a missing or null request_arguments to an empty mapping."""
        if self.request_arguments is None:
            self.request_arguments = {}
        return self

    def to_payload(self) -> Dict[str, Any]:
        """
        Serialize back to the wire shape.

        Declared fields are only emitted if they were sent; request_arguments
        is always emitted; extra fields are emitted as received.
        """
        declared = type(self).model_fields
        payload = {
            name: getattr(self, name)
            for name in declared
            if name in self.model_fields_set or name == "request_arguments"
        }
        payload.update(self.model_extra or {})
        return payload


class RoutingRequest(BaseModel):
    """
    Validated /pre/ndc payload.

    session and dataConnectorName are declared loosely here and narrowed by
    get_routing_request_model() for the configured schema variant.
    """
    model_config = ConfigDict(extra="forbid")

    session: Session
    ndcRequest: NdcRequest
    dataConnectorName: Any
    operationType: OperationType
    ndcVersion: str


@lru_cache(maxsize=None)
def get_routing_request_model(schema: SchemaOptions = SchemaOptions()) -> Type[RoutingRequest]:
    """
    Return the RoutingRequest model for a schema variant.

    Args:
        schema: Which session variable and connector name shapes to accept

    Returns:
        A RoutingRequest subclass with session and dataConnectorName narrowed
    """
    session_type = (
        StringSession
        if schema.session_variables == SessionVariablesMode.string
        else Session
    )
    connector_name_type = (
        str
        if schema.data_connector_name == DataConnectorNameMode.plain
        else DataConnectorName
    )
    return create_model(
        f"RoutingRequest_{schema.session_variables.value}_{schema.data_connector_name.value}",
        __base__=RoutingRequest,
        session=(session_type, ...),
        dataConnectorName=(connector_name_type, ...),
    )

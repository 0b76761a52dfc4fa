"""
Configuration Loading Utilities

This module builds a PluginConfig from environment variables. It follows the
same conventions as the rest of the service: values come from os.getenv (the
process loads .env through python-dotenv at startup), optional values fall back
to documented defaults, and missing or malformed required values raise
ConfigurationError.

Environment variables:
- HASURA_M_AUTH (required): shared secret expected in the auth header
- AUTH_HEADER_NAME: header carrying the secret (default: hasura-m-auth)
- TOPOLOGY_MODE: "static" or "headers" (default: headers)
- PRIMARY_CONNECTION_NAME / REPLICA_CONNECTION_NAMES: static topology
- PRIMARY_CONNECTION_NAME_HEADER / REPLICA_CONNECTION_NAMES_HEADER /
  PROJECT_ID_HEADER: header names for per-request topology
- READ_NO_STALE_HEADER: header consulted for the no-stale override
- SESSION_VARIABLES_MODE: "any" or "string" (default: any)
- DATA_CONNECTOR_NAME_MODE: "structured" or "plain" (default: structured)
- OTEL_ENDPOINT / OTEL_HEADERS: trace export settings
"""

import os
import logging
from typing import Dict, List, Mapping, Optional

from opentelemetry.util.re import parse_env_headers

from models.plugin_config import (
    DataConnectorNameMode,
    PluginConfig,
    SchemaOptions,
    SessionVariablesMode,
    TopologyMode,
)

logger = logging.getLogger(__name__)

DEFAULT_READ_NO_STALE_HEADER = "x-hasura-query-read-no-stale"


class ConfigurationError(Exception):
    """
    Raised when the environment does not describe a usable configuration.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code for logging
    """
    def __init__(self, message: str, code: str = "CONFIG_INVALID"):
        self.message = message
        self.code = code
        super().__init__(message)


def split_connection_names(value: str) -> List[str]:
    """
    Split a comma-separated connection name list, preserving order.

    Entries are stripped of surrounding whitespace but empty entries are kept,
    so "a,,b" yields ["a", "", "b"].
    """
    return [name.strip() for name in value.split(",")]


def parse_header_pairs(value: Optional[str]) -> Dict[str, str]:
    """
    Parse OTLP exporter headers ("key=value,key=value") into a dict.

    Parsing follows the OpenTelemetry environment variable format: names
    and values are percent-decoded and names are lowercased, so
    "Authorization=pat%20abc" yields {"authorization": "pat abc"}.

    Args:
        value: Raw OTEL_HEADERS value (None or empty yields {})

    Raises:
        ConfigurationError: If an entry has no "="
    """
    if not value:
        return {}

    for position, pair in enumerate(value.split(","), start=1):
        if pair.strip() and "=" not in pair:
            raise ConfigurationError(
                f"Malformed OTEL_HEADERS entry #{position} (expected key=value)",
                code="CONFIG_INVALID_OTEL_HEADERS"
            )

    return dict(parse_env_headers(value, liberal=True))


def _parse_enum(env: Mapping[str, str], name: str, enum_type, default):
    raw = env.get(name)
    if not raw:
        return default
    try:
        return enum_type(raw.strip().lower())
    except ValueError:
        allowed = ", ".join(member.value for member in enum_type)
        raise ConfigurationError(
            f"Invalid {name}: {raw!r} (allowed: {allowed})",
            code=f"CONFIG_INVALID_{name}"
        )


def load_plugin_config(environ: Optional[Mapping[str, str]] = None) -> PluginConfig:
    """
    Build the plugin configuration from environment variables.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        Validated PluginConfig

    Raises:
        ConfigurationError: If the shared secret is missing, a mode value is
            unknown, or static mode lacks a primary or replica list
    """
    env = os.environ if environ is None else environ

    shared_secret = env.get("HASURA_M_AUTH")
    if not shared_secret:
        raise ConfigurationError(
            "HASURA_M_AUTH not configured",
            code="CONFIG_MISSING_SECRET"
        )

    topology_mode = _parse_enum(env, "TOPOLOGY_MODE", TopologyMode, TopologyMode.headers)
    schema = SchemaOptions(
        session_variables=_parse_enum(
            env, "SESSION_VARIABLES_MODE", SessionVariablesMode, SessionVariablesMode.any
        ),
        data_connector_name=_parse_enum(
            env, "DATA_CONNECTOR_NAME_MODE", DataConnectorNameMode, DataConnectorNameMode.structured
        ),
    )

    primary_connection_name = env.get("PRIMARY_CONNECTION_NAME") or None
    raw_replicas = env.get("REPLICA_CONNECTION_NAMES")
    replica_connection_names = split_connection_names(raw_replicas) if raw_replicas else []

    if topology_mode == TopologyMode.static:
        if not primary_connection_name:
            raise ConfigurationError(
                "PRIMARY_CONNECTION_NAME is required when TOPOLOGY_MODE=static",
                code="CONFIG_MISSING_PRIMARY"
            )
        if not [name for name in replica_connection_names if name]:
            raise ConfigurationError(
                "REPLICA_CONNECTION_NAMES must list at least one replica when TOPOLOGY_MODE=static",
                code="CONFIG_MISSING_REPLICAS"
            )
        read_no_stale_header = env.get("READ_NO_STALE_HEADER") or None
    else:
        read_no_stale_header = env.get("READ_NO_STALE_HEADER", DEFAULT_READ_NO_STALE_HEADER) or None

    config = PluginConfig(
        shared_secret=shared_secret,
        auth_header_name=env.get("AUTH_HEADER_NAME", "hasura-m-auth"),
        topology_mode=topology_mode,
        primary_connection_name=primary_connection_name,
        replica_connection_names=replica_connection_names,
        primary_connection_name_header=env.get(
            "PRIMARY_CONNECTION_NAME_HEADER", "hasura-primary-connection-name"
        ),
        replica_connection_names_header=env.get(
            "REPLICA_CONNECTION_NAMES_HEADER", "hasura-replica-connection-names"
        ),
        project_id_header=env.get("PROJECT_ID_HEADER", "hasura-unique-project-id"),
        read_no_stale_header=read_no_stale_header,
        schema=schema,
        otel_endpoint=env.get("OTEL_ENDPOINT") or None,
        otel_headers=parse_header_pairs(env.get("OTEL_HEADERS")),
    )

    logger.info(
        f"Configuration loaded: topology_mode={config.topology_mode.value}, "
        f"session_variables_mode={schema.session_variables.value}, "
        f"data_connector_name_mode={schema.data_connector_name.value}, "
        f"tracing_export={'enabled' if config.otel_endpoint else 'disabled'}"
    )

    return config

"""
Connection topology resolution.

A TopologyResolver answers "which primary and which replicas does this
request route between, and whose round-robin cursor applies?". Two
strategies exist and one is chosen from configuration at startup:

- StaticTopologyResolver: a single process-wide topology from the environment
- HeaderTopologyResolver: topology sent by the engine on every request, keyed
  by a project identifier

Missing topology headers mean the calling system is misconfigured, so they
are reported as TopologyResolutionError (a server error), not a bad request.
"""

import logging
from abc import ABC, abstractmethod
from typing import Mapping, Sequence

from models.plugin_config import PluginConfig, TopologyMode
from models.routing_decision import STATIC_TENANT_ID, ConnectionTopology
from utils.config_utils import split_connection_names

logger = logging.getLogger(__name__)


class TopologyResolutionError(Exception):
    """
    Raised when the connection topology for a request cannot be determined.

    Attributes:
        message: Human-readable error description
        code: Span attribute key identifying what was missing
    """
    def __init__(self, message: str, code: str):
        self.message = message
        self.code = code
        super().__init__(message)


class TopologyResolver(ABC):
    """Source of the connection topology for a request."""

    @abstractmethod
    def resolve(self, headers: Mapping[str, str]) -> ConnectionTopology:
        """
        Determine the topology for a request.

        Raises:
            TopologyResolutionError: If the topology cannot be determined
        """


class StaticTopologyResolver(TopologyResolver):
    """Process-wide topology; all requests share one round-robin cursor."""

    def __init__(self, primary_connection_name: str, replica_connection_names: Sequence[str]):
        self._topology = ConnectionTopology(
            tenant_id=STATIC_TENANT_ID,
            primary_connection_name=primary_connection_name,
            replica_connection_names=list(replica_connection_names),
        )

    def resolve(self, headers: Mapping[str, str]) -> ConnectionTopology:
        return self._topology


class HeaderTopologyResolver(TopologyResolver):
    """Per-request topology read from headers, one cursor per project."""

    def __init__(
        self,
        primary_connection_name_header: str,
        replica_connection_names_header: str,
        project_id_header: str,
    ):
        self.primary_connection_name_header = primary_connection_name_header
        self.replica_connection_names_header = replica_connection_names_header
        self.project_id_header = project_id_header

    def resolve(self, headers: Mapping[str, str]) -> ConnectionTopology:
        primary = headers.get(self.primary_connection_name_header)
        if not primary:
            logger.error(f"Primary connection name header missing: header={self.primary_connection_name_header}")
            raise TopologyResolutionError(
                "Primary connection name not found in headers",
                code="primary_connection_name_not_found"
            )

        raw_replicas = headers.get(self.replica_connection_names_header)
        if not raw_replicas:
            logger.error(f"Replica connection names header missing: header={self.replica_connection_names_header}")
            raise TopologyResolutionError(
                "Replica connection names not found in headers",
                code="replica_connection_names_not_found"
            )

        project_id = headers.get(self.project_id_header)
        if not project_id:
            logger.error(f"Project id header missing: header={self.project_id_header}")
            raise TopologyResolutionError(
                "Project id not found in headers",
                code="project_id_not_found"
            )

        return ConnectionTopology(
            tenant_id=project_id,
            primary_connection_name=primary,
            replica_connection_names=split_connection_names(raw_replicas),
        )


def build_topology_resolver(config: PluginConfig) -> TopologyResolver:
    """Create the resolver for the configured topology mode."""
    if config.topology_mode == TopologyMode.static:
        logger.info(
            f"Using static topology: primary={config.primary_connection_name}, "
            f"replicas={len(config.replica_connection_names)}"
        )
        return StaticTopologyResolver(
            config.primary_connection_name,
            config.replica_connection_names,
        )

    logger.info(
        f"Using header topology: primary_header={config.primary_connection_name_header}, "
        f"replicas_header={config.replica_connection_names_header}, "
        f"project_header={config.project_id_header}"
    )
    return HeaderTopologyResolver(
        config.primary_connection_name_header,
        config.replica_connection_names_header,
        config.project_id_header,
    )

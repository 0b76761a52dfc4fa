"""
Routing Context Data Model

This module defines the RoutingContext dataclass: per-request facts that are
not part of the payload itself but influence routing.
"""

import enum
from dataclasses import dataclass
from typing import Optional


class NoStaleSource(str, enum.Enum):
    """Where a truthy read-no-stale signal was found."""
    session_variable = "session_variable"
    header = "header"


@dataclass(frozen=True)
class RoutingContext:
    """
    Context derived from the session and request headers.

    Attributes:
        read_no_stale: True if the caller asked for reads from the primary
        no_stale_source: Where the truthy signal came from (None when not requested)
    """
    read_no_stale: bool
    no_stale_source: Optional[NoStaleSource] = None

"""
Shared Secret Authentication Module

The engine authenticates itself to this webhook by sending a pre-shared
secret in a request header (hasura-m-auth by default). This module compares
that header against the configured secret.

Security:
- Constant-time comparison to avoid leaking the secret through timing
- A missing header is treated exactly like a wrong one
- Never logs the secret or the received header value
"""

import hmac
import logging
from typing import Mapping, Optional

logger = logging.getLogger(__name__)


def verify_shared_secret(header_value: Optional[str], secret: str) -> bool:
    """
    Check a received auth header value against the configured secret.

    Args:
        header_value: Value of the auth header (None if absent)
        secret: Configured shared secret

    Returns:
        True if the header matches the secret exactly
    """
    if not header_value or not secret:
        return False

    return hmac.compare_digest(header_value.encode("utf-8"), secret.encode("utf-8"))


def is_request_authorized(headers: Mapping[str, str], header_name: str, secret: str) -> bool:
    """
    Authenticate a request by its headers.

    Args:
        headers: Request headers (case-insensitive mapping for HTTP requests)
        header_name: Name of the header carrying the secret
        secret: Configured shared secret

    Returns:
        True if the request carries the correct secret
    """
    header_value = headers.get(header_name)

    if header_value is None:
        logger.warning(f"Auth header missing: header={header_name}")
        return False

    if not verify_shared_secret(header_value, secret):
        logger.warning(f"Auth header mismatch: header={header_name}")
        return False

    return True

"""
API Key authentication.

Optional: enforced only when API_AUTH_ENABLED is true, in which case
the X-API-Key header must match API_KEY. Both are read per request so
the server picks up a changed environment without a restart.

HTTP routes use verify_api_key as a dependency; the /events WebSocket
calls is_authorized() during the handshake.
"""

import os
import secrets
from typing import Optional

from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader

from src.infra.settings import is_api_auth_enabled

API_KEY_HEADER = "X-API-Key"

api_key_header = APIKeyHeader(
    name=API_KEY_HEADER,
    auto_error=False,
    description="API key (required when API_AUTH_ENABLED=true)",
)


def check_api_key(provided: Optional[str]) -> Optional[str]:
    """
    Validate a presented key against API_KEY.

    Returns:
        None if the key is accepted, otherwise the rejection reason
    """
    if not is_api_auth_enabled():
        return None
    if not provided:
        return f"Missing API key. Provide {API_KEY_HEADER} header."
    expected = os.getenv("API_KEY", "")
    if not expected or not secrets.compare_digest(provided, expected):
        return "Invalid API key"
    return None


def is_authorized(headers) -> bool:
    """Check a header mapping (e.g. WebSocket handshake headers)."""
    return check_api_key(headers.get(API_KEY_HEADER.lower())) is None


async def verify_api_key(
    api_key: Optional[str] = Security(api_key_header),
) -> Optional[str]:
    """
    FastAPI dependency guarding every router except /health and /events.

    Raises:
        HTTPException: 401 when auth is enabled and the key is missing or wrong
    """
    reason = check_api_key(api_key)
    if reason is not None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=reason,
            headers={"WWW-Authenticate": "ApiKey"},
        )
    return api_key if is_api_auth_enabled() else None

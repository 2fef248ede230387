"""Shared-secret gate in front of the mail endpoint."""

from __future__ import annotations

import secrets
from typing import Annotated, Any

import structlog
from fastapi import Depends, HTTPException, status

from .config import Settings
from .deps import get_params, get_settings

logger = structlog.get_logger()

AUTH_FAILED_MESSAGE = (
    "Authentication failed. Please provide valid credentials "
    "or contact administrator for access."
)


def check_password(supplied: object, settings: Settings) -> bool:
    """Return True when no secret is configured or *supplied* matches it."""
    if settings.password is None:
        return True
    expected = settings.password.get_secret_value()
    if not expected:
        return True
    if not isinstance(supplied, str):
        return False
    return secrets.compare_digest(supplied.encode(), expected.encode())


async def require_password(
    params: Annotated[dict[str, Any], Depends(get_params)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> None:
    """FastAPI dependency rejecting callers without the configured secret."""
    if not check_password(params.get("password"), settings):
        logger.warning("caller_auth_failed")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=AUTH_FAILED_MESSAGE,
        )

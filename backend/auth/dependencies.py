"""
Authentication dependencies for FastAPI.

Admin endpoints are guarded by a shared token sent in the ``X-Admin-Token``
header and compared against ``settings.admin_api_token``.
"""

import logging
import secrets
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader

from config import Settings, get_settings

logger = logging.getLogger(__name__)

ADMIN_TOKEN_HEADER = "X-Admin-Token"

admin_token_header = APIKeyHeader(name=ADMIN_TOKEN_HEADER, auto_error=False)


async def require_admin(
    token: Optional[str] = Depends(admin_token_header),
    settings: Settings = Depends(get_settings),
) -> None:
    """
    Require a valid admin token.

    Without a configured token the endpoints are open in development and
    unavailable (503) everywhere else.
    """
    if not settings.admin_api_token:
        if settings.environment == "development":
            return
        logger.error("Admin endpoint requested but ADMIN_API_TOKEN is not configured")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Admin access not configured",
        )

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    if not secrets.compare_digest(token, settings.admin_api_token):
        logger.warning("Rejected admin request with an invalid token")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid admin token",
        )

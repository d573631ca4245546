"""
Authentication and authorization dependencies.

Identity comes from the bearer token alone; no user lookup happens here.
"""

import logging

from fastapi import Depends

from ...auth import get_current_principal
from ...core.exceptions import ForbiddenException
from ...principal import Principal

logger = logging.getLogger(__name__)


async def require_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    """Dependency that ensures the caller has administrator privileges."""

    if not principal.is_admin:
        logger.info(
            "admin_access_denied",
            extra={"event": "admin_access_denied", "user_id": principal.id},
        )
        raise ForbiddenException("Admin access required").to_http_exception()
    return principal


__all__ = ["get_current_principal", "require_admin"]

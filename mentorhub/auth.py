from datetime import datetime, timedelta, timezone
import logging
from typing import Any, Dict, Optional, cast

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
import jwt
from jwt import PyJWTError

from .core.config import settings
from .core.enums import RoleName
from .core.exceptions import UnauthorizedException
from .principal import Principal

logger = logging.getLogger(__name__)

# Tokens are issued by the identity service; this app only verifies them.
oauth2_scheme_optional = OAuth2PasswordBearer(tokenUrl="auth/login", auto_error=False)


def _secret_value(secret_obj: Any) -> str:
    getter = getattr(secret_obj, "get_secret_value", None)
    if callable(getter):
        return cast(str, getter())
    return cast(str, secret_obj)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: The claims to encode; ``sub`` is the user id and ``role`` the role name
        expires_delta: Optional expiration time delta

    Returns:
        str: The encoded JWT token
    """
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.access_token_expire_minutes
        )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, _secret_value(settings.secret_key), algorithm=settings.algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    payload_raw = jwt.decode(
        token,
        _secret_value(settings.secret_key),
        algorithms=[settings.algorithm],
        options={"verify_aud": False},
    )
    return cast(Dict[str, Any], payload_raw)


async def get_current_principal(token: Optional[str] = Depends(oauth2_scheme_optional)) -> Principal:
    """
    Dependency resolving the caller from the Authorization header.

    Raises:
        HTTPException: 401 if the token is missing, invalid, expired or lacks claims
    """
    if not token:
        raise UnauthorizedException("Not authenticated").to_http_exception()

    try:
        payload = decode_access_token(token)
    except PyJWTError as e:
        logger.info(f"Rejected bearer token: {e}")
        raise UnauthorizedException(
            "Could not validate credentials", code="INVALID_TOKEN"
        ).to_http_exception()

    subject = payload.get("sub")
    role_claim = payload.get("role")
    try:
        role = RoleName(str(role_claim).upper())
    except ValueError:
        role = None
    if not isinstance(subject, str) or not subject or role is None:
        raise UnauthorizedException(
            "Could not validate credentials", code="INVALID_TOKEN"
        ).to_http_exception()

    return Principal(id=subject, role=role)

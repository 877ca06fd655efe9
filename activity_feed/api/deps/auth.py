"""Requester identity from an HS256 JWT.

The token is read from the Authorization header (Bearer) or, for browser
clients, from the `auth-token` cookie. The `sub` claim is the requester id;
older tokens carry it as `userId`.
"""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from activity_feed.api.deps.runtime import get_settings
from activity_feed.config.settings import Settings

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

AUTH_COOKIE_NAME = "auth-token"
JWT_ALGORITHM = "HS256"


def _unauthorized(detail: str = "Not authenticated") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_requester_id(token: str, secret: str) -> str:
    """
    Validate a requester token and return its subject.

    Raises:
        HTTPException: 401 if the token is invalid or has no subject
    """
    try:
        payload = jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        logger.info(f"Rejected requester token: {e}")
        raise _unauthorized("Invalid authentication token") from e

    requester_id = payload.get("sub") or payload.get("userId")
    if not requester_id:
        raise _unauthorized("Invalid authentication token")
    return str(requester_id)


async def get_requester_id(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    settings: Settings = Depends(get_settings),
) -> str:
    token = credentials.credentials if credentials else request.cookies.get(AUTH_COOKIE_NAME)
    if not token:
        raise _unauthorized()

    if not settings.jwt_secret:
        logger.error("JWT_SECRET is not configured, rejecting requester token")
        raise _unauthorized("Authentication is not configured")

    return decode_requester_id(token, settings.jwt_secret)


RequesterId = Annotated[str, Depends(get_requester_id)]

"""
Bearer token guard for protected routes.
"""

from typing import Optional

import jwt
import structlog
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from services.security import TokenClaims, decode_access_token
from utilities.errors import AuthError

logger = structlog.get_logger(__name__)

ACCESS_DENIED_MESSAGE = "Access denied!"

# auto_error=False so a missing or non-Bearer header yields None instead of a 403
security = HTTPBearer(auto_error=False)


async def verify_access_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> TokenClaims:
    """
    Verify the bearer token on the request.

    On success the decoded claims are stored on ``request.state.user_info``
    and returned to the handler. On failure the handler never runs.

    Raises:
        AuthError: If the header is absent or malformed, or the token is invalid or expired
    """
    if credentials is None:
        logger.warning("Missing or malformed Authorization header", path=request.url.path)
        raise AuthError(ACCESS_DENIED_MESSAGE)

    try:
        claims = decode_access_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        logger.info("Expired token rejected", path=request.url.path)
        raise AuthError(ACCESS_DENIED_MESSAGE)
    except jwt.PyJWTError as e:
        logger.warning("Invalid token rejected", path=request.url.path, error=str(e))
        raise AuthError(ACCESS_DENIED_MESSAGE)

    request.state.user_info = claims
    return claims

import asyncio
import logging
from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from duet.database import get_db
from duet.services.auth import AuthService
from duet.core.config import settings
from duet.core.errors import AuthError, AuthTimeoutError, MissingOrMalformedAuthError
from duet.core.security import TokenService, get_token_service

logger = logging.getLogger(__name__)

# Key under which the authenticated user id is exposed to handlers
USER_ID_KEY = "user_id"

# Case-sensitive on purpose; HTTPBearer would also accept "bearer"
BEARER_PREFIX = "Bearer "


def parse_bearer_token(authorization: Optional[str]) -> str:
    """Extract the token from an ``Authorization: Bearer <token>`` header"""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise MissingOrMalformedAuthError()
    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        raise MissingOrMalformedAuthError()
    return token


def unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_bearer_token(authorization: Optional[str] = Header(None)) -> str:
    """Dependency returning the raw bearer token or rejecting with 401"""
    try:
        return parse_bearer_token(authorization)
    except MissingOrMalformedAuthError as e:
        raise unauthorized(e.message)


async def get_auth_service(
    db: AsyncSession = Depends(get_db),
    token_service: TokenService = Depends(get_token_service),
) -> AuthService:
    return AuthService(db, token_service)


async def get_current_user_id(
    request: Request,
    token: str = Depends(get_bearer_token),
    auth_service: AuthService = Depends(get_auth_service),
) -> int:
    """Request gate: verify the bearer token and resolve it to a user id.

    Verification and lookup share one deadline. Running out of time fails
    closed with its own message; nothing is attached to the request unless
    the whole sequence succeeds.
    """
    timeout = settings.AUTH_TIMEOUT_MS / 1000
    try:
        user_id = await asyncio.wait_for(auth_service.resolve_user_id(token), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"Token verification exceeded {settings.AUTH_TIMEOUT_MS}ms")
        raise AuthTimeoutError() from None
    except AuthError as e:
        logger.info(f"Rejected token: {e.kind.value}")
        raise unauthorized("Invalid token")

    request.state.user_id = user_id
    return user_id

from fastapi import APIRouter, Depends, HTTPException, status

from duet.services.auth import AuthService
from duet.models.api import (
    LoginRequest,
    SignupRequest,
    TokenResponse,
    ClaimsResponse,
)
from duet.core.deps import get_auth_service, get_bearer_token, unauthorized
from duet.core.errors import AuthError, DuplicateUsernameError, TokenError

router = APIRouter()


@router.post("/signup", response_model=TokenResponse)
async def signup(
    request: SignupRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """Register a new user and return a token"""
    try:
        return await auth_service.register_user(request)
    except DuplicateUsernameError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=e.message
        )


@router.post("/login", response_model=TokenResponse)
async def login(
    request: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """Authenticate user and return a token"""
    try:
        return await auth_service.login_user(request)
    except AuthError as e:
        raise unauthorized(e.message)


@router.get("/verify", response_model=ClaimsResponse)
async def verify(
    token: str = Depends(get_bearer_token),
    auth_service: AuthService = Depends(get_auth_service)
):
    """Echo back the decoded claims of a presented token"""
    try:
        claims = auth_service.verify_token(token)
    except TokenError as e:
        raise unauthorized(e.message)
    return ClaimsResponse(**claims.model_dump())


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    token: str = Depends(get_bearer_token),
    auth_service: AuthService = Depends(get_auth_service)
):
    """Exchange a still-valid token for a new one with a fresh expiry"""
    try:
        return await auth_service.refresh_token(token)
    except AuthError as e:
        raise unauthorized(e.message)

import logging
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from duet.repositories.user import UserRepository
from duet.core.security import SecurityService, TokenService, TokenClaims
from duet.core.errors import (
    AuthError,
    AuthErrorKind,
    DuplicateUsernameError,
    InvalidCredentialsError,
    NotFoundError,
)
from duet.models.api import LoginRequest, SignupRequest, TokenResponse
from duet.models.user import UserDB

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db: AsyncSession, token_service: Optional[TokenService] = None):
        self.db = db
        self.user_repo = UserRepository()
        self.security = SecurityService()
        self.tokens = token_service or TokenService.from_settings()

    async def create_user(self, username: str, password: str) -> UserDB:
        """Create a user with a bcrypt-hashed password"""
        existing_user = await self.user_repo.get_by_username(self.db, username)
        if existing_user:
            raise DuplicateUsernameError()

        hashed_password = self.security.hash_password(password)
        user = await self.user_repo.create_user(
            self.db,
            username=username,
            hashed_password=hashed_password
        )
        logger.info(f"Created user {user.id} ({user.username})")
        return user

    async def authenticate_user(self, username: str, password: str) -> UserDB:
        """Check a username/password pair.

        Unknown usernames still pay for one bcrypt comparison, and both failure
        modes raise the same InvalidCredentialsError.
        """
        user = await self.user_repo.get_by_username(self.db, username)
        if user is None:
            self.security.verify_password(password, self.security.dummy_hash())
            logger.info(f"Login failed for username {username!r}")
            raise InvalidCredentialsError()

        if not self.security.verify_password(password, user.hashed_password):
            logger.info(f"Login failed for username {username!r}")
            raise InvalidCredentialsError()

        return user

    async def get_user_by_id(self, user_id: int) -> UserDB:
        user = await self.user_repo.get_by_id(self.db, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def get_user_by_username(self, username: str) -> UserDB:
        user = await self.user_repo.get_by_username(self.db, username)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def _token_response(self, username: str) -> TokenResponse:
        return TokenResponse(
            token=self.tokens.issue_token(username),
            expires_in=int(self.tokens.expires_delta.total_seconds())
        )

    async def register_user(self, request: SignupRequest) -> TokenResponse:
        """Sign up and return a token for the new user"""
        user = await self.create_user(request.username, request.password)
        return self._token_response(user.username)

    async def login_user(self, request: LoginRequest) -> TokenResponse:
        """Authenticate user and issue a token"""
        user = await self.authenticate_user(request.username, request.password)
        logger.info(f"User {user.id} logged in")
        return self._token_response(user.username)

    def verify_token(self, token: str) -> TokenClaims:
        return self.tokens.verify_token(token)

    async def resolve_user(self, token: str) -> UserDB:
        """Verify a token and load the live user named by its subject"""
        claims = self.tokens.verify_token(token)
        user = await self.user_repo.get_by_username(self.db, claims.sub)
        if user is None:
            raise AuthError(AuthErrorKind.UNKNOWN_SUBJECT)
        return user

    async def resolve_user_id(self, token: str) -> int:
        user = await self.resolve_user(token)
        return user.id

    async def refresh_token(self, token: str) -> TokenResponse:
        """Exchange a still-valid token for a freshly issued one"""
        user = await self.resolve_user(token)
        return self._token_response(user.username)

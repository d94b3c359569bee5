import bcrypt
import jwt
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional
from pydantic import BaseModel

from duet.core.config import settings, Settings
from duet.core.errors import AuthErrorKind, TokenError


class SecurityService:
    @staticmethod
    def hash_password(password: str, rounds: Optional[int] = None) -> str:
        """Hash a password using bcrypt"""
        salt = bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS)
        return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')

    @staticmethod
    def verify_password(password: str, password_hash: str) -> bool:
        """Verify a password against its hash"""
        try:
            return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
        except ValueError:
            # Corrupt stored hash or over-long password
            return False

    @staticmethod
    def dummy_hash() -> str:
        """A hash at the configured cost, checked when the username is unknown"""
        return _dummy_hash(settings.BCRYPT_ROUNDS)


@lru_cache(maxsize=4)
def _dummy_hash(rounds: int) -> str:
    return bcrypt.hashpw(b"duet-dummy-password", bcrypt.gensalt(rounds=rounds)).decode('utf-8')


class TokenClaims(BaseModel):
    sub: str
    iss: str
    aud: str
    iat: int
    exp: int


class TokenService:
    """
    Issues and verifies HMAC-signed session tokens.

    A token is valid from issue until ``exp``; there is no revocation list.
    Replacing the secret invalidates every token signed with the old one.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        issuer: str = "Duet",
        audience: str = "https://api.helloduet.com",
        expires_delta: timedelta = timedelta(hours=24),
    ):
        if not secret_key:
            raise ValueError("JWT_SECRET_KEY must be configured")
        if not algorithm.startswith("HS"):
            raise ValueError(f"Only HMAC signing is supported, got {algorithm}")
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.issuer = issuer
        self.audience = audience
        self.expires_delta = expires_delta

    @classmethod
    def from_settings(cls, config: Settings = None) -> "TokenService":
        config = config or settings
        return cls(
            secret_key=config.JWT_SECRET_KEY,
            algorithm=config.JWT_ALGORITHM,
            issuer=config.JWT_ISSUER,
            audience=config.JWT_AUDIENCE,
            expires_delta=timedelta(hours=config.JWT_ACCESS_TOKEN_EXPIRE_HOURS),
        )

    def issue_token(self, username: str, expires_delta: Optional[timedelta] = None) -> str:
        """Create a signed token whose subject is the username"""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": username,
            "iss": self.issuer,
            "aud": self.audience,
            "iat": now,
            "exp": now + (expires_delta if expires_delta is not None else self.expires_delta),
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: str) -> TokenClaims:
        """Decode and validate a token, raising TokenError with the failure kind"""
        try:
            header = jwt.get_unverified_header(token)
        except jwt.InvalidTokenError:
            raise TokenError(AuthErrorKind.MALFORMED_TOKEN)

        # Checked before touching the key so a forged alg never selects the verifier
        if header.get("alg") != self.algorithm:
            raise TokenError(AuthErrorKind.WRONG_ALGORITHM)

        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                audience=self.audience,
                issuer=self.issuer,
                options={"require": ["sub", "iss", "aud", "iat", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenError(AuthErrorKind.EXPIRED)
        except jwt.InvalidSignatureError:
            raise TokenError(AuthErrorKind.BAD_SIGNATURE)
        except jwt.InvalidAlgorithmError:
            raise TokenError(AuthErrorKind.WRONG_ALGORITHM)
        except jwt.DecodeError:
            raise TokenError(AuthErrorKind.MALFORMED_TOKEN)
        except jwt.InvalidTokenError:
            # audience, issuer, missing or immature claims
            raise TokenError(AuthErrorKind.INVALID_CLAIMS)

        try:
            return TokenClaims(**{key: payload[key] for key in TokenClaims.model_fields})
        except (KeyError, ValueError):
            raise TokenError(AuthErrorKind.INVALID_CLAIMS)


def get_token_service() -> TokenService:
    """Dependency returning a token service built from current settings"""
    return TokenService.from_settings(settings)

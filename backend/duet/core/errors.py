"""Domain errors shared by the store, the auth service and the HTTP layer.

Every error carries the HTTP status it maps to and a message that is safe to
show to the caller. Store and lookup errors deliberately say nothing about
whether a row exists for somebody else.
"""
from enum import Enum


class DuetError(Exception):
    status_code = 500
    public_message = "Internal server error"

    def __init__(self, message: str = None):
        super().__init__(message or self.public_message)
        self.message = message or self.public_message


class AuthErrorKind(str, Enum):
    MISSING_TOKEN = "missing_token"
    MALFORMED_TOKEN = "malformed_token"
    BAD_SIGNATURE = "bad_signature"
    WRONG_ALGORITHM = "wrong_algorithm"
    EXPIRED = "expired"
    INVALID_CLAIMS = "invalid_claims"
    INVALID_CREDENTIALS = "invalid_credentials"
    UNKNOWN_SUBJECT = "unknown_subject"


_AUTH_MESSAGES = {
    AuthErrorKind.MISSING_TOKEN: "Invalid authentication method",
    AuthErrorKind.MALFORMED_TOKEN: "Token could not be parsed",
    AuthErrorKind.BAD_SIGNATURE: "Token signature is invalid",
    AuthErrorKind.WRONG_ALGORITHM: "Unexpected signing method",
    AuthErrorKind.EXPIRED: "Token has expired",
    AuthErrorKind.INVALID_CLAIMS: "Token claims are invalid",
    AuthErrorKind.INVALID_CREDENTIALS: "Invalid username or password",
    AuthErrorKind.UNKNOWN_SUBJECT: "Invalid token",
}


class AuthError(DuetError):
    status_code = 401

    def __init__(self, kind: AuthErrorKind, message: str = None):
        super().__init__(message or _AUTH_MESSAGES[kind])
        self.kind = kind


class TokenError(AuthError):
    """A presented token was rejected by the token service"""


class MissingOrMalformedAuthError(AuthError):
    def __init__(self, message: str = None):
        super().__init__(AuthErrorKind.MISSING_TOKEN, message)


class InvalidCredentialsError(AuthError):
    # Same message whether the username exists or not
    def __init__(self):
        super().__init__(AuthErrorKind.INVALID_CREDENTIALS)


class AuthTimeoutError(DuetError):
    """Verification did not finish before the gate deadline. Fails closed."""
    status_code = 401
    public_message = "Authentication timed out"


class NotFoundError(DuetError):
    status_code = 404
    public_message = "Not found"


class NotFoundOrNotOwnedError(NotFoundError):
    public_message = "Task not found"


class DuplicateUsernameError(DuetError):
    status_code = 409
    public_message = "Username already exists"


class StoreError(DuetError):
    status_code = 500
    public_message = "Storage failure"

"""Tests for the credential store and token resolution in AuthService"""
import logging

import pytest

from duet.core.errors import (
    AuthError,
    AuthErrorKind,
    DuplicateUsernameError,
    InvalidCredentialsError,
    NotFoundError,
)
from duet.core.security import TokenService
from duet.models.api import LoginRequest, SignupRequest
from duet.services.auth import AuthService

SECRET = "auth-service-test-secret-long-enough-for-hs256"


@pytest.fixture
def auth_service(db_session):
    return AuthService(db_session, TokenService(SECRET))


class TestCredentialStore:
    @pytest.mark.asyncio
    async def test_create_then_authenticate(self, auth_service):
        created = await auth_service.create_user("alice", "pw1")
        authenticated = await auth_service.authenticate_user("alice", "pw1")

        assert authenticated.id == created.id
        assert isinstance(created.id, int)

    @pytest.mark.asyncio
    async def test_password_is_stored_hashed(self, auth_service):
        user = await auth_service.create_user("alice", "pw1")

        assert user.hashed_password != "pw1"
        assert user.hashed_password.startswith("$2")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("wrong", ["pw2", "PW1", "", "pw1 "])
    async def test_wrong_password_fails(self, auth_service, wrong):
        await auth_service.create_user("alice", "pw1")

        with pytest.raises(InvalidCredentialsError):
            await auth_service.authenticate_user("alice", wrong)

    @pytest.mark.asyncio
    async def test_unknown_user_fails_like_wrong_password(self, auth_service):
        await auth_service.create_user("alice", "pw1")

        with pytest.raises(InvalidCredentialsError) as unknown:
            await auth_service.authenticate_user("nobody", "pw1")
        with pytest.raises(InvalidCredentialsError) as wrong:
            await auth_service.authenticate_user("alice", "nope")

        assert str(unknown.value) == str(wrong.value)
        assert unknown.value.kind == wrong.value.kind == AuthErrorKind.INVALID_CREDENTIALS

    @pytest.mark.asyncio
    async def test_duplicate_username(self, auth_service):
        await auth_service.create_user("alice", "pw1")

        with pytest.raises(DuplicateUsernameError):
            await auth_service.create_user("alice", "something-else")

    @pytest.mark.asyncio
    async def test_lookups(self, auth_service):
        user = await auth_service.create_user("alice", "pw1")

        assert (await auth_service.get_user_by_id(user.id)).username == "alice"
        assert (await auth_service.get_user_by_username("alice")).id == user.id

        with pytest.raises(NotFoundError):
            await auth_service.get_user_by_id(user.id + 1000)
        with pytest.raises(NotFoundError):
            await auth_service.get_user_by_username("bob")

    @pytest.mark.asyncio
    async def test_passwords_never_logged(self, auth_service, caplog):
        caplog.set_level(logging.DEBUG)
        await auth_service.register_user(SignupRequest(username="alice", password="s3cret-pw"))
        await auth_service.login_user(LoginRequest(username="alice", password="s3cret-pw"))
        with pytest.raises(InvalidCredentialsError):
            await auth_service.login_user(LoginRequest(username="alice", password="other-s3cret"))

        assert "s3cret-pw" not in caplog.text
        assert "other-s3cret" not in caplog.text


class TestTokenResolution:
    @pytest.mark.asyncio
    async def test_login_token_resolves_to_user_id(self, auth_service):
        user = await auth_service.create_user("alice", "pw1")
        response = await auth_service.login_user(LoginRequest(username="alice", password="pw1"))

        assert response.token_type == "bearer"
        assert response.expires_in == 24 * 3600
        assert await auth_service.resolve_user_id(response.token) == user.id

    @pytest.mark.asyncio
    async def test_signup_returns_usable_token(self, auth_service):
        response = await auth_service.register_user(SignupRequest(username="alice", password="pw1"))
        assert auth_service.verify_token(response.token).sub == "alice"

    @pytest.mark.asyncio
    async def test_unknown_subject_is_rejected(self, auth_service):
        token = TokenService(SECRET).issue_token("ghost")

        with pytest.raises(AuthError) as exc_info:
            await auth_service.resolve_user_id(token)
        assert exc_info.value.kind == AuthErrorKind.UNKNOWN_SUBJECT

    @pytest.mark.asyncio
    async def test_refresh_issues_new_valid_token(self, auth_service):
        await auth_service.create_user("alice", "pw1")
        original = TokenService(SECRET).issue_token("alice")

        refreshed = await auth_service.refresh_token(original)

        assert auth_service.verify_token(refreshed.token).sub == "alice"

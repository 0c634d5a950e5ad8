"""Bearer credential -> verified user (AuthService.get_current_user)."""

from datetime import timedelta

import pytest

from relaychat.core.exceptions import AuthenticationError, ErrorKind
from relaychat.core.security import create_access_token, create_refresh_token
from relaychat.repositories.user_repository import UserRepository
from relaychat.services.auth_service import AuthService


@pytest.fixture
def auth_service(session):
    return AuthService(UserRepository(session))


class TestSessionContext:

    @pytest.mark.asyncio
    async def test_valid_token_resolves_full_user(self, auth_service, make_user):
        alice = await make_user("alice")

        user = await auth_service.get_current_user(create_access_token(alice.id))

        assert user.id == alice.id
        assert user.username == "alice"
        assert user.avatar is None

    @pytest.mark.asyncio
    async def test_bearer_prefix_is_accepted(self, auth_service, make_user):
        alice = await make_user("alice")

        user = await auth_service.get_current_user(f"Bearer {create_access_token(alice.id)}")

        assert user.id == alice.id

    @pytest.mark.asyncio
    @pytest.mark.parametrize("token", [None, "", "garbage", "a.b.c"])
    async def test_missing_or_malformed_token(self, auth_service, token):
        with pytest.raises(AuthenticationError) as exc_info:
            await auth_service.get_current_user(token)
        assert exc_info.value.kind is ErrorKind.UNAUTHENTICATED
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_expired_token(self, auth_service, make_user):
        alice = await make_user("alice")
        token = create_access_token(alice.id, expires_delta=timedelta(minutes=-1))

        with pytest.raises(AuthenticationError, match="Token expired"):
            await auth_service.get_current_user(token)

    @pytest.mark.asyncio
    async def test_refresh_token_is_not_a_session(self, auth_service, make_user):
        alice = await make_user("alice")

        with pytest.raises(AuthenticationError):
            await auth_service.get_current_user(create_refresh_token(alice.id))

    @pytest.mark.asyncio
    async def test_token_for_missing_user(self, auth_service):
        with pytest.raises(AuthenticationError):
            await auth_service.get_current_user(create_access_token(9999))

    @pytest.mark.asyncio
    async def test_signature_from_other_key_rejected(self, auth_service, make_user):
        from jose import jwt

        alice = await make_user("alice")
        forged = jwt.encode({"sub": str(alice.id), "type": "access"}, "other-key", algorithm="HS256")

        with pytest.raises(AuthenticationError, match="Invalid token"):
            await auth_service.get_current_user(forged)

"""
Tests for AuthService registration and login.
"""

import pytest

from services.security import decode_access_token, verify_password
from store.models import UserRole
from utilities.errors import AuthError, ConflictError, ValidationError


class TestRegister:
    """Test cases for registration."""

    @pytest.mark.asyncio
    async def test_register_stores_hash_not_plaintext(self, auth_service, sample_user):
        user = await auth_service.register(**sample_user)
        assert user.username == "alice"
        assert user.role == UserRole.USER
        assert user.password_hash
        assert user.password_hash != sample_user["password"]
        assert verify_password(sample_user["password"], user.password_hash)

    @pytest.mark.asyncio
    async def test_register_with_admin_role(self, auth_service, sample_user):
        user = await auth_service.register(**sample_user, role="admin")
        assert user.role == UserRole.ADMIN

    @pytest.mark.asyncio
    @pytest.mark.parametrize("missing", ["username", "email", "password"])
    async def test_register_missing_field(self, auth_service, sample_user, missing):
        sample_user[missing] = None
        with pytest.raises(ValidationError) as exc_info:
            await auth_service.register(**sample_user)
        assert exc_info.value.message == "All fields (username, email, password) are required"
        assert exc_info.value.errors == []

    @pytest.mark.asyncio
    async def test_register_duplicate_username(self, auth_service, sample_user):
        await auth_service.register(**sample_user)
        with pytest.raises(ConflictError):
            await auth_service.register("alice", "different@example.com", "other")

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, auth_service, sample_user):
        await auth_service.register(**sample_user)
        with pytest.raises(ConflictError):
            await auth_service.register("bob", "alice@example.com", "other")

    @pytest.mark.asyncio
    async def test_insert_race_still_conflicts(self, auth_service, user_store, sample_user, monkeypatch):
        """A user created between the existence check and the insert hits the unique index."""
        await auth_service.register(**sample_user)

        async def no_existing_user(username, email):
            return False

        monkeypatch.setattr(user_store, "exists", no_existing_user)
        with pytest.raises(ConflictError):
            await auth_service.register("alice", "alice2@example.com", "other")


class TestLogin:
    """Test cases for login."""

    @pytest.mark.asyncio
    async def test_login_returns_token_with_claims(self, auth_service, sample_user):
        user = await auth_service.register(**sample_user)
        token = await auth_service.login("alice", "pass1234")

        claims = decode_access_token(token)
        assert claims.sub == user.id
        assert claims.username == "alice"
        assert claims.role == UserRole.USER

    @pytest.mark.asyncio
    async def test_wrong_password_and_unknown_user_look_the_same(self, auth_service, sample_user):
        await auth_service.register(**sample_user)

        with pytest.raises(AuthError) as wrong_password:
            await auth_service.login("alice", "wrong")
        with pytest.raises(AuthError) as unknown_user:
            await auth_service.login("ghost", "pass1234")

        assert wrong_password.value.to_dict() == unknown_user.value.to_dict()
        assert wrong_password.value.status_code == unknown_user.value.status_code == 401

    @pytest.mark.asyncio
    @pytest.mark.parametrize("username,password", [(None, "x"), ("alice", None), ("", ""), ("   ", "pass1234")])
    async def test_login_missing_fields(self, auth_service, username, password):
        with pytest.raises(ValidationError) as exc_info:
            await auth_service.login(username, password)
        assert exc_info.value.message == "Username and password are required"

    @pytest.mark.asyncio
    async def test_login_trims_username_like_signup(self, auth_service):
        user = await auth_service.register(" carol ", "carol@example.com", "pass1234")
        assert user.username == "carol"

        token = await auth_service.login(" carol ", "pass1234")
        assert decode_access_token(token).username == "carol"

"""
Registration and login.
"""

from typing import Any, Optional

import structlog

from services.security import create_access_token, hash_password, verify_password
from store.models import UserRecord, UserRole
from store.users import DUPLICATE_USER_MESSAGE, UserStore
from store.validators import validate_login, validate_registration
from utilities.errors import AuthError, ConflictError, ValidationError

logger = structlog.get_logger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid username or password"


class AuthService:
    """Orchestrates the credential store, password hasher and token issuer."""

    def __init__(self, user_store: UserStore):
        self.user_store = user_store

    async def register(
        self,
        username: Any,
        email: Any,
        password: Any,
        role: Optional[Any] = UserRole.USER
    ) -> UserRecord:
        """
        Register a new user.

        The returned record still carries password_hash; strip it before
        it leaves the process.

        Raises:
            ValidationError: If username, email or password is missing, or role is unknown
            ConflictError: If the username or email is already registered
        """
        result = validate_registration(username, email, password, role)
        if not result.valid:
            raise ValidationError(result.errors[0])
        fields = result.cleaned

        if await self.user_store.exists(fields["username"], fields["email"]):
            logger.info("Registration rejected, user exists", username=fields["username"])
            raise ConflictError(DUPLICATE_USER_MESSAGE)

        password_hash = hash_password(fields["password"])
        user = await self.user_store.insert(
            username=fields["username"],
            email=fields["email"],
            password_hash=password_hash,
            role=fields["role"],
        )
        logger.info("New user created successfully", user_id=user.id, username=user.username)
        return user

    async def login(self, username: Any, password: Any) -> str:
        """
        Check credentials and issue an access token.

        Unknown user and wrong password raise the same AuthError.
        """
        result = validate_login(username, password)
        if not result.valid:
            raise ValidationError(result.errors[0])
        username = result.cleaned["username"]
        password = result.cleaned["password"]

        user = await self.user_store.find_by_username(username)
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Login failed", username=username)
            raise AuthError(INVALID_CREDENTIALS_MESSAGE)

        token = create_access_token(user.id, user.username, user.role)
        logger.info("User logged in", user_id=user.id)
        return token

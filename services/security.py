"""Password hashing and JWT creation/verification for authentication."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
import jwt
from pydantic import BaseModel, Field

from store.models import UserRole
from utilities.config import config

# bcrypt only looks at the first 72 bytes and newer releases reject longer input.
BCRYPT_MAX_BYTES = 72


class TokenClaims(BaseModel):
    """Identity claims carried by an access token."""
    sub: str = Field(..., description="User id")
    username: str = Field(..., description="Username at issue time")
    role: UserRole = Field(..., description="Role at issue time")
    iat: int = Field(..., description="Issued-at, seconds since epoch")
    exp: int = Field(..., description="Expiry, seconds since epoch")


def hash_password(plain_password: str, rounds: Optional[int] = None) -> str:
    """Hash a plain-text password with a random salt. Do not store plain passwords."""
    pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    salt = bcrypt.gensalt(rounds=rounds or config.bcrypt_rounds)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def create_access_token(
    user_id: str,
    username: str,
    role: UserRole,
    issued_at: Optional[datetime] = None
) -> str:
    """Create a signed access token that expires after the configured window."""
    now = issued_at or datetime.now(timezone.utc)
    expire = now + timedelta(minutes=config.access_token_expire_minutes)
    payload: Dict[str, Any] = {
        "sub": str(user_id),
        "username": username,
        "role": UserRole(role).value,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(payload, config.jwt_secret_key, algorithm=config.jwt_algorithm)


def decode_access_token(token: str) -> TokenClaims:
    """
    Decode and validate a token; return its claims.
    Raises jwt.PyJWTError on a bad signature, malformed token or expiry.
    """
    payload = jwt.decode(
        token,
        config.jwt_secret_key,
        algorithms=[config.jwt_algorithm],
        options={"require": ["sub", "iat", "exp"]},
    )
    try:
        return TokenClaims(**payload)
    except ValueError as e:
        raise jwt.InvalidTokenError(f"Invalid token payload: {e}") from e

"""
Credential store backed by the users collection.
"""

from datetime import datetime
from typing import Optional

import structlog
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo.errors import DuplicateKeyError

from store.models import UserRecord, UserRole
from utilities.errors import ConflictError

logger = structlog.get_logger(__name__)

DUPLICATE_USER_MESSAGE = "Username or email already exists, please try with another one."


class UserStore:
    """Persists user records. Never stores a plaintext password."""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def exists(self, username: str, email: str) -> bool:
        """Single existence query over both unique fields."""
        doc = await self.collection.find_one(
            {"$or": [{"username": username}, {"email": email}]},
            projection={"_id": 1},
        )
        return doc is not None

    async def find_by_username(self, username: str) -> Optional[UserRecord]:
        doc = await self.collection.find_one({"username": username})
        if doc is None:
            return None
        return UserRecord.from_document(doc)

    async def insert(
        self,
        username: str,
        email: str,
        password_hash: str,
        role: UserRole = UserRole.USER
    ) -> UserRecord:
        """
        Insert a new user.

        Raises:
            ConflictError: If the username or email unique index rejects the insert
        """
        doc = {
            "username": username,
            "email": email,
            "password_hash": password_hash,
            "role": UserRole(role).value,
            "created_at": datetime.utcnow(),
        }
        try:
            result = await self.collection.insert_one(doc)
        except DuplicateKeyError:
            logger.warning("User already exists", username=username)
            raise ConflictError(DUPLICATE_USER_MESSAGE)

        doc["_id"] = result.inserted_id
        logger.debug("Successfully inserted user", username=username, user_id=str(result.inserted_id))
        return UserRecord.from_document(doc)

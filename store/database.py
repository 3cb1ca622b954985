"""
MongoDB connection handle for async operations.
Owns the motor client, the collections and their unique indexes.
"""

from typing import Dict, Optional

import structlog
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo.errors import ConnectionFailure

from utilities.errors import InternalError

logger = structlog.get_logger(__name__)

USERS_COLLECTION = "users"
BOOKS_COLLECTION = "books"


class MongoDBManager:
    """
    Process-wide MongoDB handle.

    connect() is idempotent; stores get their collections from here rather
    than opening their own connections.
    """

    def __init__(self, connection_url: str, database_name: str):
        """
        Initialize MongoDB manager.

        Args:
            connection_url: MongoDB connection URL
            database_name: Name of the database
        """
        self.connection_url = connection_url
        self.database_name = database_name
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None

    @property
    def is_connected(self) -> bool:
        return self.client is not None

    async def connect(self) -> None:
        """Establish connection to MongoDB. A no-op if already connected."""
        if self.is_connected:
            logger.info("MongoDB already connected", database=self.database_name)
            return

        client = AsyncIOMotorClient(self.connection_url)
        try:
            await client.admin.command("ping")
        except ConnectionFailure as e:
            client.close()
            logger.error("Failed to connect to MongoDB", error=str(e))
            raise

        self.client = client
        self.database = client[self.database_name]
        logger.info("Successfully connected to MongoDB", database=self.database_name)

        await self._create_indexes()

    async def disconnect(self) -> None:
        """Close MongoDB connection."""
        if self.client:
            self.client.close()
            self.client = None
            self.database = None
            logger.info("Disconnected from MongoDB")

    async def _create_indexes(self) -> None:
        """
        Create the unique indexes that back the uniqueness rules.
        These are authoritative; application pre-checks only shape messages.
        """
        try:
            await self.users.create_index("username", unique=True)
            await self.users.create_index("email", unique=True)
            await self.books.create_index("title", unique=True)
            logger.info("Successfully created MongoDB indexes")
        except Exception as e:
            logger.error("Failed to create indexes", error=str(e))
            raise

    def _collection(self, name: str) -> AsyncIOMotorCollection:
        if self.database is None:
            raise InternalError("Database service not available")
        return self.database[name]

    @property
    def users(self) -> AsyncIOMotorCollection:
        return self._collection(USERS_COLLECTION)

    @property
    def books(self) -> AsyncIOMotorCollection:
        return self._collection(BOOKS_COLLECTION)

    async def health_check(self) -> Dict:
        """
        Perform database health check.

        Returns:
            Dictionary with health status
        """
        if not self.is_connected:
            return {"status": "unhealthy", "error": "not connected"}
        try:
            await self.database.command("ping")
            return {
                "status": "healthy",
                "users_count": await self.users.count_documents({}),
                "books_count": await self.books.count_documents({}),
            }
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return {"status": "unhealthy", "error": str(e)}

"""
Book store backed by the books collection.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

import structlog
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from store.models import BookRecord
from utilities.errors import ValidationError

logger = structlog.get_logger(__name__)

DUPLICATE_TITLE_MESSAGE = "A book with this title already exists"


def _object_id(book_id: str) -> Optional[ObjectId]:
    """Return the ObjectId for book_id, or None if it cannot be one."""
    if not isinstance(book_id, str) or not ObjectId.is_valid(book_id):
        return None
    return ObjectId(book_id)


class BookStore:
    """
    CRUD over book documents.

    Lookups by an id that is not a valid ObjectId behave like a miss.
    Title collisions surface as ValidationError.
    """

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def list_all(self) -> List[BookRecord]:
        cursor = self.collection.find({})
        docs = await cursor.to_list(length=None)
        return [BookRecord.from_document(doc) for doc in docs]

    async def get(self, book_id: str) -> Optional[BookRecord]:
        object_id = _object_id(book_id)
        if object_id is None:
            return None
        doc = await self.collection.find_one({"_id": object_id})
        return BookRecord.from_document(doc) if doc else None

    async def title_taken(self, title: str, exclude_id: Optional[str] = None) -> bool:
        query: Dict[str, Any] = {"title": title}
        if exclude_id is not None:
            query["_id"] = {"$ne": _object_id(exclude_id)}
        return await self.collection.find_one(query, projection={"_id": 1}) is not None

    async def insert(self, fields: Dict[str, Any]) -> BookRecord:
        """
        Insert already-validated book fields.

        Raises:
            ValidationError: If the title unique index rejects the insert
        """
        doc = dict(fields)
        doc["created_at"] = datetime.utcnow()
        try:
            result = await self.collection.insert_one(doc)
        except DuplicateKeyError:
            logger.warning("Book title already exists", title=fields.get("title"))
            raise ValidationError("Invalid book data", errors=[DUPLICATE_TITLE_MESSAGE])

        doc["_id"] = result.inserted_id
        logger.debug("Successfully inserted book", title=doc["title"], book_id=str(result.inserted_id))
        return BookRecord.from_document(doc)

    async def update(self, book_id: str, fields: Dict[str, Any]) -> Optional[BookRecord]:
        """Replace the given fields and return the updated record, or None if missing."""
        object_id = _object_id(book_id)
        if object_id is None:
            return None
        try:
            doc = await self.collection.find_one_and_update(
                {"_id": object_id},
                {"$set": fields},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError:
            logger.warning("Book title already exists", title=fields.get("title"), book_id=book_id)
            raise ValidationError("Invalid book data", errors=[DUPLICATE_TITLE_MESSAGE])
        return BookRecord.from_document(doc) if doc else None

    async def delete(self, book_id: str) -> Optional[BookRecord]:
        """Remove a book and return it as it was before deletion, or None if missing."""
        object_id = _object_id(book_id)
        if object_id is None:
            return None
        doc = await self.collection.find_one_and_delete({"_id": object_id})
        return BookRecord.from_document(doc) if doc else None

"""
Book CRUD on top of the book store.
"""

from typing import Any, Dict, List

import structlog

from store.books import DUPLICATE_TITLE_MESSAGE, BookStore
from store.models import BookRecord
from store.validators import merge_book_update, validate_book
from utilities.errors import NotFoundError, ValidationError

logger = structlog.get_logger(__name__)

BOOK_NOT_FOUND_MESSAGE = "Book not found"
INVALID_BOOK_MESSAGE = "Invalid book data"


class BookService:
    """Validates book input and delegates persistence to BookStore."""

    def __init__(self, book_store: BookStore):
        self.book_store = book_store

    async def list_books(self) -> List[BookRecord]:
        return await self.book_store.list_all()

    async def get_book(self, book_id: str) -> BookRecord:
        """
        Get a single book by ID.

        Raises:
            NotFoundError: If no book has this id
        """
        book = await self.book_store.get(book_id)
        if book is None:
            raise NotFoundError(BOOK_NOT_FOUND_MESSAGE)
        return book

    async def create_book(self, fields: Dict[str, Any]) -> BookRecord:
        """
        Validate and persist a new book.

        Raises:
            ValidationError: On missing or out-of-range fields, or a taken title
        """
        result = validate_book(fields or {})
        if not result.valid:
            raise ValidationError(INVALID_BOOK_MESSAGE, errors=result.errors)

        if await self.book_store.title_taken(result.cleaned["title"]):
            raise ValidationError(INVALID_BOOK_MESSAGE, errors=[DUPLICATE_TITLE_MESSAGE])

        book = await self.book_store.insert(result.cleaned)
        logger.info("New book saved", book_id=book.id, title=book.title)
        return book

    async def update_book(self, book_id: str, partial_fields: Dict[str, Any]) -> BookRecord:
        """
        Merge partial fields onto an existing book and persist the result.

        Raises:
            NotFoundError: If no book has this id
            ValidationError: If the merged book violates a constraint
        """
        existing = await self.get_book(book_id)

        merged = merge_book_update(existing.model_dump(), partial_fields or {})
        result = validate_book(merged)
        if not result.valid:
            raise ValidationError(INVALID_BOOK_MESSAGE, errors=result.errors)

        if result.cleaned["title"] != existing.title:
            if await self.book_store.title_taken(result.cleaned["title"], exclude_id=book_id):
                raise ValidationError(INVALID_BOOK_MESSAGE, errors=[DUPLICATE_TITLE_MESSAGE])

        updated = await self.book_store.update(book_id, result.cleaned)
        if updated is None:
            # deleted between the read and the write
            raise NotFoundError(BOOK_NOT_FOUND_MESSAGE)
        logger.info("Book updated", book_id=book_id)
        return updated

    async def delete_book(self, book_id: str) -> BookRecord:
        """
        Delete a book and return it as it was before deletion.

        Raises:
            NotFoundError: If no book has this id
        """
        deleted = await self.book_store.delete(book_id)
        if deleted is None:
            raise NotFoundError(BOOK_NOT_FOUND_MESSAGE)
        logger.info("Book deleted", book_id=book_id)
        return deleted

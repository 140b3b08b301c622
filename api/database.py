"""
Database service layer for the FastAPI application.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import structlog
from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import ValidationError as PydanticValidationError
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from api.errors import InvalidIdentifier, ServerError
from api.models import BookPayload, BookResponse

logger = structlog.get_logger(__name__)


def _to_object_id(book_id: str) -> ObjectId:
    try:
        return ObjectId(book_id)
    except (InvalidId, TypeError):
        raise InvalidIdentifier(str(book_id)) from None


def _revalidate(payload: BookPayload) -> BookPayload:
    try:
        return BookPayload.model_validate(payload.to_document())
    except PydanticValidationError as e:
        logger.error("Refusing to write invalid book", error=str(e))
        raise ServerError(e) from e


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def document_to_book(book_doc: Dict[str, Any]) -> BookResponse:
    """Convert a stored document into the API response model."""
    book_doc = dict(book_doc)
    book_doc["id"] = str(book_doc.pop("_id"))

    # Mongo hands back naive UTC datetimes
    for field in ("createdAt", "updatedAt"):
        value = book_doc.get(field)
        if isinstance(value, datetime):
            if value.tzinfo is None:
                value = value.replace(tzinfo=timezone.utc)
            book_doc[field] = value.isoformat()

    return BookResponse(**book_doc)


class BookDatabaseService:
    """
    Record store for books.

    Each method maps onto one collection call. Driver failures are logged and
    re-raised as ServerError; "no match" is reported through the return value.
    """

    def __init__(self, database: AsyncIOMotorDatabase, collection_name: str = "bookstores"):
        self.database = database
        self.books_collection = database[collection_name]

    async def ping(self) -> None:
        """Round-trip to the server; raises ServerError when unreachable."""
        try:
            await self.database.command("ping")
        except PyMongoError as e:
            logger.error("Database ping failed", error=str(e))
            raise ServerError(e) from e

    async def list_books(self) -> List[BookResponse]:
        """Return every stored book, in no particular order."""
        try:
            cursor = self.books_collection.find({})
            books_docs = await cursor.to_list(length=None)
        except PyMongoError as e:
            logger.error("Failed to list books", error=str(e))
            raise ServerError(e) from e

        return [document_to_book(doc) for doc in books_docs]

    async def get_book_by_id(self, book_id: str) -> Optional[BookResponse]:
        """
        Get a single book by ID.

        Args:
            book_id: 24 character hex ObjectId

        Returns:
            BookResponse if found, None otherwise
        """
        object_id = _to_object_id(book_id)
        try:
            book_doc = await self.books_collection.find_one({"_id": object_id})
        except PyMongoError as e:
            logger.error("Failed to get book by ID", book_id=book_id, error=str(e))
            raise ServerError(e) from e

        if book_doc is None:
            return None
        return document_to_book(book_doc)

    async def create_book(self, payload: BookPayload) -> BookResponse:
        """
        Insert a new book.

        The payload is validated again before the write so that nothing
        reaching the collection can break the field constraints.
        """
        payload = _revalidate(payload)
        now = _utcnow()
        book_doc = payload.to_document()
        book_doc["createdAt"] = now
        book_doc["updatedAt"] = now

        try:
            result = await self.books_collection.insert_one(book_doc)
        except PyMongoError as e:
            logger.error("Failed to create book", error=str(e))
            raise ServerError(e) from e

        book_doc["_id"] = result.inserted_id
        logger.info("Book created", book_id=str(result.inserted_id))
        return document_to_book(book_doc)

    async def replace_book(self, book_id: str, payload: BookPayload) -> Optional[BookResponse]:
        """
        Overwrite Title, Author and Pages of an existing book.

        Returns:
            The updated book, or None when no book has this id
        """
        object_id = _to_object_id(book_id)
        payload = _revalidate(payload)
        changes = payload.to_document()
        changes["updatedAt"] = _utcnow()

        return await self._update(object_id, changes, operation="replace")

    async def set_cover_url(self, book_id: str, cover_url: str) -> Optional[BookResponse]:
        """Record the public URL of an uploaded cover."""
        object_id = _to_object_id(book_id)
        changes = {"coverUrl": cover_url, "updatedAt": _utcnow()}

        return await self._update(object_id, changes, operation="set_cover")

    async def delete_book(self, book_id: str) -> bool:
        """
        Delete a book.

        Returns:
            True if a book was removed, False if none matched
        """
        object_id = _to_object_id(book_id)
        try:
            result = await self.books_collection.delete_one({"_id": object_id})
        except PyMongoError as e:
            logger.error("Failed to delete book", book_id=book_id, error=str(e))
            raise ServerError(e) from e

        if result.deleted_count:
            logger.info("Book deleted", book_id=book_id)
        return bool(result.deleted_count)

    async def _update(self, object_id: ObjectId, changes: Dict[str, Any], operation: str) -> Optional[BookResponse]:
        try:
            book_doc = await self.books_collection.find_one_and_update(
                {"_id": object_id},
                {"$set": changes},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            logger.error("Failed to update book", book_id=str(object_id), operation=operation, error=str(e))
            raise ServerError(e) from e

        if book_doc is None:
            return None
        logger.info("Book updated", book_id=str(object_id), operation=operation)
        return document_to_book(book_doc)

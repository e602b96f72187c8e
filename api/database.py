"""
MongoDB book repository for the FastAPI application.
"""

from typing import Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from catalog.models import BookRecord, InsertResult
from utilities.logger import get_logger

logger = get_logger(__name__)


class BookRepository:
    """
    Async MongoDB store for book records.

    Books carry an integer ``id`` field taken from a counter document, so
    identifiers stay numeric like the rest of the API expects.
    """

    def __init__(
        self,
        database: AsyncIOMotorDatabase,
        books_collection: str = "books",
        counters_collection: str = "counters"
    ):
        self.database = database
        self.books_collection = database[books_collection]
        self.counters_collection = database[counters_collection]
        self.counter_key = books_collection

    async def ensure_indexes(self) -> None:
        """Create the indexes used for lookups by id and title."""
        try:
            await self.books_collection.create_index("id", unique=True)
            await self.books_collection.create_index("title")
            logger.info("Successfully created MongoDB indexes")
        except Exception as e:
            logger.error("Failed to create indexes", error=str(e))
            raise

    async def _next_id(self) -> int:
        counter = await self.counters_collection.find_one_and_update(
            {"_id": self.counter_key},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER
        )
        return int(counter["seq"])

    async def list_books(self) -> List[BookRecord]:
        """
        Get every book ordered by id.

        Returns:
            List of BookRecord
        """
        try:
            cursor = self.books_collection.find({}, {"_id": 0}).sort("id", 1)
            docs = await cursor.to_list(length=None)
            return [BookRecord(**doc) for doc in docs]
        except Exception as e:
            logger.error("Failed to list books", error=str(e))
            raise

    async def insert_book(self, record: BookRecord) -> InsertResult:
        """
        Insert a new book and assign its identifier.

        Args:
            record: BookRecord without an id

        Returns:
            InsertResult with the new id, or success=False on a duplicate id
        """
        try:
            book_id = await self._next_id()
            document = record.to_document()
            document["id"] = book_id
            document["cover_image_filename"] = None
            await self.books_collection.insert_one(document)
            logger.debug("Successfully inserted book", book_id=book_id, title=record.title)
            return InsertResult(success=True, id=book_id)

        except DuplicateKeyError:
            logger.warning("Book id already exists", title=record.title)
            return InsertResult(success=False)

        except Exception as e:
            logger.error("Failed to insert book", title=record.title, error=str(e))
            raise

    async def update_book(self, record: BookRecord) -> bool:
        """
        Replace the stored fields of an existing book. The cover reference is kept.

        Returns:
            True if a book with ``record.id`` exists
        """
        if record.id is None:
            return False

        try:
            result = await self.books_collection.update_one(
                {"id": record.id},
                {"$set": record.to_document()}
            )
            return result.matched_count == 1
        except Exception as e:
            logger.error("Failed to update book", book_id=record.id, error=str(e))
            raise

    async def delete_book(self, book_id: Optional[int]) -> bool:
        """
        Delete a book by id.

        Returns:
            True if a book was removed
        """
        if book_id is None:
            return False

        try:
            result = await self.books_collection.delete_one({"id": book_id})
            return result.deleted_count == 1
        except Exception as e:
            logger.error("Failed to delete book", book_id=book_id, error=str(e))
            raise

    async def set_cover_image(self, filename: str, book_id: int) -> bool:
        """
        Store the cover image filename of a book.

        Returns:
            True if the book exists
        """
        try:
            result = await self.books_collection.update_one(
                {"id": book_id},
                {"$set": {"cover_image_filename": filename}}
            )
            return result.matched_count == 1
        except Exception as e:
            logger.error("Failed to set cover image", book_id=book_id, filename=filename, error=str(e))
            raise

    async def health_check(self) -> Dict:
        """
        Perform database health check.

        Returns:
            Dictionary with health status
        """
        try:
            await self.database.command("ping")
            books_count = await self.books_collection.count_documents({})

            return {
                "status": "healthy",
                "books_collection": "accessible",
                "books_count": books_count
            }
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return {
                "status": "unhealthy",
                "error": str(e)
            }

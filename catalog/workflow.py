"""
Book workflow: list, create, update and delete book records.

Each operation runs as a short sequence of awaited store calls and always
returns a WorkflowResponse; collaborator faults never propagate to the caller.
"""

from pathlib import Path
from typing import Any, List, Optional, Protocol, Union

from utilities.logger import get_logger

from .errors import BookValidationError, PersistenceError
from .models import BookRecord, InsertResult, UploadedCover, WorkflowResponse
from .normalizer import normalize_book_payload, parse_book_id
from .sanitizer import build_cover_filename, cover_extension

logger = get_logger(__name__)


class BookStore(Protocol):
    """Persistence capability used by the workflow."""

    async def list_books(self) -> List[BookRecord]: ...

    async def insert_book(self, record: BookRecord) -> InsertResult: ...

    async def update_book(self, record: BookRecord) -> bool: ...

    async def delete_book(self, book_id: Optional[int]) -> bool: ...

    async def set_cover_image(self, filename: str, book_id: int) -> bool: ...


class CoverFileStore(Protocol):
    """Filesystem capability used to move or drop staged cover uploads."""

    def rename(self, temp_path: Union[str, Path], final_path: Union[str, Path]) -> None: ...

    def discard(self, cover: UploadedCover) -> None: ...


def _message(status_code: int, message: str) -> WorkflowResponse:
    return WorkflowResponse(status_code=status_code, content={"message": message})


class BookWorkflow:
    """Orchestrates book operations over a store and a cover file store."""

    def __init__(self, store: BookStore, covers: CoverFileStore):
        self.store = store
        self.covers = covers

    async def list_books(self) -> WorkflowResponse:
        """Return every stored book."""
        try:
            books = await self.store.list_books()
            return WorkflowResponse(
                status_code=200,
                content=[book.model_dump(by_alias=True) for book in books]
            )
        except Exception as e:
            logger.error("Failed to list books", error=str(e))
            return _message(400, "Failed to retrieve book information")

    async def create_book(
        self,
        payload: Any,
        cover: Optional[UploadedCover] = None
    ) -> WorkflowResponse:
        """
        Create a book and attach its cover when one was uploaded.

        A failure while attaching the cover is logged but does not turn the
        response into a failure; the book stays stored without a cover
        reference even if the file was already renamed.

        Args:
            payload: Raw request data
            cover: Staged cover upload, if any

        Returns:
            200 when stored, 400 when invalid or rejected, 500 on faults
        """
        try:
            record = normalize_book_payload(payload)

            result = await self.store.insert_book(record)
            if not result.success or result.id is None:
                raise PersistenceError("Book store did not return an identifier")
            record.id = result.id
            logger.info("Book created", book_id=record.id, title=record.title)

            if cover is not None:
                await self._attach_cover(record, cover)

            return _message(200, "Book created successfully")

        except BookValidationError as e:
            logger.warning("Rejected book payload", error=str(e))
            return _message(400, str(e))
        except PersistenceError as e:
            logger.warning("Book creation rejected", error=str(e))
            return _message(400, "Could not create the book in the database")
        except Exception as e:
            logger.error("Failed to create book", error=str(e))
            return _message(500, "Failed to create book")

    async def _attach_cover(self, record: BookRecord, cover: UploadedCover) -> bool:
        filename = build_cover_filename(
            record.title,
            record.publisher,
            cover_extension(cover.original_filename)
        )
        final_path = Path(cover.destination) / filename
        try:
            self.covers.rename(cover.temp_path, final_path)
        except Exception as e:
            logger.error(
                "Failed to move cover image",
                book_id=record.id,
                filename=filename,
                error=str(e)
            )
            self.covers.discard(cover)
            return False

        try:
            attached = await self.store.set_cover_image(filename, record.id)
        except Exception as e:
            logger.error(
                "Failed to attach cover image",
                book_id=record.id,
                filename=filename,
                error=str(e)
            )
            return False

        if not attached:
            logger.error("Cover image reference not saved", book_id=record.id, filename=filename)
            return False

        record.cover_image_filename = filename
        logger.info("Cover image attached", book_id=record.id, filename=filename)
        return True

    async def update_book(self, payload: Any, book_id_param: Any) -> WorkflowResponse:
        """
        Replace a book's fields.

        Unexpected faults answer 200 with an error message rather than a 5xx.
        """
        try:
            record = normalize_book_payload(payload)
            record.id = parse_book_id(book_id_param)

            if not await self.store.update_book(record):
                raise PersistenceError(f"Book store rejected update of {book_id_param!r}")

            logger.info("Book updated", book_id=record.id)
            return _message(200, "Book updated successfully")

        except BookValidationError as e:
            logger.warning("Rejected book payload", error=str(e))
            return _message(400, str(e))
        except PersistenceError as e:
            logger.warning("Book update rejected", error=str(e))
            return _message(400, "Could not update the book in the database")
        except Exception as e:
            logger.error("Failed to update book", book_id=book_id_param, error=str(e))
            return _message(200, "Failed to update book")

    async def delete_book(self, book_id_param: Any) -> WorkflowResponse:
        """Delete a book; a rejected delete answers 401."""
        try:
            book_id = parse_book_id(book_id_param)

            if not await self.store.delete_book(book_id):
                raise PersistenceError(f"Book store rejected delete of {book_id_param!r}")

            logger.info("Book deleted", book_id=book_id)
            return _message(200, "Book removed successfully")

        except PersistenceError as e:
            logger.warning("Book deletion rejected", error=str(e))
            return _message(401, "Failed to delete book")
        except Exception as e:
            logger.error("Failed to delete book", book_id=book_id_param, error=str(e))
            return _message(500, "Failed to remove book")

"""
FastAPI main application for the Book Lending Catalog API.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Optional, Tuple

from fastapi import FastAPI, HTTPException, Query, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from motor.motor_asyncio import AsyncIOMotorClient
from starlette.datastructures import UploadFile

from api.database import BookRepository
from api.models import ErrorResponse, HealthResponse, MessageResponse
from catalog import __version__
from catalog.covers import CoverStorage
from catalog.errors import FilesystemError
from catalog.models import UploadedCover, WorkflowResponse
from catalog.workflow import BookWorkflow
from utilities.config import config
from utilities.logger import get_logger, setup_logging

logger = get_logger(__name__)

# Multipart field carrying the cover image
COVER_FIELD = "cover"

# Global services, wired in the lifespan
db_service: Optional[BookRepository] = None
book_workflow: Optional[BookWorkflow] = None
cover_storage = CoverStorage(config.get_cover_upload_path())


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.get_log_file_path(),
        debug=config.debug
    )
    logger.info("Starting Book Lending Catalog API")

    global db_service, book_workflow
    try:
        client = AsyncIOMotorClient(config.mongodb_url)
        database = client[config.mongodb_database]

        await database.command("ping")
        logger.info("Database connection established")

        db_service = BookRepository(
            database,
            books_collection=config.books_collection,
            counters_collection=config.counters_collection
        )
        await db_service.ensure_indexes()
        cover_storage.ensure_destination()
        book_workflow = BookWorkflow(db_service, cover_storage)

    except Exception as e:
        logger.error("Failed to connect to database", error=str(e))
        raise

    yield

    logger.info("Shutting down Book Lending Catalog API")
    client.close()


app = FastAPI(
    title="Book Lending Catalog API",
    description="Create, list, update and delete library books with optional cover images.",
    version=__version__,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_credentials=config.cors_allow_credentials,
    allow_methods=config.cors_allow_methods,
    allow_headers=config.cors_allow_headers,
)


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc: HTTPException):
    """Handle HTTP exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=exc.detail,
            status_code=exc.status_code
        ).model_dump(),
        headers=exc.headers
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc: Exception):
    """Handle general exceptions."""
    logger.error("Unhandled exception", error=str(exc), path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            error="Internal server error",
            detail=str(exc) if config.debug else None,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        ).model_dump()
    )


def _get_workflow() -> BookWorkflow:
    if not book_workflow:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Book service not available"
        )
    return book_workflow


def _render(result: WorkflowResponse) -> JSONResponse:
    return JSONResponse(status_code=result.status_code, content=result.content)


async def _read_book_request(request: Request) -> Tuple[Any, Optional[UploadFile]]:
    """
    Read book fields from a JSON or form body.

    Returns:
        The payload (None when the body is not valid JSON) and the cover
        upload, if the form carried a non-empty one
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(("multipart/form-data", "application/x-www-form-urlencoded")):
        form = await request.form()
        payload = {}
        upload = None
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                if key == COVER_FIELD and value.filename:
                    upload = value
            else:
                payload[key] = value
        return payload, upload

    try:
        return await request.json(), None
    except ValueError:
        return None, None


async def _stage_cover(upload: UploadFile) -> Optional[UploadedCover]:
    try:
        return await run_in_threadpool(cover_storage.stage_upload, upload.file, upload.filename)
    except FilesystemError as e:
        logger.error("Cover upload dropped", filename=upload.filename, error=str(e))
        return None


# Health check endpoint
@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Health check endpoint."""
    try:
        db_status = "unavailable"
        if db_service:
            health_info = await db_service.health_check()
            db_status = health_info.get("status", "unknown")

        return HealthResponse(
            status="healthy" if db_status == "healthy" else "degraded",
            timestamp=datetime.utcnow(),
            version=__version__,
            database_status=db_status
        )
    except Exception as e:
        logger.error("Health check failed", error=str(e))
        return HealthResponse(
            status="unhealthy",
            timestamp=datetime.utcnow(),
            version=__version__,
            database_status="unhealthy"
        )


# Books endpoints
@app.get("/books", tags=["Books"])
async def list_books():
    """List every book in the catalog."""
    return _render(await _get_workflow().list_books())


@app.post("/books", response_model=MessageResponse, tags=["Books"])
async def create_book(request: Request):
    """
    Create a book.

    Accepts a JSON body, or a multipart form with the book fields and an
    optional `cover` image file.
    """
    workflow = _get_workflow()
    payload, upload = await _read_book_request(request)

    cover = await _stage_cover(upload) if upload is not None else None
    result = await workflow.create_book(payload, cover)

    if cover is not None and result.status_code != status.HTTP_200_OK:
        await run_in_threadpool(cover_storage.discard, cover)

    return _render(result)


@app.put("/books", response_model=MessageResponse, tags=["Books"])
async def update_book(
    request: Request,
    book_id: Optional[str] = Query(None, alias="bookId", description="Book identifier")
):
    """
    Update a book's fields.

    - **bookId**: Identifier of the book to update
    """
    workflow = _get_workflow()
    payload, _ = await _read_book_request(request)
    return _render(await workflow.update_book(payload, book_id))


@app.delete("/books", response_model=MessageResponse, tags=["Books"])
async def delete_book(
    book_id: Optional[str] = Query(None, alias="bookId", description="Book identifier")
):
    """
    Delete a book.

    - **bookId**: Identifier of the book to delete
    """
    return _render(await _get_workflow().delete_book(book_id))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level=config.log_level.lower()
    )

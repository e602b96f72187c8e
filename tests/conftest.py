"""
Pytest configuration and shared fixtures.
"""

import io

import pytest
from unittest.mock import AsyncMock

from api.database import BookRepository
from catalog.covers import CoverStorage
from catalog.models import BookRecord, InsertResult


@pytest.fixture
def book_payload():
    """Create a complete create/update payload as sent by clients."""
    return {
        "title": "Dom Casmurro",
        "author": "Machado de Assis",
        "publisher": "Garnier",
        "publicationYear": 1899,
        "isbn": "978-8535910667",
        "totalCopies": 5,
        "availableCopies": 3,
        "acquisitionValue": 42.5,
        "loanStatus": "Available",
    }


@pytest.fixture
def minimal_book_payload():
    """Create a payload carrying only the required fields."""
    return {
        "title": "Dom Casmurro",
        "author": "Machado de Assis",
        "publisher": "Garnier",
        "totalCopies": 5,
        "availableCopies": 3,
    }


@pytest.fixture
def sample_book_record():
    """Create a stored book record."""
    return BookRecord(
        id=1,
        title="Dom Casmurro",
        author="Machado de Assis",
        publisher="Garnier",
        publication_year=1899,
        isbn="978-8535910667",
        total_copies=5,
        available_copies=3,
        acquisition_value=42.5,
        loan_status="Available",
        cover_image_filename="Dom_Casmurro_Garnier.jpg",
    )


@pytest.fixture
def mock_book_store():
    """Create a mock book repository that accepts every write."""
    store = AsyncMock(spec=BookRepository)
    store.list_books.return_value = []
    store.insert_book.return_value = InsertResult(success=True, id=7)
    store.update_book.return_value = True
    store.delete_book.return_value = True
    store.set_cover_image.return_value = True
    return store


@pytest.fixture
def cover_storage(tmp_path):
    """Create cover storage rooted in a temporary directory."""
    return CoverStorage(tmp_path / "covers")


@pytest.fixture
def staged_cover(cover_storage):
    """Stage a small JPEG upload."""
    return cover_storage.stage_upload(io.BytesIO(b"\xff\xd8\xff\xe0fake-jpeg"), "capa.jpg")

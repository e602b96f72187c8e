"""
Unit tests for the MongoDB book repository.
Motor collections are replaced with mocks.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, Mock
from pymongo.errors import DuplicateKeyError

from api.database import BookRepository


@pytest.fixture
def books_collection():
    """Create a mock books collection."""
    collection = MagicMock()
    collection.insert_one = AsyncMock()
    collection.update_one = AsyncMock(return_value=Mock(matched_count=1))
    collection.delete_one = AsyncMock(return_value=Mock(deleted_count=1))
    collection.create_index = AsyncMock()
    collection.count_documents = AsyncMock(return_value=3)
    return collection


@pytest.fixture
def counters_collection():
    """Create a mock counters collection."""
    collection = MagicMock()
    collection.find_one_and_update = AsyncMock(return_value={"_id": "books", "seq": 7})
    return collection


@pytest.fixture
def mock_database(books_collection, counters_collection):
    """Create a mock database returning the mock collections."""
    database = MagicMock()
    collections = {"books": books_collection, "counters": counters_collection}
    database.__getitem__.side_effect = collections.__getitem__
    database.command = AsyncMock(return_value={"ok": 1})
    return database


@pytest.fixture
def repository(mock_database):
    """Create a repository over the mock database."""
    return BookRepository(mock_database)


class TestBookRepository:
    """Test cases for BookRepository."""

    @pytest.mark.asyncio
    async def test_insert_assigns_next_id(self, repository, books_collection, counters_collection, sample_book_record):
        """Test that inserts take their id from the counter."""
        record = sample_book_record.model_copy(update={"id": None, "cover_image_filename": None})

        result = await repository.insert_book(record)

        assert result.success is True
        assert result.id == 7
        document = books_collection.insert_one.await_args.args[0]
        assert document["id"] == 7
        assert document["title"] == "Dom Casmurro"
        assert document["total_copies"] == 5
        assert document["cover_image_filename"] is None
        assert counters_collection.find_one_and_update.await_args.args[0] == {"_id": "books"}

    @pytest.mark.asyncio
    async def test_insert_duplicate(self, repository, books_collection, sample_book_record):
        """Test that a duplicate id is reported as unsuccessful."""
        books_collection.insert_one.side_effect = DuplicateKeyError("duplicate id")

        result = await repository.insert_book(sample_book_record)

        assert result.success is False
        assert result.id is None

    @pytest.mark.asyncio
    async def test_insert_error_propagates(self, repository, books_collection, sample_book_record):
        """Test that other insert errors are raised."""
        books_collection.insert_one.side_effect = RuntimeError("connection lost")

        with pytest.raises(RuntimeError):
            await repository.insert_book(sample_book_record)

    @pytest.mark.asyncio
    async def test_list_books(self, repository, books_collection, sample_book_record):
        """Test that documents become records."""
        document = sample_book_record.model_dump()
        books_collection.find.return_value.sort.return_value.to_list = AsyncMock(return_value=[document])

        books = await repository.list_books()

        assert books == [sample_book_record]
        books_collection.find.assert_called_once_with({}, {"_id": 0})

    @pytest.mark.asyncio
    async def test_update_keeps_cover(self, repository, books_collection, sample_book_record):
        """Test that updates do not touch id or cover reference."""
        assert await repository.update_book(sample_book_record) is True

        query, update = books_collection.update_one.await_args.args
        assert query == {"id": 1}
        assert "id" not in update["$set"]
        assert "cover_image_filename" not in update["$set"]
        assert update["$set"]["loan_status"] == "Available"

    @pytest.mark.asyncio
    async def test_update_missing_book(self, repository, books_collection, sample_book_record):
        """Test that an unknown id is reported as unsuccessful."""
        books_collection.update_one.return_value = Mock(matched_count=0)

        assert await repository.update_book(sample_book_record) is False

    @pytest.mark.asyncio
    async def test_update_without_id(self, repository, books_collection, sample_book_record):
        """Test that a record without id is rejected without a query."""
        record = sample_book_record.model_copy(update={"id": None})

        assert await repository.update_book(record) is False
        books_collection.update_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete(self, repository, books_collection):
        """Test deleting by id."""
        assert await repository.delete_book(1) is True
        books_collection.delete_one.assert_awaited_once_with({"id": 1})

    @pytest.mark.asyncio
    async def test_delete_missing_book(self, repository, books_collection):
        """Test deleting an unknown id."""
        books_collection.delete_one.return_value = Mock(deleted_count=0)

        assert await repository.delete_book(99) is False

    @pytest.mark.asyncio
    async def test_delete_without_id(self, repository, books_collection):
        """Test that a missing id is rejected without a query."""
        assert await repository.delete_book(None) is False
        books_collection.delete_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_set_cover_image(self, repository, books_collection):
        """Test storing the cover filename."""
        assert await repository.set_cover_image("Dom_Casmurro_Garnier.jpg", 1) is True
        books_collection.update_one.assert_awaited_once_with(
            {"id": 1}, {"$set": {"cover_image_filename": "Dom_Casmurro_Garnier.jpg"}}
        )

    @pytest.mark.asyncio
    async def test_ensure_indexes(self, repository, books_collection):
        """Test index creation."""
        await repository.ensure_indexes()

        books_collection.create_index.assert_any_await("id", unique=True)

    @pytest.mark.asyncio
    async def test_health_check(self, repository):
        """Test a healthy database."""
        health = await repository.health_check()

        assert health["status"] == "healthy"
        assert health["books_count"] == 3

    @pytest.mark.asyncio
    async def test_health_check_failure(self, repository, mock_database):
        """Test an unreachable database."""
        mock_database.command.side_effect = RuntimeError("no server")

        health = await repository.health_check()

        assert health["status"] == "unhealthy"
        assert "no server" in health["error"]

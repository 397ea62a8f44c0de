"""
Unit tests for library_circulation.services.category.
"""
import pytest

from library_circulation.core.exceptions import ConflictError, InvalidInputError, NotFoundError
from library_circulation.db.models import Book
from library_circulation.services.category import (
    create_category,
    get_categories,
    get_category_by_id,
    update_category,
    delete_category,
)


class TestCreateCategory:
    @pytest.mark.asyncio
    async def test_create_success(self, db_session):
        category = await create_category(db_session, {"name": " History ", "description": "Past"})
        assert category.name == "History"
        assert category.description == "Past"

    @pytest.mark.asyncio
    async def test_blank_name_rejected(self, db_session):
        with pytest.raises(InvalidInputError):
            await create_category(db_session, {"name": ""})

    @pytest.mark.asyncio
    async def test_duplicate_name_rejected(self, db_session):
        await create_category(db_session, {"name": "History"})
        with pytest.raises(ConflictError):
            await create_category(db_session, {"name": "History"})


class TestListAndUpdate:
    @pytest.mark.asyncio
    async def test_ordered_by_name(self, db_session):
        await create_category(db_session, {"name": "Science"})
        await create_category(db_session, {"name": "Art"})

        categories = await get_categories(db_session)
        assert [c.name for c in categories] == ["Art", "Science"]

    @pytest.mark.asyncio
    async def test_update(self, db_session):
        category = await create_category(db_session, {"name": "Sci-Fi"})

        updated = await update_category(
            db_session, category.id, {"name": "Science Fiction", "description": "Futures"}
        )
        assert updated.name == "Science Fiction"
        assert updated.description == "Futures"

    @pytest.mark.asyncio
    async def test_rename_to_existing_name(self, db_session):
        await create_category(db_session, {"name": "Art"})
        category = await create_category(db_session, {"name": "Music"})

        with pytest.raises(ConflictError):
            await update_category(db_session, category.id, {"name": "Art"})

    @pytest.mark.asyncio
    async def test_update_not_found(self, db_session):
        with pytest.raises(NotFoundError):
            await update_category(db_session, "missing", {"name": "X"})


class TestDeleteCategory:
    @pytest.mark.asyncio
    async def test_books_survive(self, db_session, make_book):
        category = await create_category(db_session, {"name": "Poetry"})
        book = make_book(category_id=category.id)
        db_session.add(book)
        await db_session.flush()

        await delete_category(db_session, category.id)

        assert await get_category_by_id(db_session, category.id) is None
        refreshed = await db_session.get(Book, book.id, populate_existing=True)
        assert refreshed.category_id is None

    @pytest.mark.asyncio
    async def test_not_found(self, db_session):
        with pytest.raises(NotFoundError, match="Category not found"):
            await delete_category(db_session, "missing")

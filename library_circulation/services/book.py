from typing import Optional, List

from sqlalchemy import select, func, update, delete
from sqlalchemy.ext.asyncio import AsyncSession

from library_circulation.core.exceptions import ConflictError, InvalidInputError, NotFoundError
from library_circulation.core.logging import get_logger
from library_circulation.db.models import Book, Category, Fine, Loan, ACTIVE_LOAN_STATUSES
from library_circulation.services.category import find_category_by_name

logger = get_logger("services.book")


async def _resolve_category_id(db: AsyncSession, data: dict) -> Optional[str]:
    """Map a category name onto its id. Unknown names leave the book uncategorised."""
    name = data.pop("category", None)
    if not name:
        return None
    category = await find_category_by_name(db, name)
    return category.id if category else None


async def _ensure_isbn_free(db: AsyncSession, isbn: Optional[str], book_id: Optional[str] = None) -> None:
    if not isbn:
        return
    query = select(Book.id).where(Book.isbn == isbn)
    if book_id:
        query = query.where(Book.id != book_id)
    result = await db.execute(query)
    if result.first() is not None:
        raise ConflictError("ISBN already exists")


async def create_book(db: AsyncSession, data: dict) -> Book:
    """Create a new book with every copy available."""
    title = (data.get("title") or "").strip()
    if not title:
        raise InvalidInputError("Title is required")
    data["title"] = title
    await _ensure_isbn_free(db, data.get("isbn"))

    data["category_id"] = await _resolve_category_id(db, data)
    data["total_copies"] = data.get("total_copies") or 1
    data["available_copies"] = data["total_copies"]

    book = Book(**data)
    db.add(book)
    await db.flush()
    await db.refresh(book)

    logger.info(f"Book created: id={book.id} title='{book.title}' copies={book.total_copies}")
    return book


async def get_books(db: AsyncSession, search: Optional[str] = None) -> List[Book]:
    """List books ordered by title, optionally filtered by a free-text search."""
    query = select(Book).outerjoin(Category, Book.category_id == Category.id)

    if search:
        term = f"%{search.strip()}%"
        query = query.where(
            Book.title.ilike(term)
            | Book.author.ilike(term)
            | Book.isbn.ilike(term)
            | Category.name.ilike(term)
        )

    result = await db.execute(query.order_by(Book.title))
    return list(result.scalars().all())


async def get_book_by_id(db: AsyncSession, book_id: str) -> Optional[Book]:
    """Get a single book by ID."""
    result = await db.execute(select(Book).where(Book.id == book_id))
    return result.scalar_one_or_none()


async def find_book_by_title(db: AsyncSession, title: str) -> Optional[Book]:
    """Circulation looks books up by title; the oldest record wins on duplicates."""
    result = await db.execute(
        select(Book).where(Book.title == title).order_by(Book.created_at).limit(1)
    )
    return result.scalars().first()


async def count_active_loans_for_book(db: AsyncSession, book_id: str) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(Loan)
        .where(Loan.book_id == book_id, Loan.status.in_(ACTIVE_LOAN_STATUSES))
    )
    return result.scalar()


async def update_book(db: AsyncSession, book_id: str, data: dict) -> Book:
    """Update a book. A new total shifts the available count by the same delta."""
    book = await get_book_by_id(db, book_id)
    if not book:
        raise NotFoundError("Book not found")

    if "title" in data:
        title = (data.get("title") or "").strip()
        if not title:
            raise InvalidInputError("Title is required")
        data["title"] = title
    if data.get("isbn"):
        await _ensure_isbn_free(db, data["isbn"], book_id)
    if "category" in data:
        data["category_id"] = await _resolve_category_id(db, data)

    if data.get("total_copies") is not None:
        diff = data["total_copies"] - book.total_copies
        new_available = book.available_copies + diff
        if new_available < 0:
            raise ConflictError("Cannot reduce total copies below the number currently on loan")
        data["available_copies"] = new_available

    for key, value in data.items():
        if value is not None:
            setattr(book, key, value)

    await db.flush()
    await db.refresh(book)

    logger.info(f"Book updated: id={book_id}")
    return book


async def delete_book(db: AsyncSession, book_id: str) -> None:
    """Delete a book together with its (closed) loan history."""
    book = await get_book_by_id(db, book_id)
    if not book:
        raise NotFoundError("Book not found")

    if await count_active_loans_for_book(db, book_id) > 0:
        logger.warning(f"Refused to delete book with active loans: id={book_id}")
        raise ConflictError("Cannot delete book with active loans")

    history = select(Loan.id).where(Loan.book_id == book_id)
    await db.execute(
        update(Fine)
        .where(Fine.loan_id.in_(history))
        .values(loan_id=None)
        .execution_options(synchronize_session=False)
    )
    await db.execute(
        delete(Loan).where(Loan.book_id == book_id).execution_options(synchronize_session=False)
    )
    await db.delete(book)
    await db.flush()

    logger.info(f"Book deleted: id={book_id}")


async def adjust_available(db: AsyncSession, book_id: str, delta: int) -> None:
    """Shift a book's available copies by ``delta`` in a single UPDATE."""
    result = await db.execute(
        update(Book)
        .where(Book.id == book_id)
        .values(available_copies=Book.available_copies + delta)
    )
    if result.rowcount == 0:
        raise NotFoundError("Book not found")

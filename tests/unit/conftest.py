"""
Shared fixtures for unit tests.
Uses an in-memory SQLite database for fast isolated testing.
"""
from datetime import date, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from library_circulation.db.models import (
    Base, Category, Book, Member, MemberType, MemberStatus,
    Loan, LoanStatus, Fine, FineStatus, FineType,
)
from library_circulation.db.session import configure_sqlite
from library_circulation.services.member import max_books_for


@pytest_asyncio.fixture
async def async_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )
    configure_sqlite(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(async_engine) -> AsyncSession:
    """Provide a transactional database session for each test."""
    session_factory = async_sessionmaker(
        bind=async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with session_factory() as session:
        yield session
        await session.rollback()


# ─── Helper factories ───────────────────────────────────────────


@pytest.fixture
def make_category():
    """Factory fixture to create Category instances."""
    def _make(name: str = None, description: str = "A test category") -> Category:
        return Category(
            id=str(uuid4()),
            name=name or f"Category {uuid4().hex[:6]}",
            description=description,
        )
    return _make


@pytest.fixture
def make_book():
    """Factory fixture to create Book instances."""
    def _make(
        title: str = None,
        author: str = "Test Author",
        isbn: str = None,
        total_copies: int = 5,
        available_copies: int = None,
        category_id: str = None,
    ) -> Book:
        return Book(
            id=str(uuid4()),
            title=title or f"Test Book {uuid4().hex[:6]}",
            author=author,
            isbn=isbn or f"978{uuid4().int % 10**10:010d}",
            publisher="Test Press",
            publication_year=2024,
            total_copies=total_copies,
            available_copies=total_copies if available_copies is None else available_copies,
            category_id=category_id,
        )
    return _make


@pytest.fixture
def make_member():
    """Factory fixture to create Member instances."""
    def _make(
        name: str = None,
        email: str = None,
        member_type: MemberType = MemberType.STUDENT,
        member_code: str = None,
        max_books: int = None,
        status: MemberStatus = MemberStatus.ACTIVE,
    ) -> Member:
        return Member(
            id=str(uuid4()),
            member_code=member_code or f"TST{uuid4().hex[:6].upper()}",
            name=name or f"Member {uuid4().hex[:6]}",
            email=email or f"member-{uuid4().hex[:8]}@test.com",
            phone="555-0100",
            member_type=member_type,
            max_books=max_books if max_books is not None else max_books_for(member_type),
            status=status,
            expiry_date=date.today() + timedelta(days=365),
        )
    return _make


@pytest.fixture
def make_loan():
    """Factory fixture to create Loan instances."""
    def _make(
        book_id: str,
        member_id: str,
        status: LoanStatus = LoanStatus.BORROWED,
        borrow_date: date = None,
        due_date: date = None,
        return_date: date = None,
        fine_amount: Decimal = Decimal("0.00"),
        notes: str = None,
    ) -> Loan:
        today = date.today()
        return Loan(
            id=str(uuid4()),
            book_id=book_id,
            member_id=member_id,
            borrow_date=borrow_date or today,
            due_date=due_date or today + timedelta(days=14),
            return_date=return_date,
            status=status,
            fine_amount=fine_amount,
            notes=notes,
            issued_by="System",
        )
    return _make


@pytest.fixture
def make_fine():
    """Factory fixture to create Fine instances."""
    def _make(
        member_id: str,
        loan_id: str = None,
        amount: Decimal = Decimal("5.00"),
        paid_amount: Decimal = Decimal("0.00"),
        status: FineStatus = FineStatus.PENDING,
        fine_type: FineType = FineType.OVERDUE,
    ) -> Fine:
        return Fine(
            id=str(uuid4()),
            member_id=member_id,
            loan_id=loan_id,
            fine_type=fine_type,
            amount=amount,
            paid_amount=paid_amount,
            status=status,
            description="Test fine",
        )
    return _make


@pytest_asyncio.fixture
async def book_and_member(db_session, make_book, make_member):
    """A persisted book (3 copies) and student member."""
    book = make_book(title="The Pragmatic Programmer", total_copies=3)
    member = make_member(name="Ada Lovelace")
    db_session.add_all([book, member])
    await db_session.flush()
    return book, member

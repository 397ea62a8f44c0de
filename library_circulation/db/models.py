import enum
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional
from uuid import uuid4

from sqlalchemy import (
    String,
    Text,
    Integer,
    Date,
    DateTime,
    ForeignKey,
    Enum,
    Numeric,
    Index,
    CheckConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ──────────────────────────── Enums ────────────────────────────


class MemberType(str, enum.Enum):
    STUDENT = "Student"
    FACULTY = "Faculty"
    STAFF = "Staff"
    PUBLIC = "Public"


class MemberStatus(str, enum.Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


class LoanStatus(str, enum.Enum):
    BORROWED = "Borrowed"
    OVERDUE = "Overdue"
    RETURNED = "Returned"


ACTIVE_LOAN_STATUSES = (LoanStatus.BORROWED, LoanStatus.OVERDUE)


class FineType(str, enum.Enum):
    OVERDUE = "Overdue"
    DAMAGE = "Damage"
    LOST = "Lost"


class FineStatus(str, enum.Enum):
    PENDING = "Pending"
    PAID = "Paid"


# ──────────────────────────── Models ────────────────────────────


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid4())
    )
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )


class Book(Base):
    __tablename__ = "books"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid4())
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    author: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    isbn: Mapped[Optional[str]] = mapped_column(String(20), unique=True, nullable=True)
    publisher: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    publication_year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    total_copies: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    available_copies: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    category_id: Mapped[Optional[str]] = mapped_column(
        UUID(as_uuid=False), ForeignKey("categories.id", ondelete="SET NULL"), nullable=True
    )
    location: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    # Relationships
    category: Mapped[Optional["Category"]] = relationship("Category", lazy="selectin")

    __table_args__ = (
        CheckConstraint("total_copies >= 0", name="ck_books_total_copies_positive"),
        CheckConstraint("available_copies >= 0", name="ck_books_available_copies_positive"),
        CheckConstraint(
            "available_copies <= total_copies", name="ck_books_available_lte_total"
        ),
    )

    @property
    def category_name(self) -> Optional[str]:
        return self.category.name if self.category else None


class Member(Base):
    __tablename__ = "members"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid4())
    )
    member_code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    member_type: Mapped[MemberType] = mapped_column(
        Enum(MemberType, name="member_type"), nullable=False, default=MemberType.STUDENT
    )
    max_books: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    status: Mapped[MemberStatus] = mapped_column(
        Enum(MemberStatus, name="member_status"), nullable=False, default=MemberStatus.ACTIVE
    )
    expiry_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )


class MemberSequence(Base):
    """Last member-code number handed out per prefix."""

    __tablename__ = "member_sequences"

    prefix: Mapped[str] = mapped_column(String(3), primary_key=True)
    last_value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class Loan(Base):
    __tablename__ = "loans"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid4())
    )
    book_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("books.id"), nullable=False
    )
    member_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("members.id"), nullable=False
    )
    borrow_date: Mapped[date] = mapped_column(Date, nullable=False, default=date.today)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    return_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    status: Mapped[LoanStatus] = mapped_column(
        Enum(LoanStatus, name="loan_status"),
        nullable=False,
        default=LoanStatus.BORROWED,
        index=True,
    )
    fine_amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0.00")
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    issued_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    returned_to: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    # Relationships
    book: Mapped["Book"] = relationship("Book", lazy="selectin")
    member: Mapped["Member"] = relationship("Member", lazy="selectin")

    __table_args__ = (
        Index("ix_loans_member_status", "member_id", "status"),
        Index("ix_loans_book_status", "book_id", "status"),
    )

    @property
    def book_title(self) -> Optional[str]:
        return self.book.title if self.book else None

    @property
    def book_author(self) -> Optional[str]:
        return self.book.author if self.book else None

    @property
    def member_name(self) -> Optional[str]:
        return self.member.name if self.member else None

    @property
    def member_code(self) -> Optional[str]:
        return self.member.member_code if self.member else None

    @property
    def member_type(self) -> Optional[MemberType]:
        return self.member.member_type if self.member else None


class Fine(Base):
    __tablename__ = "fines"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid4())
    )
    member_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("members.id"), nullable=False
    )
    # One fine per loan; kept (detached) when the loan is deleted
    loan_id: Mapped[Optional[str]] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("loans.id", ondelete="SET NULL"),
        unique=True,
        nullable=True,
    )
    fine_type: Mapped[FineType] = mapped_column(
        Enum(FineType, name="fine_type"), nullable=False, default=FineType.OVERDUE
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    paid_amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0.00")
    )
    status: Mapped[FineStatus] = mapped_column(
        Enum(FineStatus, name="fine_status"),
        nullable=False,
        default=FineStatus.PENDING,
        index=True,
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    paid_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    # Relationships
    member: Mapped["Member"] = relationship("Member", lazy="selectin")

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_fines_amount_positive"),
    )

    @property
    def member_name(self) -> Optional[str]:
        return self.member.name if self.member else None

    @property
    def member_code(self) -> Optional[str]:
        return self.member.member_code if self.member else None

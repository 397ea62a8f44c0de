"""
Unit tests for Pydantic schemas – request/response validation.
"""
from datetime import date, datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest
from pydantic import ValidationError

from library_circulation.schemas.book import BookCreate, BookUpdate, BookResponse
from library_circulation.schemas.category import CategoryCreate
from library_circulation.schemas.fine import FinePayment, FineResponse
from library_circulation.schemas.loan import LoanCreate, LoanReturn, LoanResponse
from library_circulation.schemas.member import MemberCreate, MemberUpdate
from library_circulation.db.models import FineStatus, FineType, LoanStatus, MemberStatus, MemberType


# ─── Catalog schemas ────────────────────────────────────────────


class TestCategoryCreate:
    def test_valid(self):
        c = CategoryCreate(name="History")
        assert c.description is None

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError):
            CategoryCreate(name="   ")


class TestBookCreate:
    def test_defaults(self):
        b = BookCreate(title="Dune")
        assert b.total_copies == 1
        assert b.category is None

    def test_title_is_stripped(self):
        assert BookCreate(title="  Dune  ").title == "Dune"

    def test_empty_title_rejected(self):
        with pytest.raises(ValidationError):
            BookCreate(title="")

    def test_zero_copies_rejected(self):
        with pytest.raises(ValidationError):
            BookCreate(title="Dune", total_copies=0)


class TestBookUpdate:
    def test_all_optional(self):
        u = BookUpdate()
        assert u.model_dump(exclude_unset=True) == {}

    def test_negative_copies_rejected(self):
        with pytest.raises(ValidationError):
            BookUpdate(total_copies=-1)


class TestBookResponse:
    def test_from_attributes(self):
        now = datetime.now(timezone.utc)
        obj = SimpleNamespace(
            id="b1", title="Dune", author="Frank Herbert", isbn=None, publisher=None,
            publication_year=1965, total_copies=2, available_copies=1,
            category_name="Science Fiction", location=None, description=None,
            created_at=now, updated_at=now,
        )
        r = BookResponse.model_validate(obj)
        assert r.category_name == "Science Fiction"
        assert r.available_copies == 1


# ─── Member schemas ─────────────────────────────────────────────


class TestMemberCreate:
    def test_default_type_is_student(self):
        m = MemberCreate(name="Ada", email="ada@example.com")
        assert m.member_type == MemberType.STUDENT

    def test_invalid_email(self):
        with pytest.raises(ValidationError):
            MemberCreate(name="Ada", email="not-an-email")

    def test_unknown_member_type(self):
        with pytest.raises(ValidationError):
            MemberCreate(name="Ada", email="ada@example.com", member_type="Visitor")

    def test_missing_name(self):
        with pytest.raises(ValidationError):
            MemberCreate(email="ada@example.com")


class TestMemberUpdate:
    def test_status_defaults_to_active(self):
        m = MemberUpdate(name="Ada", email="ada@example.com")
        assert m.status == MemberStatus.ACTIVE
        assert m.member_type is None

    def test_inactive(self):
        m = MemberUpdate(name="Ada", email="ada@example.com", status="Inactive")
        assert m.status == MemberStatus.INACTIVE


# ─── Loan schemas ───────────────────────────────────────────────


class TestLoanCreate:
    def test_valid_minimal(self):
        l = LoanCreate(book_title="Dune", member_name="Ada")
        assert l.status is None
        assert l.due_date is None
        assert l.fine_amount == Decimal("0.00")

    def test_blank_book_rejected(self):
        with pytest.raises(ValidationError):
            LoanCreate(book_title="  ", member_name="Ada")

    def test_due_date_parsed(self):
        l = LoanCreate(book_title="Dune", member_name="Ada", due_date="2025-04-01")
        assert l.due_date == date(2025, 4, 1)

    def test_status_values(self):
        l = LoanCreate(book_title="Dune", member_name="Ada", status="Returned")
        assert l.status == LoanStatus.RETURNED

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError):
            LoanCreate(book_title="Dune", member_name="Ada", status="Lost")

    def test_negative_fine_rejected(self):
        with pytest.raises(ValidationError):
            LoanCreate(book_title="Dune", member_name="Ada", fine_amount=-1)


class TestLoanReturn:
    def test_everything_optional(self):
        r = LoanReturn()
        assert r.returned_to is None
        assert r.notes is None


class TestLoanResponse:
    def test_money_serialised_as_number(self):
        now = datetime.now(timezone.utc)
        obj = SimpleNamespace(
            id="l1", book_id="b1", member_id="m1", book_title="Dune", book_author=None,
            member_name="Ada", member_code="STU001", member_type=MemberType.STUDENT,
            borrow_date=date(2025, 3, 1), due_date=date(2025, 3, 15), return_date=None,
            status=LoanStatus.BORROWED, fine_amount=Decimal("2.50"), notes=None,
            issued_by="System", returned_to=None, created_at=now, updated_at=now,
        )
        data = LoanResponse.model_validate(obj).model_dump(mode="json")
        assert data["fine_amount"] == 2.5
        assert data["status"] == "Borrowed"


# ─── Fine schemas ───────────────────────────────────────────────


class TestFinePayment:
    def test_valid(self):
        assert FinePayment(paid_amount="3.50").paid_amount == Decimal("3.50")

    def test_negative_rejected(self):
        with pytest.raises(ValidationError):
            FinePayment(paid_amount=-1)

    def test_missing_amount(self):
        with pytest.raises(ValidationError):
            FinePayment()


class TestFineResponse:
    def test_from_attributes(self):
        obj = SimpleNamespace(
            id="f1", member_id="m1", member_name="Ada", member_code="STU001", loan_id=None,
            fine_type=FineType.OVERDUE, amount=Decimal("5.00"), paid_amount=Decimal("0.00"),
            status=FineStatus.PENDING, description=None, paid_date=None,
            created_at=datetime.now(timezone.utc),
        )
        r = FineResponse.model_validate(obj)
        assert r.amount == 5.0
        assert r.loan_id is None

from datetime import date, timedelta
from decimal import Decimal
from typing import Optional, List, Tuple, Dict

from sqlalchemy import select, update, or_, and_
from sqlalchemy.ext.asyncio import AsyncSession

from library_circulation.core.config import settings
from library_circulation.core.exceptions import ConflictError, InvalidInputError, NotFoundError
from library_circulation.core.logging import get_logger
from library_circulation.db.models import Loan, LoanStatus, MemberType, ACTIVE_LOAN_STATUSES
from library_circulation.services.book import adjust_available, find_book_by_title
from library_circulation.services.fine import record_fine
from library_circulation.services.member import count_active_loans, find_member_by_name

logger = get_logger("services.loan")

DEFAULT_LOAN_DAYS = 14
BORROWING_DAYS_BY_TYPE: Dict[MemberType, int] = {
    MemberType.FACULTY: 30,
    MemberType.STAFF: 21,
    MemberType.PUBLIC: 7,
    MemberType.STUDENT: DEFAULT_LOAN_DAYS,
}


def borrowing_days_for(member_type: MemberType) -> int:
    """Length of the borrowing period for a member type, in days."""
    return BORROWING_DAYS_BY_TYPE.get(member_type, DEFAULT_LOAN_DAYS)


def calculate_days_overdue(due_date: date, on: date) -> int:
    return max(0, (on - due_date).days)


def calculate_fine(days_overdue: int) -> Decimal:
    """Flat daily rate, rounded to cents."""
    return (days_overdue * settings.DAILY_FINE_RATE).quantize(Decimal("0.01"))


def _clean_notes(notes: Optional[str]) -> Optional[str]:
    if notes is None:
        return None
    return notes.strip() or None


async def _adjust_availability(db: AsyncSession, book_id: str, delta: int, reason: str) -> None:
    """Best-effort counter update: a failure is logged and never undoes the caller's write."""
    try:
        async with db.begin_nested():
            await adjust_available(db, book_id, delta)
    except Exception:
        logger.exception(
            f"Failed to update book availability: book={book_id} delta={delta:+d} ({reason})",
            extra={"extra_data": {"book_id": book_id, "delta": delta}},
        )


async def _assess_overdue_fine(
    db: AsyncSession, loan: Loan, fine_amount: Decimal, days_overdue: int
) -> None:
    """Best-effort fine creation on return; a failure is logged only."""
    try:
        async with db.begin_nested():
            await record_fine(
                db,
                member_id=loan.member_id,
                loan_id=loan.id,
                amount=fine_amount,
                description=f"Book returned {days_overdue} days late",
            )
    except Exception:
        logger.exception(
            f"Failed to create fine record: loan={loan.id} amount={fine_amount}",
            extra={"extra_data": {"loan_id": loan.id}},
        )


async def _resolve_book_and_member(db: AsyncSession, book_title: str, member_name: str):
    book = await find_book_by_title(db, book_title)
    member = await find_member_by_name(db, member_name)
    if not book or not member:
        raise NotFoundError("Book or member not found")
    return book, member


async def create_loan(
    db: AsyncSession,
    book_title: str,
    member_name: str,
    due_date: Optional[date] = None,
    status: Optional[LoanStatus] = None,
    notes: Optional[str] = None,
    fine_amount: Optional[Decimal] = None,
) -> Loan:
    """Check a book out to a member, or record a loan in another state.

    Availability and the member's borrowing limit are only enforced for
    Borrowed loans, and only Borrowed loans take a copy off the shelf.
    """
    if not (book_title or "").strip() or not (member_name or "").strip():
        raise InvalidInputError("Book and member are required")

    book, member = await _resolve_book_and_member(db, book_title.strip(), member_name.strip())
    status = status or LoanStatus.BORROWED

    if status == LoanStatus.BORROWED:
        if book.available_copies <= 0:
            logger.warning(f"Loan refused, no copies available: book={book.id}")
            raise ConflictError("Book is not available")
        active_count = await count_active_loans(db, member.id)
        if active_count >= member.max_books:
            logger.warning(
                f"Loan refused, borrowing limit reached: member={member.id} "
                f"active={active_count} max={member.max_books}"
            )
            raise ConflictError(
                f"Member has reached borrowing limit of {member.max_books} books"
            )

    today = date.today()
    loan = Loan(
        book_id=book.id,
        member_id=member.id,
        borrow_date=today,
        due_date=due_date or today + timedelta(days=borrowing_days_for(member.member_type)),
        status=status,
        notes=_clean_notes(notes),
        fine_amount=fine_amount or Decimal("0.00"),
        issued_by=settings.DEFAULT_ACTOR,
    )
    db.add(loan)
    await db.flush()

    if status == LoanStatus.BORROWED:
        await _adjust_availability(db, book.id, -1, f"loan {loan.id} created")

    logger.info(
        f"Loan created: id={loan.id} book={book.id} member={member.id} "
        f"status={status.value} due={loan.due_date}"
    )
    return loan


async def update_loan(
    db: AsyncSession,
    loan_id: str,
    book_title: str,
    member_name: str,
    due_date: Optional[date] = None,
    status: Optional[LoanStatus] = None,
    notes: Optional[str] = None,
    fine_amount: Optional[Decimal] = None,
) -> Loan:
    """Edit a loan in place.

    Availability follows the status change pairwise: Borrowed -> Returned
    gives a copy back, Returned -> Borrowed takes one. No other change
    touches the counter.
    """
    loan = await get_loan_by_id(db, loan_id)
    if not loan:
        raise NotFoundError("Loan not found")

    book, member = await _resolve_book_and_member(
        db, (book_title or "").strip(), (member_name or "").strip()
    )

    old_status = loan.status
    new_status = status or LoanStatus.BORROWED

    loan.book_id = book.id
    loan.member_id = member.id
    if due_date:
        loan.due_date = due_date
    loan.status = new_status
    loan.notes = _clean_notes(notes)
    loan.fine_amount = fine_amount or Decimal("0.00")
    if new_status == LoanStatus.RETURNED:
        loan.return_date = date.today()
        loan.returned_to = settings.DEFAULT_ACTOR
    else:
        loan.return_date = None
        loan.returned_to = None
    await db.flush()

    if old_status == LoanStatus.BORROWED and new_status == LoanStatus.RETURNED:
        await _adjust_availability(db, book.id, 1, f"loan {loan_id} edited to returned")
    elif old_status == LoanStatus.RETURNED and new_status == LoanStatus.BORROWED:
        await _adjust_availability(db, book.id, -1, f"loan {loan_id} edited to borrowed")

    await db.refresh(loan)

    logger.info(f"Loan updated: id={loan_id} {old_status.value} -> {new_status.value}")
    return loan


async def delete_loan(db: AsyncSession, loan_id: str) -> None:
    """Delete a loan. An active loan gives its copy back, without a fine."""
    loan = await get_loan_by_id(db, loan_id)
    if not loan:
        raise NotFoundError("Loan not found")

    book_id = loan.book_id
    was_active = loan.status in ACTIVE_LOAN_STATUSES

    await db.delete(loan)
    await db.flush()

    if was_active:
        await _adjust_availability(db, book_id, 1, f"loan {loan_id} deleted")

    logger.info(f"Loan deleted: id={loan_id} active={was_active}")


async def return_loan(
    db: AsyncSession,
    loan_id: str,
    returned_to: Optional[str] = None,
    notes: Optional[str] = None,
) -> Tuple[Decimal, int]:
    """Close an active loan and assess the late fine.

    Returns ``(fine_amount, days_overdue)``.
    """
    result = await db.execute(
        select(Loan).where(Loan.id == loan_id, Loan.status.in_(ACTIVE_LOAN_STATUSES))
    )
    loan = result.scalar_one_or_none()
    if not loan:
        raise NotFoundError("Active loan not found")

    today = date.today()
    days_overdue = calculate_days_overdue(loan.due_date, today)
    fine_amount = calculate_fine(days_overdue)

    loan.status = LoanStatus.RETURNED
    loan.return_date = today
    loan.returned_to = returned_to or settings.DEFAULT_ACTOR
    loan.fine_amount = fine_amount
    if notes:
        loan.notes = f"{loan.notes or ''}\nReturn notes: {notes}"
    await db.flush()

    await _adjust_availability(db, loan.book_id, 1, f"loan {loan_id} returned")

    if fine_amount > 0:
        await _assess_overdue_fine(db, loan, fine_amount, days_overdue)

    logger.info(
        f"Book returned: loan={loan_id} days_overdue={days_overdue} fine={fine_amount}"
    )
    return fine_amount, days_overdue


async def bulk_mark_overdue(db: AsyncSession) -> int:
    """Move every Borrowed loan past its due date to Overdue. Returns rows changed."""
    result = await db.execute(
        update(Loan)
        .where(Loan.status == LoanStatus.BORROWED, Loan.due_date < date.today())
        .values(status=LoanStatus.OVERDUE)
    )
    count = result.rowcount
    logger.info(f"Updated {count} loans to overdue status")
    return count


async def get_loans(db: AsyncSession) -> List[Loan]:
    """All loans with book and member loaded, latest borrow date first."""
    result = await db.execute(
        select(Loan)
        .order_by(Loan.borrow_date.desc(), Loan.created_at.desc())
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def get_overdue_loans(db: AsyncSession) -> List[Tuple[Loan, int]]:
    """Loans that are overdue (flagged or not yet swept), most overdue first."""
    today = date.today()
    result = await db.execute(
        select(Loan)
        .where(
            or_(
                Loan.status == LoanStatus.OVERDUE,
                and_(Loan.status == LoanStatus.BORROWED, Loan.due_date < today),
            )
        )
        .order_by(Loan.due_date.asc())
        .execution_options(populate_existing=True)
    )
    return [
        (loan, calculate_days_overdue(loan.due_date, today))
        for loan in result.scalars().all()
    ]


async def get_loan_by_id(db: AsyncSession, loan_id: str) -> Optional[Loan]:
    """Get a single loan by ID."""
    result = await db.execute(select(Loan).where(Loan.id == loan_id))
    return result.scalar_one_or_none()

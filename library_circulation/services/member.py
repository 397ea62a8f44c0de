from datetime import date, timedelta
from typing import Optional, List, Dict

from sqlalchemy import select, func, update, delete
from sqlalchemy.ext.asyncio import AsyncSession

from library_circulation.core.config import settings
from library_circulation.core.exceptions import ConflictError, InvalidInputError, NotFoundError
from library_circulation.core.logging import get_logger
from library_circulation.db.models import (
    Fine, Loan, Member, MemberSequence, MemberType, ACTIVE_LOAN_STATUSES,
)

logger = get_logger("services.member")

DEFAULT_MAX_BOOKS = 5
MAX_BOOKS_BY_TYPE: Dict[MemberType, int] = {
    MemberType.FACULTY: 10,
    MemberType.STAFF: 7,
    MemberType.PUBLIC: 3,
    MemberType.STUDENT: DEFAULT_MAX_BOOKS,
}


def max_books_for(member_type: MemberType) -> int:
    """Borrowing limit for a member type."""
    return MAX_BOOKS_BY_TYPE.get(member_type, DEFAULT_MAX_BOOKS)


def member_code_prefix(member_type: MemberType) -> str:
    return member_type.value[:3].upper()


def _require_name_and_email(data: dict) -> None:
    for key in ("name", "email"):
        value = (data.get(key) or "").strip()
        if not value:
            raise InvalidInputError("Name and email are required")
        data[key] = value


async def _ensure_email_free(db: AsyncSession, email: str, member_id: Optional[str] = None) -> None:
    query = select(Member.id).where(Member.email == email)
    if member_id:
        query = query.where(Member.id != member_id)
    result = await db.execute(query)
    if result.first() is not None:
        raise ConflictError("Email address already exists")


async def _highest_issued_number(db: AsyncSession, prefix: str) -> int:
    """Numeric suffix of the greatest existing code with ``prefix``, 0 if none."""
    result = await db.execute(
        select(Member.member_code)
        .where(Member.member_code.like(f"{prefix}%"))
        .order_by(Member.member_code.desc())
        .limit(1)
    )
    last_code = result.scalar_one_or_none()
    if not last_code:
        return 0
    try:
        return int(last_code[len(prefix):])
    except ValueError:
        return 0


async def allocate_member_code(db: AsyncSession, member_type: MemberType) -> str:
    """Hand out the next code for ``member_type``, e.g. FAC001, FAC002.

    Backed by one counter row per prefix, locked for the rest of the
    transaction where the database supports row locks. The counter is seeded
    from existing member codes the first time a prefix is seen.
    """
    prefix = member_code_prefix(member_type)
    result = await db.execute(
        select(MemberSequence).where(MemberSequence.prefix == prefix).with_for_update()
    )
    sequence = result.scalar_one_or_none()
    if sequence is None:
        sequence = MemberSequence(prefix=prefix, last_value=await _highest_issued_number(db, prefix))
        db.add(sequence)

    sequence.last_value += 1
    await db.flush()
    return f"{prefix}{sequence.last_value:03d}"


async def create_member(db: AsyncSession, data: dict) -> Member:
    """Register a member, deriving limit, expiry and member code."""
    _require_name_and_email(data)
    await _ensure_email_free(db, data["email"])

    member_type = data.get("member_type") or MemberType.STUDENT
    data["member_type"] = member_type
    data["max_books"] = max_books_for(member_type)
    data["expiry_date"] = date.today() + timedelta(days=settings.MEMBERSHIP_VALIDITY_DAYS)
    data["member_code"] = await allocate_member_code(db, member_type)

    member = Member(**data)
    db.add(member)
    await db.flush()
    await db.refresh(member)

    logger.info(
        f"Member created: id={member.id} code={member.member_code} name='{member.name}'",
        extra={"extra_data": {"member_type": member_type.value}},
    )
    return member


async def get_members(db: AsyncSession, search: Optional[str] = None) -> List[Member]:
    """List members ordered by name, optionally filtered by a free-text search."""
    query = select(Member)

    if search:
        term = f"%{search.strip()}%"
        query = query.where(
            Member.name.ilike(term)
            | Member.email.ilike(term)
            | Member.member_code.ilike(term)
            | Member.phone.ilike(term)
        )

    result = await db.execute(query.order_by(Member.name))
    return list(result.scalars().all())


async def get_member_by_id(db: AsyncSession, member_id: str) -> Optional[Member]:
    """Get a single member by ID."""
    result = await db.execute(select(Member).where(Member.id == member_id))
    return result.scalar_one_or_none()


async def find_member_by_name(db: AsyncSession, name: str) -> Optional[Member]:
    """Circulation looks members up by name; the oldest record wins on duplicates."""
    result = await db.execute(
        select(Member).where(Member.name == name).order_by(Member.created_at).limit(1)
    )
    return result.scalars().first()


async def count_active_loans(db: AsyncSession, member_id: str) -> int:
    """Number of the member's loans that are Borrowed or Overdue."""
    result = await db.execute(
        select(func.count())
        .select_from(Loan)
        .where(Loan.member_id == member_id, Loan.status.in_(ACTIVE_LOAN_STATUSES))
    )
    return result.scalar()


async def update_member(db: AsyncSession, member_id: str, data: dict) -> Member:
    """Update a member's fields. The member code never changes."""
    member = await get_member_by_id(db, member_id)
    if not member:
        raise NotFoundError("Member not found")

    _require_name_and_email(data)
    await _ensure_email_free(db, data["email"], member_id)

    data.pop("member_code", None)
    member_type = data.get("member_type") or member.member_type
    data["member_type"] = member_type
    data["max_books"] = max_books_for(member_type)

    for key, value in data.items():
        if value is not None:
            setattr(member, key, value)

    await db.flush()
    await db.refresh(member)

    logger.info(f"Member updated: id={member_id}")
    return member


async def delete_member(db: AsyncSession, member_id: str) -> None:
    """Delete a member with their closed loans and fines."""
    member = await get_member_by_id(db, member_id)
    if not member:
        raise NotFoundError("Member not found")

    if await count_active_loans(db, member_id) > 0:
        logger.warning(f"Refused to delete member with active loans: id={member_id}")
        raise ConflictError("Cannot delete member with active loans")

    await db.execute(
        delete(Fine).where(Fine.member_id == member_id).execution_options(synchronize_session=False)
    )
    # A loan moved onto this member may still carry another member's fine
    history = select(Loan.id).where(Loan.member_id == member_id)
    await db.execute(
        update(Fine)
        .where(Fine.loan_id.in_(history))
        .values(loan_id=None)
        .execution_options(synchronize_session=False)
    )
    await db.execute(
        delete(Loan).where(Loan.member_id == member_id).execution_options(synchronize_session=False)
    )
    await db.delete(member)
    await db.flush()

    logger.info(f"Member deleted: id={member_id}")

from datetime import date
from decimal import Decimal
from typing import Optional, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from library_circulation.core.exceptions import NotFoundError
from library_circulation.core.logging import get_logger
from library_circulation.db.models import Fine, FineStatus, FineType

logger = get_logger("services.fine")


async def record_fine(
    db: AsyncSession,
    member_id: str,
    loan_id: Optional[str],
    amount: Decimal,
    description: Optional[str] = None,
    fine_type: FineType = FineType.OVERDUE,
) -> Fine:
    """Assess a new pending fine against a member (and optionally a loan)."""
    fine = Fine(
        member_id=member_id,
        loan_id=loan_id,
        fine_type=fine_type,
        amount=amount,
        paid_amount=Decimal("0.00"),
        status=FineStatus.PENDING,
        description=description,
    )
    db.add(fine)
    await db.flush()

    logger.info(
        f"Fine recorded: id={fine.id} member={member_id} loan={loan_id} amount={amount}"
    )
    return fine


async def get_fines(db: AsyncSession) -> List[Fine]:
    """All fines with their member, newest first."""
    result = await db.execute(
        select(Fine)
        .order_by(Fine.created_at.desc())
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def get_fine_by_id(db: AsyncSession, fine_id: str) -> Optional[Fine]:
    result = await db.execute(select(Fine).where(Fine.id == fine_id))
    return result.scalar_one_or_none()


async def pay_fine(db: AsyncSession, fine_id: str, paid_amount: Decimal) -> Fine:
    """Record a payment against a fine.

    ``paid_amount`` replaces whatever was paid before; callers settling a
    fine in instalments pass the running total. The fine is Paid once the
    recorded amount covers it.
    """
    fine = await get_fine_by_id(db, fine_id)
    if not fine:
        raise NotFoundError("Fine not found")

    fine.paid_amount = paid_amount
    fine.paid_date = date.today()
    fine.status = FineStatus.PAID if paid_amount >= fine.amount else FineStatus.PENDING
    await db.flush()

    logger.info(
        f"Fine payment processed: id={fine_id} paid={paid_amount} status={fine.status.value}"
    )
    return fine

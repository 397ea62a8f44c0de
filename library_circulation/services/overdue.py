import asyncio

from library_circulation.core.config import settings
from library_circulation.core.logging import get_logger
from library_circulation.db.session import AsyncSessionLocal
from library_circulation.services.loan import bulk_mark_overdue

logger = get_logger("services.overdue")


async def check_and_mark_overdue() -> int:
    """Run one overdue sweep in its own session. Returns count of newly overdue loans."""
    async with AsyncSessionLocal() as db:
        try:
            count = await bulk_mark_overdue(db)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

    if count:
        logger.info(f"Overdue check completed: {count} loans marked overdue")
    return count


async def overdue_checker_loop() -> None:
    """Background loop that periodically marks overdue loans."""
    logger.info(
        f"Overdue checker started (interval={settings.OVERDUE_CHECK_INTERVAL}s)"
    )
    while True:
        try:
            await asyncio.sleep(settings.OVERDUE_CHECK_INTERVAL)
            await check_and_mark_overdue()
        except asyncio.CancelledError:
            logger.info("Overdue checker loop cancelled")
            break
        except Exception as e:
            logger.error(f"Error in overdue checker loop: {e}")
            # Keep running; the next sweep happens on schedule
            await asyncio.sleep(60)

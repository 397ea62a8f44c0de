from typing import Annotated, List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from library_circulation.db.session import get_db
from library_circulation.schemas.report import (
    DashboardResponse,
    PopularBookResponse,
    MemberActivityResponse,
)
from library_circulation.services.report import (
    dashboard_statistics,
    popular_books,
    member_activity,
)

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/dashboard", response_model=DashboardResponse, summary="Dashboard statistics")
async def dashboard(db: Annotated[AsyncSession, Depends(get_db)]):
    return await dashboard_statistics(db)


@router.get("/popular-books", response_model=List[PopularBookResponse], summary="Most borrowed books")
async def popular_books_report(
    db: Annotated[AsyncSession, Depends(get_db)],
    limit: int = Query(20, ge=1, le=100),
):
    return await popular_books(db, limit=limit)


@router.get("/member-activity", response_model=List[MemberActivityResponse], summary="Member activity")
async def member_activity_report(db: Annotated[AsyncSession, Depends(get_db)]):
    return await member_activity(db)

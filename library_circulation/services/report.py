"""
Read-only aggregations for the dashboard and reports.
"""
from datetime import date
from decimal import Decimal
from typing import List

from sqlalchemy import select, func, case, or_, and_
from sqlalchemy.ext.asyncio import AsyncSession

from library_circulation.db.models import (
    Book, Category, Fine, FineStatus, Loan, LoanStatus, Member, MemberStatus,
    ACTIVE_LOAN_STATUSES,
)


async def _scalar(db: AsyncSession, query):
    result = await db.execute(query)
    return result.scalar()


async def dashboard_statistics(db: AsyncSession) -> dict:
    """Headline totals plus breakdowns by category, member type and loan status."""
    today = date.today()

    total_books = await _scalar(db, select(func.count()).select_from(Book))
    total_members = await _scalar(
        db, select(func.count()).select_from(Member).where(Member.status == MemberStatus.ACTIVE)
    )
    active_loans = await _scalar(
        db, select(func.count()).select_from(Loan).where(Loan.status.in_(ACTIVE_LOAN_STATUSES))
    )
    overdue_loans = await _scalar(
        db,
        select(func.count())
        .select_from(Loan)
        .where(
            or_(
                Loan.status == LoanStatus.OVERDUE,
                and_(Loan.status == LoanStatus.BORROWED, Loan.due_date < today),
            )
        ),
    )
    outstanding = await _scalar(
        db,
        select(func.coalesce(func.sum(Fine.amount - Fine.paid_amount), 0))
        .where(Fine.status == FineStatus.PENDING),
    )

    by_category = await db.execute(
        select(Category.name, func.count(Book.id))
        .select_from(Book)
        .outerjoin(Category, Book.category_id == Category.id)
        .group_by(Category.name)
        .order_by(Category.name)
    )
    by_type = await db.execute(
        select(Member.member_type, func.count(Member.id))
        .where(Member.status == MemberStatus.ACTIVE)
        .group_by(Member.member_type)
    )
    by_status = await db.execute(
        select(Loan.status, func.count(Loan.id)).group_by(Loan.status)
    )

    return {
        "totals": {
            "books": total_books,
            "members": total_members,
            "active_loans": active_loans,
            "overdue_loans": overdue_loans,
            "outstanding_fines": Decimal(str(outstanding or 0)),
        },
        "books_by_category": [
            {"category": name, "count": count} for name, count in by_category.all()
        ],
        "members_by_type": [
            {"member_type": member_type, "count": count} for member_type, count in by_type.all()
        ],
        "loans_by_status": [
            {"status": status, "count": count} for status, count in by_status.all()
        ],
    }


async def popular_books(db: AsyncSession, limit: int = 20) -> List[dict]:
    """Books ranked by how often they have been lent."""
    loan_count = func.count(Loan.id).label("loan_count")
    result = await db.execute(
        select(
            Book.id,
            Book.title,
            Book.author,
            Category.name,
            loan_count,
            Book.total_copies,
            Book.available_copies,
        )
        .outerjoin(Category, Book.category_id == Category.id)
        .outerjoin(Loan, Loan.book_id == Book.id)
        .group_by(
            Book.id, Book.title, Book.author, Category.name,
            Book.total_copies, Book.available_copies,
        )
        .order_by(loan_count.desc(), Book.title)
        .limit(limit)
    )
    return [
        {
            "book_id": row[0],
            "title": row[1],
            "author": row[2],
            "category": row[3],
            "loan_count": row[4],
            "total_copies": row[5],
            "available_copies": row[6],
        }
        for row in result.all()
    ]


async def member_activity(db: AsyncSession) -> List[dict]:
    """Per active member: lifetime loans, current loans, overdue count, unpaid fines."""
    loan_stats = (
        select(
            Loan.member_id.label("member_id"),
            func.count(Loan.id).label("total_loans"),
            func.sum(case((Loan.status == LoanStatus.BORROWED, 1), else_=0)).label("current_loans"),
            func.sum(case((Loan.status == LoanStatus.OVERDUE, 1), else_=0)).label("overdue_count"),
        )
        .group_by(Loan.member_id)
        .subquery()
    )
    fine_stats = (
        select(
            Fine.member_id.label("member_id"),
            func.sum(Fine.amount - Fine.paid_amount).label("outstanding"),
        )
        .where(Fine.status == FineStatus.PENDING)
        .group_by(Fine.member_id)
        .subquery()
    )

    total_loans = func.coalesce(loan_stats.c.total_loans, 0)
    result = await db.execute(
        select(
            Member.id,
            Member.member_code,
            Member.name,
            Member.member_type,
            total_loans,
            func.coalesce(loan_stats.c.current_loans, 0),
            func.coalesce(loan_stats.c.overdue_count, 0),
            func.coalesce(fine_stats.c.outstanding, 0),
        )
        .outerjoin(loan_stats, loan_stats.c.member_id == Member.id)
        .outerjoin(fine_stats, fine_stats.c.member_id == Member.id)
        .where(Member.status == MemberStatus.ACTIVE)
        .order_by(total_loans.desc(), Member.name)
    )
    return [
        {
            "member_id": row[0],
            "member_code": row[1],
            "name": row[2],
            "member_type": row[3],
            "total_loans": row[4],
            "current_loans": row[5],
            "overdue_count": row[6],
            "outstanding_fines": Decimal(str(row[7] or 0)),
        }
        for row in result.all()
    ]

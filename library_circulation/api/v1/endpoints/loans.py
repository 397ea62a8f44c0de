from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from library_circulation.core.exceptions import NotFoundError
from library_circulation.db.session import get_db
from library_circulation.schemas.common import MessageResponse
from library_circulation.schemas.loan import (
    LoanCreate,
    LoanUpdate,
    LoanReturn,
    LoanResponse,
    LoanReturnResponse,
    OverdueLoanResponse,
    BulkOverdueResponse,
)
from library_circulation.services.loan import (
    create_loan,
    update_loan,
    delete_loan,
    return_loan,
    bulk_mark_overdue,
    get_loans,
    get_overdue_loans,
    get_loan_by_id,
)

router = APIRouter(prefix="/loans", tags=["Loans"])


@router.get(
    "",
    response_model=List[LoanResponse],
    summary="List loans",
    description="All loans with book title/author and member name/type, latest borrow date first.",
)
async def list_loans(db: Annotated[AsyncSession, Depends(get_db)]):
    return await get_loans(db)


@router.get(
    "/overdue",
    response_model=List[OverdueLoanResponse],
    summary="List overdue loans",
    description="Loans flagged Overdue or still Borrowed past their due date, most overdue first.",
)
async def list_overdue_loans(db: Annotated[AsyncSession, Depends(get_db)]):
    rows = await get_overdue_loans(db)
    return [
        OverdueLoanResponse(
            id=loan.id,
            book_id=loan.book_id,
            member_id=loan.member_id,
            book_title=loan.book_title,
            member_name=loan.member_name,
            member_email=loan.member.email if loan.member else None,
            member_phone=loan.member.phone if loan.member else None,
            borrow_date=loan.borrow_date,
            due_date=loan.due_date,
            status=loan.status,
            days_overdue=days_overdue,
        )
        for loan, days_overdue in rows
    ]


@router.post(
    "",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a loan",
    description=(
        "Lend a book (looked up by title) to a member (looked up by name). "
        "Borrowed loans require an available copy and a member below their "
        "borrowing limit; the due date defaults to the member type's borrowing period."
    ),
    responses={
        201: {"description": "Loan created successfully"},
        404: {"description": "Book or member not found"},
        409: {"description": "Book not available or borrowing limit reached"},
        422: {"description": "Validation error"},
    },
)
async def create_loan_endpoint(
    data: LoanCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    loan = await create_loan(db, **data.model_dump())
    return MessageResponse(msg="Successfully created loan", id=loan.id)


@router.post(
    "/update-overdue",
    response_model=BulkOverdueResponse,
    summary="Mark overdue loans",
    description="Flag every Borrowed loan past its due date as Overdue.",
)
async def bulk_mark_overdue_endpoint(db: Annotated[AsyncSession, Depends(get_db)]):
    count = await bulk_mark_overdue(db)
    return BulkOverdueResponse(
        msg=f"Updated {count} loans to overdue status", updated_count=count
    )


@router.get(
    "/{loan_id}",
    response_model=LoanResponse,
    summary="Get loan details",
    responses={404: {"description": "Loan not found"}},
)
async def get_loan_endpoint(
    loan_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    loan = await get_loan_by_id(db, loan_id)
    if not loan:
        raise NotFoundError("Loan not found")
    return loan


@router.put(
    "/{loan_id}",
    response_model=MessageResponse,
    summary="Update a loan",
    description=(
        "Edit a loan. Moving Borrowed -> Returned puts a copy back on the shelf, "
        "Returned -> Borrowed takes one off; other edits leave availability alone."
    ),
    responses={404: {"description": "Loan, book or member not found"}},
)
async def update_loan_endpoint(
    loan_id: str,
    data: LoanUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    await update_loan(db, loan_id, **data.model_dump())
    return MessageResponse(msg="Successfully updated loan", id=loan_id)


@router.delete(
    "/{loan_id}",
    response_model=MessageResponse,
    summary="Delete a loan",
    responses={404: {"description": "Loan not found"}},
)
async def delete_loan_endpoint(
    loan_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    await delete_loan(db, loan_id)
    return MessageResponse(msg="Loan deleted successfully", id=loan_id)


@router.post(
    "/{loan_id}/return",
    response_model=LoanReturnResponse,
    summary="Return a book",
    description="Close an active loan, charging the daily fine for every day past the due date.",
    responses={404: {"description": "Active loan not found"}},
)
async def return_loan_endpoint(
    loan_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    data: Optional[LoanReturn] = None,
):
    data = data or LoanReturn()
    fine_amount, days_overdue = await return_loan(
        db, loan_id, returned_to=data.returned_to, notes=data.notes
    )
    return LoanReturnResponse(
        msg="Book returned successfully",
        id=loan_id,
        fine_amount=fine_amount,
        days_overdue=days_overdue,
    )

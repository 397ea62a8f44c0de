from typing import Annotated, List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from library_circulation.db.session import get_db
from library_circulation.schemas.common import MessageResponse
from library_circulation.schemas.fine import FinePayment, FineResponse
from library_circulation.services.fine import get_fines, pay_fine

router = APIRouter(prefix="/fines", tags=["Fines"])


@router.get(
    "",
    response_model=List[FineResponse],
    summary="List fines",
    description="All fines with member name and code, newest first.",
)
async def list_fines(db: Annotated[AsyncSession, Depends(get_db)]):
    return await get_fines(db)


@router.post(
    "/{fine_id}/pay",
    response_model=MessageResponse,
    summary="Pay a fine",
    description=(
        "Record the total amount paid towards a fine. The amount replaces any "
        "earlier payment; the fine is Paid once it covers the full amount."
    ),
    responses={404: {"description": "Fine not found"}},
)
async def pay_fine_endpoint(
    fine_id: str,
    data: FinePayment,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    await pay_fine(db, fine_id, data.paid_amount)
    return MessageResponse(msg="Fine payment processed successfully", id=fine_id)

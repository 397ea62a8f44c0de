from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field

from library_circulation.db.models import FineStatus, FineType


class FinePayment(BaseModel):
    paid_amount: Decimal = Field(..., ge=0)


class FineResponse(BaseModel):
    id: str
    member_id: str
    member_name: Optional[str] = None
    member_code: Optional[str] = None
    loan_id: Optional[str]
    fine_type: FineType
    amount: float
    paid_amount: float
    status: FineStatus
    description: Optional[str]
    paid_date: Optional[date]
    created_at: datetime

    model_config = {"from_attributes": True}

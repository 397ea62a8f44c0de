from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field

from library_circulation.db.models import LoanStatus, MemberType


class LoanCreate(BaseModel):
    book_title: str = Field(..., min_length=1)
    member_name: str = Field(..., min_length=1)
    due_date: Optional[date] = None
    status: Optional[LoanStatus] = None
    notes: Optional[str] = None
    fine_amount: Decimal = Field(Decimal("0.00"), ge=0)

    model_config = {"str_strip_whitespace": True}


class LoanUpdate(LoanCreate):
    pass


class LoanReturn(BaseModel):
    returned_to: Optional[str] = None
    notes: Optional[str] = None

    model_config = {"str_strip_whitespace": True}


class LoanResponse(BaseModel):
    id: str
    book_id: str
    member_id: str
    book_title: Optional[str] = None
    book_author: Optional[str] = None
    member_name: Optional[str] = None
    member_code: Optional[str] = None
    member_type: Optional[MemberType] = None
    borrow_date: date
    due_date: date
    return_date: Optional[date]
    status: LoanStatus
    fine_amount: float
    notes: Optional[str]
    issued_by: Optional[str]
    returned_to: Optional[str]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class OverdueLoanResponse(BaseModel):
    id: str
    book_id: str
    member_id: str
    book_title: Optional[str] = None
    member_name: Optional[str] = None
    member_email: Optional[str] = None
    member_phone: Optional[str] = None
    borrow_date: date
    due_date: date
    status: LoanStatus
    days_overdue: int


class LoanReturnResponse(BaseModel):
    msg: str
    id: str
    fine_amount: float
    days_overdue: int


class BulkOverdueResponse(BaseModel):
    msg: str
    updated_count: int

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field

from library_circulation.db.models import MemberStatus, MemberType


class MemberCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    member_type: MemberType = MemberType.STUDENT

    model_config = {"str_strip_whitespace": True}


class MemberUpdate(MemberCreate):
    member_type: Optional[MemberType] = None
    status: MemberStatus = MemberStatus.ACTIVE


class MemberCreatedResponse(BaseModel):
    msg: str
    id: str
    member_code: str


class MemberResponse(BaseModel):
    id: str
    member_code: str
    name: str
    email: str
    phone: Optional[str]
    address: Optional[str]
    member_type: MemberType
    max_books: int
    status: MemberStatus
    expiry_date: Optional[date]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

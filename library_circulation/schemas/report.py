from typing import Optional, List
from pydantic import BaseModel

from library_circulation.db.models import LoanStatus, MemberType


class DashboardTotals(BaseModel):
    books: int
    members: int
    active_loans: int
    overdue_loans: int
    outstanding_fines: float


class CategoryCount(BaseModel):
    category: Optional[str]
    count: int


class MemberTypeCount(BaseModel):
    member_type: MemberType
    count: int


class LoanStatusCount(BaseModel):
    status: LoanStatus
    count: int


class DashboardResponse(BaseModel):
    totals: DashboardTotals
    books_by_category: List[CategoryCount]
    members_by_type: List[MemberTypeCount]
    loans_by_status: List[LoanStatusCount]


class PopularBookResponse(BaseModel):
    book_id: str
    title: str
    author: Optional[str]
    category: Optional[str]
    loan_count: int
    total_copies: int
    available_copies: int


class MemberActivityResponse(BaseModel):
    member_id: str
    member_code: str
    name: str
    member_type: MemberType
    total_loans: int
    current_loans: int
    overdue_count: int
    outstanding_fines: float

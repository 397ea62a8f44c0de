from typing import Annotated, List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from library_circulation.core.exceptions import NotFoundError
from library_circulation.db.session import get_db
from library_circulation.schemas.common import MessageResponse
from library_circulation.schemas.member import (
    MemberCreate,
    MemberUpdate,
    MemberCreatedResponse,
    MemberResponse,
)
from library_circulation.services.member import (
    create_member,
    get_members,
    get_member_by_id,
    update_member,
    delete_member,
)

router = APIRouter(prefix="/members", tags=["Members"])


@router.get(
    "",
    response_model=List[MemberResponse],
    summary="List members",
    description="All members ordered by name, optionally filtered by name, email, member code or phone.",
)
async def list_members(
    db: Annotated[AsyncSession, Depends(get_db)],
    search: str | None = None,
):
    return await get_members(db, search=search)


@router.post(
    "",
    response_model=MemberCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a member",
    description=(
        "Register a member. The borrowing limit follows the member type and a "
        "sequential member code (e.g. `FAC001`) is assigned."
    ),
    responses={409: {"description": "Email address already exists"}},
)
async def create_member_endpoint(
    data: MemberCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    member = await create_member(db, data.model_dump())
    return MemberCreatedResponse(
        msg=f"Successfully added member: {member.name}",
        id=member.id,
        member_code=member.member_code,
    )


@router.get(
    "/{member_id}",
    response_model=MemberResponse,
    summary="Get member details",
    responses={404: {"description": "Member not found"}},
)
async def get_member(
    member_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    member = await get_member_by_id(db, member_id)
    if not member:
        raise NotFoundError("Member not found")
    return member


@router.put(
    "/{member_id}",
    response_model=MessageResponse,
    summary="Update a member",
    responses={
        404: {"description": "Member not found"},
        409: {"description": "Email address already exists"},
    },
)
async def update_member_endpoint(
    member_id: str,
    data: MemberUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    member = await update_member(db, member_id, data.model_dump())
    return MessageResponse(msg=f"Successfully updated member: {member.name}", id=member.id)


@router.delete(
    "/{member_id}",
    response_model=MessageResponse,
    summary="Delete a member",
    responses={
        404: {"description": "Member not found"},
        409: {"description": "Member has active loans"},
    },
)
async def delete_member_endpoint(
    member_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    await delete_member(db, member_id)
    return MessageResponse(msg="Member deleted successfully", id=member_id)

from typing import Annotated, List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from library_circulation.db.session import get_db
from library_circulation.schemas.category import CategoryCreate, CategoryResponse
from library_circulation.schemas.common import MessageResponse
from library_circulation.services.category import (
    create_category,
    get_categories,
    update_category,
    delete_category,
)

router = APIRouter(prefix="/categories", tags=["Categories"])


@router.get("", response_model=List[CategoryResponse], summary="List categories")
async def list_categories(db: Annotated[AsyncSession, Depends(get_db)]):
    return await get_categories(db)


@router.post(
    "",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a category",
    responses={409: {"description": "Category name already exists"}},
)
async def create_category_endpoint(
    data: CategoryCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    category = await create_category(db, data.model_dump())
    return MessageResponse(msg=f"Successfully created category: {category.name}", id=category.id)


@router.put(
    "/{category_id}",
    response_model=MessageResponse,
    summary="Update a category",
    responses={404: {"description": "Category not found"}, 409: {"description": "Duplicate name"}},
)
async def update_category_endpoint(
    category_id: str,
    data: CategoryCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    category = await update_category(db, category_id, data.model_dump())
    return MessageResponse(msg=f"Successfully updated category: {category.name}", id=category.id)


@router.delete(
    "/{category_id}",
    response_model=MessageResponse,
    summary="Delete a category",
    responses={404: {"description": "Category not found"}},
)
async def delete_category_endpoint(
    category_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    await delete_category(db, category_id)
    return MessageResponse(msg="Category deleted successfully", id=category_id)

from typing import Annotated, List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from library_circulation.core.exceptions import NotFoundError
from library_circulation.db.session import get_db
from library_circulation.schemas.book import BookCreate, BookUpdate, BookResponse
from library_circulation.schemas.common import MessageResponse
from library_circulation.services.book import (
    create_book,
    get_books,
    get_book_by_id,
    update_book,
    delete_book,
)

router = APIRouter(prefix="/books", tags=["Books"])


@router.get(
    "",
    response_model=List[BookResponse],
    summary="List books",
    description="All books ordered by title, optionally filtered by title, author, ISBN or category.",
)
async def list_books(
    db: Annotated[AsyncSession, Depends(get_db)],
    search: str | None = None,
):
    return await get_books(db, search=search)


@router.post(
    "",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a book",
    description="Add a title to the catalog. Every copy starts out available.",
    responses={
        201: {"description": "Book created successfully"},
        409: {"description": "ISBN already exists"},
        422: {"description": "Validation error"},
    },
)
async def create_book_endpoint(
    data: BookCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    book = await create_book(db, data.model_dump())
    return MessageResponse(msg=f"Successfully created book: {book.title}", id=book.id)


@router.get(
    "/{book_id}",
    response_model=BookResponse,
    summary="Get book details",
    responses={404: {"description": "Book not found"}},
)
async def get_book(
    book_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    book = await get_book_by_id(db, book_id)
    if not book:
        raise NotFoundError("Book not found")
    return book


@router.put(
    "/{book_id}",
    response_model=MessageResponse,
    summary="Update a book",
    description="Update catalog fields. Changing the total number of copies moves the available count by the same amount.",
    responses={
        404: {"description": "Book not found"},
        409: {"description": "Duplicate ISBN or copies still on loan"},
    },
)
async def update_book_endpoint(
    book_id: str,
    data: BookUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    book = await update_book(db, book_id, data.model_dump(exclude_unset=True))
    return MessageResponse(msg=f"Successfully updated book: {book.title}", id=book.id)


@router.delete(
    "/{book_id}",
    response_model=MessageResponse,
    summary="Delete a book",
    responses={
        404: {"description": "Book not found"},
        409: {"description": "Book has active loans"},
    },
)
async def delete_book_endpoint(
    book_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    await delete_book(db, book_id)
    return MessageResponse(msg="Book deleted successfully", id=book_id)

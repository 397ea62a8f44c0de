from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class BookCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    author: Optional[str] = Field(None, max_length=255)
    isbn: Optional[str] = Field(None, max_length=20)
    publisher: Optional[str] = Field(None, max_length=255)
    publication_year: Optional[int] = None
    total_copies: int = Field(1, ge=1)
    category: Optional[str] = None
    location: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None

    model_config = {"str_strip_whitespace": True}


class BookUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    author: Optional[str] = Field(None, max_length=255)
    isbn: Optional[str] = Field(None, max_length=20)
    publisher: Optional[str] = Field(None, max_length=255)
    publication_year: Optional[int] = None
    total_copies: Optional[int] = Field(None, ge=0)
    category: Optional[str] = None
    location: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None

    model_config = {"str_strip_whitespace": True}


class BookResponse(BaseModel):
    id: str
    title: str
    author: Optional[str]
    isbn: Optional[str]
    publisher: Optional[str]
    publication_year: Optional[int]
    total_copies: int
    available_copies: int
    category_name: Optional[str] = None
    location: Optional[str]
    description: Optional[str]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

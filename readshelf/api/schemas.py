"""Pydantic schemas for API requests and responses."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from readshelf.domain.entities import BookSource, ReadingStatus


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------
class ProfileCreateRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=100)
    email: EmailStr
    first_name: str = Field("", max_length=100)
    last_name: str = Field("", max_length=100)
    profile_photo: Optional[str] = Field(None, max_length=512)


class UserResponse(BaseModel):
    id: str
    username: str
    email: str
    first_name: str
    last_name: str
    profile_photo: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdateRequest(BaseModel):
    """Only the fields that are sent are changed."""

    username: Optional[str] = Field(None, min_length=3, max_length=100)
    email: Optional[EmailStr] = None
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    profile_photo: Optional[str] = Field(None, max_length=512)


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------
class AuthUserResponse(BaseModel):
    user_id: str
    subject: str
    issuer: Optional[str] = None
    audience: list[str] = []
    auth_time: Optional[datetime] = None
    issued_at: Optional[datetime] = None
    expires: datetime


# ---------------------------------------------------------------------------
# Shelves
# ---------------------------------------------------------------------------
class ShelfCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class ShelfUpdateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class ShelfResponse(BaseModel):
    id: str
    name: str
    owner_id: str
    is_default: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ShelfListResponse(BaseModel):
    shelves: list[ShelfResponse]


# ---------------------------------------------------------------------------
# Library
# ---------------------------------------------------------------------------
class LibraryBookUpsertRequest(BaseModel):
    """Full desired state of a library book; ``shelf_ids`` replaces the current set."""

    title: str = Field(..., min_length=1)
    author_name: str = Field(..., min_length=1)
    book_image: str = ""
    rating: int = Field(0, ge=0, le=5, description="0 = unrated, 1-5 = stars")
    source: BookSource = BookSource.UNSPECIFIED
    reading_status: ReadingStatus
    shelf_ids: list[str] = Field(default_factory=list)


class LibraryBookResponse(BaseModel):
    book_id: str
    title: str
    author_name: str
    book_image: str
    rating: int
    source: BookSource
    reading_status: ReadingStatus
    shelf_ids: list[str]
    added_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PaginationMetadata(BaseModel):
    total: int
    page: int
    limit: int


class ShelfWithBooksResponse(BaseModel):
    shelf: ShelfResponse
    books: list[LibraryBookResponse]

    model_config = ConfigDict(from_attributes=True)


class UserLibraryResponse(BaseModel):
    shelves: list[ShelfWithBooksResponse]
    unshelved_books: list[LibraryBookResponse]
    pagination: PaginationMetadata


class ShelfBooksResponse(BaseModel):
    books: list[LibraryBookResponse]
    pagination: PaginationMetadata


# ---------------------------------------------------------------------------
# Catalog search
# ---------------------------------------------------------------------------
class SearchedBookResponse(BaseModel):
    book_id: str
    title: str
    author_name: str
    author_key: str
    cover_image: str
    isbn: str
    rating_average: float
    rating_count: int
    publish_year: int
    source: BookSource

    model_config = ConfigDict(from_attributes=True)


class SearchBooksResponse(BaseModel):
    books: list[SearchedBookResponse]


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------
class ErrorResponse(BaseModel):
    detail: str
    code: str

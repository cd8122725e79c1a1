"""Library API routes."""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, status

from readshelf.api.schemas import (
    LibraryBookResponse,
    LibraryBookUpsertRequest,
    PaginationMetadata,
    ShelfResponse,
    ShelfWithBooksResponse,
    UserLibraryResponse,
)
from readshelf.core.dependencies import (
    get_current_user_id,
    get_library_service,
    resolve_target_user,
)
from readshelf.domain.services import ILibraryService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/library", tags=["library"])


@router.get("", response_model=UserLibraryResponse)
async def get_user_library(
    user_id: Annotated[str, Depends(get_current_user_id)],
    library_service: Annotated[ILibraryService, Depends(get_library_service)],
    target_user_id: Annotated[Optional[str], Query(alias="user_id")] = None,
    page: int = 0,
    limit: int = 0,
) -> UserLibraryResponse:
    """Return the library grouped by shelf, plus books on no shelf."""
    owner_id = resolve_target_user(target_user_id, user_id)
    library = await library_service.get_user_library(owner_id, page=page, limit=limit)
    return UserLibraryResponse(
        shelves=[
            ShelfWithBooksResponse(
                shelf=ShelfResponse.model_validate(group.shelf),
                books=[LibraryBookResponse.model_validate(b) for b in group.books],
            )
            for group in library.shelves
        ],
        unshelved_books=[LibraryBookResponse.model_validate(b) for b in library.unshelved],
        pagination=PaginationMetadata(
            total=library.total, page=library.page, limit=library.limit
        ),
    )


@router.put("/books/{book_id}", response_model=LibraryBookResponse)
async def upsert_library_book(
    book_id: str,
    body: LibraryBookUpsertRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    library_service: Annotated[ILibraryService, Depends(get_library_service)],
) -> LibraryBookResponse:
    """Add a book to the library or update it.

    ``shelf_ids`` is the complete set of shelves the book should be on after
    the call; any shelf not listed is removed.
    """
    book = await library_service.upsert_library_book(
        owner_id=user_id,
        book_id=book_id,
        title=body.title,
        author_name=body.author_name,
        book_image=body.book_image,
        rating=body.rating,
        source=body.source,
        reading_status=body.reading_status,
        shelf_ids=body.shelf_ids,
    )
    return LibraryBookResponse.model_validate(book)


@router.delete("/books/{book_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_library_book(
    book_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    library_service: Annotated[ILibraryService, Depends(get_library_service)],
) -> None:
    """Remove a book from the library and from all of its shelves."""
    await library_service.remove_library_book(user_id, book_id)

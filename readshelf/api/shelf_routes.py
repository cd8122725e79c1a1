"""Shelf API routes (CRUD, shelf contents, book links)."""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, status

from readshelf.api.schemas import (
    LibraryBookResponse,
    PaginationMetadata,
    ShelfBooksResponse,
    ShelfCreateRequest,
    ShelfListResponse,
    ShelfResponse,
    ShelfUpdateRequest,
)
from readshelf.core.dependencies import (
    get_current_user_id,
    get_library_service,
    resolve_target_user,
)
from readshelf.domain.services import ILibraryService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/shelves", tags=["shelves"])


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------
@router.post("", response_model=ShelfResponse, status_code=status.HTTP_201_CREATED)
async def create_shelf(
    body: ShelfCreateRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    library_service: Annotated[ILibraryService, Depends(get_library_service)],
) -> ShelfResponse:
    """Create a shelf; names are unique per user."""
    shelf = await library_service.create_shelf(user_id, body.name)
    return ShelfResponse.model_validate(shelf)


@router.get("", response_model=ShelfListResponse)
async def list_shelves(
    user_id: Annotated[str, Depends(get_current_user_id)],
    library_service: Annotated[ILibraryService, Depends(get_library_service)],
    target_user_id: Annotated[Optional[str], Query(alias="user_id")] = None,
) -> ShelfListResponse:
    """List shelves, default shelf first."""
    owner_id = resolve_target_user(target_user_id, user_id)
    shelves = await library_service.list_shelves(owner_id)
    return ShelfListResponse(shelves=[ShelfResponse.model_validate(s) for s in shelves])


@router.put("/{shelf_id}", response_model=ShelfResponse)
async def update_shelf(
    shelf_id: str,
    body: ShelfUpdateRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    library_service: Annotated[ILibraryService, Depends(get_library_service)],
) -> ShelfResponse:
    """Rename a shelf.  The default shelf cannot be renamed."""
    shelf = await library_service.update_shelf(user_id, shelf_id, body.name)
    return ShelfResponse.model_validate(shelf)


@router.delete("/{shelf_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_shelf(
    shelf_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    library_service: Annotated[ILibraryService, Depends(get_library_service)],
) -> None:
    """Delete a shelf.  Its books stay in the library."""
    await library_service.delete_shelf(user_id, shelf_id)


# ---------------------------------------------------------------------------
# Shelf contents
# ---------------------------------------------------------------------------
@router.get("/{shelf_id}/books", response_model=ShelfBooksResponse)
async def get_shelf_books(
    shelf_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    library_service: Annotated[ILibraryService, Depends(get_library_service)],
    page: int = 0,
    limit: int = 0,
) -> ShelfBooksResponse:
    """List the books on a shelf, newest first."""
    books, total = await library_service.get_shelf_books(
        user_id, shelf_id, page=page, limit=limit
    )
    return ShelfBooksResponse(
        books=[LibraryBookResponse.model_validate(b) for b in books],
        pagination=PaginationMetadata(total=total, page=page, limit=limit),
    )


@router.put("/{shelf_id}/books/{book_id}", status_code=status.HTTP_204_NO_CONTENT)
async def add_book_to_shelf(
    shelf_id: str,
    book_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    library_service: Annotated[ILibraryService, Depends(get_library_service)],
) -> None:
    """Put a library book on a shelf (no-op if it is already there)."""
    await library_service.add_book_to_shelf(user_id, book_id, shelf_id)


@router.delete("/{shelf_id}/books/{book_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_book_from_shelf(
    shelf_id: str,
    book_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    library_service: Annotated[ILibraryService, Depends(get_library_service)],
) -> None:
    """Take a book off a shelf.  Succeeds even if it was not on it."""
    await library_service.remove_book_from_shelf(user_id, book_id, shelf_id)

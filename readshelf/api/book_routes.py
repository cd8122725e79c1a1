"""Book catalog search route (proxy to Open Library)."""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends

from readshelf.api.schemas import SearchBooksResponse, SearchedBookResponse
from readshelf.core.dependencies import get_book_catalog, get_current_user_id
from readshelf.domain.repositories import IBookCatalog

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/books", tags=["books"])


@router.get("/search", response_model=SearchBooksResponse)
async def search_books(
    q: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    catalog: Annotated[IBookCatalog, Depends(get_book_catalog)],
    title: Optional[str] = None,
    author: Optional[str] = None,
    subject: Optional[str] = None,
) -> SearchBooksResponse:
    """Search the external catalog for books to add to a library."""
    books = await catalog.search_books(q, title=title, author=author, subject=subject)
    return SearchBooksResponse(books=[SearchedBookResponse.model_validate(b) for b in books])

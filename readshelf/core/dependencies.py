"""Dependency injection container."""

from typing import Any, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from readshelf.core.config import settings
from readshelf.core.security import decode_access_token
from readshelf.domain.errors import PermissionDeniedError, UnauthenticatedError
from readshelf.domain.repositories import (
    IBookCatalog,
    ILibraryRepository,
    IShelfRepository,
    IUserRepository,
)
from readshelf.domain.services import ILibraryService, IProfileService
from readshelf.infrastructure.catalog.openlibrary import OpenLibraryCatalog
from readshelf.infrastructure.database.connection import get_db
from readshelf.infrastructure.database.repository import (
    LibraryRepository,
    ShelfRepository,
    UserRepository,
)
from readshelf.services.library_service import LibraryService
from readshelf.services.profile_service import ProfileService

bearer_scheme = HTTPBearer(auto_error=False)


# ---------------------------------------------------------------------------
# Infrastructure providers
# ---------------------------------------------------------------------------
def get_book_catalog() -> IBookCatalog:
    return OpenLibraryCatalog(
        base_url=settings.openlibrary_base_url,
        user_agent=settings.openlibrary_user_agent,
        timeout=settings.openlibrary_timeout,
    )


# ---------------------------------------------------------------------------
# Repository providers
# ---------------------------------------------------------------------------
async def get_user_repository(session: AsyncSession = Depends(get_db)) -> IUserRepository:
    return UserRepository(session)


async def get_shelf_repository(session: AsyncSession = Depends(get_db)) -> IShelfRepository:
    return ShelfRepository(session)


async def get_library_repository(session: AsyncSession = Depends(get_db)) -> ILibraryRepository:
    return LibraryRepository(session)


# ---------------------------------------------------------------------------
# Service providers
# ---------------------------------------------------------------------------
async def get_library_service(
    shelf_repo: IShelfRepository = Depends(get_shelf_repository),
    library_repo: ILibraryRepository = Depends(get_library_repository),
) -> ILibraryService:
    return LibraryService(shelf_repository=shelf_repo, library_repository=library_repo)


async def get_profile_service(
    user_repo: IUserRepository = Depends(get_user_repository),
) -> IProfileService:
    return ProfileService(
        user_repository=user_repo,
        default_shelf_name=settings.default_shelf_name,
    )


# ---------------------------------------------------------------------------
# Auth dependency
# ---------------------------------------------------------------------------
async def get_current_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> dict[str, Any]:
    """Verify the bearer token and return its claims."""
    if credentials is None or not credentials.credentials:
        raise UnauthenticatedError("missing bearer token")
    payload = decode_access_token(credentials.credentials)
    if payload is None or not payload.get("sub"):
        raise UnauthenticatedError()
    return payload


async def get_current_user_id(
    request: Request,
    claims: dict[str, Any] = Depends(get_current_claims),
) -> str:
    """Return the caller's user id.

    The id is also kept on ``request.state`` so error handlers can say whose
    request failed.
    """
    user_id: str = claims["sub"]
    request.state.user_id = user_id
    return user_id


def resolve_target_user(requested_user_id: Optional[str], current_user_id: str) -> str:
    """Libraries and shelves are private: only the caller's own may be read."""
    target = requested_user_id or current_user_id
    if target != current_user_id:
        raise PermissionDeniedError("you can only view your own library")
    return target

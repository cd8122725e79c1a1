"""Domain-level application service interfaces (ports).

These abstract classes define the contracts that the API layer depends on.
Concrete implementations live in ``readshelf/services/`` and are wired
together by the composition root in ``readshelf/core/dependencies.py``.

Route handlers import from ``readshelf.domain`` only, so every service can be
replaced with a test double via FastAPI's ``app.dependency_overrides``.
"""

from abc import ABC, abstractmethod
from typing import Optional

from readshelf.domain.entities import (
    BookSource,
    LibraryBook,
    ReadingStatus,
    Shelf,
    User,
    UserLibrary,
)


class ILibraryService(ABC):

    # --- Shelves ---

    @abstractmethod
    async def create_shelf(self, owner_id: str, name: str) -> Shelf:
        pass

    @abstractmethod
    async def update_shelf(self, owner_id: str, shelf_id: str, name: str) -> Shelf:
        pass

    @abstractmethod
    async def delete_shelf(self, owner_id: str, shelf_id: str) -> None:
        pass

    @abstractmethod
    async def list_shelves(self, owner_id: str) -> list[Shelf]:
        pass

    # --- Library books ---

    @abstractmethod
    async def upsert_library_book(
        self,
        owner_id: str,
        book_id: str,
        title: str,
        author_name: str,
        book_image: str = "",
        rating: int = 0,
        source: BookSource = BookSource.UNSPECIFIED,
        reading_status: ReadingStatus = ReadingStatus.UNSPECIFIED,
        shelf_ids: Optional[list[str]] = None,
    ) -> LibraryBook:
        pass

    @abstractmethod
    async def remove_library_book(self, owner_id: str, book_id: str) -> None:
        pass

    @abstractmethod
    async def add_book_to_shelf(self, owner_id: str, book_id: str, shelf_id: str) -> None:
        pass

    @abstractmethod
    async def remove_book_from_shelf(
        self, owner_id: str, book_id: str, shelf_id: str
    ) -> None:
        pass

    # --- Read side ---

    @abstractmethod
    async def get_user_library(
        self, owner_id: str, page: int = 0, limit: int = 0
    ) -> UserLibrary:
        """Return the library grouped by shelf, plus the unshelved bucket."""
        pass

    @abstractmethod
    async def get_shelf_books(
        self, owner_id: str, shelf_id: str, page: int = 0, limit: int = 0
    ) -> tuple[list[LibraryBook], int]:
        """Books on one shelf and their count; page/limit are metadata only."""
        pass


class IProfileService(ABC):

    @abstractmethod
    async def create_profile(
        self,
        user_id: str,
        username: str,
        email: str,
        first_name: str = "",
        last_name: str = "",
        profile_photo: Optional[str] = None,
    ) -> User:
        """Register a profile and bootstrap its default shelf."""
        pass

    @abstractmethod
    async def get_profile(self, user_id: str) -> User:
        pass

    @abstractmethod
    async def update_profile(
        self,
        user_id: str,
        username: Optional[str] = None,
        email: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        profile_photo: Optional[str] = None,
    ) -> User:
        """Change the fields that are given; ``None`` leaves a field as is."""
        pass

    @abstractmethod
    async def delete_profile(self, user_id: str) -> None:
        """Delete the profile together with the user's shelves and library."""
        pass

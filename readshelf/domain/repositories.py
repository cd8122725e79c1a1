"""Repository interfaces (ports) for dependency inversion.

Every method takes the owner id explicitly: the stores scope each query by
owner themselves instead of trusting the caller's authorization checks.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from readshelf.domain.entities import LibraryBook, SearchedBook, Shelf, User


class IUserRepository(ABC):

    @abstractmethod
    async def create_with_default_shelf(self, user: User, default_shelf_name: str) -> User:
        """Insert the user and their default shelf in one transaction."""
        pass

    @abstractmethod
    async def get_by_id(self, user_id: str) -> Optional[User]:
        pass

    @abstractmethod
    async def update_profile(self, user_id: str, changes: dict[str, Any]) -> User:
        pass

    @abstractmethod
    async def delete(self, user_id: str) -> None:
        """Delete the user and everything they own in one transaction."""
        pass


class IShelfRepository(ABC):

    @abstractmethod
    async def create(self, owner_id: str, name: str) -> Shelf:
        pass

    @abstractmethod
    async def get(self, owner_id: str, shelf_id: str) -> Optional[Shelf]:
        pass

    @abstractmethod
    async def update(self, owner_id: str, shelf_id: str, name: str) -> Shelf:
        pass

    @abstractmethod
    async def delete(self, owner_id: str, shelf_id: str) -> None:
        pass

    @abstractmethod
    async def list_for_owner(self, owner_id: str) -> list[Shelf]:
        """Default shelf first, then by creation time ascending."""
        pass


class ILibraryRepository(ABC):

    @abstractmethod
    async def upsert(self, book: LibraryBook, shelf_ids: list[str]) -> LibraryBook:
        """Insert or update the book and replace its shelf set atomically.

        ``shelf_ids`` is the complete desired set, not a diff.
        """
        pass

    @abstractmethod
    async def remove(self, owner_id: str, book_id: str) -> None:
        pass

    @abstractmethod
    async def add_to_shelf(self, owner_id: str, book_id: str, shelf_id: str) -> None:
        pass

    @abstractmethod
    async def remove_from_shelf(self, owner_id: str, book_id: str, shelf_id: str) -> None:
        pass

    @abstractmethod
    async def get(self, owner_id: str, book_id: str) -> Optional[LibraryBook]:
        pass

    @abstractmethod
    async def list_for_owner(self, owner_id: str) -> list[LibraryBook]:
        pass

    @abstractmethod
    async def list_for_shelf(self, owner_id: str, shelf_id: str) -> list[LibraryBook]:
        """Books on the shelf, each carrying its complete shelf-id set."""
        pass

    @abstractmethod
    async def count_for_owner(self, owner_id: str) -> int:
        pass


class IBookCatalog(ABC):

    @abstractmethod
    async def search_books(
        self,
        query: str,
        title: Optional[str] = None,
        author: Optional[str] = None,
        subject: Optional[str] = None,
    ) -> list[SearchedBook]:
        pass

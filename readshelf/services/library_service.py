"""Library & shelving service: shelf management, library books, grouped views."""

import logging
from typing import Optional

from readshelf.domain.entities import (
    BookSource,
    LibraryBook,
    ReadingStatus,
    Shelf,
    UserLibrary,
    utcnow,
)
from readshelf.domain.errors import InvalidArgumentError, NotFoundError
from readshelf.domain.repositories import ILibraryRepository, IShelfRepository
from readshelf.domain.services import ILibraryService
from readshelf.services.assembly import group_library

logger = logging.getLogger(__name__)

MAX_RATING = 5


class LibraryService(ILibraryService):
    """Validates requests and composes the shelf and library stores.

    The stores enforce ownership and atomicity; this layer only checks the
    shape of the input and builds the read-side views.
    """

    def __init__(
        self,
        shelf_repository: IShelfRepository,
        library_repository: ILibraryRepository,
    ):
        self.shelf_repository = shelf_repository
        self.library_repository = library_repository

    # ------------------------------------------------------------------
    # Shelves
    # ------------------------------------------------------------------
    async def create_shelf(self, owner_id: str, name: str) -> Shelf:
        name = self._clean_shelf_name(name)
        shelf = await self.shelf_repository.create(owner_id, name)
        logger.info("Shelf created: %s (%r) for user %s", shelf.id, shelf.name, owner_id)
        return shelf

    async def update_shelf(self, owner_id: str, shelf_id: str, name: str) -> Shelf:
        self._require(shelf_id, "shelf_id")
        name = self._clean_shelf_name(name)
        shelf = await self.shelf_repository.update(owner_id, shelf_id, name)
        logger.info("Shelf renamed: %s -> %r for user %s", shelf_id, name, owner_id)
        return shelf

    async def delete_shelf(self, owner_id: str, shelf_id: str) -> None:
        self._require(shelf_id, "shelf_id")
        await self.shelf_repository.delete(owner_id, shelf_id)
        logger.info("Shelf deleted: %s for user %s", shelf_id, owner_id)

    async def list_shelves(self, owner_id: str) -> list[Shelf]:
        return await self.shelf_repository.list_for_owner(owner_id)

    # ------------------------------------------------------------------
    # Library books
    # ------------------------------------------------------------------
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
        """Add a book to the library or update it in place.

        ``shelf_ids`` replaces the book's shelf set entirely; pass an empty
        list to unshelve the book.  ``added_at`` is kept from the first add.
        """
        self._require(book_id, "book_id")
        self._require(title, "title")
        self._require(author_name, "author_name")
        if not 0 <= rating <= MAX_RATING:
            raise InvalidArgumentError(f"rating must be between 0 and {MAX_RATING}")
        try:
            source = BookSource(source)
        except ValueError:
            raise InvalidArgumentError("invalid book source")
        try:
            reading_status = ReadingStatus(reading_status)
        except ValueError:
            raise InvalidArgumentError("invalid reading status")
        if reading_status == ReadingStatus.UNSPECIFIED:
            raise InvalidArgumentError("reading status must be specified")

        now = utcnow()
        book = LibraryBook(
            owner_id=owner_id,
            book_id=book_id,
            title=title,
            author_name=author_name,
            book_image=book_image or "",
            rating=rating,
            source=source,
            reading_status=reading_status,
            added_at=now,  # only used when the row is new
            updated_at=now,
        )
        stored = await self.library_repository.upsert(book, list(shelf_ids or []))
        logger.info(
            "Library book upserted: %s for user %s on shelves %s",
            book_id, owner_id, stored.shelf_ids,
        )
        return stored

    async def remove_library_book(self, owner_id: str, book_id: str) -> None:
        self._require(book_id, "book_id")
        await self.library_repository.remove(owner_id, book_id)
        logger.info("Library book removed: %s for user %s", book_id, owner_id)

    async def add_book_to_shelf(self, owner_id: str, book_id: str, shelf_id: str) -> None:
        self._require(book_id, "book_id")
        self._require(shelf_id, "shelf_id")
        await self.library_repository.add_to_shelf(owner_id, book_id, shelf_id)
        logger.info("Book %s added to shelf %s for user %s", book_id, shelf_id, owner_id)

    async def remove_book_from_shelf(
        self, owner_id: str, book_id: str, shelf_id: str
    ) -> None:
        self._require(book_id, "book_id")
        self._require(shelf_id, "shelf_id")
        await self.library_repository.remove_from_shelf(owner_id, book_id, shelf_id)
        logger.info("Book %s removed from shelf %s for user %s", book_id, shelf_id, owner_id)

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------
    async def get_user_library(
        self, owner_id: str, page: int = 0, limit: int = 0
    ) -> UserLibrary:
        """Group the whole library by shelf.

        ``page`` and ``limit`` are echoed back as metadata; ``total`` counts
        every book in the library regardless of them.
        """
        shelves = await self.shelf_repository.list_for_owner(owner_id)
        books = await self.library_repository.list_for_owner(owner_id)
        grouped, unshelved = group_library(shelves, books)
        logger.debug(
            "Library for user %s: %d shelves, %d books, %d unshelved",
            owner_id, len(grouped), len(books), len(unshelved),
        )
        return UserLibrary(
            shelves=grouped,
            unshelved=unshelved,
            total=len(books),
            page=page,
            limit=limit,
        )

    async def get_shelf_books(
        self, owner_id: str, shelf_id: str, page: int = 0, limit: int = 0
    ) -> tuple[list[LibraryBook], int]:
        self._require(shelf_id, "shelf_id")
        shelf = await self.shelf_repository.get(owner_id, shelf_id)
        if shelf is None:
            raise NotFoundError("shelf not found")
        books = await self.library_repository.list_for_shelf(owner_id, shelf_id)
        logger.debug(
            "Shelf %s for user %s: %d books (page=%d, limit=%d)",
            shelf_id, owner_id, len(books), page, limit,
        )
        return books, len(books)

    # ------------------------------------------------------------------
    @staticmethod
    def _require(value: Optional[str], field_name: str) -> None:
        if not value or not value.strip():
            raise InvalidArgumentError(f"{field_name} is required")

    @staticmethod
    def _clean_shelf_name(name: Optional[str]) -> str:
        name = (name or "").strip()
        if not name:
            raise InvalidArgumentError("shelf name cannot be empty")
        return name

"""Domain entities for ReadShelf."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BookSource(IntEnum):
    """Where the metadata of a library book came from."""

    UNSPECIFIED = 0
    OPEN_LIBRARY = 1
    GOOGLE_BOOKS = 2
    MANUAL = 3


class ReadingStatus(IntEnum):
    UNSPECIFIED = 0
    WANT_TO_READ = 1
    READING = 2
    READ = 3
    DNF = 4


@dataclass
class User:
    id: str
    username: str
    email: str
    first_name: str = ""
    last_name: str = ""
    profile_photo: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class Shelf:
    """A named bucket of library books owned by one user.

    Every user has exactly one shelf with ``is_default=True``.  It is created
    together with the user profile and can never be renamed or deleted.
    """

    id: str
    name: str
    owner_id: str
    is_default: bool = False
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass
class LibraryBook:
    """A book a user has added to their library.

    Identity is ``(owner_id, book_id)``; ``book_id`` is the external catalog
    identifier.  ``shelf_ids`` is the complete set of shelves the book is on
    and is empty for an unshelved book.
    """

    owner_id: str
    book_id: str
    title: str
    author_name: str
    book_image: str = ""
    rating: int = 0  # 0 = unspecified, 1..5 explicit
    source: BookSource = BookSource.UNSPECIFIED
    reading_status: ReadingStatus = ReadingStatus.UNSPECIFIED
    shelf_ids: list[str] = field(default_factory=list)
    added_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass
class ShelfWithBooks:
    shelf: Shelf
    books: list[LibraryBook] = field(default_factory=list)


@dataclass
class UserLibrary:
    """Shelf-grouped view of a user's library plus pagination metadata."""

    shelves: list[ShelfWithBooks]
    unshelved: list[LibraryBook]
    total: int
    page: int = 0
    limit: int = 0


@dataclass
class SearchedBook:
    """A search hit returned by the external book catalog."""

    book_id: str
    title: str
    author_name: str = ""
    author_key: str = ""
    cover_image: str = ""
    isbn: str = ""
    rating_average: float = 0.0
    rating_count: int = 0
    publish_year: int = 0
    source: BookSource = BookSource.OPEN_LIBRARY

"""Domain error taxonomy.

Stores and services raise these; the API layer maps ``kind`` to an HTTP
status in exactly one place (``readshelf.main``).  Anything that is not a
``DomainError`` is treated as an internal failure.
"""

from enum import Enum


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    DUPLICATE_NAME = "duplicate_name"
    DEFAULT_SHELF_PROTECTED = "default_shelf_protected"
    BOOK_NOT_FOUND = "book_not_found"
    SHELF_NOT_FOUND = "shelf_not_found"
    ALREADY_EXISTS = "already_exists"
    UNAUTHENTICATED = "unauthenticated"
    PERMISSION_DENIED = "permission_denied"
    INVALID_ARGUMENT = "invalid_argument"
    UNAVAILABLE = "unavailable"
    INTERNAL = "internal"


class DomainError(Exception):
    kind: ErrorKind = ErrorKind.INTERNAL
    default_message: str = "internal error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(DomainError):
    kind = ErrorKind.NOT_FOUND
    default_message = "not found"


class DuplicateNameError(DomainError):
    kind = ErrorKind.DUPLICATE_NAME
    default_message = "shelf with this name already exists"


class DefaultShelfProtectedError(DomainError):
    kind = ErrorKind.DEFAULT_SHELF_PROTECTED
    default_message = "the default shelf cannot be modified"


class BookNotFoundError(DomainError):
    """The book is not in the owner's library (raised when linking to a shelf)."""

    kind = ErrorKind.BOOK_NOT_FOUND
    default_message = "book not found in library"


class ShelfNotFoundError(DomainError):
    """The shelf does not exist for the owner (raised when linking a book)."""

    kind = ErrorKind.SHELF_NOT_FOUND
    default_message = "shelf not found"


class AlreadyExistsError(DomainError):
    kind = ErrorKind.ALREADY_EXISTS
    default_message = "already exists"


class UnauthenticatedError(DomainError):
    kind = ErrorKind.UNAUTHENTICATED
    default_message = "could not validate credentials"


class PermissionDeniedError(DomainError):
    kind = ErrorKind.PERMISSION_DENIED
    default_message = "permission denied"


class InvalidArgumentError(DomainError):
    kind = ErrorKind.INVALID_ARGUMENT
    default_message = "invalid argument"


class CatalogUnavailableError(DomainError):
    kind = ErrorKind.UNAVAILABLE
    default_message = "book catalog is unavailable"

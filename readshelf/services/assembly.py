"""Shelf-grouped view of a library."""

from readshelf.domain.entities import LibraryBook, Shelf, ShelfWithBooks


def group_library(
    shelves: list[Shelf], books: list[LibraryBook]
) -> tuple[list[ShelfWithBooks], list[LibraryBook]]:
    """Bucket ``books`` by shelf.

    Every shelf gets a bucket, even an empty one, and the buckets keep the
    order of ``shelves``.  A book on several shelves is appended to each of
    their buckets (the same object, not a copy); a book on none goes to the
    unshelved list.  Shelf ids that match no shelf are skipped.
    """
    buckets: dict[str, ShelfWithBooks] = {
        shelf.id: ShelfWithBooks(shelf=shelf, books=[]) for shelf in shelves
    }
    unshelved: list[LibraryBook] = []

    for book in books:
        if not book.shelf_ids:
            unshelved.append(book)
            continue
        for shelf_id in book.shelf_ids:
            bucket = buckets.get(shelf_id)
            if bucket is not None:
                bucket.books.append(book)

    return [buckets[shelf.id] for shelf in shelves], unshelved

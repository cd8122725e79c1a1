import pytest
from sqlalchemy import func, select

from readshelf.domain.entities import LibraryBook, ReadingStatus, User
from readshelf.domain.errors import (
    AlreadyExistsError,
    DefaultShelfProtectedError,
    DuplicateNameError,
    NotFoundError,
)
from readshelf.infrastructure.database.models import ShelfBookModel
from readshelf.infrastructure.database.repository import (
    LibraryRepository,
    ShelfRepository,
    UserRepository,
)


def _book(owner_id, book_id):
    return LibraryBook(
        owner_id=owner_id,
        book_id=book_id,
        title=f"Title {book_id}",
        author_name="Author",
        reading_status=ReadingStatus.WANT_TO_READ,
    )


async def _default_shelf(repo, owner_id):
    return next(s for s in await repo.list_for_owner(owner_id) if s.is_default)


# ---------------------------------------------------------------------------
# Profiles and the default shelf
# ---------------------------------------------------------------------------
async def test_profile_comes_with_one_default_shelf(session, make_user):
    await make_user("u1")

    shelves = await ShelfRepository(session).list_for_owner("u1")

    assert len(shelves) == 1
    assert shelves[0].is_default
    assert shelves[0].name == "All Books"


async def test_duplicate_profile_is_rejected(session, make_user):
    await make_user("u1")

    with pytest.raises(AlreadyExistsError):
        await UserRepository(session).create_with_default_shelf(
            User(id="u1", username="someone-else", email="other@example.com"), "All Books"
        )

    shelves = await ShelfRepository(session).list_for_owner("u1")
    assert len(shelves) == 1


# ---------------------------------------------------------------------------
# Names
# ---------------------------------------------------------------------------
async def test_duplicate_name_for_same_owner(session, make_user):
    await make_user("u1")
    repo = ShelfRepository(session)
    await repo.create("u1", "Sci-Fi")

    with pytest.raises(DuplicateNameError):
        await repo.create("u1", "Sci-Fi")


async def test_same_name_allowed_across_owners(session, make_user):
    await make_user("u1")
    await make_user("u2")
    repo = ShelfRepository(session)

    first = await repo.create("u1", "Sci-Fi")
    second = await repo.create("u2", "Sci-Fi")

    assert first.id != second.id


async def test_rename_to_taken_name(session, make_user):
    await make_user("u1")
    repo = ShelfRepository(session)
    await repo.create("u1", "Sci-Fi")
    fantasy = await repo.create("u1", "Fantasy")

    with pytest.raises(DuplicateNameError):
        await repo.update("u1", fantasy.id, "Sci-Fi")

    assert (await repo.get("u1", fantasy.id)).name == "Fantasy"


async def test_create_for_unknown_owner(session):
    with pytest.raises(NotFoundError):
        await ShelfRepository(session).create("ghost", "Sci-Fi")


# ---------------------------------------------------------------------------
# Default shelf protection
# ---------------------------------------------------------------------------
async def test_default_shelf_cannot_be_renamed(session, make_user):
    await make_user("u1")
    repo = ShelfRepository(session)
    default = await _default_shelf(repo, "u1")

    with pytest.raises(DefaultShelfProtectedError):
        await repo.update("u1", default.id, "Renamed")

    assert (await repo.get("u1", default.id)).name == "All Books"


async def test_default_shelf_cannot_be_deleted(session, make_user):
    await make_user("u1")
    repo = ShelfRepository(session)
    default = await _default_shelf(repo, "u1")

    with pytest.raises(DefaultShelfProtectedError):
        await repo.delete("u1", default.id)

    assert await repo.get("u1", default.id) is not None


# ---------------------------------------------------------------------------
# Ownership and ordering
# ---------------------------------------------------------------------------
async def test_other_owner_cannot_touch_shelf(session, make_user):
    await make_user("u1")
    await make_user("u2")
    repo = ShelfRepository(session)
    shelf = await repo.create("u1", "Sci-Fi")

    assert await repo.get("u2", shelf.id) is None
    with pytest.raises(NotFoundError):
        await repo.update("u2", shelf.id, "Mine now")
    with pytest.raises(NotFoundError):
        await repo.delete("u2", shelf.id)
    assert (await repo.get("u1", shelf.id)).name == "Sci-Fi"


async def test_rename_custom_shelf(session, make_user):
    await make_user("u1")
    repo = ShelfRepository(session)
    shelf = await repo.create("u1", "Sci-Fi")

    renamed = await repo.update("u1", shelf.id, "Science Fiction")

    assert renamed.name == "Science Fiction"
    assert renamed.is_default is False


async def test_list_puts_default_first_then_creation_order(session, make_user):
    await make_user("u1")
    repo = ShelfRepository(session)
    await repo.create("u1", "Zebra")
    await repo.create("u1", "Apple")

    names = [s.name for s in await repo.list_for_owner("u1")]

    assert names == ["All Books", "Zebra", "Apple"]


# ---------------------------------------------------------------------------
# Delete cascade
# ---------------------------------------------------------------------------
async def test_delete_shelf_keeps_books_and_drops_assignments(session, make_user):
    await make_user("u1")
    shelves = ShelfRepository(session)
    library = LibraryRepository(session)
    doomed = await shelves.create("u1", "Doomed")
    kept = await shelves.create("u1", "Kept")
    await library.upsert(_book("u1", "b1"), [doomed.id])
    await library.upsert(_book("u1", "b2"), [doomed.id, kept.id])

    await shelves.delete("u1", doomed.id)

    remaining = {b.book_id: b.shelf_ids for b in await library.list_for_owner("u1")}
    assert remaining == {"b1": [], "b2": [kept.id]}
    orphans = await session.execute(
        select(func.count()).select_from(ShelfBookModel).where(ShelfBookModel.shelf_id == doomed.id)
    )
    assert orphans.scalar_one() == 0


async def test_delete_unknown_shelf(session, make_user):
    await make_user("u1")

    with pytest.raises(NotFoundError):
        await ShelfRepository(session).delete("u1", "no-such-shelf")

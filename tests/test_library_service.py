import pytest

from readshelf.domain.entities import BookSource, ReadingStatus
from readshelf.domain.errors import (
    AlreadyExistsError,
    BookNotFoundError,
    InvalidArgumentError,
    NotFoundError,
)
from readshelf.infrastructure.database.repository import (
    LibraryRepository,
    ShelfRepository,
    UserRepository,
)
from readshelf.services.library_service import LibraryService
from readshelf.services.profile_service import ProfileService


@pytest.fixture
def service(session):
    return LibraryService(
        shelf_repository=ShelfRepository(session),
        library_repository=LibraryRepository(session),
    )


@pytest.fixture
def profiles(session):
    return ProfileService(UserRepository(session), default_shelf_name="All Books")


async def _add(service, owner_id, book_id, shelf_ids=(), **overrides):
    values = dict(
        owner_id=owner_id,
        book_id=book_id,
        title=f"Title {book_id}",
        author_name="Octavia E. Butler",
        source=BookSource.OPEN_LIBRARY,
        reading_status=ReadingStatus.READING,
        shelf_ids=list(shelf_ids),
    )
    values.update(overrides)
    return await service.upsert_library_book(**values)


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------
async def test_create_profile_bootstraps_default_shelf(profiles, service):
    user = await profiles.create_profile("u1", "  reader  ", "reader@example.com")

    assert user.username == "reader"
    shelves = await service.list_shelves("u1")
    assert [(s.name, s.is_default) for s in shelves] == [("All Books", True)]


async def test_create_profile_twice(profiles):
    await profiles.create_profile("u1", "reader", "reader@example.com")

    with pytest.raises(AlreadyExistsError):
        await profiles.create_profile("u1", "reader2", "reader2@example.com")


async def test_create_profile_requires_username(profiles):
    with pytest.raises(InvalidArgumentError):
        await profiles.create_profile("u1", "   ", "reader@example.com")


async def test_get_missing_profile(profiles):
    with pytest.raises(NotFoundError):
        await profiles.get_profile("ghost")


async def test_update_profile_changes_only_given_fields(profiles):
    await profiles.create_profile("u1", "reader", "reader@example.com", first_name="Ann")

    user = await profiles.update_profile("u1", last_name="Leckie", username=" annl ")

    assert (user.username, user.first_name, user.last_name) == ("annl", "Ann", "Leckie")
    assert user.email == "reader@example.com"


async def test_update_profile_needs_a_field(profiles):
    await profiles.create_profile("u1", "reader", "reader@example.com")

    with pytest.raises(InvalidArgumentError):
        await profiles.update_profile("u1")


async def test_update_profile_to_taken_username(profiles):
    await profiles.create_profile("u1", "reader", "reader@example.com")
    await profiles.create_profile("u2", "writer", "writer@example.com")

    with pytest.raises(AlreadyExistsError):
        await profiles.update_profile("u2", username="reader")

    assert (await profiles.get_profile("u2")).username == "writer"


async def test_update_missing_profile(profiles):
    with pytest.raises(NotFoundError):
        await profiles.update_profile("ghost", first_name="Nobody")


async def test_delete_profile_removes_shelves_and_library(profiles, service):
    await profiles.create_profile("u1", "reader", "reader@example.com")
    await profiles.create_profile("u2", "writer", "writer@example.com")
    a = await service.create_shelf("u1", "A")
    await _add(service, "u1", "b1", [a.id])
    await _add(service, "u2", "b1")

    await profiles.delete_profile("u1")

    with pytest.raises(NotFoundError):
        await profiles.get_profile("u1")
    assert await service.list_shelves("u1") == []
    assert (await service.get_user_library("u1")).total == 0
    assert (await service.get_user_library("u2")).total == 1


async def test_delete_missing_profile(profiles):
    with pytest.raises(NotFoundError):
        await profiles.delete_profile("ghost")


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------
async def test_blank_shelf_name_rejected(make_user, service):
    await make_user("u1")

    with pytest.raises(InvalidArgumentError):
        await service.create_shelf("u1", "   ")


async def test_shelf_name_is_trimmed(make_user, service):
    await make_user("u1")

    shelf = await service.create_shelf("u1", "  Sci-Fi ")

    assert shelf.name == "Sci-Fi"


@pytest.mark.parametrize(
    "overrides",
    [
        {"rating": 6},
        {"rating": -1},
        {"source": 9},
        {"reading_status": ReadingStatus.UNSPECIFIED},
        {"reading_status": 7},
        {"title": ""},
        {"author_name": " "},
    ],
)
async def test_upsert_rejects_bad_input(make_user, service, overrides):
    await make_user("u1")

    with pytest.raises(InvalidArgumentError):
        await _add(service, "u1", "b1", **overrides)

    assert (await service.get_user_library("u1")).total == 0


async def test_upsert_accepts_unrated_book(make_user, service):
    await make_user("u1")

    book = await _add(service, "u1", "b1", rating=0, source=BookSource.UNSPECIFIED)

    assert book.rating == 0
    assert book.source == BookSource.UNSPECIFIED


# ---------------------------------------------------------------------------
# Library view
# ---------------------------------------------------------------------------
async def test_add_then_unshelve_scenario(make_user, service):
    await make_user("u1")
    s1 = await service.create_shelf("u1", "Sci-Fi")
    await _add(service, "u1", "b1", [s1.id])

    library = await service.get_user_library("u1")
    by_id = {group.shelf.id: group.books for group in library.shelves}
    assert [b.book_id for b in by_id[s1.id]] == ["b1"]
    assert library.unshelved == []
    assert library.total == 1

    await service.remove_book_from_shelf("u1", "b1", s1.id)

    library = await service.get_user_library("u1")
    by_id = {group.shelf.id: group.books for group in library.shelves}
    assert by_id[s1.id] == []
    assert [b.book_id for b in library.unshelved] == ["b1"]
    assert library.total == 1


async def test_full_replace_moves_book_to_unshelved(make_user, service):
    await make_user("u1")
    a = await service.create_shelf("u1", "A")
    b = await service.create_shelf("u1", "B")
    await _add(service, "u1", "b1", [a.id, b.id])

    await _add(service, "u1", "b1", [])

    library = await service.get_user_library("u1")
    assert [book.book_id for book in library.unshelved] == ["b1"]
    assert all(group.books == [] for group in library.shelves)


async def test_library_accounts_for_every_placement(make_user, service):
    await make_user("u1")
    default = (await service.list_shelves("u1"))[0]
    a = await service.create_shelf("u1", "A")
    await _add(service, "u1", "b1", [default.id, a.id])
    await _add(service, "u1", "b2", [a.id])
    await _add(service, "u1", "b3")

    library = await service.get_user_library("u1", page=2, limit=10)

    assert library.total == 3
    assert (library.page, library.limit) == (2, 10)
    assert [group.shelf.id for group in library.shelves] == [default.id, a.id]
    placements = sum(len(group.books) for group in library.shelves) + len(library.unshelved)
    assert placements == 4
    assert [book.book_id for book in library.unshelved] == ["b3"]


async def test_deleting_shelf_unshelves_its_only_books(make_user, service):
    await make_user("u1")
    a = await service.create_shelf("u1", "A")
    await _add(service, "u1", "b1", [a.id])

    await service.delete_shelf("u1", a.id)

    library = await service.get_user_library("u1")
    assert [book.book_id for book in library.unshelved] == ["b1"]
    assert library.total == 1


async def test_shelf_books_for_foreign_shelf(make_user, service):
    await make_user("u1")
    await make_user("u2")
    theirs = await service.create_shelf("u2", "Theirs")

    with pytest.raises(NotFoundError):
        await service.get_shelf_books("u1", theirs.id)


async def test_shelf_books_lists_assigned_books(make_user, service):
    await make_user("u1")
    a = await service.create_shelf("u1", "A")
    await _add(service, "u1", "b1", [a.id])
    await _add(service, "u1", "b2", [a.id])
    await _add(service, "u1", "b3")

    books, total = await service.get_shelf_books("u1", a.id, page=1, limit=1)

    assert [book.book_id for book in books] == ["b2", "b1"]
    assert total == 2


async def test_add_missing_book_to_shelf(make_user, service):
    await make_user("u1")
    s1 = await service.create_shelf("u1", "Sci-Fi")

    with pytest.raises(BookNotFoundError):
        await service.add_book_to_shelf("u1", "nonexistent-book", s1.id)


async def test_remove_book_from_library(make_user, service):
    await make_user("u1")
    a = await service.create_shelf("u1", "A")
    await _add(service, "u1", "b1", [a.id])

    await service.remove_library_book("u1", "b1")

    library = await service.get_user_library("u1")
    assert library.total == 0
    assert all(group.books == [] for group in library.shelves)

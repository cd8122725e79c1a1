"""Repository implementations.

Every mutating method runs in one transaction on the request's session and
rolls it back on any failure, so callers never observe partial state.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional
from uuid import uuid4

from sqlalchemy import and_, delete, func, insert, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from readshelf.domain.entities import (
    BookSource,
    LibraryBook,
    ReadingStatus,
    Shelf,
    User,
    utcnow,
)
from readshelf.domain.errors import (
    AlreadyExistsError,
    BookNotFoundError,
    DefaultShelfProtectedError,
    DuplicateNameError,
    NotFoundError,
    ShelfNotFoundError,
)
from readshelf.domain.repositories import ILibraryRepository, IShelfRepository, IUserRepository
from readshelf.infrastructure.database.models import (
    LibraryBookModel,
    ShelfBookModel,
    ShelfModel,
    UserModel,
)

logger = logging.getLogger(__name__)

# https://www.postgresql.org/docs/current/errcodes-appendix.html
UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"

_UPSERT_INSERTS = {"postgresql": pg_insert, "sqlite": sqlite_insert}


@asynccontextmanager
async def _transaction(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Commit on success, roll back on any exception and re-raise it."""
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise


def _is_unique_violation(exc: IntegrityError) -> bool:
    sqlstate = getattr(exc.orig, "sqlstate", None) or getattr(exc.orig, "pgcode", None)
    if sqlstate is not None:
        return sqlstate == UNIQUE_VIOLATION
    return "UNIQUE constraint failed" in str(exc.orig)


def _is_foreign_key_violation(exc: IntegrityError) -> bool:
    sqlstate = getattr(exc.orig, "sqlstate", None) or getattr(exc.orig, "pgcode", None)
    if sqlstate is not None:
        return sqlstate == FOREIGN_KEY_VIOLATION
    return "FOREIGN KEY constraint failed" in str(exc.orig)


# ---------------------------------------------------------------------------
# User Repository
# ---------------------------------------------------------------------------
class UserRepository(IUserRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_with_default_shelf(self, user: User, default_shelf_name: str) -> User:
        """Insert the user row and its default shelf atomically."""
        try:
            async with _transaction(self.session):
                await self.session.execute(
                    insert(UserModel).values(
                        id=user.id,
                        username=user.username,
                        first_name=user.first_name,
                        last_name=user.last_name,
                        email=user.email,
                        profile_photo=user.profile_photo,
                        created_at=user.created_at,
                    )
                )
                await self.session.execute(
                    insert(ShelfModel).values(
                        id=str(uuid4()),
                        name=default_shelf_name,
                        owner_id=user.id,
                        is_default=True,
                        created_at=user.created_at,
                        updated_at=user.created_at,
                    )
                )
        except IntegrityError as exc:
            if _is_unique_violation(exc):
                raise AlreadyExistsError("user id, username or email already registered") from exc
            raise
        created = await self.get_by_id(user.id)
        if created is None:
            raise NotFoundError("user not found")
        return created

    async def get_by_id(self, user_id: str) -> Optional[User]:
        result = await self.session.execute(
            select(UserModel)
            .where(UserModel.id == user_id)
            .execution_options(populate_existing=True)
        )
        db_user = result.scalar_one_or_none()
        return self._to_entity(db_user) if db_user else None

    async def update_profile(self, user_id: str, changes: dict[str, Any]) -> User:
        """Overwrite the given profile columns; keys are ``UserModel`` attributes."""
        try:
            async with _transaction(self.session):
                result = await self.session.execute(
                    update(UserModel).where(UserModel.id == user_id).values(**changes)
                )
                if result.rowcount == 0:
                    raise NotFoundError("user not found")
        except IntegrityError as exc:
            if _is_unique_violation(exc):
                raise AlreadyExistsError("username or email already taken") from exc
            raise
        updated = await self.get_by_id(user_id)
        if updated is None:
            raise NotFoundError("user not found")
        return updated

    async def delete(self, user_id: str) -> None:
        """Remove the user with every shelf, library book and shelf link they own."""
        async with _transaction(self.session):
            await self.session.execute(
                delete(ShelfBookModel).where(ShelfBookModel.owner_id == user_id)
            )
            await self.session.execute(
                delete(LibraryBookModel).where(LibraryBookModel.owner_id == user_id)
            )
            await self.session.execute(delete(ShelfModel).where(ShelfModel.owner_id == user_id))
            result = await self.session.execute(delete(UserModel).where(UserModel.id == user_id))
            if result.rowcount == 0:
                raise NotFoundError("user not found")

    @staticmethod
    def _to_entity(model: UserModel) -> User:
        return User(
            id=model.id,
            username=model.username,
            email=model.email,
            first_name=model.first_name,
            last_name=model.last_name,
            profile_photo=model.profile_photo,
            created_at=model.created_at,
        )


# ---------------------------------------------------------------------------
# Shelf Repository
# ---------------------------------------------------------------------------
class ShelfRepository(IShelfRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, owner_id: str, name: str) -> Shelf:
        now = utcnow()
        shelf = Shelf(
            id=str(uuid4()),
            name=name,
            owner_id=owner_id,
            is_default=False,
            created_at=now,
            updated_at=now,
        )
        try:
            async with _transaction(self.session):
                await self.session.execute(
                    insert(ShelfModel).values(
                        id=shelf.id,
                        name=shelf.name,
                        owner_id=shelf.owner_id,
                        is_default=False,
                        created_at=shelf.created_at,
                        updated_at=shelf.updated_at,
                    )
                )
        except IntegrityError as exc:
            if _is_unique_violation(exc):
                raise DuplicateNameError() from exc
            if _is_foreign_key_violation(exc):
                raise NotFoundError("user profile not found") from exc
            raise
        return shelf

    async def get(self, owner_id: str, shelf_id: str) -> Optional[Shelf]:
        db_shelf = await self._get_model(owner_id, shelf_id)
        return self._to_entity(db_shelf) if db_shelf else None

    async def update(self, owner_id: str, shelf_id: str, name: str) -> Shelf:
        try:
            async with _transaction(self.session):
                await self._check_mutable(owner_id, shelf_id)
                await self.session.execute(
                    update(ShelfModel)
                    .where(ShelfModel.id == shelf_id, ShelfModel.owner_id == owner_id)
                    .values(name=name, updated_at=utcnow())
                )
                db_shelf = await self._get_model(owner_id, shelf_id)
                if db_shelf is None:
                    raise NotFoundError("shelf not found")
                shelf = self._to_entity(db_shelf)
        except IntegrityError as exc:
            if _is_unique_violation(exc):
                raise DuplicateNameError() from exc
            raise
        return shelf

    async def delete(self, owner_id: str, shelf_id: str) -> None:
        async with _transaction(self.session):
            await self._check_mutable(owner_id, shelf_id)
            await self.session.execute(
                delete(ShelfBookModel).where(
                    ShelfBookModel.shelf_id == shelf_id,
                    ShelfBookModel.owner_id == owner_id,
                )
            )
            result = await self.session.execute(
                delete(ShelfModel).where(
                    ShelfModel.id == shelf_id,
                    ShelfModel.owner_id == owner_id,
                )
            )
            if result.rowcount == 0:
                raise NotFoundError("shelf not found")

    async def list_for_owner(self, owner_id: str) -> list[Shelf]:
        result = await self.session.execute(
            select(ShelfModel)
            .where(ShelfModel.owner_id == owner_id)
            .order_by(ShelfModel.is_default.desc(), ShelfModel.created_at.asc())
            .execution_options(populate_existing=True)
        )
        return [self._to_entity(s) for s in result.scalars().all()]

    async def _get_model(self, owner_id: str, shelf_id: str) -> Optional[ShelfModel]:
        result = await self.session.execute(
            select(ShelfModel)
            .where(ShelfModel.id == shelf_id, ShelfModel.owner_id == owner_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _check_mutable(self, owner_id: str, shelf_id: str) -> None:
        result = await self.session.execute(
            select(ShelfModel.is_default).where(
                ShelfModel.id == shelf_id, ShelfModel.owner_id == owner_id
            )
        )
        is_default = result.scalar_one_or_none()
        if is_default is None:
            raise NotFoundError("shelf not found")
        if is_default:
            raise DefaultShelfProtectedError()

    @staticmethod
    def _to_entity(model: ShelfModel) -> Shelf:
        return Shelf(
            id=model.id,
            name=model.name,
            owner_id=model.owner_id,
            is_default=model.is_default,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


# ---------------------------------------------------------------------------
# Library Repository
# ---------------------------------------------------------------------------
class LibraryRepository(ILibraryRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def upsert(self, book: LibraryBook, shelf_ids: list[str]) -> LibraryBook:
        """Insert or update the book, then replace its shelf assignments.

        The metadata upsert, the delete of the old assignments and the insert
        of the new ones commit together or not at all.  ``added_at`` is only
        written on insert.
        """
        wanted = list(dict.fromkeys(shelf_ids))
        try:
            async with _transaction(self.session):
                await self._check_owned_shelves(book.owner_id, wanted)
                await self._upsert_row(book)
                await self.session.execute(
                    delete(ShelfBookModel).where(
                        ShelfBookModel.owner_id == book.owner_id,
                        ShelfBookModel.book_id == book.book_id,
                    )
                )
                if wanted:
                    now = utcnow()
                    await self.session.execute(
                        insert(ShelfBookModel),
                        [
                            {
                                "shelf_id": shelf_id,
                                "owner_id": book.owner_id,
                                "book_id": book.book_id,
                                "added_at": now,
                            }
                            for shelf_id in wanted
                        ],
                    )
        except IntegrityError as exc:
            if _is_foreign_key_violation(exc) and not await self._owner_exists(book.owner_id):
                raise NotFoundError("user profile not found") from exc
            # A shelf deleted between the ownership check and the insert.
            raise ShelfNotFoundError() from exc
        stored = await self.get(book.owner_id, book.book_id)
        if stored is None:
            raise NotFoundError("book not found in library")
        return stored

    async def remove(self, owner_id: str, book_id: str) -> None:
        async with _transaction(self.session):
            await self.session.execute(
                delete(ShelfBookModel).where(
                    ShelfBookModel.owner_id == owner_id,
                    ShelfBookModel.book_id == book_id,
                )
            )
            result = await self.session.execute(
                delete(LibraryBookModel).where(
                    LibraryBookModel.owner_id == owner_id,
                    LibraryBookModel.book_id == book_id,
                )
            )
            if result.rowcount == 0:
                raise NotFoundError("book not found in library")

    async def add_to_shelf(self, owner_id: str, book_id: str, shelf_id: str) -> None:
        try:
            async with _transaction(self.session):
                book_exists = await self.session.execute(
                    select(LibraryBookModel.book_id).where(
                        LibraryBookModel.owner_id == owner_id,
                        LibraryBookModel.book_id == book_id,
                    )
                )
                if book_exists.scalar_one_or_none() is None:
                    raise BookNotFoundError()
                await self._check_owned_shelves(owner_id, [shelf_id])
                assigned = await self.session.execute(
                    select(ShelfBookModel.shelf_id).where(
                        ShelfBookModel.shelf_id == shelf_id,
                        ShelfBookModel.book_id == book_id,
                    )
                )
                if assigned.scalar_one_or_none() is not None:
                    return
                await self.session.execute(
                    insert(ShelfBookModel).values(
                        shelf_id=shelf_id,
                        owner_id=owner_id,
                        book_id=book_id,
                        added_at=utcnow(),
                    )
                )
        except IntegrityError as exc:
            if _is_unique_violation(exc):
                # Lost a race with an identical insert; the assignment exists.
                return
            raise

    async def remove_from_shelf(self, owner_id: str, book_id: str, shelf_id: str) -> None:
        async with _transaction(self.session):
            await self.session.execute(
                delete(ShelfBookModel).where(
                    ShelfBookModel.owner_id == owner_id,
                    ShelfBookModel.book_id == book_id,
                    ShelfBookModel.shelf_id == shelf_id,
                )
            )

    async def get(self, owner_id: str, book_id: str) -> Optional[LibraryBook]:
        stmt = self._select_books(owner_id).where(LibraryBookModel.book_id == book_id)
        books = await self._fetch_books(stmt)
        return books[0] if books else None

    async def list_for_owner(self, owner_id: str) -> list[LibraryBook]:
        return await self._fetch_books(self._select_books(owner_id))

    async def list_for_shelf(self, owner_id: str, shelf_id: str) -> list[LibraryBook]:
        on_shelf = select(ShelfBookModel.book_id).where(
            ShelfBookModel.shelf_id == shelf_id,
            ShelfBookModel.owner_id == owner_id,
        )
        stmt = self._select_books(owner_id).where(LibraryBookModel.book_id.in_(on_shelf))
        return await self._fetch_books(stmt)

    async def count_for_owner(self, owner_id: str) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(LibraryBookModel)
            .where(LibraryBookModel.owner_id == owner_id)
        )
        return result.scalar_one()

    # -- internal helpers ---------------------------------------------------

    async def _owner_exists(self, owner_id: str) -> bool:
        result = await self.session.execute(select(UserModel.id).where(UserModel.id == owner_id))
        return result.scalar_one_or_none() is not None

    async def _check_owned_shelves(self, owner_id: str, shelf_ids: list[str]) -> None:
        if not shelf_ids:
            return
        result = await self.session.execute(
            select(ShelfModel.id).where(
                ShelfModel.owner_id == owner_id,
                ShelfModel.id.in_(shelf_ids),
            )
        )
        owned = set(result.scalars().all())
        missing = [shelf_id for shelf_id in shelf_ids if shelf_id not in owned]
        if missing:
            logger.debug("Owner %s does not own shelves %s", owner_id, missing)
            raise ShelfNotFoundError(f"shelf not found: {missing[0]}")

    async def _upsert_row(self, book: LibraryBook) -> None:
        values = {
            "owner_id": book.owner_id,
            "book_id": book.book_id,
            "title": book.title,
            "author_name": book.author_name,
            "book_image": book.book_image,
            "rating": book.rating,
            "source": int(book.source),
            "reading_status": int(book.reading_status),
            "added_at": book.added_at,
            "updated_at": book.updated_at,
        }
        dialect = self.session.get_bind().dialect.name
        insert_fn = _UPSERT_INSERTS.get(dialect)
        if insert_fn is not None:
            stmt = insert_fn(LibraryBookModel).values(**values)
            stmt = stmt.on_conflict_do_update(
                index_elements=["owner_id", "book_id"],
                set_={
                    "title": stmt.excluded.title,
                    "author_name": stmt.excluded.author_name,
                    "book_image": stmt.excluded.book_image,
                    "rating": stmt.excluded.rating,
                    "source": stmt.excluded.source,
                    "reading_status": stmt.excluded.reading_status,
                    "updated_at": stmt.excluded.updated_at,
                },
            )
            await self.session.execute(stmt)
            return

        # Generic path: lock the existing row, then update or insert.
        result = await self.session.execute(
            select(LibraryBookModel.book_id)
            .where(
                LibraryBookModel.owner_id == book.owner_id,
                LibraryBookModel.book_id == book.book_id,
            )
            .with_for_update()
        )
        if result.scalar_one_or_none() is None:
            await self.session.execute(insert(LibraryBookModel).values(**values))
            return
        mutable = {k: v for k, v in values.items() if k not in ("owner_id", "book_id", "added_at")}
        await self.session.execute(
            update(LibraryBookModel)
            .where(
                LibraryBookModel.owner_id == book.owner_id,
                LibraryBookModel.book_id == book.book_id,
            )
            .values(**mutable)
        )

    @staticmethod
    def _select_books(owner_id: str):
        return (
            select(LibraryBookModel, ShelfBookModel.shelf_id)
            .outerjoin(
                ShelfBookModel,
                and_(
                    ShelfBookModel.owner_id == LibraryBookModel.owner_id,
                    ShelfBookModel.book_id == LibraryBookModel.book_id,
                ),
            )
            .where(LibraryBookModel.owner_id == owner_id)
            .order_by(
                LibraryBookModel.added_at.desc(),
                LibraryBookModel.book_id,
                ShelfBookModel.added_at,
                ShelfBookModel.shelf_id,
            )
            .execution_options(populate_existing=True)
        )

    async def _fetch_books(self, stmt) -> list[LibraryBook]:
        """Run a book/shelf-id join and fold the rows into one entity per book."""
        result = await self.session.execute(stmt)
        books: dict[str, LibraryBook] = {}
        for db_book, shelf_id in result.all():
            book = books.get(db_book.book_id)
            if book is None:
                book = books[db_book.book_id] = self._to_entity(db_book)
            if shelf_id is not None:
                book.shelf_ids.append(shelf_id)
        return list(books.values())

    @staticmethod
    def _to_entity(model: LibraryBookModel) -> LibraryBook:
        return LibraryBook(
            owner_id=model.owner_id,
            book_id=model.book_id,
            title=model.title,
            author_name=model.author_name,
            book_image=model.book_image or "",
            rating=model.rating or 0,
            source=BookSource(model.source or 0),
            reading_status=ReadingStatus(model.reading_status or 0),
            shelf_ids=[],
            added_at=model.added_at,
            updated_at=model.updated_at,
        )

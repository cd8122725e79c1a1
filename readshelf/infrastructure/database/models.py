"""SQLAlchemy database models."""

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    ForeignKeyConstraint,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class UserModel(Base):
    __tablename__ = "users"

    id = Column(String(128), primary_key=True)
    username = Column(String(100), nullable=False, unique=True, index=True)
    first_name = Column(String(100), nullable=False, default="")
    last_name = Column(String(100), nullable=False, default="")
    email = Column(String(255), nullable=False, unique=True, index=True)
    profile_photo = Column(String(512), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)


class ShelfModel(Base):
    __tablename__ = "shelves"
    __table_args__ = (UniqueConstraint("owner_id", "name", name="uq_shelves_owner_name"),)

    id = Column(String(36), primary_key=True)
    name = Column(String(255), nullable=False)
    owner_id = Column(
        String(128), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    is_default = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)


class LibraryBookModel(Base):
    __tablename__ = "library_books"

    owner_id = Column(
        String(128), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    book_id = Column(String(255), primary_key=True)
    title = Column(Text, nullable=False)
    author_name = Column(Text, nullable=False)
    book_image = Column(Text, nullable=False, default="")
    rating = Column(Integer, nullable=False, default=0)
    source = Column(Integer, nullable=False, default=0)
    reading_status = Column(Integer, nullable=False, default=0)
    added_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)


class ShelfBookModel(Base):
    """Join row between a library book and one of the owner's shelves."""

    __tablename__ = "shelf_books"
    __table_args__ = (
        ForeignKeyConstraint(
            ["owner_id", "book_id"],
            ["library_books.owner_id", "library_books.book_id"],
            ondelete="CASCADE",
            name="fk_shelf_books_library_book",
        ),
        Index("ix_shelf_books_owner_book", "owner_id", "book_id"),
    )

    shelf_id = Column(
        String(36), ForeignKey("shelves.id", ondelete="CASCADE"), primary_key=True
    )
    book_id = Column(String(255), primary_key=True)
    owner_id = Column(String(128), nullable=False)
    added_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

"""SQLAlchemy ORM models for the shortlinks service.

Data Model Layout
=================
::
    links table
    ├─ seq (BIGINT PRIMARY KEY, autoincrement)
    ├─ id (VARCHAR(36) UNIQUE, uuid4 text)
    ├─ code (VARCHAR(50) UNIQUE, INDEXED)
    ├─ target (TEXT NOT NULL)
    ├─ access_count (INTEGER DEFAULT 0)
    ├─ created_at (TIMESTAMPTZ, INDEXED)
    └─ updated_at (TIMESTAMPTZ)

Key Behaviours
===============
- The unique index on ``code`` is the uniqueness gate used by
  SqlLinkStore.try_insert: a duplicate insert fails with IntegrityError.
- ``created_at`` is indexed for ordered pagination; ``seq`` orders rows
  created within the same clock tick by insertion.
- Timestamps are written by the application so every backend shares one clock.
- ``id`` is stored as text so the table works on PostgreSQL and SQLite alike.

Classes:
    Base:  Declarative base for all tables.
    Link:  A stored short code mapping with its access counter.
"""

import datetime

from sqlalchemy import BigInteger, DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from shortlinks.stores.base import LinkRecord

__all__ = ["Base", "Link"]


class Base(DeclarativeBase):
    pass


class Link(Base):
    __tablename__ = "links"

    seq: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    id: Mapped[str] = mapped_column(String(36), unique=True, nullable=False)
    code: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False)
    target: Mapped[str] = mapped_column(Text, nullable=False)
    access_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), index=True, nullable=False)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def to_record(self) -> LinkRecord:
        return LinkRecord(
            id=self.id,
            target=self.target,
            code=self.code,
            access_count=self.access_count,
            created_at=_as_utc(self.created_at),
            updated_at=_as_utc(self.updated_at),
        )

    def __repr__(self) -> str:
        return f"<Link(id={self.id}, code='{self.code}', access_count={self.access_count})>"


def _as_utc(value: datetime.datetime) -> datetime.datetime:
    # SQLite drops the offset on the way out; every stored value is UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value

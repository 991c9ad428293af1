"""SQLAlchemy-backed LinkStore (PostgreSQL in production, SQLite in tests).

Flow Diagram: try_insert()
===========================
::
    ┌─────────────┐
    │ build Link  │
    │ row (uuid,  │
    │ timestamps) │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ INSERT +    │
    │ COMMIT      │
    └──────┬──────┘
    UNIQUE(code) violated?
    ┌─────┴─────┐
    │ NO         │ YES
    ▼            ▼
┌─────────┐  ┌──────────┐
│INSERTED │  │CODE_TAKEN│
└─────────┘  └──────────┘

Key Behaviours
===============
- No SELECT precedes the INSERT: the unique index decides, so two concurrent
  inserts of one code yield exactly one INSERTED and one CODE_TAKEN.
- Increments are a single ``UPDATE ... SET access_count = access_count + 1``;
  the database serializes concurrent updates of the row.
- Every operation opens and closes its own session; nothing is cached.
- Driver and pool failures are re-raised as StorageUnavailableError.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import delete, func, select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from shortlinks.database import close_db, create_session_factory
from shortlinks.errors import StorageUnavailableError
from shortlinks.models import Link
from shortlinks.stores.base import InsertOutcome, InsertResult, LinkPage, LinkRecord, new_link_id, utcnow

__all__ = ["SqlLinkStore"]


class SqlLinkStore:
    """LinkStore over an AsyncEngine it owns and disposes on close()."""

    def __init__(self, engine: AsyncEngine, logger: logging.Logger | None = None):
        self._engine = engine
        self._sessions = create_session_factory(engine)
        self._logger = logger or logging.getLogger("shortlinks.stores.sql")

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    @asynccontextmanager
    async def _storage_errors(self, operation: str) -> AsyncIterator[None]:
        try:
            yield
        except IntegrityError:
            raise
        except (SQLAlchemyError, OSError) as exc:
            self._logger.error(f"Database {operation} failed: {exc}")
            raise StorageUnavailableError(f"Database {operation} failed") from exc

    async def try_insert(self, code: str, target: str) -> InsertResult:
        assert code, "code must be non-empty"
        assert target, "target must be non-empty"
        now = utcnow()
        row = Link(id=new_link_id(), code=code, target=target, access_count=0, created_at=now, updated_at=now)
        try:
            async with self._storage_errors("insert"), self._sessions() as session:
                session.add(row)
                await session.commit()
        except IntegrityError:
            self._logger.debug(f"Unique constraint rejected code: {code}")
            return InsertResult.taken()
        return InsertResult(InsertOutcome.INSERTED, row.to_record())

    async def get(self, code: str) -> LinkRecord | None:
        async with self._storage_errors("lookup"), self._sessions() as session:
            result = await session.execute(select(Link).where(Link.code == code))
            row = result.scalar_one_or_none()
            return row.to_record() if row is not None else None

    async def increment_access(self, link_id: str) -> bool:
        stmt = (
            update(Link)
            .where(Link.id == link_id)
            .values(access_count=Link.access_count + 1, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        async with self._storage_errors("increment"), self._sessions() as session:
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount == 1

    async def delete(self, link_id: str) -> bool:
        stmt = delete(Link).where(Link.id == link_id).execution_options(synchronize_session=False)
        async with self._storage_errors("delete"), self._sessions() as session:
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount == 1

    async def list(self, offset: int, count: int) -> LinkPage:
        assert offset >= 0 and count >= 0, f"offset/count must be non-negative, got {offset}/{count}"
        page_stmt = select(Link).order_by(Link.created_at, Link.seq).offset(offset).limit(count)
        async with self._storage_errors("list"), self._sessions() as session:
            total = await session.scalar(select(func.count()).select_from(Link))
            rows = (await session.execute(page_stmt)).scalars().all()
            return LinkPage(records=[row.to_record() for row in rows], total=total or 0)

    async def ping(self) -> bool:
        async with self._storage_errors("ping"), self._sessions() as session:
            await session.execute(text("SELECT 1"))
        return True

    async def close(self) -> None:
        await close_db(self._engine)

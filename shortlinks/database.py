"""Database engine and session factory construction.

This module builds the SQLAlchemy async engine and session factory used by
SqlLinkStore. Nothing is created at import time: the composition root calls
``create_engine`` with explicit settings and owns the result.

Flow Diagram: Database Lifecycle
=================================
::
    ┌──────────────┐
    │ create_engine│
    │ (settings)   │
    └──────┬───────┘
           ▼
    ┌──────────────┐
    │ create_      │
    │ session_     │
    │ factory()    │
    └──────┬───────┘
           ▼
    ┌──────────────┐
    │ init_db()    │
    │ create_all   │
    └──────┬───────┘
           ▼
    ┌──────────────┐
    │ SqlLinkStore │
    │ per-operation│
    │ sessions     │
    └──────┬───────┘
           ▼
    ┌──────────────┐
    │ close_db()   │
    │ dispose      │
    └──────────────┘

Key Behaviours
===============
- Pool sizing applies only to server databases; SQLite URLs use the
  driver's default pool.
- ``expire_on_commit`` is off so records can be read after commit.
- Tables are created on startup; there is no migration tool.

Functions:
    create_engine():  Build an AsyncEngine from settings values.
    create_session_factory():  Build an async_sessionmaker bound to an engine.
    init_db():  Creates all tables.
    close_db():  Disposes the engine.
"""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from shortlinks.models import Base

__all__ = ["create_engine", "create_session_factory", "init_db", "close_db"]


def create_engine(
    database_url: str,
    *,
    echo: bool = False,
    pool_size: int = 20,
    max_overflow: int = 10,
) -> AsyncEngine:
    if database_url.startswith("sqlite"):
        return create_async_engine(database_url, echo=echo)
    return create_async_engine(
        database_url,
        echo=echo,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=True,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db(engine: AsyncEngine) -> None:
    await engine.dispose()

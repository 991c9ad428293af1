"""Composition root: builds the link engine from explicit settings.

Wiring Diagram
==============
::
    Settings
       │
       ├─► build_store() ──► SqlLinkStore | RedisLinkStore | MemoryLinkStore
       │                          │
       ├─► CodeGenerator          │
       │        │                 │
       │        ▼                 ▼
       ├─► LinkAllocator(store, generator, strict=settings.strict_targets)
       ├─► LinkResolver(store, increment_retries=...)
       └─► LinkService(store, allocator, resolver)
                  │
                  ▼
             LinkEngine  (held by the caller, e.g. app.state.links)

Key Behaviours
===============
- No module-level registry: every call builds an independent engine, and
  the caller decides where to keep it.
- ``LinkEngine.start()`` creates tables for the SQL backend.
- ``LinkEngine.close()`` waits for in-flight increments before closing the
  store, so shutdown does not drop counted accesses.
"""

import logging
from dataclasses import dataclass

import redis.asyncio as redis

from shortlinks.allocator import LinkAllocator
from shortlinks.codegen import CodeGenerator
from shortlinks.config import Settings
from shortlinks.database import create_engine, init_db
from shortlinks.enums import StoreBackend
from shortlinks.resolver import LinkResolver
from shortlinks.service import LinkService
from shortlinks.stores.base import LinkStore
from shortlinks.stores.memory_store import MemoryLinkStore
from shortlinks.stores.redis_store import RedisLinkStore
from shortlinks.stores.sql_store import SqlLinkStore

__all__ = ["LinkEngine", "build_link_engine", "build_store"]

logger = logging.getLogger("shortlinks.container")


@dataclass
class LinkEngine:
    settings: Settings
    store: LinkStore
    allocator: LinkAllocator
    resolver: LinkResolver
    service: LinkService

    async def start(self) -> None:
        if isinstance(self.store, SqlLinkStore):
            await init_db(self.store.engine)

    async def close(self) -> None:
        await self.resolver.drain()
        await self.store.close()


def build_store(settings: Settings) -> LinkStore:
    backend = settings.LINK_STORE_BACKEND
    if backend is StoreBackend.SQL:
        engine = create_engine(
            settings.DATABASE_URL,
            echo=settings.DATABASE_ECHO,
            pool_size=settings.DATABASE_POOL_SIZE,
            max_overflow=settings.DATABASE_MAX_OVERFLOW,
        )
        return SqlLinkStore(engine)
    if backend is StoreBackend.REDIS:
        client = redis.from_url(settings.REDIS_URL, encoding="utf-8", decode_responses=True)
        return RedisLinkStore(client, key_prefix=settings.REDIS_KEY_PREFIX)
    return MemoryLinkStore()


def build_link_engine(settings: Settings, store: LinkStore | None = None) -> LinkEngine:
    """Wire every engine component from ``settings``.

    Args:
        settings: Configuration values.
        store: Optional pre-built store; overrides ``LINK_STORE_BACKEND``.
    """
    store = store if store is not None else build_store(settings)
    allocator = LinkAllocator(
        store,
        CodeGenerator(length=settings.SHORT_CODE_LENGTH),
        strict=settings.strict_targets,
        max_attempts=settings.CODE_ALLOCATION_MAX_ATTEMPTS,
    )
    resolver = LinkResolver(
        store,
        increment_retries=settings.ACCESS_INCREMENT_RETRIES,
        retry_delay=settings.ACCESS_INCREMENT_RETRY_DELAY_SECONDS,
    )
    service = LinkService(store, allocator, resolver, max_list_count=settings.LIST_MAX_COUNT)
    logger.info(
        f"Link engine built: backend={type(store).__name__} strict_targets={settings.strict_targets} "
        f"max_attempts={settings.CODE_ALLOCATION_MAX_ATTEMPTS}"
    )
    return LinkEngine(settings=settings, store=store, allocator=allocator, resolver=resolver, service=service)

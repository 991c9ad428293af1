"""LinkService: the operations the request-handling layer calls.

Operation Overview
==================
::
    create_link(target, custom_code?) ─► LinkRecord
        └─ LinkAllocator.create
    resolve_link(code)                ─► target
        └─ LinkResolver.resolve (+ background increment)
    get_link(code)                    ─► LinkRecord   (no access counted)
    delete_link(link_id)              ─► None
    list_links(offset, count)         ─► LinkPage

Key Behaviours
===============
- The service owns no state of its own; every read goes to the store.
- Absence is raised as LinkNotFoundError here, never returned as None.
- ``list_links`` expects ``count`` already clamped to [1, max_list_count].
"""

import logging

from shortlinks.allocator import LinkAllocator
from shortlinks.errors import LinkNotFoundError
from shortlinks.resolver import LinkResolver
from shortlinks.stores.base import LinkPage, LinkRecord, LinkStore

__all__ = ["LinkService"]


class LinkService:
    def __init__(
        self,
        store: LinkStore,
        allocator: LinkAllocator,
        resolver: LinkResolver,
        *,
        max_list_count: int = 100,
        logger: logging.Logger | None = None,
    ):
        self._store = store
        self._allocator = allocator
        self._resolver = resolver
        self._max_list_count = max_list_count
        self._logger = logger or logging.getLogger("shortlinks.service")

    @property
    def store(self) -> LinkStore:
        return self._store

    @property
    def resolver(self) -> LinkResolver:
        return self._resolver

    async def create_link(self, target: str, custom_code: str | None = None) -> LinkRecord:
        return await self._allocator.create(target, custom_code)

    async def resolve_link(self, code: str) -> str:
        resolved = await self._resolver.resolve(code)
        return resolved.target

    async def get_link(self, code: str) -> LinkRecord:
        record = await self._store.get(code)
        if record is None:
            raise LinkNotFoundError(code)
        return record

    async def delete_link(self, link_id: str) -> None:
        if not await self._store.delete(link_id):
            raise LinkNotFoundError(link_id)
        self._logger.info(f"Link deleted: {link_id}")

    async def list_links(self, offset: int, count: int) -> LinkPage:
        if offset < 0:
            raise ValueError(f"offset must be >= 0, got {offset}")
        if not 1 <= count <= self._max_list_count:
            raise ValueError(f"count must be within [1, {self._max_list_count}], got {count}")
        return await self._store.list(offset, count)

"""Shared pytest fixtures for engine, store and API tests."""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from shortlinks.config import Settings
from shortlinks.container import LinkEngine, build_link_engine
from shortlinks.database import create_engine, init_db
from shortlinks.dependencies import get_link_engine
from shortlinks.enums import StoreBackend
from shortlinks.main import app
from shortlinks.stores.base import LinkStore
from shortlinks.stores.memory_store import MemoryLinkStore
from shortlinks.stores.sql_store import SqlLinkStore


@pytest.fixture
def settings() -> Settings:
    return Settings(
        APP_ENV="test",
        BASE_URL="http://sho.rt",
        LINK_STORE_BACKEND=StoreBackend.MEMORY,
        STRICT_TARGET_VALIDATION=False,
        ACCESS_INCREMENT_RETRY_DELAY_SECONDS=0.0,
    )


@pytest.fixture
def memory_store() -> MemoryLinkStore:
    return MemoryLinkStore()


@pytest_asyncio.fixture(params=["memory", "sql"])
async def store(request: pytest.FixtureRequest, tmp_path: Path) -> AsyncGenerator[LinkStore, None]:
    """Every LinkStore backend that runs without an external server."""
    if request.param == "memory":
        yield MemoryLinkStore()
        return

    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'links.db'}")
    await init_db(engine)
    sql = SqlLinkStore(engine)
    yield sql
    await sql.close()


@pytest_asyncio.fixture
async def link_engine(settings: Settings, memory_store: MemoryLinkStore) -> AsyncGenerator[LinkEngine, None]:
    engine = build_link_engine(settings, store=memory_store)
    yield engine
    await engine.close()


@pytest_asyncio.fixture
async def client(link_engine: LinkEngine) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_link_engine] = lambda: link_engine

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()

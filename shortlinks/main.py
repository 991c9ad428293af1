"""FastAPI application entry point for the shortlinks service.

Application Lifecycle Diagram
=============================
::
    ┌─────────────┐
    │ create_app()│
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ setup_      │
    │ logging()   │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ build_link_ │
    │ engine()    │──► app.state.links
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Instrument  │
    │ + routes    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ lifespan()  │
    │ startup:    │
    │ engine.     │
    │ start()     │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Serve HTTP  │
    │ requests    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ lifespan()  │
    │ shutdown:   │
    │ drain       │
    │ increments, │
    │ close store │
    └─────────────┘

How to Use
===========
**Step 1: Run with uvicorn**::
    uvicorn shortlinks.main:app --host 0.0.0.0 --port 8080

**Step 2: Create a link**::
    curl -X POST http://localhost:8080/api/links \
         -H "Content-Type: application/json" \
         -d '{"url": "https://example.com/docs"}'

**Step 3: Follow it**::
    curl -i http://localhost:8080/<code>

Key Behaviours
===============
- The engine is built eagerly and stored on ``app.state.links``; nothing is
  registered globally.
- Tables are created on startup for the SQL backend.
- Shutdown waits for in-flight access increments before closing the store.
- Prometheus metrics are exposed at /metrics.
"""

__all__ = ["app", "create_app"]

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator

from shortlinks.config import Settings, get_settings
from shortlinks.container import build_link_engine
from shortlinks.logging_config import setup_logging
from shortlinks.routes import router
from shortlinks.stores.base import LinkStore


def create_app(settings: Settings | None = None, store: LinkStore | None = None) -> FastAPI:
    settings = settings or get_settings()
    logger = setup_logging(settings.LOG_LEVEL)
    engine = build_link_engine(settings, store=store)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        # Startup
        await engine.start()
        logger.info(f"{settings.APP_NAME} started ({settings.APP_ENV})")
        yield
        # Shutdown
        await engine.close()
        logger.info(f"{settings.APP_NAME} stopped")

    app = FastAPI(
        title=settings.APP_NAME,
        version="1.0.0",
        description="Short link allocation, resolution and access counting",
        lifespan=lifespan,
    )
    app.state.links = engine

    Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=False,
        should_respect_env_var=False,
    ).instrument(app).expose(app)

    app.include_router(router)
    return app


app = create_app()

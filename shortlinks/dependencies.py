"""FastAPI dependencies: the link engine and a per-request context.

The engine is built once by ``create_app`` and kept on ``app.state.links``;
dependencies read it from there instead of from a process-wide singleton.
Tests swap it with ``app.dependency_overrides[get_link_engine]``.
"""

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Optional

from fastapi import Depends, Request

from shortlinks.config import Settings
from shortlinks.container import LinkEngine
from shortlinks.logging_config import LOGGER_NAME
from shortlinks.service import LinkService

__all__ = ["RequestContext", "get_link_engine", "get_link_service", "get_request_context"]


@dataclass
class RequestContext:
    """Per-request tracking data and a logger that carries it.

    Attributes:
        engine: The application's link engine
        request_id: Unique identifier for this request
        trace_id: Correlation ID from the caller, if any
        user_agent: Client user agent string
        client_ip: Client IP address
        start_time: Request start timestamp
    """

    engine: LinkEngine
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    trace_id: Optional[str] = None
    user_agent: Optional[str] = None
    client_ip: Optional[str] = None
    start_time: float = field(default_factory=lambda: time.time())

    @property
    def settings(self) -> Settings:
        return self.engine.settings

    @property
    def logger(self) -> logging.LoggerAdapter:
        return logging.LoggerAdapter(
            logging.getLogger(f"{LOGGER_NAME}.http"),
            {
                "request_id": self.request_id,
                "trace_id": self.trace_id or self.request_id,
                "client_ip": self.client_ip,
                "user_agent": self.user_agent,
            },
        )

    def get_duration(self) -> float:
        """Get request duration in milliseconds."""
        return (time.time() - self.start_time) * 1000


def get_link_engine(request: Request) -> LinkEngine:
    return request.app.state.links


def get_request_context(
    request: Request,
    engine: LinkEngine = Depends(get_link_engine),
) -> RequestContext:
    return RequestContext(
        engine=engine,
        trace_id=request.headers.get("x-trace-id"),
        user_agent=request.headers.get("user-agent"),
        client_ip=request.client.host if request.client else None,
    )


def get_link_service(engine: LinkEngine = Depends(get_link_engine)) -> LinkService:
    return engine.service

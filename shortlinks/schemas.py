"""Pydantic schemas for request/response validation in the HTTP adapter.

Schema Hierarchy
=================
::
    LinkCreate (Input)
    ├─ url: str
    └─ custom_code: str | None ("" is treated as absent)

    LinkResponse (Output)
    ├─ id: str
    ├─ code: str
    ├─ target: str
    ├─ short_url: str (computed)
    ├─ access_count: int
    ├─ created_at: datetime
    └─ updated_at: datetime

    LinkListResponse (Output)
    ├─ links: list[LinkResponse]
    ├─ total: int
    ├─ page: int
    └─ limit: int

    HealthResponse (Output)
    ├─ status: HealthStatus
    └─ store: HealthStatus

Key Behaviours
===============
- Target and custom code rules are enforced by the engine, not here, so the
  HTTP layer and direct callers see the same verdicts.
- All datetime fields come straight from the store.
"""

import datetime

from pydantic import BaseModel, Field, field_validator

from shortlinks.enums import HealthStatus
from shortlinks.stores.base import LinkRecord

__all__ = ["LinkCreate", "LinkResponse", "LinkListResponse", "HealthResponse"]


class LinkCreate(BaseModel):
    url: str = Field(..., description="Target address, e.g. 'https://example.com/docs'")
    custom_code: str | None = Field(None, description="Optional 3-50 chars of [A-Za-z0-9_-]")

    @field_validator("custom_code", mode="before")
    @classmethod
    def blank_code_is_absent(cls, v: str | None) -> str | None:
        if v == "":
            return None
        return v


class LinkResponse(BaseModel):
    id: str
    code: str
    target: str
    short_url: str
    access_count: int
    created_at: datetime.datetime
    updated_at: datetime.datetime

    @classmethod
    def from_record(cls, record: LinkRecord, base_url: str) -> "LinkResponse":
        return cls(
            id=record.id,
            code=record.code,
            target=record.target,
            short_url=f"{base_url.rstrip('/')}/{record.code}",
            access_count=record.access_count,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class LinkListResponse(BaseModel):
    links: list[LinkResponse]
    total: int
    page: int
    limit: int


class HealthResponse(BaseModel):
    status: HealthStatus
    store: HealthStatus

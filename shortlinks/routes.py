"""FastAPI route definitions: a thin HTTP adapter over LinkService.

API Endpoint Overview
=====================
::
    GET    /health
        └─ HealthResponse (200)

    POST   /api/links
        ├─ LinkCreate (request body)
        └─ LinkResponse (201) or 409 / 422 / 503
        └─ custom codes naming other routes (health, metrics, docs, redoc) get 422

    GET    /api/links?page=1&limit=10
        └─ LinkListResponse (200), limit clamped to [1, LIST_MAX_COUNT]

    GET    /api/links/{code}
        └─ LinkResponse (200) or 404

    DELETE /api/links/{link_id}
        └─ 204 or 404

    GET    /{code}
        └─ 302 Redirect or 404

Error Mapping
=============
::
    RejectedTargetError, RejectedCodeFormatError  ─► 422
    CodeConflictError                             ─► 409
    LinkNotFoundError                             ─► 404
    CodeSpaceExhaustedError                       ─► 503
    StorageUnavailableError                       ─► 503

Key Behaviours
===============
- The redirect responds as soon as the code is resolved; the access count is
  updated in the background by LinkResolver.
- Routes hold no business rules: validation verdicts come from the engine.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from fastapi.responses import RedirectResponse

from shortlinks.dependencies import RequestContext, get_link_service, get_request_context
from shortlinks.enums import HealthStatus
from shortlinks.errors import (
    CodeConflictError,
    CodeSpaceExhaustedError,
    LinkNotFoundError,
    RejectedCodeFormatError,
    RejectedTargetError,
    StorageUnavailableError,
)
from shortlinks.schemas import HealthResponse, LinkCreate, LinkListResponse, LinkResponse
from shortlinks.service import LinkService

__all__ = ["router"]

router = APIRouter()

# Paths served by other routes; a link under one of these could never redirect.
RESERVED_CODES = frozenset({"health", "metrics", "docs", "redoc"})


def _http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, (RejectedTargetError, RejectedCodeFormatError)):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, CodeConflictError):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, LinkNotFoundError):
        return HTTPException(status_code=404, detail="Short link not found")
    if isinstance(exc, (CodeSpaceExhaustedError, StorageUnavailableError)):
        return HTTPException(status_code=503, detail=str(exc))
    return HTTPException(status_code=500, detail="Internal server error")


@router.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check(ctx: RequestContext = Depends(get_request_context)) -> HealthResponse:
    store_status = HealthStatus.HEALTHY
    try:
        await ctx.engine.store.ping()
    except StorageUnavailableError as e:
        ctx.logger.error(f"Store health check failed: {e}")
        store_status = HealthStatus.UNHEALTHY

    return HealthResponse(status=store_status, store=store_status)


@router.post("/api/links", response_model=LinkResponse, status_code=201, tags=["links"])
async def create_link(
    payload: LinkCreate,
    ctx: RequestContext = Depends(get_request_context),
    service: LinkService = Depends(get_link_service),
) -> LinkResponse:
    ctx.logger.info(
        f"Link creation requested: {payload.url}",
        extra={"operation": "create_link", "custom_code": payload.custom_code},
    )
    if payload.custom_code in RESERVED_CODES:
        ctx.logger.warning(f"Reserved custom code refused: {payload.custom_code}")
        raise HTTPException(status_code=422, detail=f"Custom code '{payload.custom_code}' is reserved")

    try:
        link = await service.create_link(payload.url, payload.custom_code)
    except (RejectedTargetError, RejectedCodeFormatError, CodeConflictError, CodeSpaceExhaustedError,
            StorageUnavailableError) as exc:
        ctx.logger.warning(
            f"Link creation failed: {exc}",
            extra={"operation": "create_link", "duration_ms": ctx.get_duration()},
        )
        raise _http_error(exc) from exc

    return LinkResponse.from_record(link, ctx.settings.BASE_URL)


@router.get("/api/links", response_model=LinkListResponse, tags=["links"])
async def list_links(
    page: int = Query(1, ge=1),
    limit: int | None = Query(None),
    ctx: RequestContext = Depends(get_request_context),
    service: LinkService = Depends(get_link_service),
) -> LinkListResponse:
    if limit is None:
        limit = ctx.settings.LIST_DEFAULT_COUNT
    limit = max(1, min(limit, ctx.settings.LIST_MAX_COUNT))
    try:
        result = await service.list_links(offset=(page - 1) * limit, count=limit)
    except StorageUnavailableError as exc:
        raise _http_error(exc) from exc

    return LinkListResponse(
        links=[LinkResponse.from_record(record, ctx.settings.BASE_URL) for record in result.records],
        total=result.total,
        page=page,
        limit=limit,
    )


@router.get("/api/links/{code}", response_model=LinkResponse, tags=["links"])
async def get_link(
    code: str,
    ctx: RequestContext = Depends(get_request_context),
    service: LinkService = Depends(get_link_service),
) -> LinkResponse:
    try:
        link = await service.get_link(code)
    except (LinkNotFoundError, StorageUnavailableError) as exc:
        ctx.logger.warning(f"Link lookup failed for {code}: {exc}")
        raise _http_error(exc) from exc
    return LinkResponse.from_record(link, ctx.settings.BASE_URL)


@router.delete("/api/links/{link_id}", status_code=204, tags=["links"])
async def delete_link(
    link_id: str,
    ctx: RequestContext = Depends(get_request_context),
    service: LinkService = Depends(get_link_service),
) -> Response:
    try:
        await service.delete_link(link_id)
    except (LinkNotFoundError, StorageUnavailableError) as exc:
        ctx.logger.warning(f"Link deletion failed for {link_id}: {exc}")
        raise _http_error(exc) from exc
    return Response(status_code=204)


@router.get("/{code}", tags=["redirect"])
async def redirect_to_target(
    code: str,
    ctx: RequestContext = Depends(get_request_context),
    service: LinkService = Depends(get_link_service),
) -> RedirectResponse:
    try:
        target = await service.resolve_link(code)
    except (LinkNotFoundError, StorageUnavailableError) as exc:
        ctx.logger.warning(
            f"Redirect failed for {code}: {exc}",
            extra={"operation": "redirect", "short_code": code, "duration_ms": ctx.get_duration()},
        )
        raise _http_error(exc) from exc

    ctx.logger.info(
        f"Redirect: {code} -> {target}",
        extra={"operation": "redirect", "short_code": code, "duration_ms": ctx.get_duration()},
    )
    return RedirectResponse(url=target, status_code=302)

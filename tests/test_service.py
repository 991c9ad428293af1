"""LinkService tests through a fully wired engine."""

import pytest

from shortlinks.container import LinkEngine
from shortlinks.errors import LinkNotFoundError


@pytest.mark.asyncio
async def test_create_then_resolve(link_engine: LinkEngine) -> None:
    service = link_engine.service
    link = await service.create_link("https://example.com/docs")

    assert await service.resolve_link(link.code) == "https://example.com/docs"

    await service.resolver.drain()
    assert (await service.get_link(link.code)).access_count == 1


@pytest.mark.asyncio
async def test_get_link_does_not_count_access(link_engine: LinkEngine) -> None:
    service = link_engine.service
    link = await service.create_link("https://example.com", custom_code="info")

    fetched = await service.get_link("info")
    await service.resolver.drain()

    assert fetched.id == link.id
    assert (await service.get_link("info")).access_count == 0


@pytest.mark.asyncio
async def test_get_unknown_code_raises(link_engine: LinkEngine) -> None:
    with pytest.raises(LinkNotFoundError):
        await link_engine.service.get_link("nothing")


@pytest.mark.asyncio
async def test_delete_unknown_id_raises(link_engine: LinkEngine) -> None:
    with pytest.raises(LinkNotFoundError):
        await link_engine.service.delete_link("00000000-0000-0000-0000-000000000000")


@pytest.mark.asyncio
async def test_deleted_code_stops_resolving_and_can_be_reused(link_engine: LinkEngine) -> None:
    service = link_engine.service
    link = await service.create_link("https://example.com/old", custom_code="reuse")

    await service.delete_link(link.id)

    with pytest.raises(LinkNotFoundError):
        await service.resolve_link("reuse")

    fresh = await service.create_link("https://example.com/new", custom_code="reuse")
    assert fresh.id != link.id
    assert await service.resolve_link("reuse") == "https://example.com/new"


@pytest.mark.asyncio
async def test_list_links_pages_in_creation_order(link_engine: LinkEngine) -> None:
    service = link_engine.service
    created = [await service.create_link(f"https://example.com/{i}") for i in range(5)]

    page = await service.list_links(offset=3, count=3)

    assert page.total == 5
    assert [r.id for r in page.records] == [c.id for c in created[3:]]


@pytest.mark.asyncio
@pytest.mark.parametrize("offset, count", [(-1, 10), (0, 0), (0, 101)])
async def test_list_links_rejects_out_of_range_arguments(link_engine: LinkEngine, offset: int, count: int) -> None:
    with pytest.raises(ValueError):
        await link_engine.service.list_links(offset=offset, count=count)

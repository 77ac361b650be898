"""Tests for per-title availability lookups."""

from __future__ import annotations

from typing import Any

import httpx
import pytest

from app.categories import MOVIE, SERIES
from app.config import Settings
from app.errors import UpstreamError
from app.services.availability import AvailabilityResolver
from app.services.tmdb import TMDBClient

API_URL = "https://api.themoviedb.org/3"

FR_PAYLOAD = {
    "id": 603,
    "results": {
        "FR": {
            "link": "https://www.themoviedb.org/movie/603/watch?locale=FR",
            "flatrate": [
                {"provider_id": 1796, "provider_name": "Netflix basic with Ads",
                 "logo_path": "/ads.jpg"},
            ],
            "rent": [{"provider_id": 2, "provider_name": "Apple TV"}],
        },
        "US": {"flatrate": [{"provider_id": 8, "provider_name": "Netflix"}]},
    },
}


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def build_settings(**overrides: Any) -> Settings:
    base = {"TMDB_BEARER_TOKEN": "test-token", "WATCH_REGION": "FR"}
    base.update(overrides)
    return Settings(_env_file=None, **base)  # type: ignore[arg-type]


@pytest.mark.anyio("asyncio")
async def test_region_offers_keep_raw_provider_names() -> None:
    """Offers should be listed under their raw TMDB names."""

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/3/movie/603/watch/providers"
        return httpx.Response(200, json=FR_PAYLOAD)

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url=API_URL) as http_client:
        resolver = AvailabilityResolver(TMDBClient(build_settings(), http_client), ttl_seconds=60)
        availability = await resolver.get_availability(MOVIE, 603)

    assert availability.to_payload("FR") == {
        "region": "FR",
        "link": "https://www.themoviedb.org/movie/603/watch?locale=FR",
        "flatrate": [
            {"name": "Netflix basic with Ads", "logo": "https://image.tmdb.org/t/p/w45/ads.jpg"}
        ],
        "buy": [],
        "rent": [{"name": "Apple TV", "logo": None}],
    }


@pytest.mark.anyio("asyncio")
async def test_missing_region_yields_empty_offers() -> None:
    """Titles not offered in the region should yield empty lists."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"id": 603, "results": {"US": FR_PAYLOAD["results"]["US"]}})

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url=API_URL) as http_client:
        resolver = AvailabilityResolver(TMDBClient(build_settings(), http_client), ttl_seconds=60)
        availability = await resolver.get_availability(MOVIE, 603)

    assert availability.to_payload("FR") == {
        "region": "FR",
        "link": None,
        "flatrate": [],
        "buy": [],
        "rent": [],
    }


@pytest.mark.anyio("asyncio")
async def test_lookups_are_cached_per_category_and_id() -> None:
    """Lookups should be cached per category and id until the TTL expires."""

    requests: list[httpx.Request] = []
    clock = FakeClock()

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json=FR_PAYLOAD)

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url=API_URL) as http_client:
        resolver = AvailabilityResolver(
            TMDBClient(build_settings(), http_client), ttl_seconds=60, clock=clock
        )
        await resolver.get_availability(MOVIE, 603)
        await resolver.get_availability(MOVIE, 603)
        await resolver.get_availability(SERIES, 603)
        assert len(requests) == 2

        clock.now += 60
        await resolver.get_availability(MOVIE, 603)

    assert len(requests) == 3
    assert requests[1].url.path == "/3/tv/603/watch/providers"


@pytest.mark.anyio("asyncio")
async def test_cache_evicts_oldest_entries() -> None:
    """The availability cache should evict its oldest entries first."""

    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json=FR_PAYLOAD)

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url=API_URL) as http_client:
        resolver = AvailabilityResolver(
            TMDBClient(build_settings(), http_client), ttl_seconds=60, max_entries=1
        )
        await resolver.get_availability(MOVIE, 1)
        await resolver.get_availability(MOVIE, 2)
        await resolver.get_availability(MOVIE, 1)

    assert len(requests) == 3


@pytest.mark.anyio("asyncio")
async def test_failures_propagate_and_are_not_cached() -> None:
    """Failed lookups should raise and leave nothing cached."""

    answers = [httpx.Response(500, text="boom"), httpx.Response(200, json=FR_PAYLOAD)]

    def handler(request: httpx.Request) -> httpx.Response:
        return answers.pop(0)

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url=API_URL) as http_client:
        resolver = AvailabilityResolver(TMDBClient(build_settings(), http_client), ttl_seconds=60)
        with pytest.raises(UpstreamError):
            await resolver.get_availability(MOVIE, 603)
        availability = await resolver.get_availability(MOVIE, 603)

    assert [offer.name for offer in availability.flatrate] == ["Netflix basic with Ads"]

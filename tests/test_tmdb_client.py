"""Tests for the TMDB API client."""

from __future__ import annotations

from typing import Any

import httpx
import pytest

from app.categories import MOVIE, SERIES
from app.config import Settings
from app.errors import ConfigurationError, TransportError, UpstreamError
from app.services.tmdb import TMDBClient

API_URL = "https://api.themoviedb.org/3"


def build_settings(**overrides: Any) -> Settings:
    """Return a settings object with defaults suitable for tests."""

    base = {
        "TMDB_BEARER_TOKEN": "test-token",
        "WATCH_REGION": "FR",
        "TMDB_LANGUAGE": "fr-FR",
    }
    base.update(overrides)
    return Settings(_env_file=None, **base)  # type: ignore[arg-type]


@pytest.mark.anyio("asyncio")
async def test_requests_carry_bearer_and_locale_defaults() -> None:
    """Requests should carry the bearer token and locale defaults."""

    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"page": 1, "results": []})

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url=API_URL) as http_client:
        client = TMDBClient(build_settings(), http_client)
        await client.discover(MOVIE, {"sort_by": "popularity.desc", "with_genres": None, "page": 2})

    assert len(requests) == 1
    request = requests[0]
    assert request.url.path == "/3/discover/movie"
    assert request.headers["Authorization"] == "Bearer test-token"
    params = request.url.params
    assert params["language"] == "fr-FR"
    assert params["watch_region"] == "FR"
    assert params["sort_by"] == "popularity.desc"
    assert params["page"] == "2"
    assert "with_genres" not in params


@pytest.mark.anyio("asyncio")
async def test_caller_parameters_override_defaults() -> None:
    """Caller supplied locale parameters should win over defaults."""

    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"results": []})

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url=API_URL) as http_client:
        client = TMDBClient(build_settings(), http_client)
        await client.fetch_catalog("/discover/tv", {"language": "en-US", "watch_region": "BE"})

    params = requests[0].url.params
    assert params["language"] == "en-US"
    assert params["watch_region"] == "BE"


@pytest.mark.anyio("asyncio")
async def test_non_success_status_raises_upstream_error() -> None:
    """Non-2xx answers should raise UpstreamError with status and body."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"status_message": "Invalid API key"})

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url=API_URL) as http_client:
        client = TMDBClient(build_settings(), http_client)
        with pytest.raises(UpstreamError) as excinfo:
            await client.discover(MOVIE, {})

    assert excinfo.value.status == 401
    assert "Invalid API key" in excinfo.value.body
    assert excinfo.value.is_transient is False


@pytest.mark.anyio("asyncio")
async def test_server_errors_are_transient() -> None:
    """Server errors should be flagged as transient."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="unavailable")

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url=API_URL) as http_client:
        client = TMDBClient(build_settings(), http_client)
        with pytest.raises(UpstreamError) as excinfo:
            await client.genres(MOVIE)

    assert excinfo.value.is_transient is True


@pytest.mark.anyio("asyncio")
async def test_network_failure_raises_transport_error() -> None:
    """Network failures should raise TransportError."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url=API_URL) as http_client:
        client = TMDBClient(build_settings(), http_client)
        with pytest.raises(TransportError):
            await client.discover(SERIES, {})


@pytest.mark.anyio("asyncio")
async def test_missing_token_fails_without_calling_tmdb() -> None:
    """A missing token should fail before any request is sent."""

    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={})

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url=API_URL) as http_client:
        client = TMDBClient(build_settings(TMDB_BEARER_TOKEN=None), http_client)
        assert client.token_present is False
        with pytest.raises(ConfigurationError):
            await client.watch_providers(MOVIE)

    assert requests == []


@pytest.mark.anyio("asyncio")
async def test_watch_providers_are_parsed_into_platforms() -> None:
    """Provider rows should become platforms with canonical names and logos."""

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/3/watch/providers/tv"
        return httpx.Response(
            200,
            json={
                "results": [
                    {"provider_id": 8, "provider_name": "Netflix", "logo_path": "/n.jpg"},
                    {"provider_id": 1796, "provider_name": "Netflix basic with Ads"},
                    {"provider_name": "Broken entry"},
                ]
            },
        )

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url=API_URL) as http_client:
        client = TMDBClient(build_settings(), http_client)
        platforms = await client.watch_providers(SERIES)

    assert [(p.id, p.name, p.canonical_name) for p in platforms] == [
        (8, "Netflix", "Netflix"),
        (1796, "Netflix basic with Ads", "Netflix"),
    ]
    assert platforms[0].logo == "https://image.tmdb.org/t/p/w45/n.jpg"
    assert platforms[1].logo is None
    assert all(p.category is SERIES for p in platforms)


@pytest.mark.anyio("asyncio")
async def test_genres_are_reduced_to_id_and_name() -> None:
    """Genre entries should be reduced to id and name."""

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/3/genre/movie/list"
        return httpx.Response(
            200, json={"genres": [{"id": 28, "name": "Action"}, {"name": "no id"}]}
        )

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url=API_URL) as http_client:
        client = TMDBClient(build_settings(), http_client)
        genres = await client.genres(MOVIE)

    assert genres == [{"id": 28, "name": "Action"}]


@pytest.mark.anyio("asyncio")
async def test_malformed_provider_rows_are_skipped() -> None:
    """Rows TMDB sends with unusable identifiers should not break the list."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "results": [
                    {"provider_id": "n/a", "provider_name": "Broken"},
                    {"provider_id": 337, "provider_name": "Disney Plus", "logo_path": 42},
                    {"provider_id": 8, "provider_name": "Netflix"},
                ]
            },
        )

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url=API_URL) as http_client:
        client = TMDBClient(build_settings(), http_client)
        platforms = await client.watch_providers(MOVIE)

    assert [p.id for p in platforms] == [8]

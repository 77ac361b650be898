"""Entry point for the FastAPI-powered streaming discovery gateway."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, TypeVar

import httpx
from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .categories import CATEGORIES, MOVIE, parse_category
from .config import Settings, settings
from .errors import ConfigurationError, TMDBError
from .filters import FilterTranslator
from .models import FilterRequest
from .provider_names import canonical_key
from .services.availability import AvailabilityResolver
from .services.provider_catalog import ProviderCatalogCache
from .services.search import DiscoveryService
from .services.tmdb import TMDBClient
from .utils import provider_cname

logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)

app: FastAPI

_T = TypeVar("_T")


def install_services(
    fastapi_app: FastAPI, app_settings: Settings, http_client: httpx.AsyncClient
) -> None:
    """Build the service graph around ``http_client`` and attach it to the app."""

    client = TMDBClient(app_settings, http_client)
    provider_cache = ProviderCatalogCache(
        client,
        ttl_seconds=app_settings.provider_cache_seconds,
        failure_ttl_seconds=app_settings.provider_cache_failure_seconds,
    )
    discovery = DiscoveryService(
        client,
        provider_cache,
        FilterTranslator.from_settings(app_settings),
        retry_limit=app_settings.tmdb_retry_limit,
    )
    availability = AvailabilityResolver(
        client,
        ttl_seconds=app_settings.availability_cache_seconds,
        max_entries=app_settings.availability_cache_size,
    )

    fastapi_app.state.settings = app_settings
    fastapi_app.state.tmdb_client = client
    fastapi_app.state.provider_cache = provider_cache
    fastapi_app.state.discovery_service = discovery
    fastapi_app.state.availability_resolver = availability


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    if not settings.token_present:
        logger.warning("TMDB_BEARER_TOKEN is missing; TMDB endpoints will fail")
    async with httpx.AsyncClient(
        base_url=str(settings.tmdb_api_url),
        timeout=httpx.Timeout(settings.tmdb_timeout_seconds, connect=5.0),
    ) as http_client:
        install_services(fastapi_app, settings, http_client)
        yield


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title=settings.app_name,
        description="Streaming availability and discovery gateway for TMDB",
        version="1.0.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    register_routes(fastapi_app)
    return fastapi_app


def _get_state(fastapi_app: FastAPI, name: str, expected: type[_T]) -> _T:
    value = getattr(fastapi_app.state, name, None)
    if not isinstance(value, expected):
        raise RuntimeError(f"{name} not initialised")
    return value


def get_settings_state(fastapi_app: FastAPI) -> Settings:
    value = getattr(fastapi_app.state, "settings", None)
    return value if isinstance(value, Settings) else settings


def get_tmdb_client(fastapi_app: FastAPI) -> TMDBClient:
    return _get_state(fastapi_app, "tmdb_client", TMDBClient)


def get_provider_cache(fastapi_app: FastAPI) -> ProviderCatalogCache:
    return _get_state(fastapi_app, "provider_cache", ProviderCatalogCache)


def get_discovery_service(fastapi_app: FastAPI) -> DiscoveryService:
    return _get_state(fastapi_app, "discovery_service", DiscoveryService)


def get_availability_resolver(fastapi_app: FastAPI) -> AvailabilityResolver:
    return _get_state(fastapi_app, "availability_resolver", AvailabilityResolver)


def _error(code: str, message: str | None = None, *, status_code: int = 500) -> JSONResponse:
    payload: dict[str, Any] = {"error": code}
    if message:
        payload["message"] = message
    return JSONResponse(payload, status_code=status_code)


def register_routes(fastapi_app: FastAPI) -> None:
    @fastapi_app.get("/api/health")
    async def health() -> dict[str, Any]:
        app_settings = get_settings_state(fastapi_app)
        return {
            "ok": True,
            "region": app_settings.watch_region,
            "lang": app_settings.language,
            "token_present": app_settings.token_present,
        }

    @fastapi_app.get("/api/providers-list", response_model=None)
    async def providers_list() -> dict[str, Any] | JSONResponse:
        app_settings = get_settings_state(fastapi_app)
        snapshot = await get_provider_cache(fastapi_app).snapshot()
        # Without a token the list degrades to empty instead of failing.
        if get_tmdb_client(fastapi_app).token_present and len(snapshot.failed) == len(
            CATEGORIES
        ):
            logger.warning("Provider list unavailable for %s", app_settings.watch_region)
            return _error("providers_list_failed", "TMDB provider lists are unavailable")

        catalog = snapshot.for_category(None)
        favorites = {canonical_key(name) for name in app_settings.favorite_providers}
        providers = [
            {**entry.to_payload(), "favorite": entry.name.casefold() in favorites}
            for entry in catalog.sorted_entries()
        ]
        return {"region": app_settings.watch_region, "providers": providers}

    @fastapi_app.get("/api/providers", response_model=None)
    async def providers() -> dict[str, Any] | JSONResponse:
        app_settings = get_settings_state(fastapi_app)
        client = get_tmdb_client(fastapi_app)
        if not client.token_present:
            return _error("missing_token", "TMDB_BEARER_TOKEN is not configured")

        snapshot = await get_provider_cache(fastapi_app).snapshot()
        if len(snapshot.failed) == len(CATEGORIES):
            return _error("providers_failed", "TMDB provider lists are unavailable")

        seen: dict[int, dict[str, Any]] = {}
        for platform in snapshot.platforms:
            if platform.id in seen:
                continue
            seen[platform.id] = {
                "id": platform.id,
                "name": platform.name,
                "logo": platform.logo,
                "cname": provider_cname(platform.name),
            }
        flat = sorted(seen.values(), key=lambda entry: str(entry["name"]).casefold())
        return {"region": app_settings.watch_region, "providers": flat}

    @fastapi_app.get("/api/genres", response_model=None)
    async def genres(
        content_type: str | None = Query(default=None, alias="type"),
    ) -> dict[str, Any] | JSONResponse:
        try:
            category = parse_category(content_type) or MOVIE
        except ValueError:
            category = MOVIE
        client = get_tmdb_client(fastapi_app)
        try:
            genre_list = await client.genres(category)
        except ConfigurationError as exc:
            return _error("missing_token", str(exc))
        except TMDBError as exc:
            logger.exception("Genre list for %s failed", category.key)
            return _error("genres_failed", str(exc))
        return {"type": category.key, "genres": genre_list}

    @fastapi_app.get("/api/search", response_model=None)
    async def search(request: Request) -> dict[str, Any] | JSONResponse:
        app_settings = get_settings_state(fastapi_app)
        service = get_discovery_service(fastapi_app)
        try:
            filters = FilterRequest.from_query(request.query_params)
        except ValidationError as exc:
            return _error("invalid_request", _describe_validation_error(exc), status_code=400)

        try:
            result = await service.search(filters)
        except ConfigurationError as exc:
            return _error("missing_token", str(exc))
        except TMDBError as exc:
            logger.exception("Search failed for %s", filters.category)
            return _error("search_failed", str(exc))
        return result.to_payload(app_settings.watch_region, filters.category)

    @fastapi_app.get("/api/providers/{content_type}/{title_id}", response_model=None)
    async def title_providers(content_type: str, title_id: str) -> dict[str, Any] | JSONResponse:
        app_settings = get_settings_state(fastapi_app)
        try:
            category = parse_category(content_type)
        except ValueError:
            category = None
        if category is None:
            return _error(
                "invalid_request", "type must be 'movie' or 'tv'", status_code=400
            )
        if not (title_id.isascii() and title_id.isdigit()) or int(title_id) <= 0:
            return _error(
                "invalid_request", "id must be a positive integer", status_code=400
            )

        resolver = get_availability_resolver(fastapi_app)
        try:
            availability = await resolver.get_availability(category, int(title_id))
        except ConfigurationError as exc:
            return _error("missing_token", str(exc))
        except TMDBError as exc:
            logger.exception("Availability lookup failed for %s/%s", category.key, title_id)
            return _error("providers_failed", str(exc))
        return availability.to_payload(app_settings.watch_region)


def _describe_validation_error(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(parts)


app = create_app()


if __name__ == "__main__":  # pragma: no cover - manual execution
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.environment == "development",
    )

"""Thin client for The Movie Database (TMDB) v3 API."""

from __future__ import annotations

import logging
from typing import Any, Mapping

import httpx

from ..categories import MediaCategory
from ..config import Settings
from ..errors import ConfigurationError, TransportError, UpstreamError
from ..models import Platform
from ..utils import build_image_url

logger = logging.getLogger(__name__)

LOGO_SIZE = "w45"


class TMDBClient:
    """Issues authenticated TMDB requests with region and locale defaults.

    Every call raises :class:`UpstreamError` for non-2xx answers,
    :class:`TransportError` when TMDB cannot be reached and
    :class:`ConfigurationError` when no bearer token is configured. Retrying
    is left to callers.
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self._settings = settings
        self._client = http_client

    @property
    def token_present(self) -> bool:
        return self._settings.token_present

    @property
    def region(self) -> str:
        return self._settings.watch_region

    @property
    def language(self) -> str:
        return self._settings.language

    @property
    def image_base_url(self) -> str:
        return str(self._settings.tmdb_image_base_url)

    def _headers(self) -> dict[str, str]:
        token = self._settings.tmdb_bearer_token
        if not token:
            raise ConfigurationError("TMDB_BEARER_TOKEN is not configured")
        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json;charset=utf-8",
        }

    def _build_params(self, params: Mapping[str, Any] | None) -> dict[str, str]:
        cleaned: dict[str, str] = {}
        for key, value in (params or {}).items():
            if value is None or value == "":
                continue
            if isinstance(value, bool):
                cleaned[key] = "true" if value else "false"
            else:
                cleaned[key] = str(value)
        cleaned.setdefault("language", self.language)
        cleaned.setdefault("watch_region", self.region)
        return cleaned

    async def fetch_catalog(
        self, path: str, params: Mapping[str, Any] | None = None
    ) -> Any:
        """GET ``path`` and return the decoded JSON body."""

        headers = self._headers()
        query = self._build_params(params)
        try:
            response = await self._client.get(path, params=query, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("TMDB request to %s failed: %s", path, exc.__class__.__name__)
            raise TransportError(f"TMDB unreachable: {exc.__class__.__name__}") from exc

        if not response.is_success:
            logger.warning(
                "TMDB request to %s returned %s: %s",
                path,
                response.status_code,
                response.text[:200],
            )
            raise UpstreamError(response.status_code, response.text)

        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError(response.status_code, response.text) from exc

    async def watch_providers(self, category: MediaCategory) -> list[Platform]:
        """Return the region's provider list for ``category``.

        Rows whose identifier or name cannot be parsed are skipped.
        """

        data = await self.fetch_catalog(
            category.providers_path,
            {"watch_region": self.region, "language": self.language},
        )
        platforms: list[Platform] = []
        for entry in _results(data):
            if entry.get("provider_id") is None:
                continue
            try:
                logo = build_image_url(
                    self.image_base_url, LOGO_SIZE, entry.get("logo_path")
                )
                platforms.append(Platform.from_tmdb(entry, category, logo=logo))
            except (TypeError, ValueError, AttributeError):
                logger.warning(
                    "Skipping malformed %s provider row: %r", category.key, entry
                )
        return platforms

    async def genres(self, category: MediaCategory) -> list[dict[str, Any]]:
        """Return TMDB's localized genre list for ``category``."""

        data = await self.fetch_catalog(category.genres_path, {"language": self.language})
        genres = data.get("genres") if isinstance(data, dict) else None
        if not isinstance(genres, list):
            return []
        return [
            {"id": genre["id"], "name": genre.get("name")}
            for genre in genres
            if isinstance(genre, dict) and "id" in genre
        ]

    async def discover(
        self, category: MediaCategory, params: Mapping[str, Any]
    ) -> dict[str, Any]:
        """Run a discover query and return the raw page payload."""

        data = await self.fetch_catalog(category.discover_path, params)
        if not isinstance(data, dict):
            return {}
        return data

    async def title_providers(
        self, category: MediaCategory, title_id: int
    ) -> dict[str, Any]:
        """Return the per-region watch provider map for one title."""

        data = await self.fetch_catalog(category.title_providers_path(title_id))
        if not isinstance(data, dict):
            return {}
        return data


def _results(data: Any) -> list[dict[str, Any]]:
    if not isinstance(data, dict):
        return []
    results = data.get("results")
    if not isinstance(results, list):
        return []
    return [entry for entry in results if isinstance(entry, dict)]

"""Discovery orchestration: catalogs, translation, TMDB calls and merging."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from ..categories import MediaCategory
from ..errors import TMDBError, UnresolvableFilterError
from ..filters import FilterTranslator
from ..models import (
    EMPTY_CATALOG,
    DiscoveryQuery,
    FilterRequest,
    SearchResult,
    TitleSummary,
)
from .provider_catalog import ProviderCatalogCache
from .tmdb import TMDBClient

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CategoryPage:
    """Discover results for a single category."""

    query: DiscoveryQuery
    items: list[TitleSummary]
    page: int
    total_pages: int
    total_results: int
    degraded: bool = False


class DiscoveryService:
    """Coordinates provider resolution, filter translation and discover calls.

    This is the only layer that decides between degrading a filter and
    failing a request. Unresolvable platform filters are dropped; TMDB
    failures that survive the retry budget fail the whole search.
    """

    def __init__(
        self,
        client: TMDBClient,
        provider_cache: ProviderCatalogCache,
        translator: FilterTranslator,
        *,
        retry_limit: int = 1,
        retry_backoff_seconds: float = 0.25,
    ):
        self._client = client
        self._providers = provider_cache
        self._translator = translator
        self._retry_limit = retry_limit
        self._retry_backoff = retry_backoff_seconds

    async def search(self, request: FilterRequest) -> SearchResult:
        """Return one merged page of discover results for ``request``."""

        categories = request.media_categories
        pages = await asyncio.gather(
            *(self._search_category(request, category) for category in categories)
        )

        items: list[TitleSummary] = []
        for page in pages:
            items.extend(page.items)
        if len(pages) > 1:
            # sorted() is stable, so equal ratings keep movie-then-series order.
            items = sorted(
                items,
                key=lambda item: item.rating if item.rating is not None else float("-inf"),
                reverse=True,
            )

        degraded = ("providers",) if any(page.degraded for page in pages) else ()
        return SearchResult(
            items=items,
            page=max((page.page for page in pages), default=request.page),
            total_pages=max((page.total_pages for page in pages), default=0),
            total_results=sum(page.total_results for page in pages),
            queries=[page.query for page in pages],
            degraded=degraded,
        )

    async def _search_category(
        self, request: FilterRequest, category: MediaCategory
    ) -> CategoryPage:
        degraded = False
        catalog = EMPTY_CATALOG
        if request.providers:
            catalog = await self._providers.get_catalog(category)

        try:
            query = self._translator.translate(request, catalog, category)
        except UnresolvableFilterError as exc:
            logger.info(
                "Ignoring %s platform filter, no known platform among: %s",
                category.key,
                ", ".join(exc.names),
            )
            query = self._translator.translate(
                request, EMPTY_CATALOG, category, ignore_providers=True
            )
            query.dropped["providers"] = list(exc.names)
            degraded = True

        data = await self._discover(query)
        results = data.get("results") or []
        items = [
            TitleSummary.from_tmdb(entry, category, image_base_url=self._client.image_base_url)
            for entry in results
            if isinstance(entry, dict) and entry.get("id") is not None
        ]
        return CategoryPage(
            query=query,
            items=items,
            page=_as_int(data.get("page"), request.page),
            total_pages=_as_int(data.get("total_pages"), 0),
            total_results=_as_int(data.get("total_results"), len(items)),
            degraded=degraded,
        )

    async def _discover(self, query: DiscoveryQuery) -> dict[str, Any]:
        attempt = 0
        while True:
            try:
                return await self._client.discover(query.category, query.params)
            except TMDBError as exc:
                attempt += 1
                if not getattr(exc, "is_transient", False) or attempt > self._retry_limit:
                    raise
                backoff = self._retry_backoff * attempt
                logger.info(
                    "Transient TMDB error during %s discover (%s). Retrying in %.2fs",
                    query.category.key,
                    exc,
                    backoff,
                )
                await asyncio.sleep(backoff)


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default

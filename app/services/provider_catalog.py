"""Time-bounded cache of the region's watch provider catalogs."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable

from ..categories import CATEGORIES, MediaCategory
from ..errors import ConfigurationError, TMDBError
from ..models import Platform, ProviderCatalog, ProviderCatalogSnapshot
from .tmdb import TMDBClient

logger = logging.getLogger(__name__)


class ProviderCatalogCache:
    """Read-through cache holding one snapshot of the provider catalogs.

    A snapshot is built from one provider fetch per category, issued
    concurrently, and replaces the previous one in a single assignment so
    readers always see a complete generation. Refresh failures never
    propagate: the failed category is served as an empty catalog and the
    snapshot expires after the shorter failure TTL.
    """

    def __init__(
        self,
        client: TMDBClient,
        *,
        ttl_seconds: float,
        failure_ttl_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._client = client
        self._ttl = ttl_seconds
        self._failure_ttl = failure_ttl_seconds
        self._clock = clock
        self._snapshot: ProviderCatalogSnapshot | None = None
        self._refresh_lock = asyncio.Lock()

    @property
    def current(self) -> ProviderCatalogSnapshot | None:
        """Return the snapshot currently held, without refreshing."""

        return self._snapshot

    async def get_catalog(self, category: MediaCategory | None = None) -> ProviderCatalog:
        """Return the catalog for ``category`` or the combined view for ``None``."""

        snapshot = await self.snapshot()
        return snapshot.for_category(category)

    async def snapshot(self) -> ProviderCatalogSnapshot:
        """Return a fresh snapshot, refreshing synchronously when expired."""

        snapshot = self._snapshot
        if snapshot is not None and not snapshot.is_expired(self._clock()):
            return snapshot
        async with self._refresh_lock:
            # Another reader may have refreshed while we waited.
            snapshot = self._snapshot
            if snapshot is None or snapshot.is_expired(self._clock()):
                snapshot = await self.refresh()
        return snapshot

    async def refresh(self) -> ProviderCatalogSnapshot:
        """Fetch every category and swap in a new snapshot."""

        results = await asyncio.gather(
            *(self._fetch_category(category) for category in CATEGORIES)
        )

        catalogs: dict[str, ProviderCatalog] = {}
        platforms: list[Platform] = []
        failed: set[str] = set()
        for category, fetched in zip(CATEGORIES, results):
            if fetched is None:
                failed.add(category.key)
                fetched = []
            catalogs[category.key] = ProviderCatalog.aggregate(fetched)
            platforms.extend(fetched)

        ttl = self._failure_ttl if failed else self._ttl
        snapshot = ProviderCatalogSnapshot(
            catalogs=catalogs,
            combined=ProviderCatalog.aggregate(platforms),
            platforms=tuple(platforms),
            failed=frozenset(failed),
            expires_at=self._clock() + ttl,
        )
        self._snapshot = snapshot
        logger.info(
            "Provider catalog refreshed: %s",
            ", ".join(f"{key}={len(catalog)}" for key, catalog in catalogs.items()),
        )
        return snapshot

    def invalidate(self) -> None:
        """Drop the current snapshot so the next read refreshes."""

        self._snapshot = None

    async def _fetch_category(self, category: MediaCategory) -> list[Platform] | None:
        try:
            return await self._client.watch_providers(category)
        except ConfigurationError as exc:
            logger.warning("Skipping %s provider catalog: %s", category.key, exc)
        except TMDBError as exc:
            logger.warning("Failed to refresh %s provider catalog: %s", category.key, exc)
        return None

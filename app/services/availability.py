"""Per-title streaming availability for the configured region."""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from typing import Any, Callable, Iterable

from ..categories import MediaCategory
from ..models import Availability, AvailabilityOffer
from ..utils import build_image_url
from .tmdb import LOGO_SIZE, TMDBClient

logger = logging.getLogger(__name__)


class AvailabilityResolver:
    """Resolves flatrate, buy and rent offers for single titles.

    Successful lookups are cached in-process per ``(category, id)``; failures
    propagate to the caller and are not cached.
    """

    def __init__(
        self,
        client: TMDBClient,
        *,
        ttl_seconds: float,
        max_entries: int = 2_048,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._client = client
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._cache: OrderedDict[tuple[str, int], tuple[float, Availability]] = OrderedDict()

    async def get_availability(self, category: MediaCategory, title_id: int) -> Availability:
        key = (category.key, title_id)
        cached = self._cache.get(key)
        if cached is not None:
            expires_at, availability = cached
            if self._clock() < expires_at:
                return availability
            self._cache.pop(key, None)

        payload = await self._client.title_providers(category, title_id)
        availability = self._extract(payload)
        self._store(key, availability)
        return availability

    def _extract(self, payload: dict[str, Any]) -> Availability:
        results = payload.get("results")
        region_data = results.get(self._client.region) if isinstance(results, dict) else None
        if not isinstance(region_data, dict):
            logger.debug("No %s availability entry in TMDB payload", self._client.region)
            return Availability()

        link = region_data.get("link")
        return Availability(
            flatrate=self._offers(region_data.get("flatrate")),
            buy=self._offers(region_data.get("buy")),
            rent=self._offers(region_data.get("rent")),
            link=link if isinstance(link, str) and link else None,
        )

    def _offers(self, entries: Iterable[Any] | None) -> tuple[AvailabilityOffer, ...]:
        if not isinstance(entries, list):
            return ()
        base_url = self._client.image_base_url
        return tuple(
            AvailabilityOffer(
                name=str(entry.get("provider_name") or ""),
                logo=build_image_url(base_url, LOGO_SIZE, entry.get("logo_path")),
            )
            for entry in entries
            if isinstance(entry, dict)
        )

    def _store(self, key: tuple[str, int], availability: Availability) -> None:
        if self._ttl <= 0:
            return
        self._cache[key] = (self._clock() + self._ttl, availability)
        self._cache.move_to_end(key)
        while len(self._cache) > self._max_entries:
            self._cache.popitem(last=False)

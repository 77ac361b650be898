"""Translation of public search filters into TMDB discover parameters."""

from __future__ import annotations

from typing import Any, Mapping

from .categories import CATEGORIES, MediaCategory, RuntimeThresholds
from .config import Settings
from .errors import UnresolvableFilterError
from .genres import find_genre, find_mood
from .models import DiscoveryQuery, FilterRequest, ProviderCatalog

DURATION_BUCKETS: Mapping[str, str] = {
    "court": "short",
    "courte": "short",
    "short": "short",
    "moyen": "medium",
    "moyenne": "medium",
    "medium": "medium",
    "long": "long",
    "longue": "long",
}


def _sort_key(sort: str, category: MediaCategory) -> str:
    if sort == "rating":
        return "vote_average.desc"
    if sort == "recent":
        return f"{category.date_filter_field}.desc"
    return "popularity.desc"


class FilterTranslator:
    """Builds per-category :class:`DiscoveryQuery` objects.

    Translation is pure: unknown genre labels, moods, durations and platform
    names are dropped and reported on the query instead of failing it. The
    one exception is a platform filter where no name resolves at all, which
    raises :class:`UnresolvableFilterError` so the caller can decide to
    search without it.
    """

    def __init__(
        self,
        *,
        region: str,
        language: str,
        runtime_thresholds: Mapping[str, RuntimeThresholds] | None = None,
    ):
        self._region = region
        self._language = language
        thresholds = {category.key: category.runtime for category in CATEGORIES}
        thresholds.update(runtime_thresholds or {})
        self._runtime_thresholds = thresholds

    @classmethod
    def from_settings(cls, settings: Settings) -> "FilterTranslator":
        return cls(
            region=settings.watch_region,
            language=settings.language,
            runtime_thresholds={
                category.key: settings.runtime_thresholds(category)
                for category in CATEGORIES
            },
        )

    def translate(
        self,
        request: FilterRequest,
        catalog: ProviderCatalog,
        category: MediaCategory,
        *,
        ignore_providers: bool = False,
    ) -> DiscoveryQuery:
        """Return the discover query for ``request`` within ``category``.

        ``catalog`` must be the provider catalog of ``category``: the same
        platform can carry a different identifier in each category.
        """

        params: dict[str, Any] = {
            "language": self._language,
            "watch_region": self._region,
            "sort_by": _sort_key(request.sort, category),
            "include_adult": "false",
            "page": request.page,
        }
        dropped: dict[str, list[str]] = {}

        genre_ids, unknown_genres = self.genre_ids(request, category)
        if genre_ids:
            # Mood genres are suggestions, so any matching genre qualifies.
            params["with_genres"] = "|".join(str(genre_id) for genre_id in genre_ids)
        if unknown_genres:
            dropped["genres"] = unknown_genres
        if request.mood and find_mood(request.mood) is None:
            dropped["mood"] = [request.mood]

        if request.duration:
            bounds = self.runtime_bounds(request.duration, category)
            if bounds is None:
                dropped["duration"] = [request.duration]
            else:
                lower, upper = bounds
                if lower is not None:
                    params["with_runtime.gte"] = lower
                if upper is not None:
                    params["with_runtime.lte"] = upper

        if request.original_language:
            params["with_original_language"] = request.original_language

        if request.year_from is not None:
            params[f"{category.date_filter_field}.gte"] = f"{request.year_from:04d}-01-01"
        if request.year_to is not None:
            params[f"{category.date_filter_field}.lte"] = f"{request.year_to:04d}-12-31"

        if not ignore_providers:
            provider_ids, unresolved = self.resolve_provider_ids(request, catalog)
            if unresolved:
                dropped["providers"] = unresolved
            if provider_ids:
                params["with_watch_providers"] = "|".join(
                    str(provider_id) for provider_id in provider_ids
                )
                params["with_watch_monetization_types"] = "|".join(request.monetization)

        return DiscoveryQuery(category=category, params=params, dropped=dropped)

    def genre_ids(
        self, request: FilterRequest, category: MediaCategory
    ) -> tuple[list[int], list[str]]:
        """Return genre ids for explicit and mood-implied labels, plus unknown labels."""

        labels: list[str] = list(request.genres)
        mood = find_mood(request.mood)
        if mood is not None:
            for label in mood.genres:
                if label not in labels:
                    labels.append(label)

        ids: list[int] = []
        unknown: list[str] = []
        for genre_id in request.genre_ids:
            if genre_id not in ids:
                ids.append(genre_id)
        for label in labels:
            if label.isascii() and label.isdigit():
                genre_id: int | None = int(label)
            else:
                definition = find_genre(label)
                genre_id = definition.id_for(category) if definition else None
            if genre_id is None:
                if label in request.genres:
                    unknown.append(label)
                continue
            if genre_id not in ids:
                ids.append(genre_id)
        return ids, unknown

    def runtime_bounds(
        self, duration: str, category: MediaCategory
    ) -> tuple[int | None, int | None] | None:
        """Return ``(gte, lte)`` runtime minutes for a duration bucket.

        Buckets never overlap: medium starts one minute after the short
        maximum and ends one minute before the long minimum.
        """

        bucket = DURATION_BUCKETS.get(duration.strip().lower())
        if bucket is None:
            return None
        thresholds = self._runtime_thresholds[category.key]
        if bucket == "short":
            return None, thresholds.short_max
        if bucket == "medium":
            return thresholds.short_max + 1, thresholds.long_min - 1
        return thresholds.long_min, None

    def resolve_provider_ids(
        self, request: FilterRequest, catalog: ProviderCatalog
    ) -> tuple[list[int], list[str]]:
        """Resolve platform names against one category catalog.

        Returns the identifiers and the names that could not be resolved.
        """

        ids: list[int] = []
        unresolved: list[str] = []
        for name in request.providers:
            entry = catalog.resolve(name)
            if entry is None:
                unresolved.append(name)
                continue
            for provider_id in entry.ids:
                if provider_id not in ids:
                    ids.append(provider_id)
        for provider_id in request.provider_ids:
            if provider_id not in ids:
                ids.append(provider_id)
        if request.providers and not ids:
            raise UnresolvableFilterError(unresolved)
        return ids, unresolved

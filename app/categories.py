"""Media categories understood by TMDB and their category-scoped constants."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


CategoryKey = Literal["movie", "tv"]


@dataclass(frozen=True, slots=True)
class RuntimeThresholds:
    """Minute boundaries separating short, medium and long runtimes."""

    short_max: int
    long_min: int


@dataclass(frozen=True, slots=True)
class MediaCategory:
    """One of the two TMDB content partitions.

    Identifiers, date semantics and runtime expectations are all scoped to a
    category, so everything that differs between movies and series lives here
    as data instead of being branched on throughout the code.
    """

    key: CategoryKey
    label: str
    title_field: str
    release_field: str
    date_filter_field: str
    runtime: RuntimeThresholds

    @property
    def discover_path(self) -> str:
        return f"/discover/{self.key}"

    @property
    def providers_path(self) -> str:
        return f"/watch/providers/{self.key}"

    @property
    def genres_path(self) -> str:
        return f"/genre/{self.key}/list"

    def title_providers_path(self, title_id: int) -> str:
        return f"/{self.key}/{title_id}/watch/providers"


MOVIE = MediaCategory(
    key="movie",
    label="Movie",
    title_field="title",
    release_field="release_date",
    date_filter_field="primary_release_date",
    runtime=RuntimeThresholds(short_max=90, long_min=120),
)

SERIES = MediaCategory(
    key="tv",
    label="Series",
    title_field="name",
    release_field="first_air_date",
    date_filter_field="first_air_date",
    runtime=RuntimeThresholds(short_max=30, long_min=50),
)

CATEGORIES: tuple[MediaCategory, ...] = (MOVIE, SERIES)

_ALIASES: dict[str, MediaCategory] = {
    "movie": MOVIE,
    "movies": MOVIE,
    "film": MOVIE,
    "films": MOVIE,
    "tv": SERIES,
    "series": SERIES,
    "serie": SERIES,
    "série": SERIES,
    "séries": SERIES,
    "show": SERIES,
    "shows": SERIES,
}
_ANY_VALUES = frozenset({"", "any", "all", "tous", "tout"})


def parse_category(value: str | None) -> MediaCategory | None:
    """Return the category named by ``value`` or ``None`` for "any".

    Raises ``ValueError`` for values that name neither.
    """

    normalized = (value or "").strip().lower()
    if normalized in _ANY_VALUES:
        return None
    try:
        return _ALIASES[normalized]
    except KeyError:
        raise ValueError(f"Unknown content category: {value!r}") from None


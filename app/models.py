"""Data models shared between the gateway services."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Iterator, Literal, Mapping

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from .categories import CATEGORIES, MediaCategory, parse_category
from .provider_names import canonical_key, canonicalize
from .utils import build_image_url, extract_year, split_csv

MONETIZATION_TYPES = frozenset({"flatrate", "free", "ads", "rent", "buy"})
_ID_SEPARATOR_RE = re.compile(r"[,|]")


@dataclass(frozen=True, slots=True)
class Platform:
    """One TMDB watch provider as listed for a single category."""

    id: int
    name: str
    canonical_name: str
    logo: str | None
    category: MediaCategory

    @classmethod
    def from_tmdb(
        cls, payload: Mapping[str, Any], category: MediaCategory, *, logo: str | None
    ) -> "Platform":
        name = str(payload.get("provider_name") or "").strip()
        return cls(
            id=int(payload["provider_id"]),
            name=name,
            canonical_name=canonicalize(name),
            logo=logo,
            category=category,
        )


@dataclass(frozen=True, slots=True)
class ProviderEntry:
    """All upstream identifiers known for one canonical platform name."""

    name: str
    ids: tuple[int, ...]
    logo: str | None
    categories: frozenset[str]

    def to_payload(self) -> dict[str, Any]:
        return {"name": self.name, "ids": list(self.ids), "logo": self.logo}


class ProviderCatalog:
    """Immutable mapping of canonical platform names to provider entries."""

    __slots__ = ("_entries",)

    def __init__(self, entries: Mapping[str, ProviderEntry] | None = None):
        self._entries: Mapping[str, ProviderEntry] = MappingProxyType(dict(entries or {}))

    @classmethod
    def aggregate(cls, platforms: Iterable[Platform]) -> "ProviderCatalog":
        """Group platforms by canonical name.

        Identifiers are de-duplicated in first-seen order and the first
        non-null logo is kept. Grouping matters because the same platform
        can carry different identifiers per category.
        """

        names: dict[str, str] = {}
        ids: dict[str, list[int]] = {}
        logos: dict[str, str | None] = {}
        categories: dict[str, set[str]] = {}
        for platform in platforms:
            key = platform.canonical_name.casefold()
            names.setdefault(key, platform.canonical_name)
            known_ids = ids.setdefault(key, [])
            if platform.id not in known_ids:
                known_ids.append(platform.id)
            if logos.get(key) is None:
                logos[key] = platform.logo
            categories.setdefault(key, set()).add(platform.category.key)

        entries = {
            key: ProviderEntry(
                name=names[key],
                ids=tuple(ids[key]),
                logo=logos.get(key),
                categories=frozenset(categories[key]),
            )
            for key in names
        }
        return cls(entries)

    def resolve(self, name: str) -> ProviderEntry | None:
        """Return the entry for a raw or canonical name, case-insensitively."""

        return self._entries.get(canonical_key(name))

    def sorted_entries(self) -> list[ProviderEntry]:
        return sorted(self._entries.values(), key=lambda entry: entry.name.casefold())

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ProviderEntry]:
        return iter(self._entries.values())

    def __bool__(self) -> bool:
        return bool(self._entries)

    def __repr__(self) -> str:
        return f"ProviderCatalog({len(self._entries)} entries)"


EMPTY_CATALOG = ProviderCatalog()


@dataclass(frozen=True, slots=True)
class ProviderCatalogSnapshot:
    """One complete, immutable generation of the platform catalogs."""

    catalogs: Mapping[str, ProviderCatalog]
    combined: ProviderCatalog
    platforms: tuple[Platform, ...]
    failed: frozenset[str]
    expires_at: float

    def for_category(self, category: MediaCategory | None) -> ProviderCatalog:
        if category is None:
            return self.combined
        return self.catalogs.get(category.key, EMPTY_CATALOG)

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class FilterRequest(BaseModel):
    """User-facing search intent, parsed from query parameters."""

    model_config = ConfigDict(populate_by_name=True)

    category: Literal["movie", "tv", "any"] = Field(
        default="any", validation_alias=AliasChoices("type", "category")
    )
    genres: tuple[str, ...] = Field(
        default=(), validation_alias=AliasChoices("genres", "genre")
    )
    genre_ids: tuple[int, ...] = Field(
        default=(), validation_alias=AliasChoices("with_genres", "genre_ids")
    )
    mood: str | None = None
    duration: str | None = Field(
        default=None, validation_alias=AliasChoices("duration", "runtime")
    )
    providers: tuple[str, ...] = Field(
        default=(), validation_alias=AliasChoices("providers", "platforms")
    )
    provider_ids: tuple[int, ...] = Field(
        default=(),
        validation_alias=AliasChoices("with_watch_providers", "provider_ids"),
    )
    monetization: tuple[str, ...] = Field(
        default=("flatrate",),
        validation_alias=AliasChoices("monetization", "with_watch_monetization_types"),
    )
    original_language: str | None = Field(
        default=None,
        pattern=r"^[a-z]{2,3}$",
        validation_alias=AliasChoices("original_language", "with_original_language"),
    )
    year_from: int | None = Field(default=None, ge=1870, le=2200)
    year_to: int | None = Field(default=None, ge=1870, le=2200)
    page: int = Field(default=1, ge=1, le=500)
    sort: Literal["popularity", "rating", "recent"] = Field(
        default="popularity", validation_alias=AliasChoices("sort", "order")
    )

    @classmethod
    def from_query(cls, params: Mapping[str, str]) -> "FilterRequest":
        return cls.model_validate(dict(params))

    @field_validator("category", mode="before")
    @classmethod
    def _parse_category(cls, value: object) -> object:
        if value is None:
            return "any"
        category = parse_category(str(value))
        return category.key if category is not None else "any"

    @field_validator("genres", "providers", mode="before")
    @classmethod
    def _parse_names(cls, value: object) -> tuple[str, ...]:
        return split_csv(value)

    @field_validator("genre_ids", "provider_ids", mode="before")
    @classmethod
    def _parse_ids(cls, value: object) -> tuple[int, ...]:
        if isinstance(value, str):
            value = _ID_SEPARATOR_RE.split(value)
        tokens = split_csv(value)
        try:
            return tuple(int(token) for token in tokens)
        except ValueError as exc:
            raise ValueError("Identifiers must be integers") from exc

    @field_validator("monetization", mode="before")
    @classmethod
    def _parse_monetization(cls, value: object) -> tuple[str, ...]:
        if isinstance(value, str):
            value = _ID_SEPARATOR_RE.split(value)
        tokens = [token.lower() for token in split_csv(value)]
        cleaned = tuple(token for token in tokens if token in MONETIZATION_TYPES)
        return cleaned or ("flatrate",)

    @field_validator("mood", "duration", "original_language", mode="before")
    @classmethod
    def _strip_blank(cls, value: object) -> object:
        if value is None:
            return None
        if isinstance(value, str):
            stripped = value.strip().lower()
            return stripped or None
        return value

    @field_validator("sort", mode="before")
    @classmethod
    def _parse_sort(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower() or "popularity"
        return value or "popularity"

    @field_validator("year_from", "year_to", mode="before")
    @classmethod
    def _parse_optional_int(cls, value: object) -> object:
        if value is None or value == "":
            return None
        if isinstance(value, int):
            return value
        try:
            return int(str(value).strip())
        except (TypeError, ValueError) as exc:
            raise ValueError("Value must be an integer") from exc

    @field_validator("page", mode="before")
    @classmethod
    def _parse_page(cls, value: object) -> object:
        if value is None or value == "":
            return 1
        return value

    @model_validator(mode="after")
    def _order_year_range(self) -> "FilterRequest":
        if (
            self.year_from is not None
            and self.year_to is not None
            and self.year_from > self.year_to
        ):
            self.year_from, self.year_to = self.year_to, self.year_from
        return self

    @property
    def media_categories(self) -> tuple[MediaCategory, ...]:
        """Return the categories this request searches, in merge order."""

        if self.category == "any":
            return CATEGORIES
        return tuple(category for category in CATEGORIES if category.key == self.category)


@dataclass(slots=True)
class DiscoveryQuery:
    """TMDB discover parameters for one category."""

    category: MediaCategory
    params: dict[str, Any]
    dropped: dict[str, list[str]] = field(default_factory=dict)

    @property
    def path(self) -> str:
        return self.category.discover_path


@dataclass(slots=True)
class TitleSummary:
    """Projection of a TMDB discover result."""

    category: MediaCategory
    id: int
    title: str | None
    overview: str | None
    poster: str | None
    backdrop: str | None
    year: int | None
    rating: float | None

    @classmethod
    def from_tmdb(
        cls, payload: Mapping[str, Any], category: MediaCategory, *, image_base_url: str
    ) -> "TitleSummary":
        vote_average = payload.get("vote_average")
        rating = round(float(vote_average), 2) if vote_average else None
        return cls(
            category=category,
            id=int(payload["id"]),
            title=payload.get(category.title_field)
            or payload.get("title")
            or payload.get("name"),
            overview=payload.get("overview") or None,
            poster=build_image_url(image_base_url, "w342", payload.get("poster_path")),
            backdrop=build_image_url(image_base_url, "w780", payload.get("backdrop_path")),
            year=extract_year(payload.get(category.release_field)),
            rating=rating,
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "type": self.category.key,
            "id": self.id,
            "title": self.title,
            "overview": self.overview,
            "poster": self.poster,
            "backdrop": self.backdrop,
            "year": self.year,
            "rating": self.rating,
        }


@dataclass(slots=True)
class SearchResult:
    """A page of discover results with the queries that produced it."""

    items: list[TitleSummary]
    page: int
    total_pages: int
    total_results: int
    queries: list[DiscoveryQuery]
    degraded: tuple[str, ...] = ()

    @property
    def resolved_query(self) -> dict[str, dict[str, Any]]:
        return {query.category.key: dict(query.params) for query in self.queries}

    def to_payload(self, region: str, requested_type: str) -> dict[str, Any]:
        resolved = self.resolved_query
        if len(resolved) == 1:
            params: dict[str, Any] = next(iter(resolved.values()))
        else:
            params = resolved
        dropped: dict[str, list[str]] = {}
        for query in self.queries:
            for dimension, values in query.dropped.items():
                bucket = dropped.setdefault(dimension, [])
                bucket.extend(value for value in values if value not in bucket)
        return {
            "region": region,
            "results": [item.to_payload() for item in self.items],
            "page": self.page,
            "total_pages": self.total_pages,
            "total_results": self.total_results,
            "debug": {
                "type": requested_type,
                "params": params,
                "degraded": list(self.degraded),
                "dropped": dropped,
            },
        }


@dataclass(frozen=True, slots=True)
class AvailabilityOffer:
    """A platform offering a title, under its raw TMDB name."""

    name: str
    logo: str | None

    def to_payload(self) -> dict[str, Any]:
        return {"name": self.name, "logo": self.logo}


@dataclass(frozen=True, slots=True)
class Availability:
    """Regional streaming, purchase and rental offers for one title."""

    flatrate: tuple[AvailabilityOffer, ...] = ()
    buy: tuple[AvailabilityOffer, ...] = ()
    rent: tuple[AvailabilityOffer, ...] = ()
    link: str | None = None

    def to_payload(self, region: str) -> dict[str, Any]:
        return {
            "region": region,
            "link": self.link,
            "flatrate": [offer.to_payload() for offer in self.flatrate],
            "buy": [offer.to_payload() for offer in self.buy],
            "rent": [offer.to_payload() for offer in self.rent],
        }

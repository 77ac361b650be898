"""Application configuration models."""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Iterable, Literal

from pydantic import AliasChoices, Field, HttpUrl, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .categories import MOVIE, SERIES, MediaCategory, RuntimeThresholds


DEFAULT_FAVORITE_PROVIDERS: tuple[str, ...] = (
    "Netflix",
    "Apple TV+",
    "Disney+",
    "Amazon Prime Video",
    "Canal+",
    "Paramount+",
    "HBO Max",
)


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="StreamScout", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=3000, alias="PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    tmdb_bearer_token: str | None = Field(
        default=None,
        alias="TMDB_BEARER_TOKEN",
        validation_alias=AliasChoices("TMDB_BEARER_TOKEN", "TMDB_BEARER"),
    )
    tmdb_api_url: HttpUrl = Field(
        default="https://api.themoviedb.org/3", alias="TMDB_API_URL"
    )
    tmdb_image_base_url: HttpUrl = Field(
        default="https://image.tmdb.org/t/p", alias="TMDB_IMAGE_BASE_URL"
    )
    watch_region: str = Field(default="FR", alias="WATCH_REGION")
    language: str = Field(default="fr-FR", alias="TMDB_LANGUAGE")

    tmdb_timeout_seconds: float = Field(
        default=10.0, alias="TMDB_TIMEOUT", gt=0, le=120
    )
    tmdb_retry_limit: int = Field(default=1, alias="TMDB_RETRY_LIMIT", ge=0, le=5)

    provider_cache_seconds: int = Field(
        default=86_400, alias="PROVIDER_CACHE_TTL", ge=60
    )
    provider_cache_failure_seconds: int = Field(
        default=60, alias="PROVIDER_CACHE_FAILURE_TTL", ge=0
    )
    availability_cache_seconds: int = Field(
        default=21_600, alias="AVAILABILITY_CACHE_TTL", ge=0
    )
    availability_cache_size: int = Field(
        default=2_048, alias="AVAILABILITY_CACHE_SIZE", ge=1
    )

    favorite_providers: Annotated[tuple[str, ...], NoDecode] = Field(
        default=DEFAULT_FAVORITE_PROVIDERS, alias="FAVORITE_PROVIDERS"
    )

    movie_runtime_short_max: int = Field(
        default=MOVIE.runtime.short_max, alias="MOVIE_RUNTIME_SHORT_MAX", ge=1
    )
    movie_runtime_long_min: int = Field(
        default=MOVIE.runtime.long_min, alias="MOVIE_RUNTIME_LONG_MIN", ge=1
    )
    series_runtime_short_max: int = Field(
        default=SERIES.runtime.short_max, alias="SERIES_RUNTIME_SHORT_MAX", ge=1
    )
    series_runtime_long_min: int = Field(
        default=SERIES.runtime.long_min, alias="SERIES_RUNTIME_LONG_MIN", ge=1
    )

    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator("tmdb_bearer_token", mode="before")
    @classmethod
    def _strip_blank_token(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip() or None
        return value

    @field_validator("watch_region", mode="before")
    @classmethod
    def _upper_region(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("favorite_providers", mode="before")
    @classmethod
    def _parse_favorites(cls, value: object) -> tuple[str, ...]:
        """Accept favourites as a comma separated string or an iterable."""

        if value is None:
            return DEFAULT_FAVORITE_PROVIDERS
        if isinstance(value, str):
            raw_values = value.split(",")
        elif isinstance(value, Iterable):
            raw_values = [str(part) for part in value]
        else:
            raise TypeError("FAVORITE_PROVIDERS must be a string or iterable of strings")

        cleaned: list[str] = []
        for entry in raw_values:
            name = entry.strip()
            if name and name not in cleaned:
                cleaned.append(name)
        return tuple(cleaned)

    @model_validator(mode="after")
    def _check_runtime_thresholds(self) -> "Settings":
        """Short runtime bounds must sit strictly below long ones."""

        if self.movie_runtime_short_max >= self.movie_runtime_long_min:
            raise ValueError(
                "MOVIE_RUNTIME_SHORT_MAX must be lower than MOVIE_RUNTIME_LONG_MIN"
            )
        if self.series_runtime_short_max >= self.series_runtime_long_min:
            raise ValueError(
                "SERIES_RUNTIME_SHORT_MAX must be lower than SERIES_RUNTIME_LONG_MIN"
            )
        return self

    @property
    def token_present(self) -> bool:
        return bool(self.tmdb_bearer_token)

    def runtime_thresholds(self, category: MediaCategory) -> RuntimeThresholds:
        """Return the configured runtime thresholds for ``category``."""

        if category.key == MOVIE.key:
            return RuntimeThresholds(
                short_max=self.movie_runtime_short_max,
                long_min=self.movie_runtime_long_min,
            )
        return RuntimeThresholds(
            short_max=self.series_runtime_short_max,
            long_min=self.series_runtime_long_min,
        )

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()

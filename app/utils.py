"""Utility helpers for the StreamScout service."""

from __future__ import annotations

import re
import unicodedata
from typing import Any, Iterable


def slugify(value: str) -> str:
    """Return a URL-friendly slug."""

    value = unicodedata.normalize("NFKD", value)
    value = value.encode("ascii", "ignore").decode("ascii")
    value = value.replace("+", " plus ")
    value = re.sub(r"[^a-zA-Z0-9]+", "-", value)
    value = value.strip("-")
    value = re.sub(r"-+", "-", value)
    return value.lower()


def split_csv(value: Any) -> tuple[str, ...]:
    """Split comma separated input into stripped, de-duplicated tokens."""

    if value is None:
        return ()
    if isinstance(value, str):
        raw_values: Iterable[Any] = value.split(",")
    elif isinstance(value, Iterable):
        raw_values = value
    else:
        raw_values = [value]

    cleaned: list[str] = []
    for part in raw_values:
        token = str(part).strip()
        if token and token not in cleaned:
            cleaned.append(token)
    return tuple(cleaned)


def build_image_url(base_url: str, size: str, path: str | None) -> str | None:
    """Combine TMDB's image base, a size token and a relative image path."""

    if not path:
        return None
    if path.startswith("http"):
        return path
    return f"{base_url.rstrip('/')}/{size}{path}"


def extract_year(value: Any) -> int | None:
    """Return the year from a ``YYYY-MM-DD`` string."""

    if not isinstance(value, str) or len(value) < 4:
        return None
    try:
        return int(value[:4])
    except ValueError:
        return None


def provider_cname(name: str) -> str:
    """Return the legacy provider slug, e.g. ``Canal+`` -> ``canalplus``."""

    value = name.lower().replace("+", "plus")
    return re.sub(r"[^a-z0-9]+", "-", value).strip("-")

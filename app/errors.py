"""Exception types shared by the StreamScout services."""

from __future__ import annotations

from typing import Sequence


class StreamScoutError(Exception):
    """Base class for every error raised by the gateway."""


class ConfigurationError(StreamScoutError):
    """Raised at call time when a required setting is missing."""


class TMDBError(StreamScoutError):
    """Base class for failures talking to TMDB."""


class UpstreamError(TMDBError):
    """TMDB answered with a non-2xx status."""

    def __init__(self, status: int, body: str):
        super().__init__(f"TMDB responded with status {status}")
        self.status = status
        self.body = body

    @property
    def is_transient(self) -> bool:
        return self.status == 429 or self.status >= 500


class TransportError(TMDBError):
    """TMDB could not be reached (network failure or timeout)."""

    is_transient = True


class UnresolvableFilterError(StreamScoutError):
    """None of the requested platform names exist in the category catalog."""

    def __init__(self, names: Sequence[str]):
        super().__init__(f"Unresolvable platform names: {', '.join(names)}")
        self.names = tuple(names)

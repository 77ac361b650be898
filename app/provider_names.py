"""Canonical platform names for TMDB watch provider variants."""

from __future__ import annotations

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class ProviderRule:
    """Maps upstream name variants onto one canonical platform label.

    ``contains`` entries match anywhere in the name, ``exact`` entries only
    match the whole name. Both are compared case-insensitively.
    """

    canonical: str
    contains: tuple[str, ...] = ()
    exact: tuple[str, ...] = ()

    def matches(self, folded_name: str) -> bool:
        if folded_name in self.exact:
            return True
        return any(token in folded_name for token in self.contains)


# Evaluated top to bottom, first match wins. Brands come before the Amazon
# storefront because channel names such as "Paramount+ Amazon Channel" carry
# both tokens and belong to the brand.
PROVIDER_RULES: tuple[ProviderRule, ...] = (
    ProviderRule(canonical="Netflix", contains=("netflix",)),
    ProviderRule(canonical="Disney+", contains=("disney plus", "disney+")),
    ProviderRule(canonical="Apple TV+", contains=("apple tv+", "apple tv plus")),
    ProviderRule(canonical="Paramount+", contains=("paramount+", "paramount plus")),
    ProviderRule(
        canonical="HBO Max",
        contains=("hbo max", "max amazon channel"),
        exact=("max",),
    ),
    ProviderRule(
        canonical="OCS",
        contains=("ocs amazon channel", "ocs go"),
        exact=("ocs",),
    ),
    ProviderRule(canonical="Canal+", contains=("canal+", "canal plus", "canal +")),
    ProviderRule(canonical="Crunchyroll", contains=("crunchyroll",)),
    ProviderRule(canonical="MUBI", contains=("mubi",)),
    ProviderRule(canonical="france.tv", contains=("france.tv", "france tv", "francetv")),
    ProviderRule(canonical="TF1+", contains=("tf1+", "tf1 plus", "mytf1")),
    ProviderRule(canonical="M6+", contains=("m6+", "m6 plus", "6play")),
    ProviderRule(canonical="Rakuten TV", contains=("rakuten",)),
    ProviderRule(canonical="Pluto TV", contains=("pluto tv",)),
    ProviderRule(
        canonical="Amazon Prime Video",
        contains=("amazon prime video", "prime video"),
    ),
)

_WHITESPACE_RE = re.compile(r"\s+")


def _clean(raw_name: str) -> str:
    return _WHITESPACE_RE.sub(" ", raw_name or "").strip()


def canonicalize(raw_name: str) -> str:
    """Return the canonical label for a raw TMDB provider name.

    Names without a matching rule are returned unchanged apart from
    whitespace cleanup, so unknown platforms are kept, just not merged.
    """

    cleaned = _clean(raw_name)
    folded = cleaned.casefold()
    for rule in PROVIDER_RULES:
        if rule.matches(folded):
            return rule.canonical
    return cleaned


def canonical_key(raw_name: str) -> str:
    """Return the case-insensitive lookup key for a provider name."""

    return canonicalize(raw_name).casefold()

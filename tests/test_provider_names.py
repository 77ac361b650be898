"""Behaviour of the provider name normalisation table."""

from __future__ import annotations

import pytest

from app.provider_names import PROVIDER_RULES, canonical_key, canonicalize


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Netflix", "Netflix"),
        ("Netflix Standard with Ads", "Netflix"),
        ("Netflix basic with Ads", "Netflix"),
        ("Disney Plus", "Disney+"),
        ("Apple TV Plus", "Apple TV+"),
        ("Paramount Plus", "Paramount+"),
        ("Paramount+ Amazon Channel", "Paramount+"),
        ("Max", "HBO Max"),
        ("HBO Max Amazon Channel", "HBO Max"),
        ("OCS Go", "OCS"),
        ("Canal+ Séries", "Canal+"),
        ("MyTF1", "TF1+"),
        ("6play", "M6+"),
        ("France TV", "france.tv"),
        ("Amazon Prime Video", "Amazon Prime Video"),
        ("Amazon Prime Video with Ads", "Amazon Prime Video"),
    ],
)
def test_known_variants_map_to_canonical_name(raw: str, expected: str) -> None:
    """Known name variants should map to their canonical platform."""

    assert canonicalize(raw) == expected


def test_brand_rules_run_before_the_amazon_storefront() -> None:
    """Brand rules should be evaluated before the Amazon storefront."""

    order = [rule.canonical for rule in PROVIDER_RULES]

    assert order[-1] == "Amazon Prime Video"
    assert order.index("Paramount+") < order.index("Amazon Prime Video")


def test_unknown_names_pass_through_cleaned() -> None:
    """Unknown names should pass through with whitespace cleaned."""

    assert canonicalize("  Shadowz  ") == "Shadowz"
    assert canonicalize("Arte   Boutique") == "Arte Boutique"
    assert canonicalize("DefunctServiceXYZ") == "DefunctServiceXYZ"


def test_short_exact_names_do_not_match_inside_other_names() -> None:
    """Exact-only names should not match inside longer names."""

    assert canonicalize("Maxdome") == "Maxdome"
    assert canonicalize("Docsville") == "Docsville"
    assert canonicalize("Apple TV") == "Apple TV"


@pytest.mark.parametrize(
    "raw",
    [
        "Netflix Standard with Ads",
        "Paramount+ Amazon Channel",
        "Max",
        "Shadowz",
        *(rule.canonical for rule in PROVIDER_RULES),
    ],
)
def test_canonicalize_is_idempotent(raw: str) -> None:
    """Canonicalising a canonical name should return it unchanged."""

    once = canonicalize(raw)

    assert canonicalize(once) == once


def test_canonical_key_is_case_insensitive() -> None:
    """Lookup keys should ignore case."""

    assert canonical_key("netflix") == canonical_key("NETFLIX") == "netflix"
    assert canonical_key("disney plus") == "disney+"

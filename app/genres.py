"""Static genre and mood vocabularies used to build discover queries."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from .categories import MOVIE, MediaCategory
from .utils import slugify


@dataclass(frozen=True)
class GenreDefinition:
    """A public genre label and the TMDB identifier per category."""

    key: str
    label: str
    aliases: tuple[str, ...] = ()
    movie_id: int | None = None
    tv_id: int | None = None

    def id_for(self, category: MediaCategory) -> int | None:
        if category.key == MOVIE.key:
            return self.movie_id
        return self.tv_id


# TMDB genre identifiers are stable. Series use combined genres such as
# "Action & Adventure", so several labels share one identifier there.
GENRES: tuple[GenreDefinition, ...] = (
    GenreDefinition("action", "Action", movie_id=28, tv_id=10759),
    GenreDefinition("adventure", "Adventure", ("aventure",), movie_id=12, tv_id=10759),
    GenreDefinition("animation", "Animation", ("anime",), movie_id=16, tv_id=16),
    GenreDefinition("comedy", "Comedy", ("comedie",), movie_id=35, tv_id=35),
    GenreDefinition("crime", "Crime", ("policier", "crimes"), movie_id=80, tv_id=80),
    GenreDefinition(
        "documentary", "Documentary", ("documentaire", "docu"), movie_id=99, tv_id=99
    ),
    GenreDefinition("drama", "Drama", ("drame",), movie_id=18, tv_id=18),
    GenreDefinition("family", "Family", ("famille", "familial"), movie_id=10751, tv_id=10751),
    GenreDefinition(
        "fantasy", "Fantasy", ("fantastique", "fantasie"), movie_id=14, tv_id=10765
    ),
    GenreDefinition("history", "History", ("histoire", "historique"), movie_id=36),
    GenreDefinition("horror", "Horror", ("horreur", "epouvante"), movie_id=27),
    GenreDefinition("music", "Music", ("musique", "musical"), movie_id=10402),
    GenreDefinition("mystery", "Mystery", ("mystere",), movie_id=9648, tv_id=9648),
    GenreDefinition("romance", "Romance", ("romantique",), movie_id=10749),
    GenreDefinition(
        "science-fiction",
        "Science Fiction",
        ("sci-fi", "scifi", "sf"),
        movie_id=878,
        tv_id=10765,
    ),
    GenreDefinition("thriller", "Thriller", ("suspense",), movie_id=53),
    GenreDefinition("war", "War", ("guerre",), movie_id=10752, tv_id=10768),
    GenreDefinition("western", "Western", movie_id=37, tv_id=37),
    GenreDefinition("tv-movie", "TV Movie", ("telefilm",), movie_id=10770),
    GenreDefinition("kids", "Kids", ("enfants", "jeunesse"), tv_id=10762),
    GenreDefinition("reality", "Reality", ("tele-realite", "realite"), tv_id=10764),
    GenreDefinition("news", "News", ("actualites", "infos"), tv_id=10763),
    GenreDefinition("soap", "Soap", ("feuilleton",), tv_id=10766),
    GenreDefinition("talk", "Talk", ("talk-show",), tv_id=10767),
    GenreDefinition("politics", "War & Politics", ("politique",), tv_id=10768),
)


def _build_lookup(definitions: tuple[GenreDefinition, ...]) -> dict[str, GenreDefinition]:
    lookup: dict[str, GenreDefinition] = {}
    for definition in definitions:
        for name in (definition.key, definition.label, *definition.aliases):
            lookup.setdefault(slugify(name), definition)
    return lookup


GENRE_LOOKUP: Mapping[str, GenreDefinition] = _build_lookup(GENRES)


@dataclass(frozen=True)
class MoodDefinition:
    """A mood label and the genre labels it suggests."""

    key: str
    label: str
    genres: tuple[str, ...]
    aliases: tuple[str, ...] = ()


MOODS: tuple[MoodDefinition, ...] = (
    MoodDefinition(
        "feel-good",
        "Feel good",
        ("comedy", "family", "animation"),
        ("detente", "leger", "chill", "fun"),
    ),
    MoodDefinition(
        "thrill",
        "Thrills",
        ("thriller", "horror", "mystery", "crime"),
        ("frisson", "frissons", "suspense", "peur"),
    ),
    MoodDefinition(
        "adrenaline",
        "Adrenaline",
        ("action", "adventure", "war"),
        ("action", "adrenaline", "intense"),
    ),
    MoodDefinition(
        "escape",
        "Escape",
        ("science-fiction", "fantasy", "adventure"),
        ("evasion", "reve", "imaginaire"),
    ),
    MoodDefinition(
        "romantic",
        "Romantic",
        ("romance", "drama"),
        ("romantique", "amour", "love"),
    ),
    MoodDefinition(
        "thoughtful",
        "Thoughtful",
        ("drama", "documentary", "history"),
        ("reflexion", "serieux", "think", "learn"),
    ),
)


def _build_mood_lookup(definitions: tuple[MoodDefinition, ...]) -> dict[str, MoodDefinition]:
    lookup: dict[str, MoodDefinition] = {}
    for definition in definitions:
        for name in (definition.key, definition.label, *definition.aliases):
            lookup.setdefault(slugify(name), definition)
    return lookup


MOOD_LOOKUP: Mapping[str, MoodDefinition] = _build_mood_lookup(MOODS)


def find_genre(label: str) -> GenreDefinition | None:
    """Return the genre definition for a public label, if any."""

    return GENRE_LOOKUP.get(slugify(label))


def find_mood(label: str | None) -> MoodDefinition | None:
    """Return the mood definition for a public label, if any."""

    if not label:
        return None
    return MOOD_LOOKUP.get(slugify(label))


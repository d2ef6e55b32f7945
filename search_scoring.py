import re

import models

SCORES = {
    "exact": 100.0,
    "starts_with": 80.0,
    "word_boundary": 60.0,
    "contains": 40.0,
    "baseline": 20.0,
    "library_bonus": 10.0,
    "favorite_bonus": 5.0,
    "field_exact_bonus": 15.0,
    "field_partial_bonus": 8.0,
    "minor_field_bonus": 5.0,
    "prominence_strong_bonus": 12.0,
}

PODCAST_CREATOR_FIELDS = ("author", "publisher", "owner", "creator")

_WHITESPACE = re.compile(r"\s+")


def _lower(value):
    if not isinstance(value, str):
        return ""
    return value.lower()


def normalize_query(query):
    return _lower(query).strip()


def matches_word_boundary(text, query):
    """
    True when query starts a word in text.

    Multi-word queries must match at the start of text or right after a space;
    single-word queries only need some whitespace-separated word to start with them.
    """
    if " " in query:
        return text.startswith(query) or f" {query}" in text
    return any(word.startswith(query) for word in _WHITESPACE.split(text))


def _name_score(name, query):
    if name == query:
        return SCORES["exact"]
    if name.startswith(query):
        return SCORES["starts_with"]
    if matches_word_boundary(name, query):
        return SCORES["word_boundary"]
    if query in name:
        return SCORES["contains"]
    return SCORES["baseline"]


def _exact_or_partial(field, query):
    if field == query:
        return SCORES["field_exact_bonus"]
    if query in field:
        return SCORES["field_partial_bonus"]
    return 0.0


def _podcast_bonus(item, name, query):
    bonus = 0.0
    metadata = item.metadata or {}
    creators = [_lower(metadata.get(k)) for k in PODCAST_CREATOR_FIELDS]
    creators = [c for c in creators if c]

    found_exact = False
    found_contains = False
    for field in creators:
        if field == query:
            found_exact = True
            break
        if query in field:
            found_contains = True

    creator_matched = found_exact or found_contains
    if found_exact:
        bonus += SCORES["field_exact_bonus"]
    elif found_contains:
        bonus += SCORES["field_partial_bonus"]

    if query in _lower(metadata.get("description")):
        bonus += SCORES["minor_field_bonus"]

    # Podcast names often carry the host's name ("The Louis Theroux Podcast").
    if not creator_matched and name and query in name:
        if " " in query:
            prominence = len(query) / len(name)
            if prominence >= 0.5:
                bonus += SCORES["field_exact_bonus"]
            elif prominence >= 0.3:
                bonus += SCORES["prominence_strong_bonus"]
            else:
                bonus += SCORES["field_partial_bonus"]
        else:
            bonus += SCORES["minor_field_bonus"]
    return bonus


def _secondary_bonus(item, name, query):
    kind = item.media_type
    if kind == models.ALBUM:
        return _exact_or_partial(_lower(item.artists_string), query)
    if kind == models.TRACK:
        bonus = _exact_or_partial(_lower(item.artists_string), query)
        album = getattr(item, "album", None)
        if album is not None and query in _lower(album.name):
            bonus += SCORES["minor_field_bonus"]
        return bonus
    if kind == models.AUDIOBOOK:
        bonus = _exact_or_partial(_lower(item.authors_string), query)
        if query in _lower(item.narrators_string):
            bonus += SCORES["minor_field_bonus"]
        return bonus
    if kind in (models.PODCAST, models.PODCAST_EPISODE):
        return _podcast_bonus(item, name, query)
    return 0.0


def score_item(item, query):
    """Relevance of ``item`` for ``query``; higher ranks first in the unified view."""
    q = normalize_query(query)
    if not q:
        return 0.0

    name = _lower(item.name)
    score = _name_score(name, q)

    if item.media_type == models.ALBUM and item.in_library:
        score += SCORES["library_bonus"]
    if item.favorite is True:
        score += SCORES["favorite_bonus"]

    score += _secondary_bonus(item, name, q)
    return score

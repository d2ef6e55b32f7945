import logging
import re

import models
from app_errors import classify_exception

logger = logging.getLogger(__name__)

CROSS_REFERENCE_SCORE = 25.0
MIN_CROSS_REFERENCE_WORD = 3

_WHITESPACE = re.compile(r"\s+")


def _name_key(item):
    return str(getattr(item, "name", "") or "").lower()


def filter_library_items(items, query):
    q = str(query or "").lower()
    return [item for item in (items or []) if q in _name_key(item)]


def merge_local_and_remote(local_items, remote_items):
    """Local items first, then remote items whose lower-cased name is not taken yet."""
    merged = {}
    for item in local_items or []:
        merged.setdefault(_name_key(item), item)
    for item in remote_items or []:
        key = _name_key(item)
        if key not in merged:
            merged[key] = item
    return list(merged.values())


def deduplicate_results(items):
    """
    Collapse one server response by lower-cased name.

    The server returns a library copy and provider copies of the same entity;
    the library copy wins because it carries every provider mapping.
    """
    seen = {}
    for item in items or []:
        key = _name_key(item)
        existing = seen.get(key)
        if existing is None:
            seen[key] = item
        elif item.provider == models.LIBRARY_PROVIDER and existing.provider != models.LIBRARY_PROVIDER:
            seen[key] = item
    return list(seen.values())


def search_category_with_fallback(category, query, local_items, remote_search, library_only=False):
    local = filter_library_items(local_items, query)
    remote = []
    if not library_only and remote_search is not None:
        try:
            remote = list(remote_search(query) or [])
        except Exception as e:
            logger.warning(
                "Global %s search failed for query '%s' [%s]: %s",
                category,
                query,
                classify_exception(e),
                e,
            )
            remote = []
    merged = merge_local_and_remote(local, remote)
    logger.debug(
        "Merged %s for '%s': local=%s remote=%s merged=%s",
        category,
        query,
        len(local),
        len(remote),
        len(merged),
    )
    return merged


def _artist_key(artist):
    return (artist.provider, artist.item_id)


def extract_cross_referenced_artists(query, direct_artists, albums, tracks):
    """
    Artists credited on matched tracks/albums that the artist search itself missed.

    Lets "Yesterday Beatles" surface The Beatles. A candidate is kept only when its
    name contains a query word of at least three characters.
    """
    q = str(query or "").lower()
    if not q.strip():
        return []
    words = [w for w in _WHITESPACE.split(q) if len(w) >= MIN_CROSS_REFERENCE_WORD]
    if not words:
        return []

    existing = {_artist_key(a) for a in direct_artists or []}
    candidates = {}
    for source in (tracks or [], albums or []):
        for entry in source:
            for artist in getattr(entry, "artists", None) or []:
                key = _artist_key(artist)
                if key in existing or key in candidates:
                    continue
                candidates[key] = artist

    out = []
    for artist in candidates.values():
        name = _name_key(artist)
        if any(w in name for w in words):
            out.append(artist)
    return out

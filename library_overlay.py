"""Session-local library membership edits layered over what the server reported."""

import models


class LibraryOverlay:
    def __init__(self):
        self.added = set()
        self.removed = set()

    def mark_added(self, key):
        self.added.add(key)
        self.removed.discard(key)

    def mark_removed(self, key):
        self.removed.add(key)
        self.added.discard(key)

    def clear(self):
        self.added.clear()
        self.removed.clear()


def effective_library_membership(item, overlay):
    key = item.library_key
    if overlay is not None:
        if key in overlay.added:
            return True
        if key in overlay.removed:
            return False
    return item.in_library


def resolve_add_target(item):
    """(provider_domain, item_id) to add from, or None when the item is library-only."""
    for m in item.provider_mappings:
        if not m.is_library():
            return m.provider_domain, m.item_id
    if item.provider != models.LIBRARY_PROVIDER:
        return item.provider, item.item_id
    return None


def _as_int(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def resolve_library_item_id(item):
    if item.provider == models.LIBRARY_PROVIDER:
        return _as_int(item.item_id)
    mapping = item.library_mapping()
    if mapping is not None:
        return _as_int(mapping.item_id)
    return None


def resolve_favorite_target(item):
    """
    Provider to favorite through. Favorites are keyed by provider domain
    ("spotify"), not by instance ("spotify--xyz").
    """
    mappings = item.provider_mappings
    if not mappings:
        return item.provider, item.item_id
    chosen = next((m for m in mappings if m.available and m.provider_instance != models.LIBRARY_PROVIDER), None)
    if chosen is None:
        chosen = next((m for m in mappings if m.available), mappings[0])
    return chosen.provider_domain, chosen.item_id

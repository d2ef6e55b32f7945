import itertools
import logging

import models
from search_merge import CROSS_REFERENCE_SCORE, extract_cross_referenced_artists
from search_scoring import score_item

logger = logging.getLogger(__name__)

ALL_FILTER = "all"
CATEGORIES = ("artists", "albums", "tracks", "playlists", "audiobooks", "radios", "podcasts")

CATEGORY_MEDIA_TYPES = {
    "artists": models.ARTIST,
    "albums": models.ALBUM,
    "tracks": models.TRACK,
    "playlists": models.PLAYLIST,
    "audiobooks": models.AUDIOBOOK,
    "radios": models.RADIO,
    "podcasts": models.PODCAST,
}

# Approximate chip geometry of the horizontal filter strip.
CHIP_WIDTH = 80.0
CHIP_STRIP_PADDING = 16.0

_generations = itertools.count(1)


class SearchResultSet:
    """Category -> items for one completed search. Replaced wholesale, never merged."""

    def __init__(self, query="", categories=None):
        self.query = query or ""
        self.generation = next(_generations)
        categories = categories or {}
        self.items = {name: list(categories.get(name) or []) for name in CATEGORIES}

    @classmethod
    def empty(cls):
        return cls("", {})

    def __getitem__(self, category):
        return self.items[category]

    def is_empty(self):
        return not any(self.items.values())

    def counts(self):
        return {name: len(values) for name, values in self.items.items()}

    def touch(self):
        """New generation after an in-place edit so cached rows are rebuilt."""
        self.generation = next(_generations)

    def replace_item(self, category, updated):
        """Swap the item sharing ``updated``'s identity in place; True when found."""
        values = self.items.get(category) or []
        for idx, item in enumerate(values):
            if item.identity == updated.identity:
                values[idx] = updated
                return True
        return False


class ListRow:
    __slots__ = ("media_type", "item", "score")

    def __init__(self, media_type, item, score=None):
        self.media_type = media_type
        self.item = item
        self.score = score

    def __repr__(self):
        return f"<ListRow {self.media_type} {self.item.name!r} score={self.score}>"


def available_filters(result_set):
    filters = [ALL_FILTER]
    for name in CATEGORIES:
        if result_set.items.get(name):
            filters.append(name)
    return filters


def build_list_rows(result_set, filter_name, query=None):
    query = result_set.query if query is None else query
    if filter_name != ALL_FILTER:
        tag = CATEGORY_MEDIA_TYPES.get(filter_name)
        if tag is None:
            return []
        return [ListRow(tag, item) for item in result_set.items.get(filter_name) or []]

    rows = []
    for name in CATEGORIES:
        for item in result_set.items[name]:
            rows.append(ListRow(item.media_type, item, score_item(item, query)))

    for artist in extract_cross_referenced_artists(
        query,
        result_set.items["artists"],
        result_set.items["albums"],
        result_set.items["tracks"],
    ):
        rows.append(ListRow(models.ARTIST, artist, CROSS_REFERENCE_SCORE))

    # sorted() is stable: equal scores keep category/encounter order.
    return sorted(rows, key=lambda r: -(r.score or 0.0))


class ListRowCache:
    """Built rows keyed by (generation, filter); a newer generation drops the rest."""

    def __init__(self, builder=build_list_rows):
        self._builder = builder
        self._entries = {}
        self._generation = None

    def get(self, result_set, filter_name):
        if result_set.generation != self._generation:
            self._entries = {}
            self._generation = result_set.generation
        key = (result_set.generation, filter_name)
        rows = self._entries.get(key)
        if rows is None:
            rows = self._builder(result_set, filter_name)
            self._entries[key] = rows
            logger.debug("Built %s rows for filter=%s generation=%s", len(rows), filter_name, result_set.generation)
        return rows

    def __len__(self):
        return len(self._entries)


def chip_scroll_target(index, offset, viewport, max_scroll, chip_width=CHIP_WIDTH, padding=CHIP_STRIP_PADDING):
    """
    Offset that brings chip ``index`` into view with the least movement.

    Returns None when nothing needs to move (chip already visible, or every chip fits).
    """
    if max_scroll <= 0:
        return None
    chip_left = index * chip_width
    chip_right = chip_left + chip_width
    visible_left = offset
    visible_right = offset + viewport - padding * 2

    target = None
    if chip_right > visible_right:
        target = chip_right - viewport + padding * 2
    elif chip_left < visible_left:
        target = chip_left
    if target is None:
        return None
    return min(max(target, 0.0), max_scroll)


class FilterPager:
    """
    Keeps the active filter, the swipeable page index and the chip strip consistent.

    Chip taps and page swipes both move the active filter. While a programmatic
    (animated) jump is in flight, settles on pages it passes on the way are ignored;
    a settle anywhere else means the jump was interrupted and counts as a swipe.
    """

    def __init__(self):
        self.filters = [ALL_FILTER]
        self.active_filter = ALL_FILTER
        self.page_index = 0
        self.chip_offset = 0.0
        self._pending_page = None
        self._passed_page = 0

    @property
    def navigating(self):
        return self._pending_page is not None

    def apply_results(self, result_set):
        new_filters = available_filters(result_set)
        changed = new_filters != self.filters
        self.filters = new_filters
        if changed or self.active_filter not in new_filters:
            self.active_filter = ALL_FILTER
            self.page_index = 0
            self._pending_page = None
        return self.active_filter

    def select_filter(self, name, animate=False):
        if name not in self.filters:
            logger.debug("Ignoring unavailable filter: %s (available=%s)", name, self.filters)
            return None
        index = self.filters.index(name)
        self.active_filter = name
        if animate and index != self.page_index:
            self._pending_page = index
            self._passed_page = self.page_index
        else:
            self._pending_page = None
            self.page_index = index
        return index

    def _on_the_way(self, index):
        start, target = self._passed_page, self._pending_page
        return start < index < target or target < index < start

    def finish_navigation(self, index):
        """The animated jump ended (completed or cancelled) with the view on page ``index``."""
        self._pending_page = None
        return self.on_page_settled(index)

    def on_page_settled(self, index):
        if self._pending_page is not None:
            if index == self._pending_page:
                self._pending_page = None
                self.page_index = index
                return None
            if self._on_the_way(index):
                self._passed_page = index
                return None
            logger.debug("Animated jump to page %s interrupted at page %s", self._pending_page, index)
            self._pending_page = None
        if index < 0 or index >= len(self.filters):
            return None
        self.page_index = index
        self.active_filter = self.filters[index]
        return self.active_filter

    def scroll_chip_into_view(self, viewport, content_width):
        max_scroll = max(0.0, content_width - viewport)
        target = chip_scroll_target(self.filters.index(self.active_filter), self.chip_offset, viewport, max_scroll)
        if target is not None:
            self.chip_offset = target
        return target

from threading import Thread
import logging

from app_errors import classify_exception, user_message
from app_settings import MAX_SEARCH_HISTORY
from library_overlay import (
    effective_library_membership,
    resolve_add_target,
    resolve_favorite_target,
    resolve_library_item_id,
)
from search_merge import search_category_with_fallback
from search_results import ALL_FILTER, CATEGORY_MEDIA_TYPES, SearchResultSet

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_MS = 500

_MEDIA_TYPE_CATEGORIES = {tag: name for name, tag in CATEGORY_MEDIA_TYPES.items()}


def set_search_status(app, message=None):
    app.search_status = message or None
    if hasattr(app, "on_search_status"):
        app.on_search_status(app.search_status)


def _notify(app, message):
    logger.debug("Notice: %s", message)
    if hasattr(app, "show_notice"):
        app.show_notice(message)


def _render(app):
    if hasattr(app, "render_search_results"):
        app.render_search_results()


def _is_disposed(app):
    return bool(getattr(app, "disposed", False))


def _cancel_pending_search(app):
    pending = getattr(app, "_search_debounce_source", 0)
    if pending:
        app.source_remove(pending)
        app._search_debounce_source = 0


def _install_results(app, result_set):
    app.search_results = result_set
    app.filter_pager.apply_results(result_set)


def clear_results(app):
    # Bumping the request id drops whatever is still in flight.
    app._search_request_id = getattr(app, "_search_request_id", 0) + 1
    app.search_query = ""
    app.is_searching = False
    app.has_searched = False
    app.search_error = None
    _install_results(app, SearchResultSet.empty())
    set_search_status(app, None)
    _render(app)


def on_search_changed(app, text):
    q = str(text or "").strip()
    _cancel_pending_search(app)

    if not q:
        clear_results(app)
        return

    def _debounced():
        app._search_debounce_source = 0
        _run_search(app, q)
        return False

    delay = int((getattr(app, "settings", None) or {}).get("search_debounce_ms", DEFAULT_DEBOUNCE_MS))
    app._search_debounce_source = app.timeout_add(delay, _debounced)


def on_search(app, text):
    q = str(text or "").strip()
    _cancel_pending_search(app)
    if not q:
        clear_results(app)
        return
    _run_search(app, q)


def retry_search(app):
    q = getattr(app, "search_query", "")
    if q:
        on_search(app, q)


def on_library_only_toggled(app, enabled):
    app.library_only = bool(enabled)
    settings = getattr(app, "settings", None)
    if isinstance(settings, dict):
        settings["library_only"] = app.library_only
        if hasattr(app, "schedule_save_settings"):
            app.schedule_save_settings()
    q = getattr(app, "search_query", "")
    if q:
        on_search(app, q)


def collect_search_results(backend, q, library_only=False):
    """Blocking: primary search plus merged radio/podcast lookups. Raises if the primary search fails."""
    results = backend.search_with_cache(q, library_only=library_only)
    radios = search_category_with_fallback(
        "radios",
        q,
        getattr(backend, "radio_stations", []),
        backend.search_radio_stations,
        library_only=library_only,
    )
    podcasts = search_category_with_fallback(
        "podcasts",
        q,
        getattr(backend, "podcasts", []),
        backend.search_podcasts,
        library_only=library_only,
    )
    categories = dict(results or {})
    categories["radios"] = radios
    categories["podcasts"] = podcasts
    return SearchResultSet(q, categories)


def _run_search(app, q):
    logger.info("Search triggered with query: '%s'", q)
    library_only = bool(getattr(app, "library_only", False))
    app.search_query = q
    app.is_searching = True
    app.search_error = None
    set_search_status(app, "Searching...")
    app._search_request_id = getattr(app, "_search_request_id", 0) + 1
    request_id = app._search_request_id

    def do_search():
        logger.debug("Background search thread started: query=%r library_only=%s", q, library_only)
        try:
            result_set = collect_search_results(app.backend, q, library_only=library_only)

            def apply_results():
                apply_search_results(app, request_id, result_set)
                return False

            app.idle_add(apply_results)
        except Exception as e:
            kind = classify_exception(e)
            logger.warning("Search error [%s] for query '%s': %s", kind, q, e)

            def apply_error():
                apply_search_error(app, request_id, kind)
                return False

            app.idle_add(apply_error)

    Thread(target=do_search, daemon=True).start()


def _is_current(app, request_id):
    if _is_disposed(app):
        return False
    return request_id == getattr(app, "_search_request_id", 0)


def apply_search_results(app, request_id, result_set):
    if not _is_current(app, request_id):
        logger.debug("Dropping stale search results for '%s' (request %s)", result_set.query, request_id)
        return False
    app.is_searching = False
    app.has_searched = True
    app.search_error = None
    _install_results(app, result_set)
    if result_set.is_empty():
        set_search_status(app, "No results found.")
    else:
        set_search_status(app, None)
        _remember_query(app, result_set.query)
    logger.info("Search results applied for '%s': %s", result_set.query, result_set.counts())
    _render(app)
    return True


def apply_search_error(app, request_id, kind):
    if not _is_current(app, request_id):
        return False
    app.is_searching = False
    app.has_searched = True
    app.search_error = user_message(kind, "search")
    # Previous results are cleared rather than shown as if they were fresh.
    _install_results(app, SearchResultSet.empty())
    set_search_status(app, app.search_error)
    _render(app)
    return True


def current_rows(app, filter_name=None):
    name = filter_name or app.filter_pager.active_filter or ALL_FILTER
    return app.row_cache.get(app.search_results, name)


def _remember_query(app, query):
    if not query:
        return
    history = list(getattr(app, "search_history", []))
    history = [q for q in history if q.lower() != query.lower()]
    history.insert(0, query)
    app.search_history = history[:MAX_SEARCH_HISTORY]
    if hasattr(app, "_save_search_history"):
        app._save_search_history()


def clear_search_history(app):
    app.search_history = []
    if hasattr(app, "_save_search_history"):
        app._save_search_history()


def is_in_library(app, item):
    return effective_library_membership(item, app.library_overlay)


def reload_library(app):
    """Full reload: fresh library collections, and session overrides give way to server state."""

    def task():
        app.backend.refresh_library_collections()
        app.backend.invalidate_search_cache()

        def apply():
            if _is_disposed(app):
                return False
            app.library_overlay.clear()
            q = getattr(app, "search_query", "")
            if q:
                on_search(app, q)
            else:
                _render(app)
            return False

        app.idle_add(apply)

    Thread(target=task, daemon=True).start()


def _run_backend_call(app, label, call, on_done):
    def task():
        try:
            ok = bool(call())
            err = None
        except Exception as e:
            ok = False
            err = e
            logger.warning("%s failed [%s]: %s", label, classify_exception(e), e)

        def apply():
            if not _is_disposed(app):
                on_done(ok, err)
            return False

        app.idle_add(apply)

    Thread(target=task, daemon=True).start()


def toggle_favorite(app, item):
    currently = bool(item.favorite)
    if currently:
        library_item_id = resolve_library_item_id(item)
        if library_item_id is None:
            _notify(app, user_message("not_found", "favorite"))
            return False

        def call():
            return app.backend.remove_from_favorites(item.media_type, library_item_id)
    else:
        provider, item_id = resolve_favorite_target(item)

        def call():
            return app.backend.add_to_favorites(item.media_type, provider, item_id)

    def on_done(ok, err):
        if not ok:
            kind = classify_exception(err) if err is not None else "unknown"
            _notify(app, user_message(kind, "favorite"))
            return
        category = _MEDIA_TYPE_CATEGORIES.get(item.media_type)
        updated = item.with_favorite(not currently)
        if category and app.search_results.replace_item(category, updated):
            app.search_results.touch()
        _render(app)

    _run_backend_call(app, f"Toggle favorite {item.library_key}", call, on_done)
    return True


def add_item_to_library(app, item):
    target = resolve_add_target(item)
    if target is None:
        _notify(app, "Item is already in library")
        return False
    provider, item_id = target

    def on_done(ok, err):
        if not ok:
            kind = classify_exception(err) if err is not None else "unknown"
            _notify(app, user_message(kind, "library"))
            return
        app.library_overlay.mark_added(item.library_key)
        _notify(app, "Added to library")
        _render(app)

    _run_backend_call(
        app,
        f"Add {item.library_key} to library",
        lambda: app.backend.add_to_library(item.media_type, provider, item_id),
        on_done,
    )
    return True


def remove_item_from_library(app, item):
    library_item_id = resolve_library_item_id(item)
    if library_item_id is None:
        _notify(app, user_message("not_found", "library"))
        return False

    def on_done(ok, err):
        if not ok:
            kind = classify_exception(err) if err is not None else "unknown"
            _notify(app, user_message(kind, "library"))
            return
        app.library_overlay.mark_removed(item.library_key)
        _notify(app, "Removed from library")
        _render(app)

    _run_backend_call(
        app,
        f"Remove {item.library_key} from library",
        lambda: app.backend.remove_from_library(item.media_type, library_item_id),
        on_done,
    )
    return True

import logging

logger = logging.getLogger(__name__)


def _sync_chip_strip(app):
    strip = getattr(app, "chip_strip", None)
    if not strip:
        return None
    target = app.filter_pager.scroll_chip_into_view(strip.get("viewport", 0.0), strip.get("content_width", 0.0))
    if target is not None and hasattr(app, "on_chip_scroll"):
        app.on_chip_scroll(target)
    return target


def on_filter_chip_clicked(app, name, animate=True):
    index = app.filter_pager.select_filter(name, animate=animate)
    if index is None:
        return None
    logger.debug("Filter chip selected: %s (page %s, animate=%s)", name, index, animate)
    _sync_chip_strip(app)
    if hasattr(app, "show_page"):
        app.show_page(index, animate)
    return index


def on_page_changed(app, index):
    active = app.filter_pager.on_page_settled(index)
    if active is None:
        return None
    _sync_chip_strip(app)
    if hasattr(app, "render_search_results"):
        app.render_search_results()
    return active


def on_page_animation_finished(app, index):
    """Called by the page view when an animated jump completes or is cancelled."""
    active = app.filter_pager.finish_navigation(index)
    if active is None:
        return None
    _sync_chip_strip(app)
    if hasattr(app, "render_search_results"):
        app.render_search_results()
    return active

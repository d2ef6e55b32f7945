"""Console search shell on a GLib main loop. Needs the `glib` extra: pip install "masearch[glib]"."""

import os
import sys
import logging

from gi.repository import GLib

from actions import search_actions
from actions import search_navigation
from app_logging import setup_logging
from app_settings import DEFAULT_SETTINGS_PATH, apply_env_overrides, load_settings, save_settings as persist_settings
from library_overlay import LibraryOverlay
from ma_backend import MusicAssistantBackend
from search_results import ALL_FILTER, CHIP_STRIP_PADDING, CHIP_WIDTH, FilterPager, ListRowCache, SearchResultSet

logger = logging.getLogger(__name__)

HELP_TEXT = """Type to search (debounced). Commands:
  :go <query>       search now
  :filter <name>    all/artists/albums/tracks/playlists/audiobooks/radios/podcasts
  :page <index>     settle on a result page
  :library          toggle library-only search
  :retry            retry the last failed search
  :reload           reload the library and drop local library edits
  :history          show recent searches
  :clear-history    forget recent searches
  :quit"""


class SearchApp:
    def __init__(self, settings_file=None):
        self.settings_file = settings_file or os.getenv("MASEARCH_SETTINGS", DEFAULT_SETTINGS_PATH)
        self.settings = apply_env_overrides(load_settings(self.settings_file))
        self.backend = MusicAssistantBackend.from_settings(self.settings)
        self.loop = GLib.MainLoop()
        self.disposed = False

        self.library_only = bool(self.settings.get("library_only", False))
        self.search_history = list(self.settings.get("search_history", []))
        self.search_query = ""
        self.search_status = None
        self.search_error = None
        self.is_searching = False
        self.has_searched = False
        self.search_results = SearchResultSet.empty()
        self.filter_pager = FilterPager()
        self.row_cache = ListRowCache()
        self.library_overlay = LibraryOverlay()
        self.chip_strip = {"viewport": 320.0, "content_width": 0.0}
        self._search_request_id = 0
        self._search_debounce_source = 0
        self._settings_save_source = 0
        self._stdin_watch = 0

    # Main-loop hooks used by the actions.
    def timeout_add(self, delay_ms, fn):
        return GLib.timeout_add(delay_ms, fn)

    def source_remove(self, source_id):
        GLib.source_remove(source_id)

    def idle_add(self, fn):
        return GLib.idle_add(fn)

    def save_settings(self):
        try:
            persist_settings(self.settings_file, self.settings)
        except Exception as e:
            logger.warning("Failed to save settings to %s: %s", self.settings_file, e)

    def schedule_save_settings(self, delay_ms=250):
        pending = getattr(self, "_settings_save_source", 0)
        if pending:
            GLib.source_remove(pending)
            self._settings_save_source = 0

        def _flush():
            self._settings_save_source = 0
            self.save_settings()
            return False

        self._settings_save_source = GLib.timeout_add(delay_ms, _flush)

    def _save_search_history(self):
        self.settings["search_history"] = list(self.search_history)[:10]
        self.schedule_save_settings()

    def show_notice(self, message):
        print(f"[!] {message}", flush=True)

    def on_search_status(self, message):
        if message:
            print(f"... {message}", flush=True)

    def render_search_results(self):
        self.chip_strip["content_width"] = CHIP_WIDTH * len(self.filter_pager.filters) + CHIP_STRIP_PADDING * 2
        if self.search_error:
            print(f"{self.search_error} (type :retry)", flush=True)
            return
        if not self.has_searched:
            if self.search_history:
                print("Recent searches: " + ", ".join(self.search_history), flush=True)
            return
        chips = " ".join(
            f"[{f}]" if f == self.filter_pager.active_filter else f for f in self.filter_pager.filters
        )
        print(chips, flush=True)
        show_type = self.filter_pager.active_filter == ALL_FILTER
        for row in search_actions.current_rows(self)[:25]:
            item = row.item
            tag = f"{row.media_type:<9} " if show_type else ""
            score = f"{row.score:6.1f} " if row.score is not None else ""
            fav = "*" if item.favorite else " "
            lib = "L" if search_actions.is_in_library(self, item) else " "
            print(f"  {score}{tag}{fav}{lib} {item.name}", flush=True)

    def _handle_line(self, line):
        text = line.rstrip("\n")
        if not text.startswith(":"):
            search_actions.on_search_changed(self, text)
            return
        cmd, _, arg = text[1:].partition(" ")
        arg = arg.strip()
        if cmd == "quit":
            self.quit()
        elif cmd == "go":
            search_actions.on_search(self, arg)
        elif cmd == "filter":
            if search_navigation.on_filter_chip_clicked(self, arg or ALL_FILTER, animate=False) is not None:
                self.render_search_results()
        elif cmd == "page":
            try:
                search_navigation.on_page_changed(self, int(arg))
            except ValueError:
                self.show_notice(f"Not a page index: {arg!r}")
        elif cmd == "library":
            search_actions.on_library_only_toggled(self, not self.library_only)
            print(f"Library only: {self.library_only}", flush=True)
        elif cmd == "reload":
            search_actions.reload_library(self)
        elif cmd == "retry":
            search_actions.retry_search(self)
        elif cmd == "history":
            print("\n".join(self.search_history) or "(no recent searches)", flush=True)
        elif cmd == "clear-history":
            search_actions.clear_search_history(self)
        else:
            print(HELP_TEXT, flush=True)

    def _on_stdin(self, channel, condition):
        if condition & (GLib.IOCondition.HUP | GLib.IOCondition.ERR):
            self.quit()
            return False
        line = channel.readline()
        if not line:
            self.quit()
            return False
        self._handle_line(line)
        return True

    def run(self):
        logger.info("Connecting to Music Assistant at %s", self.backend.server_url)
        search_actions.reload_library(self)
        print(HELP_TEXT, flush=True)
        self.render_search_results()
        channel = GLib.IOChannel.unix_new(sys.stdin.fileno())
        self._stdin_watch = GLib.io_add_watch(
            channel,
            GLib.PRIORITY_DEFAULT,
            GLib.IOCondition.IN | GLib.IOCondition.HUP | GLib.IOCondition.ERR,
            self._on_stdin,
        )
        try:
            self.loop.run()
        except KeyboardInterrupt:
            pass
        finally:
            self.shutdown()

    def quit(self):
        if self.loop.is_running():
            self.loop.quit()

    def shutdown(self):
        logger.info("Shutting down search client...")
        # Results still in flight are dropped from here on.
        self.disposed = True
        for attr in ("_search_debounce_source", "_settings_save_source", "_stdin_watch"):
            pending = getattr(self, attr, 0)
            if pending:
                GLib.source_remove(pending)
                setattr(self, attr, 0)
        self.settings["search_history"] = list(self.search_history)[:10]
        self.save_settings()


def main():
    setup_logging()
    SearchApp().run()


if __name__ == "__main__":
    main()

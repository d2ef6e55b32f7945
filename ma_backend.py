import logging
import threading
import time

import requests

import models
from app_errors import CommandError, classify_exception
from search_merge import deduplicate_results

logger = logging.getLogger(__name__)

SEARCH_CATEGORIES = ("artists", "albums", "tracks", "playlists", "audiobooks")

# Server response key -> media type tag for music/search.
_SEARCH_KEYS = {
    "artists": models.ARTIST,
    "albums": models.ALBUM,
    "tracks": models.TRACK,
    "playlists": models.PLAYLIST,
    "audiobooks": models.AUDIOBOOK,
    "radio": models.RADIO,
    "podcasts": models.PODCAST,
}


class MusicAssistantBackend:
    def __init__(
        self,
        server_url="http://localhost:8095",
        token="",
        command_timeout=30,
        remote_search_timeout=10,
        result_limit=50,
    ):
        self.server_url = str(server_url or "").rstrip("/")
        self.token = token or ""
        self.command_timeout = command_timeout
        self.remote_search_timeout = remote_search_timeout
        self.result_limit = result_limit
        self.session = requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})
        if self.token:
            self.session.headers["Authorization"] = f"Bearer {self.token}"
        self.radio_stations = []
        self.podcasts = []
        self._search_cache = {}
        # Search, favorite and library calls run on different worker threads.
        self._search_cache_lock = threading.RLock()
        self._search_cache_epoch = 0
        self.max_search_cache = 20
        self.search_cache_ttl_sec = 600.0

    @classmethod
    def from_settings(cls, settings):
        return cls(
            server_url=settings.get("server_url"),
            token=settings.get("token"),
            command_timeout=settings.get("command_timeout_s", 30),
            remote_search_timeout=settings.get("remote_search_timeout_s", 10),
            result_limit=settings.get("search_result_limit", 50),
        )

    @property
    def api_url(self):
        return f"{self.server_url}/api"

    def send_command(self, command, args=None, timeout=None):
        payload = {"command": command}
        if args is not None:
            payload["args"] = args
        resp = self.session.post(self.api_url, json=payload, timeout=timeout or self.command_timeout)
        if resp.status_code >= 400:
            raise CommandError(command, f"HTTP {resp.status_code} {resp.reason or ''}".strip(), resp.status_code)
        try:
            data = resp.json()
        except ValueError as e:
            raise CommandError(command, f"invalid json response: {e}") from e
        if isinstance(data, dict):
            if "error_code" in data:
                raise CommandError(command, str(data.get("details") or data.get("error") or "error"), data.get("error_code"))
            if "message_id" in data and "result" in data:
                return data["result"]
        return data

    def _is_server_error(self, exc):
        if isinstance(exc, CommandError) and isinstance(exc.code, int) and exc.code >= 500:
            return True
        text = str(exc).lower()
        return any(k in text for k in ("500", "502", "503", "504", "internal server error", "bad gateway"))

    def _is_retryable_error(self, exc):
        if isinstance(exc, (requests.ConnectionError, requests.Timeout)):
            return True
        if self._is_server_error(exc):
            return True
        text = str(exc).lower()
        return any(k in text for k in ("timeout", "timed out", "connection", "network", "temporary"))

    def _retry_api_call(self, fn, attempts=3, base_delay=0.35):
        last_exc = None
        for i in range(attempts):
            try:
                return fn()
            except Exception as e:
                last_exc = e
                if i >= attempts - 1 or not self._is_retryable_error(e):
                    raise
                delay = base_delay * (i + 1)
                logger.info("Retrying API call after transient error (%s). attempt=%s/%s", e, i + 1, attempts)
                time.sleep(delay)
        if last_exc:
            raise last_exc
        return None

    def _parse_items(self, raw, media_type):
        if not isinstance(raw, list):
            return []
        return [models.media_item_from_dict(x, media_type) for x in raw if isinstance(x, dict)]

    def search(self, query, library_only=False):
        """
        Global search across providers (or the library only).
        Raises on failure so callers can tell errors from zero results.
        """
        logger.info("Starting search for query: '%s' (library_only=%s)", query, library_only)
        args = {
            "search_query": query,
            "limit": self.result_limit,
            "library_only": bool(library_only),
        }
        res = self._retry_api_call(lambda: self.send_command("music/search", args))
        results = {key: [] for key in SEARCH_CATEGORIES}
        if not isinstance(res, dict):
            logger.debug("Search returned no result object for '%s': %r", query, type(res))
            return results
        for key in SEARCH_CATEGORIES:
            results[key] = deduplicate_results(self._parse_items(res.get(key), _SEARCH_KEYS[key]))
        logger.info(
            "Search parsed: %s artists, %s albums, %s tracks, %s playlists, %s audiobooks",
            len(results["artists"]),
            len(results["albums"]),
            len(results["tracks"]),
            len(results["playlists"]),
            len(results["audiobooks"]),
        )
        return results

    def search_with_cache(self, query, library_only=False, force_refresh=False):
        cache_key = (str(query or "").lower().strip(), bool(library_only))
        if not cache_key[0]:
            return {key: [] for key in SEARCH_CATEGORIES}

        with self._search_cache_lock:
            entry = self._search_cache.get(cache_key)
            epoch = self._search_cache_epoch
        if entry is not None and not force_refresh:
            stamp, cached = entry
            if (time.monotonic() - stamp) < self.search_cache_ttl_sec:
                logger.debug("Search cache hit for '%s'", query)
                return {k: list(v) for k, v in cached.items()}

        results = self.search(query, library_only=library_only)
        self._cache_search(cache_key, results, epoch)
        return {k: list(v) for k, v in results.items()}

    def _cache_search(self, cache_key, results, epoch=None):
        with self._search_cache_lock:
            # Results fetched before an invalidation may predate the edit that caused it.
            if epoch is not None and epoch != self._search_cache_epoch:
                return
            self._search_cache.pop(cache_key, None)
            self._search_cache[cache_key] = (time.monotonic(), results)
            while len(self._search_cache) > self.max_search_cache:
                oldest_key = next(iter(self._search_cache))
                self._search_cache.pop(oldest_key, None)

    def invalidate_search_cache(self):
        with self._search_cache_lock:
            self._search_cache.clear()
            self._search_cache_epoch += 1
        logger.debug("Search cache invalidated")

    def _search_single_type(self, query, media_type, result_key):
        args = {
            "search_query": query,
            "media_types": [media_type],
            "limit": self.result_limit,
        }
        res = self.send_command("music/search", args, timeout=self.remote_search_timeout)
        if not isinstance(res, dict):
            return []
        raw = res.get(result_key)
        if raw is None and result_key == "radio":
            raw = res.get("radios")
        return self._parse_items(raw, media_type)

    def search_radio_stations(self, query):
        return self._search_single_type(query, models.RADIO, "radio")

    def search_podcasts(self, query):
        return self._search_single_type(query, models.PODCAST, "podcasts")

    def _library_items(self, api_base, media_type, limit=500):
        res = self._retry_api_call(
            lambda: self.send_command(f"music/{api_base}/library_items", {"limit": limit, "offset": 0})
        )
        if isinstance(res, dict):
            res = res.get("items")
        return self._parse_items(res, media_type)

    def refresh_library_collections(self):
        try:
            self.radio_stations = self._library_items("radios", models.RADIO)
        except Exception as e:
            logger.warning("Failed to load library radio stations [%s]: %s", classify_exception(e), e)
        try:
            self.podcasts = self._library_items("podcasts", models.PODCAST)
        except Exception as e:
            logger.warning("Failed to load library podcasts [%s]: %s", classify_exception(e), e)
        logger.info("Library collections: %s radios, %s podcasts", len(self.radio_stations), len(self.podcasts))

    def add_to_favorites(self, media_type, provider, item_id):
        uri = f"{provider}://{media_type}/{item_id}"
        try:
            logger.debug("Adding to favorites: %s", uri)
            self.send_command("music/favorites/add_item", {"item": uri})
            self.invalidate_search_cache()
            return True
        except Exception as e:
            logger.warning("Failed to add favorite %s [%s]: %s", uri, classify_exception(e), e)
            return False

    def remove_from_favorites(self, media_type, library_item_id):
        try:
            self.send_command(
                "music/favorites/remove_item",
                {"media_type": media_type, "library_item_id": library_item_id},
            )
            self.invalidate_search_cache()
            return True
        except Exception as e:
            logger.warning(
                "Failed to remove favorite %s:%s [%s]: %s", media_type, library_item_id, classify_exception(e), e
            )
            return False

    def add_to_library(self, media_type, provider, item_id):
        uri = f"{provider}://{media_type}/{item_id}"
        try:
            self.send_command("music/library/add_item", {"item": uri})
            self.invalidate_search_cache()
            return True
        except Exception as e:
            logger.warning("Failed to add %s to library [%s]: %s", uri, classify_exception(e), e)
            return False

    def remove_from_library(self, media_type, library_item_id):
        try:
            self.send_command(
                "music/library/remove_item",
                {"media_type": media_type, "library_item_id": library_item_id},
            )
            self.invalidate_search_cache()
            return True
        except Exception as e:
            logger.warning(
                "Failed to remove %s:%s from library [%s]: %s", media_type, library_item_id, classify_exception(e), e
            )
            return False

import json
import logging
import os
from typing import Any

logger = logging.getLogger(__name__)


CURRENT_SETTINGS_VERSION = 1
MAX_SEARCH_HISTORY = 10
DEFAULT_SETTINGS_PATH = os.path.expanduser("~/.config/masearch/settings.json")

DEFAULT_SETTINGS = {
    "settings_version": CURRENT_SETTINGS_VERSION,
    "server_url": "http://localhost:8095",
    "token": "",
    "library_only": False,
    "search_debounce_ms": 500,
    "search_result_limit": 50,
    "command_timeout_s": 30,
    "remote_search_timeout_s": 10,
    "search_history": [],
}


def _as_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    return default


def _as_str(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _as_int(value: Any, default: int, minimum: int | None = None, maximum: int | None = None) -> int:
    # bool is an int subclass; a stray true/false must not become 1/0.
    if not isinstance(value, int) or isinstance(value, bool):
        return default
    if minimum is not None and value < minimum:
        return default
    if maximum is not None and value > maximum:
        return default
    return value


def _as_str_list(value: Any, default: list[str], max_items: int = MAX_SEARCH_HISTORY) -> list[str]:
    if not isinstance(value, list):
        return list(default)
    out: list[str] = []
    seen: set[str] = set()
    for item in value:
        if not isinstance(item, str) or not item.strip():
            continue
        key = item.strip().lower()
        if key in seen:
            continue
        seen.add(key)
        out.append(item.strip())
        if len(out) >= max_items:
            break
    return out


def _as_server_url(value: Any, default: str) -> str:
    url = _as_str(value, "")
    if not url:
        return default
    if "://" not in url:
        url = f"http://{url}"
    return url.rstrip("/")


def normalize_settings(raw: dict[str, Any] | None) -> dict[str, Any]:
    raw = raw or {}
    normalized = dict(DEFAULT_SETTINGS)
    normalized["server_url"] = _as_server_url(raw.get("server_url"), DEFAULT_SETTINGS["server_url"])
    token = raw.get("token")
    normalized["token"] = token.strip() if isinstance(token, str) else DEFAULT_SETTINGS["token"]
    normalized["library_only"] = _as_bool(raw.get("library_only"), DEFAULT_SETTINGS["library_only"])
    normalized["search_debounce_ms"] = _as_int(raw.get("search_debounce_ms"), DEFAULT_SETTINGS["search_debounce_ms"], minimum=100, maximum=5000)
    normalized["search_result_limit"] = _as_int(raw.get("search_result_limit"), DEFAULT_SETTINGS["search_result_limit"], minimum=1, maximum=500)
    normalized["command_timeout_s"] = _as_int(raw.get("command_timeout_s"), DEFAULT_SETTINGS["command_timeout_s"], minimum=1, maximum=300)
    normalized["remote_search_timeout_s"] = _as_int(raw.get("remote_search_timeout_s"), DEFAULT_SETTINGS["remote_search_timeout_s"], minimum=1, maximum=120)
    normalized["search_history"] = _as_str_list(raw.get("search_history"), DEFAULT_SETTINGS["search_history"])
    normalized["settings_version"] = CURRENT_SETTINGS_VERSION

    # Remote radio/podcast lookups must not outlive a whole command.
    if normalized["remote_search_timeout_s"] > normalized["command_timeout_s"]:
        normalized["remote_search_timeout_s"] = normalized["command_timeout_s"]
    return normalized


def apply_env_overrides(settings: dict[str, Any]) -> dict[str, Any]:
    out = dict(settings)
    server_url = os.getenv("MASEARCH_SERVER_URL")
    if server_url:
        out["server_url"] = _as_server_url(server_url, out["server_url"])
    token = os.getenv("MASEARCH_TOKEN")
    if token:
        out["token"] = token.strip()
    return out


def _read_json(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def load_settings(path: str) -> dict[str, Any]:
    """Settings from ``path``; a missing, unreadable or malformed file yields the defaults."""
    if not os.path.isfile(path):
        return normalize_settings(None)
    try:
        data = _read_json(path)
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable settings file %s: %s", path, e)
        return normalize_settings(None)
    if not isinstance(data, dict):
        logger.warning("Ignoring settings file %s: expected an object, got %s", path, type(data).__name__)
        return normalize_settings(None)
    return normalize_settings(data)


def save_settings(path: str, settings: dict[str, Any]) -> None:
    folder = os.path.dirname(path)
    if folder:
        os.makedirs(folder, exist_ok=True)
    payload = json.dumps(normalize_settings(settings), indent=2)
    # Write beside the target so the final replace stays on one filesystem.
    staging = f"{path}.tmp"
    with open(staging, "w", encoding="utf-8") as f:
        f.write(payload)
    os.replace(staging, path)

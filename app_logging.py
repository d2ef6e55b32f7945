import logging
import os
from pathlib import Path
from logging.handlers import RotatingFileHandler

ENV_PREFIX = "MASEARCH_LOG_"
LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"
DEFAULT_ROTATE_BYTES = 5 * 1024 * 1024
DEFAULT_BACKUP_COUNT = 3

# requests/urllib3 log every pooled connection at DEBUG.
_NOISY_LOGGERS = ("urllib3", "requests")


def _env(name: str, default: str = "") -> str:
    return os.getenv(ENV_PREFIX + name, default).strip()


def _positive_int(raw: str, default: int) -> int:
    try:
        val = int(raw)
    except (TypeError, ValueError):
        return default
    return val if val >= 1 else default


def _parse_level(level_name: str, default: int) -> int:
    level = getattr(logging, level_name.upper(), default)
    return level if isinstance(level, int) else default


def parse_module_levels(raw: str, default_level: int) -> dict[str, int]:
    """
    Parse per-module log levels, e.g.
    "ma_backend=DEBUG,search_actions=INFO" -> {"ma_backend": 10, "search_actions": 20}
    Malformed entries are skipped.
    """
    out: dict[str, int] = {}
    for entry in (raw or "").split(","):
        module_name, sep, level_name = entry.partition("=")
        module_name = module_name.strip()
        level_name = level_name.strip()
        if not sep or not module_name or not level_name:
            continue
        out[module_name] = _parse_level(level_name, default_level)
    return out


def _file_handler(log_file: str) -> RotatingFileHandler:
    path = Path(log_file).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        path,
        maxBytes=_positive_int(_env("ROTATE_BYTES"), DEFAULT_ROTATE_BYTES),
        backupCount=_positive_int(_env("BACKUP_COUNT"), DEFAULT_BACKUP_COUNT),
        encoding="utf-8",
    )


def setup_logging() -> None:
    """
    Configure application-wide logging once.

    Env vars:
    - MASEARCH_LOG_LEVEL: DEBUG/INFO/WARNING/ERROR (default: INFO)
    - MASEARCH_LOG_FILE: optional path to a rotating log file
    - MASEARCH_LOG_ROTATE_BYTES: max file size before rotation (default: 5242880)
    - MASEARCH_LOG_BACKUP_COUNT: number of rotated files to keep (default: 3)
    - MASEARCH_LOG_MODULE_LEVELS: comma-separated module overrides
      e.g. "ma_backend=DEBUG,search_actions=INFO"
    """
    level = _parse_level(_env("LEVEL", "INFO"), logging.INFO)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%H:%M:%S")

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    log_file = _env("FILE")
    if log_file:
        handlers.append(_file_handler(log_file))

    root = logging.getLogger()
    root.setLevel(level)
    # Repeated setup must not duplicate output.
    root.handlers.clear()
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    raw_overrides = _env("MODULE_LEVELS")
    if not raw_overrides:
        return
    overrides = parse_module_levels(raw_overrides, level)
    if not overrides:
        root.warning("Invalid module-level logging entries: %s", raw_overrides)
    for module_name, module_level in overrides.items():
        logging.getLogger(module_name).setLevel(module_level)
        root.info("Log level override: %s=%s", module_name, logging.getLevelName(module_level))

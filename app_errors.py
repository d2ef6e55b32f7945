from __future__ import annotations


class CommandError(Exception):
    """Raised when the Music Assistant server rejects a command."""

    def __init__(self, command: str, message: str, code: int | None = None):
        super().__init__(f"{command}: {message}" + (f" (code {code})" if code is not None else ""))
        self.command = command
        self.code = code


def classify_exception(exc: Exception) -> str:
    text = str(exc).lower()
    if any(k in text for k in ("401", "403", "unauthorized", "forbidden", "login", "not authenticated", "token")):
        return "auth"
    if any(k in text for k in ("500", "502", "503", "504", "internal server error", "bad gateway", "service unavailable")):
        return "server"
    if any(k in text for k in ("timeout", "timed out", "connection", "network", "dns", "unreachable", "not connected")):
        return "network"
    if any(k in text for k in ("404", "not found", "no such")):
        return "not_found"
    if any(k in text for k in ("busy", "in use", "resource busy")):
        return "busy"
    if any(k in text for k in ("json", "decode", "parse", "invalid")):
        return "parse"
    return "unknown"


def user_message(kind: str, context: str = "general") -> str:
    if context == "search":
        mapping = {
            "auth": "Search unavailable. Please login again.",
            "server": "Search temporarily unavailable on server side. Please retry.",
            "network": "Search failed due to network issue. Please retry.",
            "not_found": "No matching results found.",
            "parse": "Search response format error. Please retry.",
            "unknown": "Search failed. Please retry.",
        }
        return mapping.get(kind, mapping["unknown"])

    if context == "favorite":
        mapping = {
            "auth": "Favorites unavailable. Please login again.",
            "server": "Server could not update favorites. Please retry shortly.",
            "network": "Failed to update favorite due to network issue.",
            "not_found": "Item is no longer available.",
            "unknown": "Failed to update favorite.",
        }
        return mapping.get(kind, mapping["unknown"])

    if context == "library":
        mapping = {
            "auth": "Library unavailable. Please login again.",
            "server": "Server could not update the library. Please retry shortly.",
            "network": "Failed to update library due to network issue.",
            "not_found": "Cannot find library ID for this item.",
            "unknown": "Failed to update library.",
        }
        return mapping.get(kind, mapping["unknown"])

    return "Operation failed. Please retry."

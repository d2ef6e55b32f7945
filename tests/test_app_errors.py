import requests

from app_errors import CommandError, classify_exception, user_message


def test_classify_common_failures():
    assert classify_exception(Exception("401 Unauthorized")) == "auth"
    assert classify_exception(CommandError("music/search", "HTTP 502 Bad Gateway", 502)) == "server"
    assert classify_exception(requests.ConnectionError("Connection refused")) == "network"
    assert classify_exception(Exception("Item not found")) == "not_found"
    assert classify_exception(ValueError("Expecting value: invalid json")) == "parse"
    assert classify_exception(RuntimeError("boom")) == "unknown"


def test_command_error_carries_command_and_code():
    err = CommandError("music/favorites/add_item", "Provider rejected item", 999)
    assert err.command == "music/favorites/add_item"
    assert err.code == 999
    assert "music/favorites/add_item" in str(err)


def test_user_message_falls_back_per_context():
    assert user_message("network", "search") == "Search failed due to network issue. Please retry."
    assert user_message("busy", "search") == "Search failed. Please retry."
    assert user_message("not_found", "library") == "Cannot find library ID for this item."
    assert user_message("server", "other") == "Operation failed. Please retry."

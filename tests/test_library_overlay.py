import models
from library_overlay import (
    LibraryOverlay,
    effective_library_membership,
    resolve_add_target,
    resolve_favorite_target,
    resolve_library_item_id,
)


def _mapping(item_id, domain, instance=None, available=True):
    return {
        "item_id": item_id,
        "provider_domain": domain,
        "provider_instance": instance or domain,
        "available": available,
    }


def _album(provider="spotify", item_id="x1", mappings=()):
    return models.Album({"item_id": item_id, "provider": provider, "name": "Album", "provider_mappings": list(mappings)})


def test_overlay_keys_are_mutually_exclusive():
    overlay = LibraryOverlay()
    overlay.mark_added("album:1")
    overlay.mark_removed("album:1")
    assert "album:1" in overlay.removed
    assert "album:1" not in overlay.added
    overlay.mark_added("album:1")
    assert overlay.added == {"album:1"}
    assert overlay.removed == set()


def test_effective_membership_prefers_overlay():
    remote = _album()
    library = _album(provider="library", item_id="7")
    overlay = LibraryOverlay()
    assert effective_library_membership(remote, overlay) is False
    assert effective_library_membership(library, overlay) is True

    overlay.mark_added(remote.library_key)
    overlay.mark_removed(library.library_key)
    assert effective_library_membership(remote, overlay) is True
    assert effective_library_membership(library, overlay) is False


def test_effective_membership_from_library_mapping():
    item = _album(mappings=[_mapping("12", "library", "library")])
    assert effective_library_membership(item, LibraryOverlay()) is True


def test_resolve_add_target():
    item = _album(
        provider="library",
        item_id="3",
        mappings=[_mapping("3", "library", "library"), _mapping("sp9", "spotify", "spotify--abc")],
    )
    assert resolve_add_target(item) == ("spotify", "sp9")
    assert resolve_add_target(_album(provider="tidal", item_id="t1")) == ("tidal", "t1")
    assert resolve_add_target(_album(provider="library", item_id="4")) is None


def test_resolve_library_item_id():
    assert resolve_library_item_id(_album(provider="library", item_id="42")) == 42
    assert resolve_library_item_id(_album(mappings=[_mapping("17", "library", "library")])) == 17
    assert resolve_library_item_id(_album()) is None
    assert resolve_library_item_id(_album(provider="library", item_id="abc")) is None


def test_resolve_favorite_target_prefers_available_provider_mapping():
    item = _album(
        provider="library",
        item_id="5",
        mappings=[
            _mapping("5", "library", "library"),
            _mapping("gone", "tidal", "tidal--1", available=False),
            _mapping("sp5", "spotify", "spotify--xyz"),
        ],
    )
    assert resolve_favorite_target(item) == ("spotify", "sp5")


def test_resolve_favorite_target_fallbacks():
    only_library = _album(provider="library", item_id="5", mappings=[_mapping("5", "library", "library")])
    assert resolve_favorite_target(only_library) == ("library", "5")

    unavailable = _album(mappings=[_mapping("gone", "tidal", "tidal--1", available=False)])
    assert resolve_favorite_target(unavailable) == ("tidal", "gone")

    assert resolve_favorite_target(_album(provider="qobuz", item_id="q1")) == ("qobuz", "q1")

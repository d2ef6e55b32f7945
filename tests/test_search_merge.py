import models
from search_merge import (
    CROSS_REFERENCE_SCORE,
    deduplicate_results,
    extract_cross_referenced_artists,
    filter_library_items,
    merge_local_and_remote,
    search_category_with_fallback,
)


def _radio(item_id, name, provider="library"):
    return models.RadioStation({"item_id": item_id, "provider": provider, "name": name})


def _artist_dict(item_id, name, provider="spotify"):
    return {"item_id": item_id, "provider": provider, "name": name}


def test_filter_library_items_is_case_insensitive_substring():
    items = [_radio("1", "Jazz FM"), _radio("2", "Rock Antenne"), _radio("3", "Smooth JAZZ")]
    assert [r.item_id for r in filter_library_items(items, "jazz")] == ["1", "3"]


def test_merge_keeps_local_first_and_drops_remote_duplicates():
    local = [_radio("1", "Jazz FM"), _radio("2", "Radio Swiss Jazz")]
    remote = [
        _radio("r1", "jazz fm", provider="tunein"),
        _radio("r2", "KJazz", provider="tunein"),
        _radio("r3", "KJAZZ", provider="tunein"),
    ]
    merged = merge_local_and_remote(local, remote)
    assert [r.item_id for r in merged] == ["1", "2", "r2"]
    assert len({r.name.lower() for r in merged}) == len(merged)


def test_fallback_degrades_to_local_on_remote_error():
    local = [_radio("1", "Jazz FM"), _radio("2", "Talk Radio")]

    def failing_remote(query):
        raise ConnectionError("connection reset")

    out = search_category_with_fallback("radios", "jazz", local, failing_remote)
    assert [r.item_id for r in out] == ["1"]


def test_fallback_library_only_skips_remote():
    calls = []

    def remote(query):
        calls.append(query)
        return [_radio("r1", "Jazz Remote", provider="tunein")]

    out = search_category_with_fallback("radios", "jazz", [_radio("1", "Jazz FM")], remote, library_only=True)
    assert calls == []
    assert [r.item_id for r in out] == ["1"]


def test_fallback_merges_remote_results():
    def remote(query):
        return [_radio("r1", "Jazz FM", provider="tunein"), _radio("r2", "Jazz24", provider="tunein")]

    out = search_category_with_fallback("radios", "jazz", [_radio("1", "Jazz FM")], remote)
    assert [(r.provider, r.item_id) for r in out] == [("library", "1"), ("tunein", "r2")]


def test_deduplicate_prefers_library_copy():
    items = [
        models.Artist(_artist_dict("s1", "Queen", provider="spotify")),
        models.Artist(_artist_dict("t1", "Muse", provider="tidal")),
        models.Artist(_artist_dict("42", "QUEEN", provider="library")),
        models.Artist(_artist_dict("t2", "Queen", provider="tidal")),
    ]
    out = deduplicate_results(items)
    assert [(a.provider, a.item_id) for a in out] == [("library", "42"), ("tidal", "t1")]


def test_cross_referenced_artists_from_tracks_and_albums():
    direct = [models.Artist(_artist_dict("a0", "Beatles Tribute"))]
    tracks = [
        models.Track(
            {
                "item_id": "t1",
                "provider": "spotify",
                "name": "Yesterday",
                "artists": [_artist_dict("a1", "The Beatles"), _artist_dict("a0", "Beatles Tribute")],
            }
        )
    ]
    albums = [
        models.Album(
            {
                "item_id": "al1",
                "provider": "spotify",
                "name": "Abbey Road",
                "artists": [_artist_dict("a1", "The Beatles"), _artist_dict("a2", "George Martin")],
            }
        )
    ]
    out = extract_cross_referenced_artists("Yesterday Beatles", direct, albums, tracks)
    assert [(a.provider, a.item_id) for a in out] == [("spotify", "a1")]
    assert CROSS_REFERENCE_SCORE == 25.0


def test_cross_reference_ignores_short_words():
    tracks = [
        models.Track(
            {"item_id": "t1", "provider": "spotify", "name": "Song", "artists": [_artist_dict("a1", "U2")]}
        )
    ]
    assert extract_cross_referenced_artists("u2 go", [], [], tracks) == []
    assert extract_cross_referenced_artists("   ", [], [], tracks) == []


def test_cross_reference_keys_by_provider_and_id():
    tracks = [
        models.Track(
            {
                "item_id": "t1",
                "provider": "spotify",
                "name": "One",
                "artists": [_artist_dict("a1", "Metallica", provider="spotify")],
            }
        )
    ]
    albums = [
        models.Album(
            {
                "item_id": "al1",
                "provider": "tidal",
                "name": "Black",
                "artists": [_artist_dict("a1", "Metallica", provider="tidal")],
            }
        )
    ]
    out = extract_cross_referenced_artists("metallica one", [], albums, tracks)
    assert [(a.provider, a.item_id) for a in out] == [("spotify", "a1"), ("tidal", "a1")]

import models
from search_scoring import SCORES, matches_word_boundary, score_item


def _artist(name, **extra):
    return models.Artist({"item_id": name.lower(), "provider": "spotify", "name": name, **extra})


def _album(name, artists=(), **extra):
    data = {"item_id": name.lower(), "provider": "spotify", "name": name, **extra}
    data["artists"] = [{"item_id": a.lower(), "provider": "spotify", "name": a} for a in artists]
    return models.Album(data)


def test_name_tiers_are_ordered():
    q = "love"
    exact = score_item(_artist("Love"), q)
    starts = score_item(_artist("Lovebirds"), q)
    boundary = score_item(_artist("Big Lovers"), q)
    contains = score_item(_artist("Glovebox"), q)
    baseline = score_item(_artist("Nothing"), q)
    assert (exact, starts, boundary, contains, baseline) == (100.0, 80.0, 60.0, 40.0, 20.0)


def test_score_is_case_insensitive_and_trims_query():
    assert score_item(_artist("Daft Punk"), "  DAFT PUNK ") == SCORES["exact"]


def test_empty_query_scores_zero():
    assert score_item(_artist("Anything"), "   ") == 0.0


def test_multi_word_boundary_requires_space_or_start():
    assert matches_word_boundary("the dark side", "dark side")
    assert matches_word_boundary("dark side of", "dark side")
    assert not matches_word_boundary("thedark side", "dark side")
    assert matches_word_boundary("into the void", "voi")
    assert not matches_word_boundary("avoid", "voi")


def test_exact_name_outranks_contains_with_all_bonuses():
    q = "abbey"
    exact = _album("Abbey")
    loaded = _album(
        "Gabbey Sessions",
        artists=["Abbey"],
        provider="library",
        favorite=True,
    )
    assert score_item(loaded, q) == 40.0 + 10.0 + 5.0 + 15.0
    assert score_item(exact, q) > score_item(loaded, q)


def test_album_library_bonus_via_mapping():
    album = _album(
        "Blue",
        provider_mappings=[{"item_id": "7", "provider_domain": "library", "provider_instance": "library"}],
    )
    assert score_item(album, "blue") == 110.0


def test_track_artist_and_album_bonuses():
    track = models.Track(
        {
            "item_id": "1",
            "provider": "tidal",
            "name": "Yesterday",
            "artists": [{"item_id": "a1", "provider": "tidal", "name": "The Beatles"}],
            "album": {"item_id": "al1", "provider": "tidal", "name": "Help! Beatles"},
        }
    )
    # "beatles": name baseline 20, artist contains +8, album contains +5
    assert score_item(track, "beatles") == 33.0


def test_audiobook_author_and_narrator_bonuses():
    book = models.Audiobook(
        {
            "item_id": "b1",
            "name": "Dune",
            "authors": [{"name": "Frank Herbert"}],
            "narrators": ["Scott Brick", "Frank Herbert"],
        }
    )
    assert score_item(book, "frank herbert") == 20.0 + 15.0 + 5.0


def test_podcast_creator_match_skips_prominence():
    pod = models.Podcast(
        {"item_id": "p1", "name": "Grounded with Louis Theroux", "metadata": {"author": "Louis Theroux"}}
    )
    # word boundary 60 + exact creator 15; prominence not applied
    assert score_item(pod, "louis theroux") == 75.0


def test_podcast_prominence_tiers_without_creator():
    strong = models.Podcast({"item_id": "p1", "name": "The Louis Theroux Podcast"})
    weak = models.Podcast({"item_id": "p2", "name": "Conversations and stories with louis theroux"})
    single = models.Podcast({"item_id": "p3", "name": "Theroux Talks"})
    # 13/25 = 0.52 -> +15
    assert score_item(strong, "louis theroux") == 60.0 + 15.0
    # 13/45 < 0.3 -> +8
    assert score_item(weak, "louis theroux") == 60.0 + 8.0
    assert score_item(single, "theroux") == 80.0 + 5.0


def test_podcast_description_bonus():
    pod = models.Podcast(
        {"item_id": "p1", "name": "Weekly Show", "metadata": {"description": "A show about jazz"}}
    )
    assert score_item(pod, "jazz") == 20.0 + 5.0


def test_unfavorited_artist_gets_no_favorite_bonus():
    assert score_item(_artist("Muse", favorite=False), "muse") == 100.0
    assert score_item(_artist("Muse", favorite=True), "muse") == 105.0

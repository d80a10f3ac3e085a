from hypothesis import given, strategies as st

from listening_receipt.aggregation import (
    SummaryCalculator,
    decade_label,
    listener_type,
    sorted_decades,
    summarize,
    top_artists,
    top_entries,
    top_genres,
)
from listening_receipt.models.track import Track
from tests.support.factories import make_track

ARTISTS = ["A", "B", "C", "A, B", "D, A", "Daft Punk, Pharrell Williams"]

tracks_strategy = st.lists(
    st.builds(
        Track,
        id=st.uuids().map(str),
        name=st.text(max_size=10),
        artist=st.sampled_from(ARTISTS),
        duration_ms=st.integers(min_value=0, max_value=900000),
        popularity=st.integers(min_value=0, max_value=100),
        explicit=st.booleans(),
        release_date=st.one_of(st.none(), st.sampled_from(["1999-03-01", "2021", "1987-06", "", "n/a", "20x1"])),
    ),
    max_size=60,
)


def test_three_tracks_two_artists():
    tracks = [
        make_track("t1", artist="A", duration_ms=100000),
        make_track("t2", artist="A", duration_ms=200000),
        make_track("t3", artist="B", duration_ms=300000),
    ]

    summary = summarize(tracks)

    assert summary.variety_score == 2 / 3
    assert summary.avg_duration == 200000
    assert summary.avg_popularity == 50
    assert summary.shortest_track.id == "t1"
    assert summary.longest_track.id == "t3"
    assert summary.artist_counts == {"A": 2, "B": 1}
    assert summary.track_count == 3


def test_empty_input_gives_zeroed_summary():
    summary = summarize([])

    assert summary.avg_popularity == 0
    assert summary.avg_duration == 0
    assert summary.explicit_count == 0
    assert summary.track_count == 0
    assert summary.variety_score == 0
    assert summary.shortest_track is None
    assert summary.longest_track is None
    assert summary.genre_counts == {}
    assert summary.artist_counts == {}
    assert summary.decade_counts == {}


def test_explicit_count_and_genre_passthrough():
    tracks = [make_track("t1", explicit=True), make_track("t2"), make_track("t3", explicit=True)]
    genres = {"pop": 2}

    summary = summarize(tracks, genres)

    assert summary.explicit_count == 2
    assert summary.genre_counts == {"pop": 2}
    assert summary.genre_counts is not genres


def test_featured_artists_are_attributed_to_first_performer():
    tracks = [make_track("t1", artist="A, B"), make_track("t2", artist="B")]
    summary = summarize(tracks)
    assert summary.artist_counts == {"A": 1, "B": 1}


def test_duration_ties_use_fetch_order():
    tracks = [
        make_track("first-short", duration_ms=1000),
        make_track("second-short", duration_ms=1000),
        make_track("first-long", duration_ms=5000),
        make_track("second-long", duration_ms=5000),
    ]
    shortest, longest = SummaryCalculator().calculate_duration_extremes(tracks)
    assert shortest.id == "first-short"
    assert longest.id == "second-long"


def test_decade_labels():
    assert decade_label("1999-03-01") == "1990s"
    assert decade_label("2020") == "2020s"
    assert decade_label("1987-06") == "1980s"
    assert decade_label(None) is None
    assert decade_label("") is None
    assert decade_label("unknown") is None
    assert decade_label("99-01-01") is None


def test_decade_counts_skip_missing_dates():
    tracks = [
        make_track("t1", release_date="1999-03-01"),
        make_track("t2", release_date="1995"),
        make_track("t3", release_date=None),
        make_track("t4", release_date="garbage"),
        make_track("t5", release_date="2023-01-20"),
    ]
    assert summarize(tracks).decade_counts == {"1990s": 2, "2020s": 1}


@given(tracks=tracks_strategy)
def test_variety_score_bounds(tracks):
    summary = summarize(tracks)
    assert 0 <= summary.variety_score <= 1
    assert (summary.variety_score == 0) == (len(tracks) == 0)
    primaries = [t.primary_artist for t in tracks]
    if tracks:
        assert (summary.variety_score == 1) == (len(set(primaries)) == len(primaries))


@given(tracks=tracks_strategy)
def test_artist_counts_sum_to_track_count(tracks):
    summary = summarize(tracks)
    assert sum(summary.artist_counts.values()) == summary.track_count == len(tracks)
    assert all(count > 0 for count in summary.artist_counts.values())


@given(tracks=tracks_strategy)
def test_duration_extremes_are_ordered(tracks):
    summary = summarize(tracks)
    if tracks:
        assert summary.shortest_track.duration_ms <= summary.longest_track.duration_ms
        assert summary.shortest_track.duration_ms == min(t.duration_ms for t in tracks)
        assert summary.longest_track.duration_ms == max(t.duration_ms for t in tracks)
    else:
        assert summary.shortest_track is None and summary.longest_track is None


@given(tracks=tracks_strategy)
def test_aggregation_is_idempotent(tracks):
    assert summarize(tracks) == summarize(tracks)
    assert repr(summarize(tracks)) == repr(summarize(tracks))


@given(tracks=tracks_strategy)
def test_decade_counts_never_exceed_tracks(tracks):
    summary = summarize(tracks)
    assert sum(summary.decade_counts.values()) <= len(tracks)
    assert all(label.endswith("0s") for label in summary.decade_counts)


def test_top_genres_orders_by_count():
    counts = {"indie": 2, "pop": 5, "rap": 3, "jazz": 1}
    assert top_genres(counts) == ["pop", "rap", "indie"]


def test_top_genres_fallbacks():
    assert top_genres({}, degraded=True) == ["Pop", "Music"]
    assert top_genres({}) == ["Eclectic"]


def test_top_entries_and_sorted_decades():
    assert top_entries({"a": 1, "b": 3, "c": 3}, 2) == [("b", 3), ("c", 3)]
    assert sorted_decades({"2010s": 4, "1980s": 1, "2000s": 2}) == [("1980s", 1), ("2000s", 2), ("2010s", 4)]


def test_top_artists_are_distinct_primaries_in_order():
    tracks = [make_track("1", artist="B, A"), make_track("2", artist="A"), make_track("3", artist="B")]
    assert top_artists(tracks) == ["B", "A"]


def test_listener_type_thresholds():
    assert listener_type(0.9) == "EXPLORER"
    assert listener_type(0.81) == "EXPLORER"
    assert listener_type(0.8) == "BALANCED"
    assert listener_type(0.6) == "BALANCED"
    assert listener_type(0.5) == "LOYALIST"
    assert listener_type(0.0) == "LOYALIST"

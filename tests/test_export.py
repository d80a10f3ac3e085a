import json
from datetime import datetime, timezone

import pytest

from listening_receipt.aggregation import summarize
from listening_receipt.models.track import ListeningReport
from listening_receipt.utils.formatting import format_duration, format_receipt_date
from listening_receipt.utils.json_encoder import json_dumps, report_to_dict
from tests.support.factories import make_track


def build_report():
    tracks = [
        make_track("t1", artist="A", duration_ms=243000, artist_ids=("a",), release_date="1999-03-01"),
        make_track("t2", artist="B", duration_ms=178000, artist_ids=("b",)),
        make_track("t3", artist="A", duration_ms=230000, artist_ids=("a",)),
    ]
    return ListeningReport(
        username="Robin",
        time_range="short_term",
        top_tracks=tracks,
        top_artists=["A", "B"],
        top_genres=["synthpop"],
        summary=summarize(tracks, {"synthpop": 2}),
        generated_at=datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc),
    )


def test_format_duration():
    assert format_duration(243000) == "4:03"
    assert format_duration(178000) == "2:58"
    assert format_duration(0) == "0:00"
    assert format_duration(59999) == "1:00"
    assert format_duration(200000.0) == "3:20"


def test_format_receipt_date():
    assert format_receipt_date(datetime(2026, 10, 18)) == "SUN 10/18/26"


def test_report_to_dict_adds_receipt_and_rankings():
    data = report_to_dict(build_report(), length=2)

    assert [t["id"] for t in data["receipt"]] == ["t1", "t2"]
    assert len(data["top_tracks"]) == 3
    assert data["display"]["listener_type"] == "BALANCED"
    assert data["display"]["variety_percent"] == 67
    assert data["display"]["top_artists"] == [("A", 2), ("B", 1)]
    assert data["display"]["decades"] == [("1990s", 1)]
    assert data["summary"]["shortest_track"]["id"] == "t2"


def test_report_serializes_to_json():
    text = json_dumps(report_to_dict(build_report(), length=10))
    decoded = json.loads(text)
    assert decoded["generated_at"] == "2026-10-18T12:00:00+00:00"
    assert decoded["summary"]["artist_counts"] == {"A": 2, "B": 1}
    assert decoded["top_tracks"][0]["artist_ids"] == ["a"]


def test_encoder_handles_dataclasses_directly():
    decoded = json.loads(json_dumps({"track": make_track("t1")}))
    assert decoded["track"]["id"] == "t1"


def test_encoder_leaves_tuples_to_json_and_rejects_unknown_types():
    assert json.loads(json_dumps({"pair": ("A", 2)})) == {"pair": ["A", 2]}
    with pytest.raises(TypeError):
        json_dumps({"ids": {"a1"}})

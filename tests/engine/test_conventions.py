"""Tests for category key conventions."""

from listenstream.engine.bucketing import TimeBucketer
from listenstream.engine.conventions import TOTAL_KEY, UNCATEGORIZED, format_category, is_total_only
from listenstream.engine.stream_layout import layout


def test_format_category():
    assert format_category("Radiohead") == "Radiohead"
    assert format_category(UNCATEGORIZED) == "Unknown"


def test_is_total_only():
    assert is_total_only([TOTAL_KEY])
    assert not is_total_only(["A", TOTAL_KEY])
    assert not is_total_only([])


def test_total_table_uses_total_key(listen_log):
    counts = TimeBucketer("week").bucket(listen_log)
    assert is_total_only(counts.categories)
    assert list(counts.bucket_totals()) == [1, 3, 3]


def test_layer_label_for_missing_metadata(listen_rows):
    from listenstream.engine.event_log import EventLog

    rows = [dict(r, category="rock") for r in listen_rows[:3]] + listen_rows[3:]
    counts = TimeBucketer("week").bucket(EventLog.from_records(rows), "category")
    series = layout(counts)
    labels = {layer.key: layer.label for layer in series}
    assert labels == {"rock": "rock", UNCATEGORIZED: "Unknown"}

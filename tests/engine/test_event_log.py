"""Unit tests for EventLog loading, parsing and window filtering."""

import pandas as pd
import pytest

from listenstream.engine.errors import EmptyInputError, MalformedEventError
from listenstream.engine.event_log import Event, EventLog, load_event_log, parse_timestamp


def test_from_records_keeps_load_order_and_extent(listen_log):
    """EventLog keeps rows in source order and reports first/last instants."""
    assert len(listen_log) == 7
    assert list(listen_log.frame["artist"]) == ["C", "A", "B", "A", "A", "C", "B"]
    assert listen_log.extent == (pd.Timestamp("2022-12-30 10:00"), pd.Timestamp("2023-01-15 23:00"))


def test_parse_timestamp_date_only_and_tz_aware():
    """Date-only strings parse to midnight; tz-aware inputs are converted to naive UTC."""
    assert parse_timestamp("2023-01-02") == pd.Timestamp("2023-01-02 00:00")
    ts = parse_timestamp("2023-01-02T10:00:00+02:00")
    assert ts == pd.Timestamp("2023-01-02 08:00")
    assert ts.tzinfo is None


def test_missing_ts_aborts_load():
    rows = [
        {"ts": "2023-01-02", "track": "t", "artist": "a", "album": "x"},
        {"ts": None, "track": "t", "artist": "a", "album": "x"},
    ]
    with pytest.raises(MalformedEventError) as exc_info:
        EventLog.from_records(rows)
    assert exc_info.value.row_index == 1


def test_unparseable_ts_aborts_load():
    rows = [
        {"ts": "2023-01-02", "track": "t", "artist": "a", "album": "x"},
        {"ts": "2023-01-03", "track": "t", "artist": "a", "album": "x"},
        {"ts": "yesterday-ish", "track": "t", "artist": "a", "album": "x"},
    ]
    with pytest.raises(MalformedEventError) as exc_info:
        EventLog.from_records(rows)
    assert exc_info.value.row_index == 2
    assert "yesterday-ish" in str(exc_info.value)


def test_missing_field_aborts_load():
    with pytest.raises(MalformedEventError) as exc_info:
        EventLog.from_records([{"ts": "2023-01-02", "track": "t", "album": "x"}])
    assert "artist" in str(exc_info.value)


def test_zero_rows_raises_empty_input():
    with pytest.raises(EmptyInputError):
        EventLog.from_records([])


def test_events_yields_immutable_events(listen_log):
    events = list(listen_log.events())
    assert events[1] == Event(
        timestamp=pd.Timestamp("2023-01-02 09:00"),
        track="t1",
        artist="A",
        album="a1",
        category=None,
    )
    with pytest.raises(AttributeError):
        events[1].artist = "Z"


def test_category_metadata_is_passed_through():
    log = EventLog.from_records(
        [{"ts": "2023-01-02", "track": "t", "artist": "a", "album": "x", "category": "jazz"}]
    )
    assert next(log.events()).category == "jazz"


def test_frame_is_a_copy(listen_log):
    df = listen_log.frame
    df.loc[0, "artist"] = "mutated"
    assert listen_log.frame.loc[0, "artist"] == "C"


def test_filter_window_is_inclusive(listen_log):
    df = listen_log.filter_window(pd.Timestamp("2023-01-02 09:00"), pd.Timestamp("2023-01-09 08:00"))
    assert list(df["track"]) == ["t1", "t2", "t1", "t3"]


def test_filter_window_can_be_empty(listen_log):
    df = listen_log.filter_window(pd.Timestamp("2023-01-05"), pd.Timestamp("2023-01-08"))
    assert len(df) == 0


@pytest.mark.asyncio
async def test_load_event_log_from_iterable(listen_rows):
    log = await load_event_log(listen_rows)
    assert len(log) == len(listen_rows)


@pytest.mark.asyncio
async def test_load_event_log_from_async_iterable(listen_rows):
    async def rows():
        for row in listen_rows:
            yield row

    log = await load_event_log(rows())
    assert len(log) == len(listen_rows)


@pytest.mark.asyncio
async def test_load_event_log_from_awaitable(listen_rows):
    async def fetch():
        return listen_rows

    log = await load_event_log(fetch())
    assert log.extent[1] == pd.Timestamp("2023-01-15 23:00")


@pytest.mark.asyncio
async def test_load_event_log_fails_whole_load_on_bad_row(listen_rows):
    rows = listen_rows + [{"ts": "", "track": "t", "artist": "a", "album": "x"}]
    with pytest.raises(MalformedEventError):
        await load_event_log(rows)

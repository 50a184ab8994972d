"""Normalized, read-only collection of listening events.

The EventLog is built once at load time and never mutated. It keeps the
events in source (first-seen) order; that order is the deterministic
tie-break used by rankings and stack ordering downstream.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, AsyncIterable, Awaitable, Iterable, Iterator, Mapping, Optional, Union

import pandas as pd

from listenstream.engine.errors import EmptyInputError, MalformedEventError
from listenstream.utils.logging import get_logger

logger = get_logger(__name__)

EVENT_COLUMNS = ["timestamp", "track", "artist", "album", "category"]
REQUIRED_ROW_FIELDS = ("ts", "track", "artist", "album")

Row = Mapping[str, Any]
RowSource = Union[Iterable[Row], AsyncIterable[Row], Awaitable[Iterable[Row]]]


@dataclass(frozen=True)
class Event:
    """A single listen. ``category`` is opaque, externally supplied metadata."""

    timestamp: pd.Timestamp  # tz-naive, UTC
    track: str
    artist: str
    album: str
    category: Optional[str] = None


def parse_timestamp(value: Any, row_index: Optional[int] = None) -> pd.Timestamp:
    """Parse a date or date-time value into a tz-naive UTC Timestamp.

    tz-aware inputs are converted to UTC; naive inputs are taken as UTC.

    Raises:
        MalformedEventError: If the value is missing or cannot be parsed.
    """
    where = f"Row {row_index}: " if row_index is not None else ""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise MalformedEventError(f"{where}missing 'ts'", row_index)
    try:
        ts = pd.Timestamp(value)
    except (ValueError, TypeError) as e:
        raise MalformedEventError(f"{where}unparseable ts {value!r}: {e}", row_index) from e
    if pd.isna(ts):
        raise MalformedEventError(f"{where}unparseable ts {value!r}", row_index)
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    return ts


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def event_from_row(row: Row, row_index: Optional[int] = None) -> Event:
    """Build an Event from a ``{ts, track, artist, album[, category]}`` row."""
    if not isinstance(row, Mapping):
        raise MalformedEventError(f"Row {row_index}: expected a mapping, got {type(row).__name__}", row_index)
    missing = [f for f in REQUIRED_ROW_FIELDS if f not in row]
    if missing:
        raise MalformedEventError(f"Row {row_index}: missing field(s) {missing}", row_index)
    category = row.get("category")
    return Event(
        timestamp=parse_timestamp(row["ts"], row_index),
        track=_text(row["track"]),
        artist=_text(row["artist"]),
        album=_text(row["album"]),
        category=None if category is None else str(category),
    )


def iter_events(df: pd.DataFrame) -> Iterator[Event]:
    """Events for the rows of an event table (e.g. a window slice)."""
    for row in df.itertuples(index=False):
        yield Event(
            timestamp=pd.Timestamp(row.timestamp),
            track=row.track,
            artist=row.artist,
            album=row.album,
            category=None if pd.isna(row.category) else row.category,
        )


class EventLog:
    """Read-only, pandas-backed collection of Events in load order.

    Attributes:
        extent: ``(first, last)`` observed timestamps.
    """

    def __init__(self, df: pd.DataFrame) -> None:
        missing = [c for c in EVENT_COLUMNS if c not in df.columns]
        if missing:
            raise ValueError(f"df must contain event columns {missing!r}")
        if len(df) == 0:
            raise EmptyInputError("Event log has zero events")

        df = df[EVENT_COLUMNS].reset_index(drop=True).copy()
        df["timestamp"] = pd.to_datetime(df["timestamp"]).astype("datetime64[ns]")
        self._df = df
        self.extent: tuple[pd.Timestamp, pd.Timestamp] = (
            pd.Timestamp(df["timestamp"].min()),
            pd.Timestamp(df["timestamp"].max()),
        )

    @classmethod
    def from_events(cls, events: Iterable[Event]) -> "EventLog":
        records = [
            {
                "timestamp": e.timestamp,
                "track": e.track,
                "artist": e.artist,
                "album": e.album,
                "category": e.category,
            }
            for e in events
        ]
        return cls(pd.DataFrame(records, columns=EVENT_COLUMNS))

    @classmethod
    def from_records(cls, rows: Iterable[Row]) -> "EventLog":
        """Parse source rows into an EventLog; any bad row aborts the load.

        Raises:
            MalformedEventError: On the first row that fails to parse.
            EmptyInputError: If there are no rows.
        """
        events = [event_from_row(row, i) for i, row in enumerate(rows)]
        if not events:
            raise EmptyInputError("Event source yielded zero rows")
        log = cls.from_events(events)
        logger.info(
            "Loaded %s events spanning %s to %s",
            len(log),
            log.extent[0],
            log.extent[1],
        )
        return log

    def __len__(self) -> int:
        return len(self._df)

    def __repr__(self) -> str:
        return f"EventLog(n={len(self)}, extent=({self.extent[0]}, {self.extent[1]}))"

    @property
    def frame(self) -> pd.DataFrame:
        """Copy of the underlying table (callers cannot mutate the log)."""
        return self._df.copy()

    def events(self) -> Iterator[Event]:
        return iter_events(self._df)

    def filter_window(self, start: pd.Timestamp, end: pd.Timestamp) -> pd.DataFrame:
        """Rows with ``start <= timestamp <= end``, load order preserved."""
        ts = self._df["timestamp"]
        mask = (ts >= pd.Timestamp(start)) & (ts <= pd.Timestamp(end))
        return self._df[mask].reset_index(drop=True)


async def load_event_log(source: RowSource) -> EventLog:
    """Await the row source and build an EventLog.

    ``source`` may be an awaitable resolving to rows, an async iterable of
    rows, or a plain iterable of rows. This is the only suspending operation
    of the engine; everything after load runs synchronously.
    """
    if inspect.isawaitable(source):
        rows = list(await source)
    elif hasattr(source, "__aiter__"):
        rows = [row async for row in source]  # type: ignore[union-attr]
    else:
        rows = list(source)  # type: ignore[arg-type]
    return EventLog.from_records(rows)

"""Time bucketing of listening events.

Groups events into calendar-aligned day / week / month buckets and counts
them, optionally split by a category (artist, track, ...). The output is
always dense: every bucket between the first and last instant is present,
and every category is present in every bucket (zero-filled). Stacked
layouts and cumulative sums depend on that.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Iterable, Optional, Union

import pandas as pd

from listenstream.engine.conventions import CATEGORY_FIELDS, TOTAL_KEY, UNCATEGORIZED, is_total_only
from listenstream.engine.errors import EmptyInputError
from listenstream.engine.event_log import Event, EventLog, iter_events

CategoryAccessor = Union[str, Callable[[Event], Any]]

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
# pandas anchored weekly frequency per week-start weekday (Monday = 0)
_WEEK_FREQ = ("W-MON", "W-TUE", "W-WED", "W-THU", "W-FRI", "W-SAT", "W-SUN")


class Granularity(Enum):
    """Bucket width."""
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


def parse_weekday(value: Union[str, int]) -> int:
    """Weekday name ("monday", "Mon") or number (Monday = 0) to 0..6."""
    if isinstance(value, int):
        if not 0 <= value <= 6:
            raise ValueError(f"weekday must be 0..6, got {value}")
        return value
    name = str(value).strip().lower()
    for i, day in enumerate(WEEKDAYS):
        if day == name or (len(name) >= 3 and day.startswith(name)):
            return i
    raise ValueError(f"Unknown weekday {value!r}")


class BucketedCount:
    """Dense ``bucket x category`` count table.

    ``table`` index holds the bucket keys (strictly increasing, gap-free),
    columns hold the categories in first-seen order. Combinations without
    events are stored as 0, never left out.
    """

    def __init__(self, table: pd.DataFrame, granularity: Granularity) -> None:
        table = table.astype("int64")
        table.index.name = "bucket"
        table.columns.name = "category"
        self.table = table
        self.granularity = granularity

    def __len__(self) -> int:
        return len(self.table.index)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BucketedCount):
            return NotImplemented
        return (
            self.granularity == other.granularity
            and list(self.table.columns) == list(other.table.columns)
            and self.table.index.equals(other.table.index)
            and self.table.equals(other.table)
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"BucketedCount({self.granularity.value}, buckets={len(self)}, "
            f"categories={len(self.categories)}, total={self.total()})"
        )

    @property
    def keys(self) -> pd.DatetimeIndex:
        return self.table.index

    @property
    def categories(self) -> list[str]:
        return list(self.table.columns)

    def count(self, bucket: Any, category: str = TOTAL_KEY) -> int:
        """Count for one combination; absent combinations are 0."""
        bucket = pd.Timestamp(bucket)
        if category not in self.table.columns or bucket not in self.table.index:
            return 0
        return int(self.table.at[bucket, category])

    def total(self) -> int:
        return int(self.table.to_numpy().sum())

    def bucket_totals(self) -> pd.Series:
        """Events per bucket, summed over categories."""
        if is_total_only(self.table.columns):
            return self.table[TOTAL_KEY].copy()
        return self.table.sum(axis=1).astype("int64").rename(TOTAL_KEY)

    def cumulative(self) -> pd.Series:
        """Running total of events over the bucket sequence."""
        return self.bucket_totals().cumsum()

    def category_totals(self) -> list[tuple[str, int]]:
        """``(category, count)`` over all buckets, in first-seen order."""
        sums = self.table.sum(axis=0)
        return [(str(k), int(v)) for k, v in sums.items()]

    def select(self, categories: Iterable[str]) -> "BucketedCount":
        """Restrict to ``categories`` (in the given order); unknown ones are zero-filled."""
        cols = list(categories)
        return BucketedCount(self.table.reindex(columns=cols, fill_value=0), self.granularity)

    def to_records(self) -> list[dict[str, Any]]:
        """Long format ``{bucket, category, count}`` rows, zero rows included."""
        out = []
        for bucket, row in self.table.iterrows():
            for category, value in row.items():
                out.append({"bucket": bucket, "category": category, "count": int(value)})
        return out


class TimeBucketer:
    """Counts events per calendar bucket.

    Args:
        granularity: "day", "week" or "month" (or a Granularity).
        week_start: Weekday weeks align to (name or 0..6, Monday = 0).
    """

    def __init__(
        self,
        granularity: Union[str, Granularity] = Granularity.WEEK,
        *,
        week_start: Union[str, int] = "monday",
    ) -> None:
        self.granularity = Granularity(granularity)
        self.week_start = parse_weekday(week_start)

    def __repr__(self) -> str:
        return f"TimeBucketer({self.granularity.value!r}, week_start={WEEKDAYS[self.week_start]!r})"

    @property
    def freq(self) -> str:
        if self.granularity is Granularity.DAY:
            return "D"
        if self.granularity is Granularity.WEEK:
            return _WEEK_FREQ[self.week_start]
        return "MS"

    def floor(self, ts: Any) -> pd.Timestamp:
        """Start of the bucket containing ``ts``."""
        d = pd.Timestamp(ts).normalize()
        if self.granularity is Granularity.WEEK:
            return d - pd.Timedelta(days=(d.weekday() - self.week_start) % 7)
        if self.granularity is Granularity.MONTH:
            return d.replace(day=1)
        return d

    def floor_series(self, ts: pd.Series) -> pd.Series:
        """Vectorized floor() over a datetime Series."""
        d = pd.to_datetime(ts).dt.normalize()
        if self.granularity is Granularity.WEEK:
            return d - pd.to_timedelta((d.dt.weekday - self.week_start) % 7, unit="D")
        if self.granularity is Granularity.MONTH:
            return d - pd.to_timedelta(d.dt.day - 1, unit="D")
        return d

    def bucket_keys(self, start: Any, end: Any) -> pd.DatetimeIndex:
        """Every bucket start from floor(start) to floor(end), inclusive."""
        first, last = self.floor(start), self.floor(end)
        if last < first:
            raise ValueError(f"end {end} is before start {start}")
        return pd.date_range(first, last, freq=self.freq, name="bucket")

    def count_boundaries(self, start: Any, end: Any) -> int:
        """Number of bucket starts ``b`` with ``start < b <= end``."""
        return len(self.bucket_keys(start, end)) - 1

    def category_values(self, df: pd.DataFrame, category: CategoryAccessor) -> pd.Series:
        """Category key per event row; missing metadata maps to UNCATEGORIZED."""
        if callable(category):
            values = [category(e) for e in iter_events(df)]
            s = pd.Series(values, index=df.index, dtype=object)
        else:
            if category not in CATEGORY_FIELDS or category not in df.columns:
                raise ValueError(f"Unknown category field {category!r}; expected one of {CATEGORY_FIELDS}")
            s = df[category].astype(object)
        s = s.where(s.notna(), UNCATEGORIZED)
        return s.map(str)

    def bucket(
        self,
        events: Union[EventLog, pd.DataFrame],
        category: Optional[CategoryAccessor] = None,
        *,
        extent: Optional[tuple[Any, Any]] = None,
    ) -> BucketedCount:
        """Count events per bucket (and per category if given).

        Args:
            events: EventLog, or an event DataFrame (e.g. a window slice).
            category: Column name or callable ``Event -> key``. None counts totals.
            extent: ``(start, end)`` range to enumerate buckets over. Defaults
                to the events' own first/last instant. Events outside the
                enumerated buckets are not counted.

        Returns:
            Dense, zero-filled BucketedCount.

        Raises:
            EmptyInputError: No events and no explicit extent.
        """
        df = events.frame if isinstance(events, EventLog) else events
        if extent is None:
            if len(df) == 0:
                raise EmptyInputError("Cannot bucket zero events: no time extent")
            extent = (df["timestamp"].min(), df["timestamp"].max())
        keys = self.bucket_keys(*extent)

        if category is None:
            if len(df) == 0:
                table = pd.DataFrame({TOTAL_KEY: 0}, index=keys)
            else:
                counts = self.floor_series(df["timestamp"]).value_counts()
                table = counts.reindex(keys, fill_value=0).to_frame(TOTAL_KEY)
            return BucketedCount(table, self.granularity)

        if len(df) == 0:
            return BucketedCount(pd.DataFrame(index=keys, dtype="int64"), self.granularity)

        cats = self.category_values(df, category)
        categories = list(pd.unique(cats))
        long = pd.DataFrame({"bucket": self.floor_series(df["timestamp"]), "category": cats})
        grouped = long.groupby(["bucket", "category"], sort=False).size().unstack(fill_value=0)
        table = grouped.reindex(index=keys, columns=categories, fill_value=0)
        return BucketedCount(table, self.granularity)

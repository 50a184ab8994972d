"""Coordinated time-range selection ("brush") shared by all charts.

SelectionWindow is the single producer of ``selectionChanged``
notifications. Renderers and the aggregation pipeline subscribe to it; none
of them may change the selection from inside a notification.

States:
  UNSET  - no range yet (before the first render).
  ACTIVE - holds a valid range clamped to the event log's extent.

Every accepted call to activate()/request()/reset() emits exactly one
notification. Degenerate requests (empty, zero-width, inverted after
clamping) snap back to the default range instead of failing.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

import pandas as pd

from listenstream.engine.errors import InvalidSelectionError, MalformedEventError, ReentrantSelectionError
from listenstream.engine.event_log import EventLog, parse_timestamp
from listenstream.utils.logging import get_logger

logger = get_logger(__name__)


class WindowState(Enum):
    UNSET = "unset"
    ACTIVE = "active"


@dataclass(frozen=True)
class SelectionRange:
    """Closed time range ``[start, end]``."""

    start: pd.Timestamp
    end: pd.Timestamp

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"Selection end {self.end} is before start {self.start}")

    @property
    def width(self) -> pd.Timedelta:
        return self.end - self.start

    def contains(self, ts: Any) -> bool:
        ts = pd.Timestamp(ts)
        return self.start <= ts <= self.end


SelectionListener = Callable[[SelectionRange], None]


def _to_instant(value: Any) -> pd.Timestamp:
    try:
        return parse_timestamp(value)
    except MalformedEventError as e:
        raise InvalidSelectionError(f"Unusable selection bound {value!r}") from e


class SelectionWindow:
    """Process-wide selected time range, passed explicitly to its consumers.

    Args:
        extent: ``(first, last)`` observed instants of the event log. The
            selection never leaves this range.
    """

    def __init__(self, extent: tuple[Any, Any]) -> None:
        lo, hi = pd.Timestamp(extent[0]), pd.Timestamp(extent[1])
        if hi < lo:
            raise ValueError(f"Extent end {hi} is before start {lo}")
        self.extent: tuple[pd.Timestamp, pd.Timestamp] = (lo, hi)
        self._state = WindowState.UNSET
        self._current: Optional[SelectionRange] = None
        self._listeners: list[SelectionListener] = []
        self._notifying = False

    @classmethod
    def for_log(cls, log: EventLog) -> "SelectionWindow":
        return cls(log.extent)

    def __repr__(self) -> str:
        return f"SelectionWindow(state={self._state.value}, current={self._current})"

    @property
    def state(self) -> WindowState:
        return self._state

    @property
    def current(self) -> Optional[SelectionRange]:
        """Active range, or None while UNSET."""
        return self._current

    # ------------------------------------------------------------------
    # Range rules
    # ------------------------------------------------------------------

    def default_range(self) -> SelectionRange:
        """From the start of the latest calendar year in the data to the last instant.

        Clamped to the extent. If that leaves a zero-width range (e.g. the
        last listen is at midnight on January 1st) the full extent is used.
        """
        lo, hi = self.extent
        start = max(pd.Timestamp(year=hi.year, month=1, day=1), lo)
        if start >= hi:
            start = lo
        return SelectionRange(start, hi)

    def clamp(self, start: pd.Timestamp, end: pd.Timestamp) -> tuple[pd.Timestamp, pd.Timestamp]:
        lo, hi = self.extent
        return min(max(start, lo), hi), min(max(end, lo), hi)

    def validate(self, start: Any, end: Any) -> SelectionRange:
        """Clamp a requested range to the extent.

        Raises:
            InvalidSelectionError: Empty, unparseable, inverted or zero-width
                (after clamping) request.
        """
        if start is None or end is None:
            raise InvalidSelectionError("Empty selection")
        s, e = self.clamp(_to_instant(start), _to_instant(end))
        if not s < e:
            raise InvalidSelectionError(f"Degenerate selection {s} .. {e}")
        return SelectionRange(s, e)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def activate(self) -> SelectionRange:
        """UNSET -> ACTIVE with the default range (first render). No-op when ACTIVE."""
        if self._state is WindowState.ACTIVE and self._current is not None:
            return self._current
        return self._set(self.default_range(), source="default")

    def request(self, start: Any, end: Any) -> SelectionRange:
        """Apply a user gesture's range; degenerate gestures re-assert the default."""
        self._check_not_notifying()
        try:
            rng = self.validate(start, end)
            source = "user"
        except InvalidSelectionError as e:
            logger.warning("Selection rejected (%s); resetting to default range", e)
            rng = self.default_range()
            source = "default"
        return self._set(rng, source=source)

    def reset(self) -> SelectionRange:
        """Re-assert the default range."""
        return self._set(self.default_range(), source="default")

    # ------------------------------------------------------------------
    # Publish / subscribe
    # ------------------------------------------------------------------

    def subscribe(self, listener: SelectionListener) -> Callable[[], None]:
        """Register a ``selectionChanged`` listener; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _check_not_notifying(self) -> None:
        if self._notifying:
            raise ReentrantSelectionError("Selection changed from inside a selectionChanged listener")

    def _set(self, rng: SelectionRange, *, source: str) -> SelectionRange:
        self._check_not_notifying()
        self._current = rng
        self._state = WindowState.ACTIVE
        logger.info("selectionChanged (%s): %s .. %s", source, rng.start, rng.end)
        self._notifying = True
        try:
            for listener in list(self._listeners):
                listener(rng)
        finally:
            self._notifying = False
        return rng

"""Aggregation pipeline: selection window -> rankings, stream layout, stats.

On every selection change the pipeline recomputes everything from the
EventLog (no incremental diffing):

  1. filter the log to the window (inclusive on both ends)
  2. bucket the window per category at the configured granularity
  3. rank categories with top-K selection
  4. stack the ranked categories (inside-out order, wiggle offset)
  5. summary stats over the dense per-day sequence, zero days included

The same window always gives an equal PipelineResult. Results are published
to subscribed renderers; a renderer must not change the selection or call
the pipeline from inside its callback.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np
import pandas as pd

from listenstream.engine.algorithms.top_k import RankedCategory, select_top_k
from listenstream.engine.bucketing import BucketedCount, TimeBucketer
from listenstream.engine.engine_config import EngineConfig
from listenstream.engine.errors import ReentrantSelectionError
from listenstream.engine.event_log import EventLog
from listenstream.engine.selection_window import SelectionRange, SelectionWindow, WindowState
from listenstream.engine.stream_layout import StackedSeries, StreamLayout
from listenstream.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SummaryStats:
    """Legend figures for the current view.

    ``mean_per_day`` / ``median_per_day`` are taken over every day of the
    window, days without listens counting as 0.
    """

    total: int
    mean_per_day: float
    median_per_day: float
    n_days: int
    n_weeks: int  # week starts crossed by the window


@dataclass(frozen=True)
class PipelineResult:
    window: SelectionRange
    ranked_categories: tuple[RankedCategory, ...]
    stacked_series: StackedSeries
    summary_stats: SummaryStats
    bucketed: BucketedCount  # dense window table of the ranked categories
    category_totals: tuple[tuple[str, int], ...]  # every category in the window, first-seen order

    def count_for(self, category: str) -> int:
        """Listens of ``category`` inside the window (tooltip figure)."""
        for key, count in self.category_totals:
            if key == category:
                return count
        return 0


@dataclass(frozen=True)
class OverviewData:
    """Context chart data for the whole log: total histogram and running total."""

    histogram: BucketedCount
    cumulative: tuple[tuple[pd.Timestamp, int], ...]
    extent: tuple[pd.Timestamp, pd.Timestamp]


ResultListener = Callable[[PipelineResult], None]


class AggregationPipeline:
    """Recomputes all window-dependent views of an EventLog.

    Args:
        log: Loaded event log (read-only).
        config: Engine settings; defaults to EngineConfig().
        bucketer: Bucketer for the stream; defaults to one built from config.
    """

    def __init__(
        self,
        log: EventLog,
        config: Optional[EngineConfig] = None,
        *,
        bucketer: Optional[TimeBucketer] = None,
    ) -> None:
        self.log = log
        self.config = config or EngineConfig()
        self.bucketer = bucketer or TimeBucketer(self.config.granularity, week_start=self.config.week_start)
        self.stream_layout = StreamLayout(self.config.order, self.config.offset)
        self._daily = TimeBucketer("day")
        self._weekly = TimeBucketer("week", week_start=self.config.week_start)
        self._listeners: list[ResultListener] = []
        self._publishing = False
        self._overview: Optional[OverviewData] = None
        self.latest: Optional[PipelineResult] = None

    def __repr__(self) -> str:
        return f"AggregationPipeline(log={self.log!r}, config={self.config!r})"

    # ------------------------------------------------------------------
    # Computation
    # ------------------------------------------------------------------

    def summary_stats(self, window: SelectionRange, window_df: pd.DataFrame) -> SummaryStats:
        daily = self._daily.bucket(window_df, extent=(window.start, window.end))
        per_day = daily.bucket_totals().to_numpy()
        return SummaryStats(
            total=int(len(window_df)),
            mean_per_day=float(np.mean(per_day)),
            median_per_day=float(np.median(per_day)),
            n_days=int(len(per_day)),
            n_weeks=self._weekly.count_boundaries(window.start, window.end),
        )

    def on_selection_changed(self, window: SelectionRange) -> PipelineResult:
        """Full recomputation for ``window``."""
        if self._publishing:
            raise ReentrantSelectionError("Pipeline re-entered from a result listener")

        extent = (window.start, window.end)
        window_df = self.log.filter_window(window.start, window.end)
        by_category = self.bucketer.bucket(window_df, self.config.category_field, extent=extent)

        category_totals = tuple(by_category.category_totals())
        k = len(category_totals) if self.config.top_k is None else self.config.top_k
        ranked = tuple(select_top_k(category_totals, k))

        ranked_keys = {r.key for r in ranked}
        selected = [key for key, _ in category_totals if key in ranked_keys]
        bucketed = by_category.select(selected)
        stacked = self.stream_layout.layout(
            bucketed,
            selected,
            expected_keys=self.bucketer.bucket_keys(*extent),
        )

        result = PipelineResult(
            window=window,
            ranked_categories=ranked,
            stacked_series=stacked,
            summary_stats=self.summary_stats(window, window_df),
            bucketed=bucketed,
            category_totals=category_totals,
        )
        logger.debug(
            "Recomputed window %s .. %s: %s events, %s categories, %s ranked",
            window.start,
            window.end,
            result.summary_stats.total,
            len(category_totals),
            len(ranked),
        )
        return result

    def overview(self) -> OverviewData:
        """Histogram and cumulative counts over the whole log (computed once)."""
        if self._overview is None:
            histogram = self.bucketer.bucket(self.log)
            cumulative = tuple((pd.Timestamp(k), int(v)) for k, v in histogram.cumulative().items())
            self._overview = OverviewData(histogram=histogram, cumulative=cumulative, extent=self.log.extent)
        return self._overview

    # ------------------------------------------------------------------
    # Publish / subscribe
    # ------------------------------------------------------------------

    def subscribe(self, listener: ResultListener) -> Callable[[], None]:
        """Register a renderer; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def attach(self, window: SelectionWindow, *, activate: bool = True) -> Callable[[], None]:
        """Recompute and publish on every change of ``window``.

        With ``activate`` the first view is produced right away: an UNSET
        window is activated with its default range, an ACTIVE one is
        recomputed for its current range.

        Returns:
            Callable that detaches the pipeline from the window.
        """
        detach = window.subscribe(self._handle_selection)
        if activate:
            if window.state is WindowState.UNSET:
                window.activate()
            elif window.current is not None:
                self._handle_selection(window.current)
        return detach

    def _handle_selection(self, window: SelectionRange) -> None:
        result = self.on_selection_changed(window)
        self.latest = result
        self._publishing = True
        try:
            for listener in list(self._listeners):
                listener(result)
        finally:
            self._publishing = False

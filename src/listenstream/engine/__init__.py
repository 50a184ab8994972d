"""Aggregation and coordinated-selection engine for listening-history charts."""

from listenstream.engine.algorithms.top_k import RankedCategory, select_top_k
from listenstream.engine.bucketing import BucketedCount, Granularity, TimeBucketer
from listenstream.engine.debounce import SelectionDebouncer
from listenstream.engine.engine_config import EngineConfig
from listenstream.engine.errors import (
    EmptyInputError,
    InvalidSelectionError,
    LayoutInvariantError,
    ListenStreamError,
    MalformedEventError,
    ReentrantSelectionError,
)
from listenstream.engine.event_log import Event, EventLog, load_event_log
from listenstream.engine.pipeline import AggregationPipeline, OverviewData, PipelineResult, SummaryStats
from listenstream.engine.selection_window import SelectionRange, SelectionWindow, WindowState
from listenstream.engine.stream_layout import StackedLayer, StackedSeries, StackPoint, StreamLayout, layout

__all__ = [
    "AggregationPipeline",
    "BucketedCount",
    "EmptyInputError",
    "EngineConfig",
    "Event",
    "EventLog",
    "Granularity",
    "InvalidSelectionError",
    "LayoutInvariantError",
    "ListenStreamError",
    "MalformedEventError",
    "OverviewData",
    "PipelineResult",
    "RankedCategory",
    "ReentrantSelectionError",
    "SelectionDebouncer",
    "SelectionRange",
    "SelectionWindow",
    "StackPoint",
    "StackedLayer",
    "StackedSeries",
    "StreamLayout",
    "SummaryStats",
    "TimeBucketer",
    "WindowState",
    "layout",
    "load_event_log",
    "select_top_k",
]

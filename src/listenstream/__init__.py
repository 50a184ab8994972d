"""
listenstream: aggregation and coordinated-selection engine for listening-history charts.

This package provides:
- EventLog: normalized, read-only collection of listens
- TimeBucketer / BucketedCount: dense day/week/month count tables
- select_top_k: top-K categories by partial selection
- SelectionWindow: the shared brush range, with publish/subscribe
- StreamLayout: inside-out ordered, wiggle-offset streamgraph layout
- AggregationPipeline: recomputes all views when the selection changes

For logging configuration in standalone scripts/demos:
    ```python
    from listenstream.utils.logging import configure_logging
    configure_logging(level="DEBUG")
    ```

When used as a library, logging is handled by the parent application's
configuration.
"""

import logging

from listenstream.utils.logging import configure_logging, get_logger

from listenstream.engine import (
    AggregationPipeline,
    EngineConfig,
    EventLog,
    SelectionWindow,
    StreamLayout,
    TimeBucketer,
    load_event_log,
    select_top_k,
)

# NullHandler so logs don't reach the root logger unless an application
# configured logging. Scripts call configure_logging() to get output.
_logger = logging.getLogger("listenstream")
if not _logger.handlers:
    _logger.addHandler(logging.NullHandler())

__all__ = [
    "AggregationPipeline",
    "EngineConfig",
    "EventLog",
    "SelectionWindow",
    "StreamLayout",
    "TimeBucketer",
    "configure_logging",
    "get_logger",
    "load_event_log",
    "select_top_k",
]

__version__ = "0.1.0"

"""Coalescing of rapid selection requests (e.g. while a brush is dragged).

Only the last request made within ``delay`` seconds reaches the
SelectionWindow, so the pipeline recomputes once per pause instead of once
per pointer move. Each individual request would be correct on its own.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from listenstream.engine.selection_window import SelectionRange, SelectionWindow
from listenstream.utils.logging import get_logger

logger = get_logger(__name__)


class SelectionDebouncer:
    """Forwards the latest submitted range to ``window.request`` after a quiet period.

    Must be used from inside a running asyncio event loop.
    """

    def __init__(self, window: SelectionWindow, delay: float = 0.1) -> None:
        if delay < 0:
            raise ValueError(f"delay must be >= 0, got {delay}")
        self.window = window
        self.delay = delay
        self._pending: Optional[tuple[Any, Any]] = None
        self._handle: Optional[asyncio.TimerHandle] = None
        self._coalesced = 0

    @property
    def pending(self) -> Optional[tuple[Any, Any]]:
        return self._pending

    def submit(self, start: Any, end: Any) -> None:
        """Queue a range, replacing any range not yet forwarded."""
        loop = asyncio.get_running_loop()
        if self._handle is not None:
            self._handle.cancel()
            self._coalesced += 1
        self._pending = (start, end)
        self._handle = loop.call_later(self.delay, self.flush)

    def flush(self) -> Optional[SelectionRange]:
        """Forward the pending range now. Returns the applied range, if any."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if self._pending is None:
            return None
        start, end = self._pending
        self._pending = None
        if self._coalesced:
            logger.debug("Coalesced %s selection request(s)", self._coalesced)
            self._coalesced = 0
        return self.window.request(start, end)

    def cancel(self) -> None:
        """Drop the pending range without forwarding it."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._pending = None
        self._coalesced = 0

"""Exceptions raised by the aggregation engine."""

from __future__ import annotations

from typing import Optional


class ListenStreamError(Exception):
    """Base class for all listenstream errors."""


class EmptyInputError(ListenStreamError):
    """No events to aggregate, so no time extent can be derived."""


class MalformedEventError(ListenStreamError):
    """A source row could not be turned into an Event. The whole load fails."""

    def __init__(self, message: str, row_index: Optional[int] = None) -> None:
        super().__init__(message)
        self.row_index = row_index


class InvalidSelectionError(ListenStreamError):
    """Degenerate or inverted selection range.

    Only raised and caught inside SelectionWindow; callers never see it.
    """


class LayoutInvariantError(ListenStreamError):
    """Stacked series do not line up with the dense bucket sequence."""


class ReentrantSelectionError(ListenStreamError, RuntimeError):
    """A selection subscriber tried to change the selection while being notified."""

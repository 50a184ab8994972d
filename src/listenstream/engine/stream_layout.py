"""Stacked (streamgraph) layout of per-bucket category counts.

Turns a dense BucketedCount into StackedSeries: one layer per category, each
layer a sequence of ``(bucket, baseline, top)`` points covering every bucket
of the active window. The ordering and offset math live in
``algorithms.stack``; this module handles zero-filling, bucket alignment and
the output types.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Sequence

import pandas as pd

from listenstream.engine.algorithms.stack import STACK_OFFSETS, STACK_ORDERS, compute_stack
from listenstream.engine.bucketing import BucketedCount
from listenstream.engine.conventions import format_category
from listenstream.engine.errors import LayoutInvariantError
from listenstream.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class StackPoint:
    bucket: pd.Timestamp
    baseline: float
    top: float
    count: int


@dataclass(frozen=True)
class StackedLayer:
    """One category's band. ``index`` is its stack position (0 = bottom)."""

    key: str
    index: int
    points: tuple[StackPoint, ...]

    @property
    def label(self) -> str:
        return format_category(self.key)


@dataclass(frozen=True)
class StackedSeries:
    """All layers of a stacked layout, bottom to top, over the same buckets."""

    keys: tuple[pd.Timestamp, ...]
    layers: tuple[StackedLayer, ...]
    order: str = "inside_out"
    offset: str = "wiggle"

    def __len__(self) -> int:
        return len(self.layers)

    def __iter__(self) -> Iterator[StackedLayer]:
        return iter(self.layers)

    @property
    def categories(self) -> list[str]:
        return [layer.key for layer in self.layers]

    def layer(self, key: str) -> StackedLayer:
        for layer in self.layers:
            if layer.key == key:
                return layer
        raise KeyError(key)

    def extent(self) -> tuple[float, float]:
        """``(lowest baseline, highest top)``; the y-domain of the stream."""
        if not self.layers or not self.keys:
            return (0.0, 0.0)
        lo = min(p.baseline for layer in self.layers for p in layer.points)
        hi = max(p.top for layer in self.layers for p in layer.points)
        return (lo, hi)

    def to_frame(self) -> pd.DataFrame:
        """Long format: ``bucket, category, index, baseline, top, count``."""
        rows = [
            {
                "bucket": p.bucket,
                "category": layer.key,
                "index": layer.index,
                "baseline": p.baseline,
                "top": p.top,
                "count": p.count,
            }
            for layer in self.layers
            for p in layer.points
        ]
        return pd.DataFrame(rows, columns=["bucket", "category", "index", "baseline", "top", "count"])


def _check_alignment(keys: pd.DatetimeIndex, expected_keys: Sequence) -> None:
    expected = pd.DatetimeIndex(expected_keys)
    if len(keys) != len(expected):
        raise LayoutInvariantError(
            f"Stacked series has {len(keys)} buckets, dense bucket sequence has {len(expected)}"
        )
    if not keys.equals(expected):
        raise LayoutInvariantError("Stacked series buckets differ from the dense bucket sequence")


def layout(
    counts: BucketedCount,
    categories: Optional[Iterable[str]] = None,
    order: str = "inside_out",
    offset: str = "wiggle",
    *,
    expected_keys: Optional[Sequence] = None,
) -> StackedSeries:
    """Stack ``categories`` of ``counts`` into a streamgraph layout.

    Args:
        counts: Dense bucket x category counts.
        categories: Layers to stack, in first-seen order. Defaults to all
            columns of ``counts``; categories missing from it are all-zero.
        order: "inside_out" or "none".
        offset: "wiggle", "silhouette" or "none".
        expected_keys: Dense bucket sequence the layout must line up with.

    Raises:
        LayoutInvariantError: If the buckets do not match ``expected_keys``.
        ValueError: On duplicate categories or an unknown order/offset.
    """
    cats = counts.categories if categories is None else [str(c) for c in categories]
    if len(set(cats)) != len(cats):
        raise ValueError(f"Duplicate categories in layout request: {cats}")
    dense = counts.select(cats)
    if expected_keys is not None:
        _check_alignment(dense.keys, expected_keys)

    values = dense.table.to_numpy().T
    idx, bottoms, tops = compute_stack(values, order, offset)
    buckets = tuple(pd.Timestamp(k) for k in dense.keys)

    layers = []
    for pos, i in enumerate(idx):
        points = tuple(
            StackPoint(
                bucket=bucket,
                baseline=float(bottoms[pos, j]),
                top=float(tops[pos, j]),
                count=int(values[i, j]),
            )
            for j, bucket in enumerate(buckets)
        )
        layers.append(StackedLayer(key=cats[i], index=pos, points=points))

    logger.debug("Stacked %s layers over %s buckets (order=%s, offset=%s)", len(layers), len(buckets), order, offset)
    return StackedSeries(keys=buckets, layers=tuple(layers), order=order, offset=offset)


class StreamLayout:
    """Holds an order/offset policy and applies it via layout()."""

    def __init__(self, order: str = "inside_out", offset: str = "wiggle") -> None:
        if order not in STACK_ORDERS:
            raise ValueError(f"Unknown stack order {order!r}; expected one of {STACK_ORDERS}")
        if offset not in STACK_OFFSETS:
            raise ValueError(f"Unknown stack offset {offset!r}; expected one of {STACK_OFFSETS}")
        self.order = order
        self.offset = offset

    def layout(
        self,
        counts: BucketedCount,
        categories: Optional[Iterable[str]] = None,
        *,
        expected_keys: Optional[Sequence] = None,
    ) -> StackedSeries:
        return layout(counts, categories, self.order, self.offset, expected_keys=expected_keys)

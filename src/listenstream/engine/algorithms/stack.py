"""
Streamgraph stacking (order, offset, stack) over numpy arrays.

Input is a dense ``(n_layers, n_buckets)`` count matrix (zero-filled, one
row per category in first-seen order). The algorithm has three steps:

  1. Order: choose the bottom-to-top layer order.
     - "none": input order.
     - "inside_out": layers sorted by total magnitude (descending, ties in
       first-seen order) are dealt greedily to the lighter of two piles
       ("top" / "bottom"); the bottom pile is reversed and the top pile
       appended, so the heaviest layer sits in the middle of the stack.
  2. Offset: choose the baseline of the lowest layer at every bucket.
     - "none": 0 everywhere.
     - "silhouette": centered on 0.
     - "wiggle": minimum weighted wiggle (Byron & Wattenberg). Between
       buckets j-1 and j the baseline moves by
         -sum_i v_ij * (dv_ij / 2 + sum_{k<i} dv_kj) / sum_i v_ij
       and the moves accumulate from a baseline of 0 at the first bucket.
       One layer or one bucket gives a flat zero baseline.
  3. Stack: every layer starts where the one below it ends.
"""

from __future__ import annotations

import numpy as np

STACK_ORDERS = ("none", "inside_out")
STACK_OFFSETS = ("none", "silhouette", "wiggle")


# -----------------------------------------------------------------------------
# Step 1: Order
# -----------------------------------------------------------------------------


def order_none(values: np.ndarray) -> list[int]:
    return list(range(values.shape[0]))


def order_inside_out(values: np.ndarray) -> list[int]:
    """Bottom-to-top layer indices with the largest layers in the middle."""
    sums = values.sum(axis=1)
    by_magnitude = sorted(range(values.shape[0]), key=lambda i: (-sums[i], i))
    top = bottom = 0
    tops: list[int] = []
    bottoms: list[int] = []
    for i in by_magnitude:
        if top < bottom:
            top += sums[i]
            tops.append(i)
        else:
            bottom += sums[i]
            bottoms.append(i)
    return bottoms[::-1] + tops


def stack_order(values: np.ndarray, order: str) -> list[int]:
    if order == "none":
        return order_none(values)
    if order == "inside_out":
        return order_inside_out(values)
    raise ValueError(f"Unknown stack order {order!r}; expected one of {STACK_ORDERS}")


# -----------------------------------------------------------------------------
# Step 2: Offset (values already in stacking order)
# -----------------------------------------------------------------------------


def offset_none(values: np.ndarray) -> np.ndarray:
    return np.zeros(values.shape[1], dtype=float)


def offset_silhouette(values: np.ndarray) -> np.ndarray:
    return -values.sum(axis=0) / 2.0


def offset_wiggle(values: np.ndarray) -> np.ndarray:
    """Running baseline minimizing the weighted slope change of the layers."""
    n, m = values.shape
    if n <= 1 or m <= 1:
        return np.zeros(m, dtype=float)
    v = values.astype(float)
    dv = np.diff(v, axis=1)
    # sum of slope changes of all layers below layer i
    below = np.vstack([np.zeros((1, m - 1)), np.cumsum(dv, axis=0)[:-1]])
    weighted = ((below + dv / 2.0) * v[:, 1:]).sum(axis=0)
    thickness = v[:, 1:].sum(axis=0)
    step = np.zeros(m - 1, dtype=float)
    np.divide(-weighted, thickness, out=step, where=thickness != 0)
    return np.concatenate([[0.0], np.cumsum(step)])


def stack_offset(values: np.ndarray, offset: str) -> np.ndarray:
    if offset == "none":
        return offset_none(values)
    if offset == "silhouette":
        return offset_silhouette(values)
    if offset == "wiggle":
        return offset_wiggle(values)
    raise ValueError(f"Unknown stack offset {offset!r}; expected one of {STACK_OFFSETS}")


# -----------------------------------------------------------------------------
# Step 3: Stack
# -----------------------------------------------------------------------------


def stack(values: np.ndarray, baseline: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Bottoms and tops, both ``(n_layers, n_buckets)``, for ordered values."""
    v = values.astype(float)
    if v.shape[0] == 0:
        return v.copy(), v.copy()
    tops = baseline[np.newaxis, :] + np.cumsum(v, axis=0)
    # each layer's bottom is exactly the top of the layer below it
    bottoms = np.vstack([baseline[np.newaxis, :], tops[:-1]])
    return bottoms, tops


def compute_stack(
    values: np.ndarray, order: str = "inside_out", offset: str = "wiggle"
) -> tuple[list[int], np.ndarray, np.ndarray]:
    """Run all three steps.

    Returns:
        ``(order_indices, bottoms, tops)``; row r of bottoms/tops belongs to
        input layer ``order_indices[r]``.
    """
    values = np.asarray(values)
    if values.ndim != 2:
        raise ValueError(f"values must be 2-D (layers x buckets), got shape {values.shape}")
    idx = stack_order(values, order)
    ordered = values[idx] if idx else values[:0]
    baseline = stack_offset(ordered, offset)
    bottoms, tops = stack(ordered, baseline)
    return idx, bottoms, tops

"""
Top-K selection in pure Python.

Returns the K highest-count categories without sorting all of them:

  1. Decorate every ``(key, count)`` with its input position. The rank key is
     ``(-count, position)``, so ties are broken by first-seen order and the
     result is reproducible on identical input.
  2. Quickselect (random pivot, Lomuto partition) moves the K smallest rank
     keys to the front in expected O(n).
  3. Only those K are sorted (O(K log K)).

The caller's list is never reordered; selection works on a decorated copy.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Iterable, Optional


@dataclass(frozen=True)
class RankedCategory:
    key: str
    count: int


def _quickselect(items: list[tuple[int, int, str]], k: int, rng: random.Random) -> None:
    """Reorder ``items`` in place so ``items[:k]`` are its k smallest elements.

    Elements must be unique (the position component guarantees that).
    """
    lo, hi = 0, len(items) - 1
    target = k - 1
    while lo < hi:
        p = rng.randint(lo, hi)
        items[p], items[hi] = items[hi], items[p]
        pivot = items[hi]
        store = lo
        for i in range(lo, hi):
            if items[i] < pivot:
                items[i], items[store] = items[store], items[i]
                store += 1
        items[store], items[hi] = items[hi], items[store]
        if store == target:
            return
        if store < target:
            lo = store + 1
        else:
            hi = store - 1


def select_top_k(
    counts: Iterable[tuple[str, int]],
    k: int,
    *,
    rng: Optional[random.Random] = None,
) -> list[RankedCategory]:
    """
    K highest-count entries, sorted by count descending then first-seen order.

    Args:
        counts: ``(key, count)`` pairs; input order is the tie-break order.
        k: Number of entries wanted. ``k <= 0`` gives an empty list,
            ``k >= len(counts)`` gives every entry, sorted.
        rng: Pivot source. The result does not depend on it.

    Returns:
        List of ``min(k, len(counts))`` RankedCategory.

    Raises:
        ValueError: If a count is negative.
    """
    if k <= 0:
        return []
    items: list[tuple[int, int, str]] = []
    for position, (key, count) in enumerate(counts):
        count = int(count)
        if count < 0:
            raise ValueError(f"count for {key!r} must be >= 0, got {count}")
        items.append((-count, position, key))

    if k < len(items):
        _quickselect(items, k, rng or random.Random())
        items = items[:k]
    items.sort()
    return [RankedCategory(key=key, count=-neg) for neg, _, key in items]

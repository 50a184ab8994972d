"""Unit tests for top-K partial selection."""

import random

import numpy as np
import pandas as pd
import pytest

from listenstream.engine.algorithms.top_k import RankedCategory, select_top_k


def _full_sort(counts, k):
    order = sorted(range(len(counts)), key=lambda i: (-counts[i][1], i))
    return [RankedCategory(counts[i][0], counts[i][1]) for i in order[:max(k, 0)]]


@pytest.fixture
def many_counts():
    rng = np.random.default_rng(3)
    return [(f"c{i}", int(v)) for i, v in enumerate(rng.integers(0, 20, size=200))]


def test_top_one_of_totals():
    assert select_top_k([("A", 2), ("B", 1)], 1) == [RankedCategory("A", 2)]


def test_ties_broken_by_first_seen_order():
    counts = [("x", 3), ("y", 5), ("z", 3), ("w", 5)]
    assert select_top_k(counts, 3) == [
        RankedCategory("y", 5),
        RankedCategory("w", 5),
        RankedCategory("x", 3),
    ]


@pytest.mark.parametrize("k", [0, -2])
def test_non_positive_k_is_empty(k):
    assert select_top_k([("a", 1), ("b", 2)], k) == []


def test_k_larger_than_input_returns_all_sorted():
    assert select_top_k([("a", 1), ("b", 2)], 10) == [RankedCategory("b", 2), RankedCategory("a", 1)]


def test_empty_input():
    assert select_top_k([], 3) == []


def test_input_is_not_reordered(many_counts):
    before = list(many_counts)
    select_top_k(many_counts, 7)
    assert many_counts == before


@pytest.mark.parametrize("k", [0, 1, 5, 50, 199, 200, 250])
def test_matches_full_sort(many_counts, k):
    """Partial selection gives exactly the sorted-and-truncated result."""
    assert select_top_k(many_counts, k) == _full_sort(many_counts, k)


@pytest.mark.parametrize("k", [1, 10, 64])
def test_same_key_set_as_pandas_nlargest(many_counts, k):
    s = pd.Series(dict(many_counts))
    expected = set(s.nlargest(k, keep="first").index)
    assert {r.key for r in select_top_k(many_counts, k)} == expected


def test_result_does_not_depend_on_pivot_choice(many_counts):
    a = select_top_k(many_counts, 25, rng=random.Random(1))
    b = select_top_k(many_counts, 25, rng=random.Random(99))
    assert a == b


def test_negative_count_raises():
    with pytest.raises(ValueError):
        select_top_k([("a", 1), ("b", -1)], 1)

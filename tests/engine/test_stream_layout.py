"""Unit tests for StreamLayout / layout()."""

import pandas as pd
import pytest

from listenstream.engine.bucketing import TimeBucketer
from listenstream.engine.errors import LayoutInvariantError
from listenstream.engine.stream_layout import StackedSeries, StreamLayout, layout


@pytest.fixture
def weekly_counts(listen_log):
    return TimeBucketer("week").bucket(listen_log, "artist")


def _assert_stack_contract(series: StackedSeries, counts) -> None:
    by_index = sorted(series.layers, key=lambda layer: layer.index)
    for layer in by_index:
        assert len(layer.points) == len(series.keys)
        for point, bucket in zip(layer.points, series.keys):
            assert point.bucket == bucket
            assert point.top - point.baseline == pytest.approx(point.count)
            assert point.count == counts.count(bucket, layer.key)
    for below, above in zip(by_index[:-1], by_index[1:]):
        for p_below, p_above in zip(below.points, above.points):
            assert p_above.baseline == p_below.top


@pytest.mark.parametrize("offset", ["none", "silhouette", "wiggle"])
def test_layout_satisfies_stack_contract(weekly_counts, offset):
    series = layout(weekly_counts, order="inside_out", offset=offset)
    assert sorted(series.categories) == ["A", "B", "C"]
    assert list(series.keys) == list(weekly_counts.keys)
    _assert_stack_contract(series, weekly_counts)


def test_absent_category_is_zero_filled(weekly_counts):
    series = layout(weekly_counts, ["A", "B", "C", "D"])
    d = series.layer("D")
    assert [p.count for p in d.points] == [0, 0, 0]
    _assert_stack_contract(series, weekly_counts)


def test_inside_out_order_in_layers(weekly_counts):
    # A=3, C=2, B=2 over the whole log; A opens the bottom pile
    series = layout(weekly_counts, order="inside_out", offset="none")
    assert series.categories == ["A", "C", "B"]
    assert [layer.index for layer in series.layers] == [0, 1, 2]


def test_none_order_keeps_given_order(weekly_counts):
    series = layout(weekly_counts, ["B", "A"], order="none", offset="none")
    assert series.categories == ["B", "A"]
    first = series.layers[0].points
    assert all(p.baseline == 0.0 for p in first)


def test_single_category_wiggle_is_flat(weekly_counts):
    series = layout(weekly_counts, ["A"], offset="wiggle")
    assert all(p.baseline == 0.0 for p in series.layers[0].points)


def test_mismatched_bucket_sequence_raises(weekly_counts):
    keys = list(weekly_counts.keys)
    with pytest.raises(LayoutInvariantError):
        layout(weekly_counts, expected_keys=keys[:-1])
    shifted = [k + pd.Timedelta(days=1) for k in keys]
    with pytest.raises(LayoutInvariantError):
        layout(weekly_counts, expected_keys=shifted)


def test_matching_bucket_sequence_passes(weekly_counts, listen_log):
    expected = TimeBucketer("week").bucket_keys(*listen_log.extent)
    series = layout(weekly_counts, expected_keys=expected)
    assert len(series.keys) == len(expected)


def test_duplicate_categories_raise(weekly_counts):
    with pytest.raises(ValueError):
        layout(weekly_counts, ["A", "A"])


def test_extent_and_frame(weekly_counts):
    series = layout(weekly_counts, offset="none")
    assert series.extent() == (0.0, 3.0)
    df = series.to_frame()
    assert list(df.columns) == ["bucket", "category", "index", "baseline", "top", "count"]
    assert len(df) == 3 * 3
    assert df["count"].sum() == weekly_counts.total()


def test_layout_is_deterministic(weekly_counts):
    assert layout(weekly_counts) == layout(weekly_counts)


def test_stream_layout_validates_policy():
    with pytest.raises(ValueError):
        StreamLayout(order="random")
    with pytest.raises(ValueError):
        StreamLayout(offset="expand")


def test_stream_layout_applies_policy(weekly_counts):
    series = StreamLayout(order="none", offset="silhouette").layout(weekly_counts)
    assert series.order == "none" and series.offset == "silhouette"
    assert series.categories == weekly_counts.categories

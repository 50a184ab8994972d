"""Drive the aggregation pipeline with a synthetic listening history.

Run from the repo root after ``pip install -e .``:

    python examples/example_pipeline.py
"""

import asyncio

import numpy as np
import pandas as pd

from listenstream import AggregationPipeline, EngineConfig, SelectionWindow, configure_logging, load_event_log
from listenstream.engine.debounce import SelectionDebouncer

ARTISTS = ["Björk", "Boards of Canada", "Can", "Low", "Slowdive", "Stereolab"]


def synthetic_rows(n: int = 2000, seed: int = 7) -> list[dict]:
    rng = np.random.default_rng(seed)
    start = pd.Timestamp("2022-01-01")
    offsets = np.sort(rng.integers(0, 500 * 24 * 3600, size=n))
    weights = rng.dirichlet(np.ones(len(ARTISTS)))
    rows = []
    for sec in offsets:
        artist = ARTISTS[rng.choice(len(ARTISTS), p=weights)]
        rows.append(
            {
                "ts": (start + pd.Timedelta(seconds=int(sec))).isoformat(),
                "track": f"{artist} #{rng.integers(1, 12)}",
                "artist": artist,
                "album": f"{artist} LP",
            }
        )
    return rows


def print_result(result) -> None:
    stats = result.summary_stats
    print(f"\nWindow {result.window.start:%Y-%m-%d} .. {result.window.end:%Y-%m-%d}")
    print(f"  {stats.total} listens, {stats.mean_per_day:.1f}/day (median {stats.median_per_day:.0f}), {stats.n_weeks} weeks")
    for rank, r in enumerate(result.ranked_categories, start=1):
        print(f"  {rank}. {r.key}: {r.count}")
    lo, hi = result.stacked_series.extent()
    print(f"  stream: {len(result.stacked_series)} layers over {len(result.stacked_series.keys)} buckets, y in [{lo:.1f}, {hi:.1f}]")


async def main() -> None:
    configure_logging(level="INFO")

    log = await load_event_log(synthetic_rows())
    pipeline = AggregationPipeline(log, EngineConfig(top_k=4))
    window = SelectionWindow.for_log(log)

    pipeline.subscribe(print_result)
    pipeline.attach(window)

    overview = pipeline.overview()
    print(f"\nOverview: {len(overview.histogram.keys)} weekly buckets, {overview.cumulative[-1][1]} listens in total")

    # a brush drag: only the last range is recomputed
    debouncer = SelectionDebouncer(window, delay=0.1)
    for end in ("2022-03-01", "2022-04-01", "2022-05-01"):
        debouncer.submit("2022-02-01", end)
    await asyncio.sleep(0.2)

    # zero-width drag snaps back to the default window
    window.request("2022-06-01", "2022-06-01")


if __name__ == "__main__":
    asyncio.run(main())

# tests/conftest.py
"""Pytest configuration and shared fixtures for listenstream tests."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest


def pytest_configure() -> None:
    # Ensure listenstream package is importable when running tests from repo root.
    repo_root = Path(__file__).resolve().parents[1]
    src_dir = repo_root / "src"
    if src_dir.exists() and str(src_dir) not in sys.path:
        sys.path.insert(0, str(src_dir))


@pytest.fixture
def listen_rows() -> list[dict]:
    """Small listening history spanning a year boundary.

    Weekly (Monday) buckets inside 2023: 2022-12-26, 2023-01-02, 2023-01-09.
    """
    return [
        {"ts": "2022-12-30 10:00", "track": "t5", "artist": "C", "album": "c1"},
        {"ts": "2023-01-02 09:00", "track": "t1", "artist": "A", "album": "a1"},
        {"ts": "2023-01-02 18:30", "track": "t2", "artist": "B", "album": "b1"},
        {"ts": "2023-01-04 12:00", "track": "t1", "artist": "A", "album": "a1"},
        {"ts": "2023-01-09 08:00", "track": "t3", "artist": "A", "album": "a2"},
        {"ts": "2023-01-10 20:00", "track": "t5", "artist": "C", "album": "c1"},
        {"ts": "2023-01-15 23:00", "track": "t2", "artist": "B", "album": "b1"},
    ]


@pytest.fixture
def listen_log(listen_rows):
    from listenstream.engine.event_log import EventLog

    return EventLog.from_records(listen_rows)

"""Time helpers."""

from __future__ import annotations

import time
from datetime import datetime, timezone


def now_ms() -> int:
    """Wall-clock timestamp in milliseconds, as stored on index entries."""
    return int(time.time() * 1000)


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def monotonic() -> float:
    return time.perf_counter()


def elapsed_since(started: float) -> float:
    """Seconds since a ``monotonic()`` reading."""
    return time.perf_counter() - started

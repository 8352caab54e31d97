"""Millisecond clock with 32-bit wraparound.

All engines compare timestamps through :func:`elapsed_ms`, so a counter that
wraps from ``2**32 - 1`` back to ``0`` never produces a negative interval.
"""

from __future__ import annotations

import time
from typing import Protocol

CLOCK_BITS = 32
CLOCK_MASK = (1 << CLOCK_BITS) - 1


class Clock(Protocol):
    """Monotonic millisecond counter."""

    def now_ms(self) -> int:
        ...


class MonotonicClock:
    """Production clock backed by :func:`time.monotonic_ns`."""

    def now_ms(self) -> int:
        return (time.monotonic_ns() // 1_000_000) & CLOCK_MASK


def elapsed_ms(now: int, since: int) -> int:
    """Milliseconds from *since* to *now*, tolerating one counter wrap."""
    return (now - since) & CLOCK_MASK

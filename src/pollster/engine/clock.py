# src/pollster/engine/clock.py
"""Clock abstraction for testable deadlines.

Deadlines of cancellation tokens and the elapsed times reported in log
events are computed from a Clock, so tests can move time explicitly
instead of sleeping.

Production code uses SystemClock (the default).
Tests inject MockClock to control time advancement.
"""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    """Abstract monotonic clock."""

    def monotonic(self) -> float:
        """Return monotonic time in seconds.

        Must never go backwards; only differences between two readings are
        meaningful.
        """
        ...


class SystemClock:
    """Production clock backed by time.monotonic()."""

    def monotonic(self) -> float:
        return time.monotonic()


class MockClock:
    """Controllable clock for deterministic testing.

    Example:
        clock = MockClock(start=10.0)
        token = CancellationToken(timeout=1.0, clock=clock)

        clock.advance(0.4)
        assert token.remaining() == pytest.approx(0.6)

        clock.advance(0.6)
        assert token.expired
    """

    def __init__(self, start: float = 0.0) -> None:
        self._current = float(start)

    def monotonic(self) -> float:
        return self._current

    def advance(self, seconds: float) -> None:
        """Advance mock time by ``seconds``.

        Raises:
            ValueError: If seconds is negative.
        """
        if seconds < 0:
            raise ValueError(f"Cannot advance time by negative amount: {seconds}")
        self._current += seconds


DEFAULT_CLOCK: Clock = SystemClock()

# src/pollster/engine/cancellation.py
"""Cooperative cancellation for polling runs.

A CancellationToken is handed to every wait between attempts. Cancelling the
token wakes a pending wait immediately; an optional deadline bounds the whole
run. Both are observed cooperatively by the retry loop:

- before each attempt (raise_if_cancelled)
- during each wait between attempts (sleep)

Thread Safety:
    cancel() may be called from any thread. The token is otherwise read by
    the single worker thread executing the loop.
"""

from __future__ import annotations

import threading
from datetime import timedelta

from pollster.contracts.errors import PollingCancelledError, PollingTimeoutError
from pollster.engine.clock import DEFAULT_CLOCK, Clock


def to_seconds(value: float | timedelta) -> float:
    """Normalize a duration given as seconds or timedelta.

    Raises:
        ValueError: If the duration is negative.
    """
    seconds = value.total_seconds() if isinstance(value, timedelta) else float(value)
    if seconds < 0:
        raise ValueError(f"Duration must be >= 0, got {seconds}")
    return seconds


class CancellationToken:
    """Cancellation signal plus optional deadline for one run.

    Example:
        token = CancellationToken(timeout=5.0)
        worker = threading.Thread(target=engine.resolve, args=(token,))
        worker.start()
        token.cancel()  # pending wait returns at once, resolve() raises
    """

    def __init__(self, *, timeout: float | timedelta | None = None, clock: Clock = DEFAULT_CLOCK) -> None:
        """Initialize the token.

        Args:
            timeout: Overall deadline, measured from construction. None means
                no deadline.
            clock: Clock used to evaluate the deadline.
        """
        self._event = threading.Event()
        self._clock = clock
        self._timeout = None if timeout is None else to_seconds(timeout)
        self._deadline = None if self._timeout is None else clock.monotonic() + self._timeout

    @property
    def timeout(self) -> float | None:
        return self._timeout

    def cancel(self) -> None:
        """Request cancellation. Idempotent."""
        self._event.set()

    @property
    def cancel_requested(self) -> bool:
        """True once cancel() was called."""
        return self._event.is_set()

    @property
    def expired(self) -> bool:
        """True once the deadline has passed."""
        return self._deadline is not None and self._clock.monotonic() >= self._deadline

    @property
    def cancelled(self) -> bool:
        return self.cancel_requested or self.expired

    def remaining(self) -> float | None:
        """Seconds left before the deadline (never negative), None without one."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - self._clock.monotonic())

    def raise_if_cancelled(self) -> None:
        """Raise if the run must stop.

        Raises:
            PollingCancelledError: cancel() was called
            PollingTimeoutError: The deadline expired
        """
        if self._event.is_set():
            raise PollingCancelledError()
        if self.expired:
            raise PollingTimeoutError(self._timeout)

    def sleep(self, seconds: float) -> None:
        """Wait ``seconds``, waking early on cancellation.

        The wait never extends past the deadline: when the deadline falls
        inside the wait, the token sleeps until the deadline and then raises
        PollingTimeoutError.

        Raises:
            PollingCancelledError: cancel() was called before or during the wait
            PollingTimeoutError: The deadline expired before or during the wait
        """
        self.raise_if_cancelled()
        if seconds <= 0:
            return
        remaining = self.remaining()
        if remaining is not None and remaining < seconds:
            if self._event.wait(remaining):
                raise PollingCancelledError()
            raise PollingTimeoutError(self._timeout)
        if self._event.wait(seconds):
            raise PollingCancelledError()

# src/pollster/engine/retry.py
"""RetryPolicy: retry budget and wait strategy, with tenacity integration.

A RetryPolicy answers two questions for the retry loop:
- How many attempts may run (``count``)
- How long to wait before attempt N (``delay_before_attempt``)

Wait strategies are either plain callables of the retry index or any
tenacity wait strategy (wait_fixed, wait_incrementing,
wait_exponential_jitter, sums of them for jitter, ...).

Attempt numbering:
    Attempts are numbered from 1. There is never a wait before attempt 1.
    Before attempt N (N >= 2) the strategy is consulted with the retry index
    N - 1, which is also what tenacity calls ``attempt_number`` when it
    computes the wait that follows an attempt.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import timedelta

import structlog
from tenacity import (
    RetryCallState,
    Retrying,
    wait_exponential_jitter,
    wait_fixed,
    wait_incrementing,
)
from tenacity.wait import wait_base

from pollster.engine.cancellation import CancellationToken, to_seconds

logger = structlog.get_logger(__name__)

WaitStrategy = Callable[[int], float]
"""Maps a retry index (1 = the wait before the second attempt) to seconds."""

Duration = float | timedelta

# Only used as the owner of the synthetic RetryCallState handed to tenacity
# wait strategies; no tenacity retry loop is ever run with it.
_WAIT_EVALUATOR = Retrying()


def _evaluate_tenacity_wait(strategy: wait_base, retry_index: int) -> float:
    state = RetryCallState(_WAIT_EVALUATOR, None, (), {})
    state.attempt_number = retry_index
    return float(strategy(state))


@dataclass(frozen=True)
class RetryPolicy:
    """Retry budget plus the wait between attempts.

    count is the TOTAL number of attempts, not the number of retries.
    count=1 runs a single attempt without waiting; count=0 runs nothing.

    Immutable: with_count(), with_interval() and with_wait() return new
    policies.

    Example:
        policy = RetryPolicy.of(5, timedelta(milliseconds=200))
        policy.delay_before_attempt(2)  # 0.2

        policy = RetryPolicy.of_incremental(3, 1.0)
        policy.delay_before_attempt(2)  # 1.0
        policy.delay_before_attempt(3)  # 2.0
    """

    count: int
    wait: WaitStrategy | wait_base
    description: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        if self.count < 0:
            raise ValueError(f"count must be >= 0, got {self.count}")

    @classmethod
    def of(cls, count: int, interval: Duration) -> RetryPolicy:
        """Constant wait of ``interval`` between attempts."""
        seconds = to_seconds(interval)
        return cls(count, wait_fixed(seconds), f"constant wait of {seconds:g}s")

    @classmethod
    def of_incremental(cls, count: int, unit: Duration) -> RetryPolicy:
        """Wait ``unit`` x retry index: unit, 2 x unit, 3 x unit, ..."""
        seconds = to_seconds(unit)
        return cls(
            count,
            wait_incrementing(start=seconds, increment=seconds),
            f"incremental wait based on {seconds:g}s",
        )

    @classmethod
    def of_exponential(
        cls,
        count: int,
        initial: Duration,
        maximum: Duration = 60.0,
        jitter: Duration = 0.0,
    ) -> RetryPolicy:
        """Exponential backoff (base 2) capped at ``maximum``, with optional jitter."""
        initial_s = to_seconds(initial)
        maximum_s = to_seconds(maximum)
        return cls(
            count,
            wait_exponential_jitter(initial=initial_s, max=maximum_s, jitter=to_seconds(jitter)),
            f"exponential wait from {initial_s:g}s up to {maximum_s:g}s",
        )

    @classmethod
    def of_function(cls, count: int, wait: WaitStrategy | wait_base) -> RetryPolicy:
        """Arbitrary wait strategy: a callable of the retry index or a tenacity wait."""
        return cls(count, wait, repr(wait))

    @classmethod
    def only_once(cls) -> RetryPolicy:
        """Single attempt, never waits."""
        return RETRY_ONLY_ONCE

    def with_count(self, count: int) -> RetryPolicy:
        return replace(self, count=count)

    def with_interval(self, interval: Duration) -> RetryPolicy:
        """Same count, constant wait of ``interval``."""
        return RetryPolicy.of(self.count, interval)

    def with_wait(self, wait: WaitStrategy | wait_base) -> RetryPolicy:
        return RetryPolicy.of_function(self.count, wait)

    def delay_before_attempt(self, attempt: int) -> float:
        """Seconds to wait before the 1-based ``attempt``.

        Raises:
            ValueError: If attempt < 2 (nothing waits before the first attempt)
                or the strategy returns a negative delay.
        """
        if attempt < 2:
            raise ValueError(f"No wait is defined before attempt {attempt}")
        retry_index = attempt - 1
        if isinstance(self.wait, wait_base):
            delay = _evaluate_tenacity_wait(self.wait, retry_index)
        else:
            delay = float(self.wait(retry_index))
        if delay < 0:
            raise ValueError(f"Wait strategy returned a negative delay ({delay}) for retry {retry_index}")
        return delay

    def wait_before_attempt(self, attempt: int, token: CancellationToken | None = None) -> None:
        """Sleep before ``attempt``, interruptibly.

        Raises:
            PollingCancelledError: The token was cancelled before or during the wait
            PollingTimeoutError: The token deadline expired before or during the wait
        """
        delay = self.delay_before_attempt(attempt)
        logger.debug("Waiting before next attempt", attempt=attempt, delay_s=delay)
        (token or CancellationToken()).sleep(delay)

    def __str__(self) -> str:
        return f"total count = {self.count}, with {self.description or repr(self.wait)}"


RETRY_ONLY_ONCE = RetryPolicy(1, wait_fixed(0.001), "single attempt")

# tests/unit/engine/test_retry_policy.py
"""Tests for RetryPolicy: retry budget and wait strategies."""

import dataclasses
import time
from datetime import timedelta

import pytest
from tenacity import wait_fixed

from pollster.contracts.errors import PollingCancelledError
from pollster.engine.cancellation import CancellationToken
from pollster.engine.retry import RETRY_ONLY_ONCE, RetryPolicy


class TestConstantWait:
    def test_same_wait_before_every_attempt(self) -> None:
        policy = RetryPolicy.of(5, 0.2)
        assert [policy.delay_before_attempt(n) for n in range(2, 6)] == [0.2, 0.2, 0.2, 0.2]

    def test_timedelta_interval(self) -> None:
        policy = RetryPolicy.of(3, timedelta(milliseconds=200))
        assert policy.delay_before_attempt(2) == pytest.approx(0.2)

    def test_str(self) -> None:
        assert str(RetryPolicy.of(3, 0.25)) == "total count = 3, with constant wait of 0.25s"


class TestIncrementalWait:
    def test_wait_is_unit_times_retry_index(self) -> None:
        policy = RetryPolicy.of_incremental(4, 1.0)
        assert policy.delay_before_attempt(2) == pytest.approx(1.0)
        assert policy.delay_before_attempt(3) == pytest.approx(2.0)
        assert policy.delay_before_attempt(4) == pytest.approx(3.0)

    def test_timedelta_unit(self) -> None:
        policy = RetryPolicy.of_incremental(3, timedelta(milliseconds=100))
        assert policy.delay_before_attempt(3) == pytest.approx(0.2)


class TestExponentialWait:
    def test_doubles_until_capped(self) -> None:
        policy = RetryPolicy.of_exponential(8, 0.5, maximum=4.0)
        delays = [policy.delay_before_attempt(n) for n in range(2, 8)]
        assert delays == pytest.approx([0.5, 1.0, 2.0, 4.0, 4.0, 4.0])

    def test_jitter_stays_within_bounds(self) -> None:
        policy = RetryPolicy.of_exponential(3, 1.0, maximum=60.0, jitter=0.5)
        for _ in range(50):
            assert 1.0 <= policy.delay_before_attempt(2) <= 1.5


class TestFunctionWait:
    def test_callable_receives_retry_index(self) -> None:
        seen: list[int] = []

        def strategy(retry_index: int) -> float:
            seen.append(retry_index)
            return retry_index * 0.1

        policy = RetryPolicy.of_function(4, strategy)
        assert policy.delay_before_attempt(3) == pytest.approx(0.2)
        assert seen == [2]

    def test_tenacity_strategies_can_be_combined(self) -> None:
        policy = RetryPolicy.of_function(3, wait_fixed(1) + wait_fixed(0.5))
        assert policy.delay_before_attempt(2) == pytest.approx(1.5)

    def test_negative_delay_rejected(self) -> None:
        policy = RetryPolicy.of_function(3, lambda _: -1.0)
        with pytest.raises(ValueError, match="negative"):
            policy.delay_before_attempt(2)


class TestBudget:
    def test_no_wait_before_first_attempt(self) -> None:
        with pytest.raises(ValueError, match="attempt 1"):
            RetryPolicy.of(3, 1.0).delay_before_attempt(1)

    def test_negative_count_rejected(self) -> None:
        with pytest.raises(ValueError, match="count"):
            RetryPolicy.of(-1, 1.0)

    def test_zero_count_allowed(self) -> None:
        assert RetryPolicy.of(0, 1.0).count == 0

    def test_negative_interval_rejected(self) -> None:
        with pytest.raises(ValueError):
            RetryPolicy.of(3, -0.5)

    def test_only_once(self) -> None:
        assert RetryPolicy.only_once() is RETRY_ONLY_ONCE
        assert RETRY_ONLY_ONCE.count == 1


class TestImmutability:
    def test_frozen(self) -> None:
        policy = RetryPolicy.of(3, 1.0)
        with pytest.raises(dataclasses.FrozenInstanceError):
            policy.count = 5  # type: ignore[misc]

    def test_with_count_returns_new_policy(self) -> None:
        policy = RetryPolicy.of(3, 0.5)
        changed = policy.with_count(7)
        assert changed.count == 7
        assert changed.delay_before_attempt(2) == 0.5
        assert policy.count == 3

    def test_with_interval_keeps_count(self) -> None:
        policy = RetryPolicy.of_incremental(4, 1.0).with_interval(0.3)
        assert policy.count == 4
        assert policy.delay_before_attempt(4) == pytest.approx(0.3)

    def test_with_wait_replaces_strategy(self) -> None:
        policy = RetryPolicy.of(2, 0.5).with_wait(lambda i: 2.0 * i)
        assert policy.delay_before_attempt(2) == 2.0


class TestWaitBeforeAttempt:
    def test_sleeps_for_the_delay(self) -> None:
        start = time.monotonic()
        RetryPolicy.of(2, 0.02).wait_before_attempt(2)
        assert time.monotonic() - start >= 0.019

    def test_cancelled_token_interrupts_wait(self) -> None:
        token = CancellationToken()
        token.cancel()
        start = time.monotonic()
        with pytest.raises(PollingCancelledError):
            RetryPolicy.of(2, 10.0).wait_before_attempt(2, token)
        assert time.monotonic() - start < 1.0

    def test_logs_the_wait(self, captured_logs: list[dict]) -> None:
        RetryPolicy.of(3, 0).wait_before_attempt(3)
        events = [e for e in captured_logs if e["event"] == "Waiting before next attempt"]
        assert events == [{"event": "Waiting before next attempt", "attempt": 3, "delay_s": 0.0, "log_level": "debug"}]

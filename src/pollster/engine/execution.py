# src/pollster/engine/execution.py
"""ProbeExecution: the retry loop for a single resolution.

The loop owns a probe (already composed with its acceptance predicate) and a
RetryPolicy. Each next() runs at most one attempt:

    NOT_STARTED --next()--> ATTEMPTING --next()--> ... --next()--> EXHAUSTED

Attempts are strictly sequential. No attempt starts before the previous
outcome is recorded and the wait that follows it has elapsed.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Generic, TypeVar

from pollster.contracts.enums import ExecutionState
from pollster.contracts.errors import PollingCancelledError
from pollster.contracts.outcomes import REJECTED, Accepted, AttemptOutcome, Failed, Rejected
from pollster.engine.cancellation import CancellationToken
from pollster.engine.retry import RetryPolicy

T = TypeVar("T")

Probe = Callable[[], Accepted[T] | Rejected]
"""One attempt: Accepted(value) or Rejected; raising means the attempt failed."""


class _AcceptingProbe(Generic[T]):
    def __init__(self, action: Callable[[], T | None], predicate: Callable[[T], bool]) -> None:
        self._action = action
        self._predicate = predicate

    def __call__(self) -> Accepted[T] | Rejected:
        value = self._action()
        if value is not None and self._predicate(value):
            return Accepted(value)
        return REJECTED

    def __repr__(self) -> str:
        return f"{self._action!r} expecting {self._predicate!r}"


def accepting(action: Callable[[], T | None], predicate: Callable[[T], bool]) -> Probe[T]:
    """Compose an action with its acceptance predicate.

    A None value is always rejected and the predicate is not consulted for
    it. Exceptions from the action or the predicate propagate to the loop.
    """
    return _AcceptingProbe(action, predicate)


class ProbeExecution(Generic[T]):
    """Drives attempts of one probe under one RetryPolicy.

    Not reusable: a new execution is created for every resolution.

    Example:
        execution = ProbeExecution(probe, RetryPolicy.of(3, 0.1))
        while execution.next():
            if execution.result() is not None:
                break
    """

    def __init__(
        self,
        probe: Probe[T],
        policy: RetryPolicy,
        token: CancellationToken | None = None,
    ) -> None:
        self._probe = probe
        self._policy = policy
        self._token = token or CancellationToken()
        self._attempts = 0
        self._state = ExecutionState.NOT_STARTED
        self._outcome: AttemptOutcome[T] | None = None

    @property
    def attempts(self) -> int:
        return self._attempts

    @property
    def state(self) -> ExecutionState:
        return self._state

    @property
    def outcome(self) -> AttemptOutcome[T] | None:
        """Outcome of the most recent attempt, None before the first one."""
        return self._outcome

    def next(self) -> bool:
        """Run the next attempt if the budget allows it.

        Returns:
            True if an attempt ran, False once the budget is exhausted.

        Raises:
            PollingCancelledError: The token was cancelled (or its deadline
                expired) before or during the wait preceding the attempt.
        """
        if self._attempts >= self._policy.count:
            self._state = ExecutionState.EXHAUSTED
            return False
        self._state = ExecutionState.ATTEMPTING
        self._outcome = None
        if self._attempts > 0:
            self._policy.wait_before_attempt(self._attempts + 1, self._token)
        self._token.raise_if_cancelled()
        try:
            outcome: AttemptOutcome[T] = self._probe()
        except PollingCancelledError:
            raise
        except Exception as e:
            outcome = Failed(e)
        self._attempts += 1
        self._outcome = outcome
        return True

    def result(self) -> T | None:
        """Accepted value of the last attempt, None otherwise."""
        if isinstance(self._outcome, Accepted):
            return self._outcome.value
        return None

    def last_error(self) -> Exception | None:
        """Exception of the last attempt, None if it did not fail."""
        if isinstance(self._outcome, Failed):
            return self._outcome.error
        return None

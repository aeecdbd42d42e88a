# src/pollster/engine/engine.py
"""PollingEngine: resolves one configuration to an optional result.

The engine wraps a fresh ProbeExecution with the ExceptionPolicy on every
resolve() call:

1. Accepted outcome -> return the value at once (no further attempt, no wait)
2. Failed outcome -> ExceptionPolicy.on_attempt_exception (may raise)
3. Rejected outcome -> next attempt
4. Budget exhausted -> ExceptionPolicy.on_exhaustion_exception with the
   exception of the last attempt (may raise), else return None

Finish hooks (e.g. closing a directory watch) run exactly once per resolve(),
on every exit path, before resolve() returns or raises. A failing hook never
prevents the others from running and never masks the run's own error; after
an otherwise successful run it surfaces as a PollingError.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Generic, TypeVar

import structlog

from pollster.contracts.errors import PollingCancelledError, PollingError, PollingTimeoutError, QualificationError
from pollster.contracts.outcomes import Accepted, Failed
from pollster.engine.cancellation import CancellationToken
from pollster.engine.clock import DEFAULT_CLOCK, Clock
from pollster.engine.exception_policy import ExceptionPolicy
from pollster.engine.execution import Probe, ProbeExecution
from pollster.engine.retry import RetryPolicy

T = TypeVar("T")

FinishHook = Callable[[], None]

logger = structlog.get_logger(__name__)


class PollingEngine(Generic[T]):
    """Orchestrates the retry loop and the exception policy.

    The engine holds no per-run state: resolve() may be called repeatedly
    (and from several threads), each call restarting at attempt 1.

    The probe may close over caller-owned mutable state. The engine never
    synchronizes access to it; thread-safety of such state is the caller's
    responsibility.

    Example:
        engine = PollingEngine(
            accepting(read_status, lambda s: s == "ready"),
            RetryPolicy.of(10, 0.5),
            ExceptionPolicy.ignoring(also_final=False),
        )
        status = engine.resolve()
    """

    def __init__(
        self,
        probe: Probe[T],
        retry_policy: RetryPolicy,
        exception_policy: ExceptionPolicy | None = None,
        *,
        finish_hooks: Sequence[FinishHook] = (),
        description: str | None = None,
        clock: Clock = DEFAULT_CLOCK,
    ) -> None:
        self._probe = probe
        self._retry_policy = retry_policy
        self._exception_policy = exception_policy or ExceptionPolicy()
        self._finish_hooks = tuple(finish_hooks)
        self._description = description or repr(probe)
        self._clock = clock

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry_policy

    @property
    def exception_policy(self) -> ExceptionPolicy:
        return self._exception_policy

    @property
    def description(self) -> str:
        return self._description

    def with_finish_hook(self, hook: FinishHook) -> PollingEngine[T]:
        """Return a copy of this engine that also runs ``hook`` after each resolve()."""
        return PollingEngine(
            self._probe,
            self._retry_policy,
            self._exception_policy,
            finish_hooks=(*self._finish_hooks, hook),
            description=self._description,
            clock=self._clock,
        )

    def resolve(self, token: CancellationToken | None = None) -> T | None:
        """Run attempts until one is accepted or the budget is exhausted.

        The token is checked again after every attempt, so a value produced
        after cancellation or past the deadline is discarded.

        Args:
            token: Cancellation token observed before each attempt, during
                each wait and after each attempt. None runs without
                cancellation or deadline.

        Returns:
            The accepted value, or None on exhaustion.

        Raises:
            QualificationError: The exception policy escalated a probe failure
            PollingCancelledError: The token was cancelled
            PollingTimeoutError: The token deadline expired
            PollingError: A finish hook failed after an otherwise successful run
        """
        log = logger.bind(engine=self._description)
        try:
            result = self._attempt(token, log)
        except BaseException:
            # Hook failures are logged; the run's own error propagates
            self._run_finish_hooks(log)
            raise
        hook_errors = self._run_finish_hooks(log)
        if hook_errors:
            summary = "; ".join(f"{type(e).__name__}: {e}" for e in hook_errors)
            raise PollingError(f"Finish hook failed: {summary}") from hook_errors[0]
        return result

    def _attempt(self, token: CancellationToken | None, log: structlog.stdlib.BoundLogger) -> T | None:
        execution: ProbeExecution[T] = ProbeExecution(self._probe, self._retry_policy, token)
        started = self._clock.monotonic()
        try:
            while execution.next():
                if token is not None:
                    token.raise_if_cancelled()
                outcome = execution.outcome
                if isinstance(outcome, Accepted):
                    log.info(
                        "Probe result accepted",
                        attempt=execution.attempts,
                        elapsed_s=self._clock.monotonic() - started,
                    )
                    return outcome.value
                if isinstance(outcome, Failed):
                    log.debug("Probe attempt failed", attempt=execution.attempts, error=repr(outcome.error))
                    self._exception_policy.on_attempt_exception(outcome.error, attempts=execution.attempts)
                else:
                    log.debug("Probe result rejected", attempt=execution.attempts)
            self._exception_policy.on_exhaustion_exception(execution.last_error(), attempts=execution.attempts)
            log.info(
                "Retries exhausted without an accepted result",
                attempts=execution.attempts,
                elapsed_s=self._clock.monotonic() - started,
            )
            return None
        except QualificationError as e:
            log.warning("Polling aborted", stage=str(e.stage), attempts=e.attempts, cause=repr(e.cause))
            raise
        except PollingTimeoutError:
            log.info("Polling timed out", attempts=execution.attempts)
            raise
        except PollingCancelledError:
            log.info("Polling cancelled", attempts=execution.attempts)
            raise

    def _run_finish_hooks(self, log: structlog.stdlib.BoundLogger) -> list[Exception]:
        """Run every hook once, even when an earlier one fails."""
        errors: list[Exception] = []
        for hook in self._finish_hooks:
            try:
                hook()
            except Exception as e:
                log.exception("Finish hook failed", hook=repr(hook))
                errors.append(e)
        return errors

    def __repr__(self) -> str:
        return (
            f"PollingEngine({self._description}, retry=[{self._retry_policy}], "
            f"exceptions={self._exception_policy})"
        )

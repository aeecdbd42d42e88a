# src/pollster/lang/builder.py
"""Staged builder: the readable way to configure a polling run.

Each stage is a distinct frozen type that only exposes the steps allowed
next, so an interval cannot be chosen before the retry count and a
predicate cannot be chosen before the action:

    WaitResult.of(action)            -> ActionStage     (exception policy)
        .expecting(predicate)        -> RepeatStage     (retry count)
        .repeat(count)               -> IntervalStage   (wait between attempts)
        .every(interval)             -> AsyncHandle     (run it)

Example:
    status = (
        WaitResult.of(job.status)
        .ignore_exception()
        .expecting_equal_to("done")
        .repeat(20)
        .every_ms(500)
        .wait()
    )

Every step returns a new value; stages may be shared and reused.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import timedelta
from typing import Any, Generic, TypeVar

from pollster.engine.engine import FinishHook, PollingEngine
from pollster.engine.exception_policy import ExceptionPolicy
from pollster.engine.execution import accepting
from pollster.engine.handle import AsyncHandle
from pollster.engine.retry import RetryPolicy

T = TypeVar("T")
E = TypeVar("E", bound=BaseException)

Action = Callable[[], T | None]
Predicate = Callable[[T], bool]

_FASTEST_INTERVAL = timedelta(milliseconds=1)


class _Described:
    def __init__(self, fn: Callable[..., Any], description: str) -> None:
        self._fn = fn
        self._description = description

    def __call__(self, *args: Any) -> Any:
        return self._fn(*args)

    def __repr__(self) -> str:
        return self._description


def described(fn: Callable[..., T], description: str) -> Callable[..., T]:
    """Attach a readable description to an action or predicate.

    The description is what log events and reprs show instead of the
    default ``<function <lambda> at 0x...>``.

    Example:
        WaitResult.of(described(queue.qsize, "queue size")).expecting(
            described(lambda n: n == 0, "is empty")
        )
    """
    return _Described(fn, description)


def _is_true(value: bool) -> bool:
    return value is True


_IS_TRUE = described(_is_true, "is true")


@dataclass(frozen=True)
class _Configuration(Generic[T]):
    action: Action[T]
    exception_policy: ExceptionPolicy
    finish_hook: FinishHook | None


def _build(
    config: _Configuration[T],
    predicate: Predicate[T],
    policy: RetryPolicy,
) -> AsyncHandle[T]:
    hooks = () if config.finish_hook is None else (config.finish_hook,)
    engine = PollingEngine(
        accepting(config.action, predicate),
        policy,
        config.exception_policy,
        finish_hooks=hooks,
    )
    return AsyncHandle.of_engine(engine)


@dataclass(frozen=True)
class IntervalStage(Generic[T]):
    """Retry count chosen; choose the wait between attempts."""

    _config: _Configuration[T]
    _predicate: Predicate[T]
    _count: int

    def every(self, interval: float | timedelta) -> AsyncHandle[T]:
        """Constant wait; ``interval`` in seconds or as a timedelta."""
        return self._with(RetryPolicy.of(self._count, interval))

    def every_ms(self, milliseconds: int) -> AsyncHandle[T]:
        return self.every(timedelta(milliseconds=milliseconds))

    def every_second(self) -> AsyncHandle[T]:
        return self.every(timedelta(seconds=1))

    def every_minute(self) -> AsyncHandle[T]:
        return self.every(timedelta(minutes=1))

    def as_fast_as_possible(self) -> AsyncHandle[T]:
        return self.every(_FASTEST_INTERVAL)

    def _with(self, policy: RetryPolicy) -> AsyncHandle[T]:
        return _build(self._config, self._predicate, policy)


@dataclass(frozen=True)
class RepeatStage(Generic[T]):
    """Predicate chosen; choose the retry budget."""

    _config: _Configuration[T]
    _predicate: Predicate[T]

    def repeat(self, count: int) -> IntervalStage[T]:
        """Run at most ``count`` attempts in total."""
        if count < 0:
            raise ValueError(f"count must be >= 0, got {count}")
        return IntervalStage(self._config, self._predicate, count)

    def repeat_twice(self) -> IntervalStage[T]:
        return self.repeat(2)

    def repeat_only_once(self) -> AsyncHandle[T]:
        return self.with_policy(RetryPolicy.only_once())

    def with_policy(self, policy: RetryPolicy) -> AsyncHandle[T]:
        """Use a ready-made policy (incremental, exponential, custom...)."""
        return _build(self._config, self._predicate, policy)


@dataclass(frozen=True)
class PredicateStage(Generic[T]):
    """Action chosen; choose what makes its value acceptable.

    None is never acceptable: predicates only ever see present values.
    """

    _config: _Configuration[T]

    def expecting(self, predicate: Predicate[T]) -> RepeatStage[T]:
        return RepeatStage(self._config, predicate)

    def expecting_not(self, predicate: Predicate[T]) -> RepeatStage[T]:
        return self.expecting(described(lambda value: not predicate(value), f"not {predicate!r}"))

    def expecting_any_of(self, first: Predicate[T], *more: Predicate[T]) -> RepeatStage[T]:
        predicates = (first, *more)
        return self.expecting(
            described(
                lambda value: any(p(value) for p in predicates),
                "any of [" + ", ".join(repr(p) for p in predicates) + "]",
            )
        )

    def expecting_all_of(self, first: Predicate[T], *more: Predicate[T]) -> RepeatStage[T]:
        predicates = (first, *more)
        return self.expecting(
            described(
                lambda value: all(p(value) for p in predicates),
                "all of [" + ", ".join(repr(p) for p in predicates) + "]",
            )
        )

    def expecting_equal_to(self, other: T) -> RepeatStage[T]:
        return self.expecting(described(lambda value: value == other, f"is equal to {other!r}"))

    def expecting_not_null(self) -> RepeatStage[T]:
        return self.expecting(described(lambda value: value is not None, "is not null"))


@dataclass(frozen=True)
class ActionStage(PredicateStage[T]):
    """Freshly created configuration; optionally choose the exception policy.

    Skipping this step keeps the default: the first probe exception aborts
    the run with a QualificationError.
    """

    def ignore_exception(self, also_ignore_final: bool = True) -> PredicateStage[T]:
        """Treat probe exceptions as rejected attempts.

        Args:
            also_ignore_final: When False, an exception raised by the last
                attempt still fails the run once the budget is exhausted.
        """
        return self.with_exception_policy(ExceptionPolicy.ignoring(also_final=also_ignore_final))

    def dont_ignore_exception(self) -> PredicateStage[T]:
        return self.with_exception_policy(ExceptionPolicy.fail_fast())

    def with_exception_policy(self, policy: ExceptionPolicy) -> PredicateStage[T]:
        return PredicateStage(replace(self._config, exception_policy=policy))


class _Runnable:
    def __init__(self, fn: Callable[[], object]) -> None:
        self._fn = fn

    def __call__(self) -> bool:
        self._fn()
        return True

    def __repr__(self) -> str:
        return f"run {self._fn!r}"


class _ExpectedException(Generic[E]):
    def __init__(self, action: Callable[[], object], exception_type: type[E]) -> None:
        self._action = action
        self._exception_type = exception_type

    def __call__(self) -> E | None:
        try:
            self._action()
        except self._exception_type as e:
            return e
        return None

    def __repr__(self) -> str:
        return f"{self._exception_type.__name__} raised by {self._action!r}"


class WaitResult:
    """Entry points of the staged builder."""

    @staticmethod
    def of(action: Action[T], on_finish: FinishHook | None = None) -> ActionStage[T]:
        """Poll ``action``.

        Args:
            action: Zero-argument callable; None results are never accepted.
            on_finish: Cleanup run once after every run, whatever its outcome.
        """
        return ActionStage(_Configuration(action, ExceptionPolicy.fail_fast(), on_finish))

    @staticmethod
    def on(target: T) -> PredicateStage[T]:
        """Poll a mutable object until the predicate accepts its state."""
        return WaitResult.of(described(lambda: target, f"on {target!r}"))

    @staticmethod
    def on_condition(condition: Callable[[], bool]) -> RepeatStage[bool]:
        """Poll until ``condition()`` returns True."""
        return WaitResult.of(condition).expecting(_IS_TRUE)

    @staticmethod
    def of_runnable(fn: Callable[[], object]) -> RepeatStage[bool]:
        """Retry ``fn`` until one call completes without raising."""
        return WaitResult.of(_Runnable(fn)).ignore_exception().expecting(_IS_TRUE)

    @staticmethod
    def for_exception(
        action: Callable[[], object],
        exception_type: type[E] = Exception,  # type: ignore[assignment]
    ) -> PredicateStage[E]:
        """Poll ``action`` until it raises ``exception_type``.

        The value seen by the predicate is the raised exception. A call that
        returns normally is a rejected attempt; an exception of any other
        type aborts the run.
        """
        return WaitResult.of(_ExpectedException(action, exception_type))

# src/pollster/engine/handle.py
"""AsyncHandle: runs a resolution on a worker and exposes it as a future.

The handle is a recipe, not a run. Every start() schedules one fresh,
independent resolution on the configured executor and returns a
PollingFuture for it; wait() and wait_for_value() are start() plus a
blocking, error-translating result().

Composition operators (map, filter, or_else, on_completion, on_finish)
return new handles whose continuation runs on the resolving thread right
after the resolution completes. They never re-invoke the probe.

Cancellation model:
    PollingFuture.cancel() signals the run's CancellationToken. A pending
    wait between attempts returns at once; an attempt already executing
    runs to its end (Python threads cannot be interrupted) and no further
    attempt starts. The future is completed as cancelled by the worker,
    after finish hooks have run, so waiters never observe completion
    before cleanup. A value produced by an attempt that ends after
    cancellation or past the deadline is discarded.

Thread Safety:
    AsyncHandle is immutable and may be shared. PollingFuture completion
    and cancel() are serialized by a per-future lock.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from concurrent.futures import CancelledError, Executor, Future, ThreadPoolExecutor
from concurrent.futures import wait as futures_wait
from datetime import timedelta
from typing import Any, Generic, TypeVar

import structlog

from pollster.contracts.errors import (
    NoResultError,
    PollingCancelledError,
    PollingError,
    PollingTimeoutError,
)
from pollster.engine.cancellation import CancellationToken, to_seconds
from pollster.engine.clock import DEFAULT_CLOCK, Clock
from pollster.engine.engine import PollingEngine

T = TypeVar("T")
U = TypeVar("U")

Resolver = Callable[[CancellationToken], T | None]

logger = structlog.get_logger(__name__)

_default_executor: ThreadPoolExecutor | None = None
_default_executor_lock = threading.Lock()


def default_executor() -> Executor:
    """Shared worker pool used when a handle has no explicit executor."""
    global _default_executor
    with _default_executor_lock:
        if _default_executor is None:
            _default_executor = ThreadPoolExecutor(thread_name_prefix="pollster")
        return _default_executor


class PollingFuture(Future[T]):
    """Future of one scheduled resolution, with cooperative cancellation."""

    def __init__(self, token: CancellationToken) -> None:
        super().__init__()
        self._token = token
        self._started = threading.Event()
        self._completion_lock = threading.RLock()

    @property
    def token(self) -> CancellationToken:
        return self._token

    def running(self) -> bool:
        return self._started.is_set() and not self.done()

    def cancel(self) -> bool:
        """Request cancellation of the run.

        Returns:
            True if the run had not completed yet. The future becomes
            cancelled() once the worker has observed the request.
        """
        with self._completion_lock:
            if self.done():
                return False
            self._token.cancel()
            return True

    def _mark_started(self) -> None:
        self._started.set()

    def _complete(self, result: Any = None, error: BaseException | None = None) -> None:
        with self._completion_lock:
            if self._token.cancel_requested:
                super().cancel()
                # Moves to CANCELLED_AND_NOTIFIED so wait() and as_completed() see it
                self.set_running_or_notify_cancel()
            elif error is not None:
                self.set_exception(error)
            else:
                self.set_result(result)


def await_future(future: Future[T], timeout: float | None = None) -> T:
    """Block on ``future`` and translate its outcome into pollster errors.

    Without ``timeout``, a PollingFuture is awaited no longer than its run's
    deadline. Whichever bound elapses, the run is cancelled and its worker
    awaited (finish hooks included) before PollingTimeoutError is raised.

    Raises:
        QualificationError: The resolution was aborted by the exception policy
        PollingCancelledError: The run was cancelled
        PollingTimeoutError: The run's deadline expired, or ``timeout``
            elapsed first (the run is then cancelled)
        PollingError: Any other exception, chained as the cause
    """
    bound = timeout
    if bound is None and isinstance(future, PollingFuture):
        bound = future.token.remaining()
    done, _ = futures_wait([future], timeout=bound)
    if not done:
        future.cancel()
        if isinstance(future, PollingFuture):
            futures_wait([future])
            if timeout is None:
                raise PollingTimeoutError(future.token.timeout)
        raise PollingTimeoutError(timeout)
    try:
        return future.result()
    except CancelledError as e:
        raise PollingCancelledError() from e
    except PollingError:
        raise
    except Exception as e:
        raise PollingError(f"Unexpected error {e}") from e


class AsyncHandle(Generic[T]):
    """Schedules resolutions and composes their results.

    Example:
        handle = AsyncHandle.of_engine(engine).with_timeout(30).map(str.upper)

        future = handle.start()   # run in the background
        ...
        value = handle.wait()     # or: start a fresh run and block on it
    """

    def __init__(
        self,
        resolve: Resolver[T],
        *,
        executor: Executor | None = None,
        timeout: float | timedelta | None = None,
        description: str | None = None,
        clock: Clock = DEFAULT_CLOCK,
    ) -> None:
        self._resolve = resolve
        self._executor = executor
        self._timeout = None if timeout is None else to_seconds(timeout)
        self._description = description or repr(resolve)
        self._clock = clock

    @classmethod
    def of_engine(cls, engine: PollingEngine[T], *, executor: Executor | None = None) -> AsyncHandle[T]:
        return cls(engine.resolve, executor=executor, description=engine.description)

    @property
    def timeout(self) -> float | None:
        return self._timeout

    @property
    def description(self) -> str:
        return self._description

    def _derive(self, resolve: Resolver[U], description: str) -> AsyncHandle[U]:
        return AsyncHandle(
            resolve,
            executor=self._executor,
            timeout=self._timeout,
            description=description,
            clock=self._clock,
        )

    def _new_token(self) -> CancellationToken:
        return CancellationToken(timeout=self._timeout, clock=self._clock)

    # --------------------------
    # Execution location
    # --------------------------

    def using(self, executor: Executor) -> AsyncHandle[T]:
        return AsyncHandle(
            self._resolve,
            executor=executor,
            timeout=self._timeout,
            description=self._description,
            clock=self._clock,
        )

    def using_default_executor(self) -> AsyncHandle[T]:
        return self.using(default_executor())

    def with_timeout(self, timeout: float | timedelta) -> AsyncHandle[T]:
        """Bound every run by an overall deadline, measured from its start."""
        return AsyncHandle(
            self._resolve,
            executor=self._executor,
            timeout=timeout,
            description=self._description,
            clock=self._clock,
        )

    def get(self) -> T | None:
        """Resolve synchronously on the calling thread.

        Errors are raised untranslated: QualificationError,
        PollingTimeoutError, or whatever a continuation raised.
        """
        return self._resolve(self._new_token())

    def start(self) -> PollingFuture[T | None]:
        """Schedule one fresh resolution on the executor."""
        future: PollingFuture[T | None] = PollingFuture(self._new_token())
        executor = self._executor or default_executor()
        executor.submit(self._run, future)
        logger.debug("Polling run scheduled", handle=self._description, timeout_s=self._timeout)
        return future

    def _run(self, future: PollingFuture[T | None]) -> None:
        future._mark_started()
        try:
            result = self._resolve(future.token)
        except Exception as e:
            future._complete(error=e)
        except BaseException as e:
            # Waiters are released before the executor thread sees it
            future._complete(error=e)
            raise
        else:
            future._complete(result)

    def wait(self, timeout: float | None = None) -> T | None:
        """Start a run and block until it completes.

        Args:
            timeout: Caller-side bound on the wait, in seconds. When it
                elapses the run is cancelled.

        Raises:
            QualificationError: The exception policy aborted the resolution
            PollingCancelledError: The run was cancelled
            PollingTimeoutError: A deadline expired
            PollingError: A continuation raised
        """
        return await_future(self.start(), timeout)

    def wait_for_value(self, timeout: float | None = None) -> T:
        """As wait(), but a missing result is an error.

        Raises:
            NoResultError: The run completed without a result
        """
        result = self.wait(timeout)
        if result is None:
            raise NoResultError()
        return result

    # --------------------------
    # Composition
    # --------------------------

    def map(self, fn: Callable[[T], U | None]) -> AsyncHandle[U]:
        """Transform a present result. ``fn`` may return None to drop it."""
        resolve = self._resolve

        def mapped(token: CancellationToken) -> U | None:
            value = resolve(token)
            return None if value is None else fn(value)

        return self._derive(mapped, f"{self._description} mapped by {fn!r}")

    def filter(self, predicate: Callable[[T], bool]) -> AsyncHandle[T]:
        """Keep a present result only if ``predicate`` accepts it."""
        resolve = self._resolve

        def filtered(token: CancellationToken) -> T | None:
            value = resolve(token)
            if value is not None and predicate(value):
                return value
            return None

        return self._derive(filtered, f"{self._description} filtered by {predicate!r}")

    def or_else(self, supplier: Callable[[], T | None]) -> AsyncHandle[T]:
        """Fall back to ``supplier()`` when the resolution produced no result."""
        resolve = self._resolve

        def with_fallback(token: CancellationToken) -> T | None:
            value = resolve(token)
            return supplier() if value is None else value

        return self._derive(with_fallback, f"{self._description} or else {supplier!r}")

    def on_completion(self, callback: Callable[[T | None], None]) -> AsyncHandle[T]:
        """Invoke ``callback`` with the (optional) result after a normal completion."""
        resolve = self._resolve

        def notifying(token: CancellationToken) -> T | None:
            value = resolve(token)
            callback(value)
            return value

        return self._derive(notifying, self._description)

    def on_finish(self, hook: Callable[[], None]) -> AsyncHandle[T]:
        """Run ``hook`` after every resolution, whatever its outcome.

        A hook failure surfaces only after a successful resolution; when the
        resolution itself failed, it is logged and the original error wins.
        """
        resolve = self._resolve
        description = self._description

        def finishing(token: CancellationToken) -> T | None:
            try:
                value = resolve(token)
            except BaseException:
                try:
                    hook()
                except Exception:
                    logger.exception("Finish hook failed", handle=description, hook=repr(hook))
                raise
            hook()
            return value

        return self._derive(finishing, self._description)

    def __repr__(self) -> str:
        return f"AsyncHandle({self._description}, timeout={self._timeout})"

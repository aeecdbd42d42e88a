"""Polling engine: retry loop, policies, and asynchronous execution.

This module provides the execution core of pollster:
- RetryPolicy: retry budget and wait strategy (tenacity waits)
- ExceptionPolicy: which probe exceptions end a resolution
- ProbeExecution: the sequential retry loop
- PollingEngine: drives the loop to an optional result
- AsyncHandle: runs resolutions on a worker, with cancellation and timeout

Example:
    from pollster.engine import AsyncHandle, PollingEngine, RetryPolicy, accepting

    engine = PollingEngine(accepting(job.status, lambda s: s == "done"), RetryPolicy.of(20, 0.5))
    status = AsyncHandle.of_engine(engine).with_timeout(15).wait()
"""

from pollster.engine.cancellation import CancellationToken
from pollster.engine.clock import DEFAULT_CLOCK, Clock, MockClock, SystemClock
from pollster.engine.engine import PollingEngine
from pollster.engine.exception_policy import ExceptionPolicy
from pollster.engine.execution import Probe, ProbeExecution, accepting
from pollster.engine.handle import AsyncHandle, PollingFuture, await_future, default_executor
from pollster.engine.retry import RETRY_ONLY_ONCE, RetryPolicy, WaitStrategy

__all__ = [
    "DEFAULT_CLOCK",
    "RETRY_ONLY_ONCE",
    "AsyncHandle",
    "CancellationToken",
    "Clock",
    "ExceptionPolicy",
    "MockClock",
    "PollingEngine",
    "PollingFuture",
    "Probe",
    "ProbeExecution",
    "RetryPolicy",
    "SystemClock",
    "WaitStrategy",
    "accepting",
    "await_future",
    "default_executor",
]

"""Shared contracts for cross-boundary data types.

This package is a LEAF MODULE with no outbound dependencies to core/engine.
Settings classes are NOT re-exported here - import them from
pollster.core.config.
"""

from pollster.contracts.enums import (
    BackoffKind,
    ExecutionState,
    FailureStage,
    OutcomeKind,
    WatchEventKind,
)
from pollster.contracts.errors import (
    NoResultError,
    PollingCancelledError,
    PollingError,
    PollingTimeoutError,
    QualificationError,
)
from pollster.contracts.outcomes import (
    REJECTED,
    Accepted,
    AttemptOutcome,
    Failed,
    Rejected,
)

__all__ = [
    "REJECTED",
    "Accepted",
    "AttemptOutcome",
    "BackoffKind",
    "ExecutionState",
    "FailureStage",
    "Failed",
    "NoResultError",
    "OutcomeKind",
    "PollingCancelledError",
    "PollingError",
    "PollingTimeoutError",
    "QualificationError",
    "Rejected",
    "WatchEventKind",
]

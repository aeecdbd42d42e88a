# src/pollster/contracts/enums.py
"""All status codes, stages, and kinds used across subsystem boundaries."""

from enum import StrEnum


class FailureStage(StrEnum):
    """Where in a resolution a probe exception was escalated.

    Values:
        INTERMEDIATE: An exception on some attempt was fatal immediately
        FINAL: The exception of the last attempt was fatal at exhaustion
    """

    INTERMEDIATE = "intermediate"
    FINAL = "final"


class OutcomeKind(StrEnum):
    """Kind of outcome produced by a single attempt."""

    ACCEPTED = "accepted"
    REJECTED = "rejected"
    FAILED = "failed"


class ExecutionState(StrEnum):
    """Lifecycle state of one retry loop.

    EXHAUSTED is terminal: no further attempt is ever started.
    """

    NOT_STARTED = "not_started"
    ATTEMPTING = "attempting"
    EXHAUSTED = "exhausted"


class WatchEventKind(StrEnum):
    """Filesystem change kinds reported by a directory watch.

    Values match watchdog's ``FileSystemEvent.event_type`` strings.
    """

    CREATED = "created"
    DELETED = "deleted"
    MODIFIED = "modified"
    MOVED = "moved"


class BackoffKind(StrEnum):
    """Wait strategy family selectable from configuration."""

    CONSTANT = "constant"
    INCREMENTAL = "incremental"
    EXPONENTIAL = "exponential"

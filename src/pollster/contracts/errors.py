# src/pollster/contracts/errors.py
"""Error taxonomy for polling resolutions.

- ProbeFailure is not an exception type: it is the ``Failed`` outcome, recovered
  locally by the retry loop unless the exception policy escalates it.
- QualificationError is an escalated probe failure. It always carries the
  original exception (also chained as ``__cause__``) and the stage at which
  it was raised.
- PollingCancelledError is raised when a run is cancelled. A deadline that
  expires is a cancellation too (PollingTimeoutError), never a
  qualification failure.
- Exhaustion is not an error: it is a ``None`` result.
"""

from __future__ import annotations

from pollster.contracts.enums import FailureStage

_STAGE_MESSAGES = {
    FailureStage.INTERMEDIATE: "Unable to obtain the result during one try",
    FailureStage.FINAL: "Unable to obtain the result and finished in error",
}


class PollingError(Exception):
    """Base class for every error raised by pollster."""


class QualificationError(PollingError):
    """Raised when the exception policy decides a probe failure is fatal.

    Attributes:
        cause: The exception raised by the probe
        stage: INTERMEDIATE (fatal on the attempt itself) or FINAL
            (fatal at exhaustion, after intermediate failures were ignored)
        attempts: Number of attempts made when the failure was escalated
    """

    def __init__(self, cause: BaseException, stage: FailureStage, attempts: int) -> None:
        self.cause = cause
        self.stage = stage
        self.attempts = attempts
        super().__init__(
            f"{_STAGE_MESSAGES[stage]}, because of {cause} ; original error class is {type(cause).__qualname__}"
        )


class PollingCancelledError(PollingError):
    """Raised when a run was cancelled before reaching a final outcome."""

    def __init__(self, message: str = "Polling was cancelled") -> None:
        super().__init__(message)


class PollingTimeoutError(PollingCancelledError):
    """Raised when the overall deadline of a run expired.

    Attributes:
        timeout: The configured deadline in seconds, if known
    """

    def __init__(self, timeout: float | None = None) -> None:
        self.timeout = timeout
        if timeout is None:
            super().__init__("Polling timed out")
        else:
            super().__init__(f"Polling timed out after {timeout:g}s")


class NoResultError(PollingError):
    """Raised when a result was required but the resolution produced none."""

    def __init__(self, message: str = "No result is available when one is expected") -> None:
        super().__init__(message)

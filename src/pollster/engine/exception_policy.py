# src/pollster/engine/exception_policy.py
"""ExceptionPolicy: decides which probe exceptions end a resolution."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from pollster.contracts.enums import FailureStage
from pollster.contracts.errors import QualificationError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ExceptionPolicy:
    """Escalation rules for exceptions raised by the probe.

    ignore_intermediate=False (the default) makes the very first exception
    fatal. When True, each exception is treated like a rejected attempt and
    the loop continues; ignore_final then decides whether the exception of
    the last attempt must still surface once the budget is exhausted
    without an accepted result.

    Both decisions raise QualificationError chained from the original
    exception; returning normally means "continue".
    """

    ignore_intermediate: bool = False
    ignore_final: bool = False

    @classmethod
    def fail_fast(cls) -> ExceptionPolicy:
        return cls()

    @classmethod
    def ignoring(cls, *, also_final: bool = True) -> ExceptionPolicy:
        return cls(ignore_intermediate=True, ignore_final=also_final)

    def on_attempt_exception(self, error: Exception, *, attempts: int) -> None:
        """Decide on an exception raised by one attempt.

        Raises:
            QualificationError: stage INTERMEDIATE, unless intermediate
                exceptions are ignored.
        """
        if self.ignore_intermediate:
            logger.debug("Ignoring probe exception", attempt=attempts, error=repr(error))
            return
        raise QualificationError(error, FailureStage.INTERMEDIATE, attempts) from error

    def on_exhaustion_exception(self, error: Exception | None, *, attempts: int) -> None:
        """Decide on the exception of the last attempt once the budget is spent.

        Args:
            error: Exception of the last attempt, None if it did not raise.
            attempts: Number of attempts made.

        Raises:
            QualificationError: stage FINAL, when error is set and final
                exceptions are not ignored.
        """
        if error is None or self.ignore_final:
            return
        raise QualificationError(error, FailureStage.FINAL, attempts) from error

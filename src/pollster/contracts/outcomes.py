# src/pollster/contracts/outcomes.py
"""Attempt outcome contracts.

Every iteration of the retry loop produces exactly one outcome:

- Accepted: the probe returned a value and the predicate accepted it
- Rejected: the probe returned, but the value was missing or not acceptable
- Failed: the probe (or the predicate) raised

Only the most recent outcome is retained by the loop.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from pollster.contracts.enums import OutcomeKind

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Accepted(Generic[T]):
    """The attempt produced an acceptable value."""

    value: T

    @property
    def kind(self) -> OutcomeKind:
        return OutcomeKind.ACCEPTED


@dataclass(frozen=True, slots=True)
class Rejected:
    """The attempt completed without an acceptable value."""

    @property
    def kind(self) -> OutcomeKind:
        return OutcomeKind.REJECTED


@dataclass(frozen=True, slots=True)
class Failed:
    """The attempt raised. ``error`` is the original exception."""

    error: Exception

    @property
    def kind(self) -> OutcomeKind:
        return OutcomeKind.FAILED


REJECTED = Rejected()

AttemptOutcome = Accepted[T] | Rejected | Failed

"""Fluent configuration of polling runs.

- builder: the staged WaitResult builder
- wait_file: shortcuts for waiting on directory changes
"""

from pollster.lang import wait_file
from pollster.lang.builder import (
    ActionStage,
    IntervalStage,
    PredicateStage,
    RepeatStage,
    WaitResult,
    described,
)

__all__ = [
    "ActionStage",
    "IntervalStage",
    "PredicateStage",
    "RepeatStage",
    "WaitResult",
    "described",
    "wait_file",
]

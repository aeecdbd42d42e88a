# tests/helpers/probes.py
"""Scripted actions and recording hooks for driving the polling engine."""

import threading
from collections.abc import Sequence
from typing import Any


class ScriptedAction:
    """Replays ``script`` one step per call; the last step repeats forever.

    Exception instances (or classes) in the script are raised, anything
    else is returned.
    """

    def __init__(self, script: Sequence[Any]) -> None:
        if not script:
            raise ValueError("script must not be empty")
        self._script = list(script)
        self._lock = threading.Lock()
        self.calls = 0

    def __call__(self) -> Any:
        with self._lock:
            step = self._script[min(self.calls, len(self._script) - 1)]
            self.calls += 1
        if isinstance(step, BaseException) or (isinstance(step, type) and issubclass(step, BaseException)):
            raise step
        return step

    def __repr__(self) -> str:
        return f"ScriptedAction({self._script!r})"


class RecordingHook:
    """Finish hook that counts how often it ran."""

    def __init__(self) -> None:
        self.calls = 0
        self.ran = threading.Event()

    def __call__(self) -> None:
        self.calls += 1
        self.ran.set()


class BlockingAction:
    """Action that blocks until released, to hold a run mid-attempt."""

    def __init__(self, result: Any = None) -> None:
        self.entered = threading.Event()
        self.release = threading.Event()
        self.result = result
        self.calls = 0

    def __call__(self) -> Any:
        self.calls += 1
        self.entered.set()
        self.release.wait(5.0)
        return self.result

# src/pollster/adapters/directory_watch.py
"""DirectoryWatch: filesystem notifications as a pollable probe action.

A DirectoryWatch is a zero-argument callable. Each call returns the events
observed in the directory since the previous call, so it can be handed to
WaitResult.of() like any other action:

    watch = DirectoryWatch(Path("/var/spool/in"))
    path_lists = WaitResult.of(watch, on_finish=watch.close)

The watch is opened lazily by the first call (or explicitly by open()) and
released by close(). Events raised before the watch is open are never
reported. Only direct children of the directory are watched.

Threading:
    watchdog delivers events on its observer thread; they cross to the
    polling thread through a queue.Queue. Everything else (calling the
    watch from several threads at once, for example) is the caller's
    responsibility.
"""

from __future__ import annotations

import os
import queue
import threading
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import structlog
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from pollster.contracts.enums import WatchEventKind

logger = structlog.get_logger(__name__)

_OBSERVER_JOIN_TIMEOUT_S = 1.0


@dataclass(frozen=True, slots=True)
class WatchEvent:
    """One change in a watched directory.

    dest_path is only set for MOVED events and holds the new location.
    """

    kind: WatchEventKind
    path: Path
    dest_path: Path | None = None


class _QueueingHandler(FileSystemEventHandler):
    """Forwards the watched kinds of events to a queue, from the observer thread."""

    def __init__(self, directory: Path, kinds: frozenset[WatchEventKind], events: queue.Queue[WatchEvent]) -> None:
        super().__init__()
        self._directory = directory
        self._kinds = frozenset(str(kind) for kind in kinds)
        self._events = events

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type not in self._kinds:
            return
        path = Path(os.fsdecode(event.src_path))
        # Some backends also report the watched directory itself as modified
        if path == self._directory:
            return
        dest_path = None
        if event.event_type == WatchEventKind.MOVED:
            dest_path = Path(os.fsdecode(event.dest_path))
        self._events.put(WatchEvent(WatchEventKind(event.event_type), path, dest_path))


class DirectoryWatch:
    """Pollable view of the changes in one directory."""

    def __init__(
        self,
        directory: Path | str,
        kinds: Iterable[WatchEventKind] = (WatchEventKind.CREATED,),
    ) -> None:
        """
        Args:
            directory: Existing directory to watch
            kinds: Kinds of events to report. Empty means every kind.

        Raises:
            NotADirectoryError: If directory does not exist or is not a directory
        """
        self._directory = Path(directory)
        if not self._directory.is_dir():
            raise NotADirectoryError(f"Not a directory: {self._directory}")
        self._kinds = frozenset(kinds) or frozenset(WatchEventKind)
        self._events: queue.Queue[WatchEvent] = queue.Queue()
        self._observer: Any = None
        self._lock = threading.Lock()

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def kinds(self) -> frozenset[WatchEventKind]:
        return self._kinds

    @property
    def is_open(self) -> bool:
        return self._observer is not None

    def open(self) -> None:
        """Start watching. No-op when already open."""
        with self._lock:
            if self._observer is not None:
                return
            # Events left over from a previous open/close cycle are stale
            self._drain()
            observer = Observer()
            observer.schedule(
                _QueueingHandler(self._directory, self._kinds, self._events),
                str(self._directory),
                recursive=False,
            )
            observer.start()
            self._observer = observer
        logger.debug("Directory watch opened", directory=str(self._directory), kinds=sorted(self._kinds))

    def close(self) -> None:
        """Stop watching. Idempotent; a later call re-opens the watch."""
        with self._lock:
            observer, self._observer = self._observer, None
        if observer is None:
            return
        observer.stop()
        observer.join(_OBSERVER_JOIN_TIMEOUT_S)
        if observer.is_alive():
            logger.warning("Directory watch observer did not stop", directory=str(self._directory))
        logger.debug("Directory watch closed", directory=str(self._directory))

    def poll(self) -> list[WatchEvent]:
        """Events observed since the previous poll, oldest first."""
        self.open()
        return self._drain()

    def _drain(self) -> list[WatchEvent]:
        drained: list[WatchEvent] = []
        while True:
            try:
                drained.append(self._events.get_nowait())
            except queue.Empty:
                return drained

    def __call__(self) -> list[WatchEvent]:
        return self.poll()

    def __enter__(self) -> DirectoryWatch:
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        kinds = ", ".join(sorted(self._kinds))
        return f"DirectoryWatch({self._directory}, kinds=[{kinds}])"

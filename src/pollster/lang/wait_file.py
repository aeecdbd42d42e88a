# src/pollster/lang/wait_file.py
"""Shortcuts for waiting on changes in a directory.

Each function creates its own DirectoryWatch and registers its close() as
the run's finish hook, so the watch is released when the run ends. A handle
started again re-opens the watch on its first attempt.

Example:
    report = (
        wait_file.new_file_named_in(outbox, "report.csv")
        .expecting_not_null()
        .repeat(30)
        .every_second()
        .wait()
    )
"""

from pathlib import Path

from pollster.adapters.directory_watch import DirectoryWatch, WatchEvent
from pollster.contracts.enums import WatchEventKind
from pollster.lang.builder import ActionStage, WaitResult, described


def event_in(directory: Path | str, *kinds: WatchEventKind) -> ActionStage[list[WatchEvent]]:
    """Events of the given kinds (every kind when none is given)."""
    watch = DirectoryWatch(directory, kinds)
    return WaitResult.of(watch, on_finish=watch.close)


def new_file_in(directory: Path | str) -> ActionStage[list[Path]]:
    """Paths created since the previous attempt (possibly an empty list)."""
    watch = DirectoryWatch(directory, (WatchEventKind.CREATED,))

    def created() -> list[Path]:
        return [event.path for event in watch()]

    return WaitResult.of(described(created, f"new file in {watch!r}"), on_finish=watch.close)


def new_file_named_in(directory: Path | str, name: str) -> ActionStage[Path]:
    """The path of ``name`` once it is created, None before."""
    watch = DirectoryWatch(directory, (WatchEventKind.CREATED,))

    def created_with_name() -> Path | None:
        for event in watch():
            if event.path.name == name:
                return event.path
        return None

    return WaitResult.of(
        described(created_with_name, f"new file named {name} in {watch!r}"),
        on_finish=watch.close,
    )


def removed_file_from(directory: Path | str) -> ActionStage[list[Path]]:
    """Paths deleted since the previous attempt (possibly an empty list)."""
    watch = DirectoryWatch(directory, (WatchEventKind.DELETED,))

    def deleted() -> list[Path]:
        return [event.path for event in watch()]

    return WaitResult.of(described(deleted, f"removed file from {watch.directory}"), on_finish=watch.close)

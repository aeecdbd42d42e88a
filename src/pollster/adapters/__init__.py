"""Adapters turning external event sources into probe actions."""

from pollster.adapters.directory_watch import DirectoryWatch, WatchEvent

__all__ = ["DirectoryWatch", "WatchEvent"]

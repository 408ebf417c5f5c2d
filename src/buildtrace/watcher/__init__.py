"""Environment watchers."""

from buildtrace.watcher.directory import DirectoryWatcher

__all__ = ["DirectoryWatcher"]

"""Command execution backends."""

from buildtrace.exec.command import SubprocessExecutor

__all__ = ["SubprocessExecutor"]

"""Pytest configuration and shared fakes.

No sys.path hacks - tests should import from installed buildtrace package.
"""

import logging
import os
from pathlib import Path
from typing import List, Optional

import pytest

from buildtrace.errors import ExecutionError, ObservationError
from buildtrace.kernel.run import Artifact, CommandOutput, CommandStep
from buildtrace.options import Options
from buildtrace.runner import RunnerImplementation


class FakeWatcher:
    """Watcher that counts calls and can be told to fail."""

    def __init__(self, name: str, fail: bool = False, found: Optional[List[Artifact]] = None):
        self.name = name
        self.fail = fail
        self.found = found or []
        self.snap_calls = 0
        self.artifact_calls = 0

    def snap(self) -> None:
        self.snap_calls += 1
        if self.fail:
            raise ObservationError(f"{self.name} is unavailable")

    def artifacts(self) -> List[Artifact]:
        self.artifact_calls += 1
        return list(self.found)


class FakeExecutor:
    """Executor returning canned output, or failing with an exit code."""

    def __init__(self, stdout: str = "", exit_code: int = 0):
        self.stdout = stdout
        self.exit_code = exit_code
        self.calls = []

    def run(self, spec, environment, verbose=False):
        self.calls.append((spec, environment, verbose))
        if self.exit_code != 0:
            raise ExecutionError(
                f"command {spec.name!r} exited with status {self.exit_code}",
                exit_code=self.exit_code,
                stderr="boom\n",
            )
        return CommandOutput(stdout=self.stdout, exit_code=0)


class RecordingWriter:
    """Attestation writer that records what it was asked to write."""

    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.writes = []

    def build(self, run):
        return {"command": run.command, "params": run.params}

    def persist(self, document, path):
        if self.error is not None:
            raise self.error
        Path(path).write_text(repr(document), encoding="utf-8")

    def write(self, run, path):
        self.writes.append(path)
        self.persist(self.build(run), path)


@pytest.fixture
def opts(tmp_path) -> Options:
    return Options(cwd=str(tmp_path), logger=logging.getLogger("buildtrace.test"))


@pytest.fixture
def echo_step() -> CommandStep:
    return CommandStep(cmd="echo", args=["hello"])


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor(stdout="hello\n")


@pytest.fixture
def writer() -> RecordingWriter:
    return RecordingWriter()


@pytest.fixture
def make_watcher():
    return FakeWatcher


@pytest.fixture
def make_executor():
    return FakeExecutor


@pytest.fixture
def make_writer():
    return RecordingWriter


@pytest.fixture
def impl(fake_executor, writer) -> RunnerImplementation:
    return RunnerImplementation(fake_executor, writer)


@pytest.fixture
def temp_dir(tmp_path, monkeypatch) -> Path:
    """Redirect tempfile to an isolated directory so provenance-*.json files can be counted."""
    import tempfile

    target = tmp_path / "tmp"
    target.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(target))
    return target


def pytest_sessionfinish(session, exitstatus):
    """Best-effort cleanup for basetemp on Windows without patching pytest internals."""
    if os.name != "nt":
        return
    basetemp = getattr(session.config.option, "basetemp", None)
    if not basetemp:
        return
    basetemp_path = Path(basetemp)
    if not basetemp_path.exists():
        return
    try:
        import shutil
        shutil.rmtree(basetemp_path)
    except (PermissionError, OSError):
        # If cleanup fails, let it surface as a warning rather than masking errors.
        import warnings
        warnings.warn(f"Could not remove basetemp: {basetemp_path}")

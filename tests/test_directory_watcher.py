"""Tests for watcher/directory.py."""

import os

import pytest

from buildtrace.attestation import ProvenanceWriter
from buildtrace.codes import RunState
from buildtrace.contracts import Watcher
from buildtrace.errors import ObservationError
from buildtrace.kernel.hash_utils import hash_bytes
from buildtrace.kernel.run import CommandSpec, Run, RunEnvironment
from buildtrace.watcher import DirectoryWatcher


def test_satisfies_watcher_contract(tmp_path):
    assert isinstance(DirectoryWatcher(tmp_path), Watcher)


def test_reports_created_and_modified_files(tmp_path):
    (tmp_path / "keep.txt").write_bytes(b"same")
    (tmp_path / "edit.txt").write_bytes(b"old")
    watcher = DirectoryWatcher(tmp_path)
    watcher.snap()

    (tmp_path / "edit.txt").write_bytes(b"new")
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "made.o").write_bytes(b"obj")

    found = watcher.artifacts()
    root = tmp_path.resolve()
    assert [a.path for a in found] == [
        (root / "edit.txt").as_posix(),
        (root / "sub" / "made.o").as_posix(),
    ]
    assert found[0].checksum == {"sha256": hash_bytes(b"new")}
    assert found[1].time is not None


def test_deleted_files_are_not_artifacts(tmp_path):
    (tmp_path / "gone.txt").write_bytes(b"x")
    watcher = DirectoryWatcher(tmp_path)
    watcher.snap()
    (tmp_path / "gone.txt").unlink()
    assert watcher.artifacts() == []


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
def test_symlinks_are_skipped(tmp_path):
    watcher = DirectoryWatcher(tmp_path)
    watcher.snap()
    (tmp_path / "real.txt").write_bytes(b"data")
    try:
        os.symlink(tmp_path / "real.txt", tmp_path / "link.txt")
    except OSError:
        pytest.skip("cannot create symlinks here")
    assert [a.path.rsplit("/", 1)[-1] for a in watcher.artifacts()] == ["real.txt"]


def test_artifacts_before_snap(tmp_path):
    with pytest.raises(ObservationError, match="before snap"):
        DirectoryWatcher(tmp_path).artifacts()


def test_missing_root(tmp_path):
    watcher = DirectoryWatcher(tmp_path / "nope")
    with pytest.raises(ObservationError, match="not a directory") as exc_info:
        watcher.snap()
    assert exc_info.value.watcher == watcher.name


def test_name_includes_root(tmp_path):
    assert DirectoryWatcher(tmp_path).name == f"directory:{tmp_path}"


def test_undecodable_file_name_becomes_valid_text(tmp_path):
    """A file name that is not UTF-8 is reported with \\xNN escapes and can be attested."""
    watcher = DirectoryWatcher(tmp_path)
    watcher.snap()
    try:
        with open(os.path.join(os.fsencode(str(tmp_path)), b"bad\xff.bin"), "wb") as fh:
            fh.write(b"payload")
    except (OSError, ValueError):
        pytest.skip("filesystem rejects non-UTF-8 file names")

    [artifact] = watcher.artifacts()
    assert artifact.path.endswith("/bad\\xff.bin")
    artifact.path.encode("utf-8")
    assert artifact.checksum == {"sha256": hash_bytes(b"payload")}

    run = Run(
        command_spec=CommandSpec(name="make"),
        environment=RunEnvironment(directory=str(tmp_path)),
        artifacts=[artifact],
        state=RunState.EXECUTED,
    )
    target = tmp_path / "att.json"
    ProvenanceWriter().write(run, str(target))
    assert "bad\\\\xff.bin" in target.read_text(encoding="utf-8")

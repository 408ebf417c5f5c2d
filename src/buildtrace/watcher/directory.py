"""Filesystem watcher: reports files created or modified under a directory."""

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Union

from buildtrace.errors import ObservationError
from buildtrace.kernel.hash_utils import hash_file
from buildtrace.kernel.run import Artifact

logger = logging.getLogger(__name__)


def _as_text(path: str) -> str:
    """Undecodable bytes in a file name come back from os.walk as surrogates;
    spell them as \\xNN escapes so the path is valid UTF-8 text."""
    return os.fsencode(path).decode("utf-8", "backslashreplace")


class DirectoryWatcher:
    """Snapshots a directory tree by file digest.

    Symlinks are skipped. Artifact paths are absolute POSIX-style paths
    below the resolved root.
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)
        self._baseline: Optional[Dict[str, str]] = None

    @property
    def name(self) -> str:
        return f"directory:{self.root}"

    def _scan(self) -> Dict[str, str]:
        root = self.root.resolve()
        if not root.is_dir():
            raise ObservationError(f"{self.name}: not a directory", watcher=self.name)

        def _raise(err: OSError) -> None:
            raise err

        digests: Dict[str, str] = {}
        try:
            for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
                dirnames.sort()
                for filename in sorted(filenames):
                    path = Path(dirpath) / filename
                    if path.is_symlink() or not path.is_file():
                        continue
                    digests[path.relative_to(root).as_posix()] = hash_file(path)
        except OSError as e:
            raise ObservationError(f"{self.name}: scanning failed: {e}", watcher=self.name) from e
        return digests

    def snap(self) -> None:
        self._baseline = self._scan()
        logger.debug("%s: baseline holds %d files", self.name, len(self._baseline))

    def artifacts(self) -> List[Artifact]:
        """Files that are new or whose content changed since ``snap``."""
        if self._baseline is None:
            raise ObservationError(f"{self.name}: artifacts requested before snap", watcher=self.name)

        root = self.root.resolve()
        current = self._scan()
        found: List[Artifact] = []
        for rel_path in sorted(current):
            digest = current[rel_path]
            if self._baseline.get(rel_path) == digest:
                continue
            path = root / rel_path
            try:
                mtime = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
            except OSError:
                # File vanished between the scan and the stat; it is still reported.
                mtime = None
            found.append(
                Artifact(path=_as_text(path.as_posix()), checksum={"sha256": digest}, time=mtime)
            )
        return found

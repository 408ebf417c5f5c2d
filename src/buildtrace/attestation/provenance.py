"""In-toto statement with an SLSA provenance v0.2 predicate.

Describes how artifacts were produced: builder, invocation, metadata.
Documents are written unsigned.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from buildtrace._internal.canonical_json import document_dumps
from buildtrace.kernel.hash_utils import run_fingerprint
from buildtrace.kernel.run import Run

IN_TOTO_STATEMENT_TYPE = "https://in-toto.io/Statement/v0.1"
SLSA_PROVENANCE_PREDICATE_TYPE = "https://slsa.dev/provenance/v0.2"
DEFAULT_BUILDER_ID = "https://github.com/buildtrace/buildtrace"
DEFAULT_BUILD_TYPE = "https://github.com/buildtrace/buildtrace/command@v1"


def _rfc3339(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _subjects(run: Run) -> List[Dict[str, Any]]:
    subjects = [
        {"name": artifact.path, "digest": dict(artifact.checksum)}
        for artifact in run.artifacts
    ]
    return sorted(subjects, key=lambda s: s["name"])


class ProvenanceWriter:
    """Builds and persists provenance statements for runs."""

    def __init__(self, builder_id: str = DEFAULT_BUILDER_ID, build_type: str = DEFAULT_BUILD_TYPE):
        self.builder_id = builder_id
        self.build_type = build_type

    def build(self, run: Run) -> Dict[str, Any]:
        """Build the statement for a run.

        Parameters land in ``invocation.parameters``, the working directory
        and variables in ``invocation.environment``. ``materials`` is left
        empty: inputs are not observed.
        """
        predicate: Dict[str, Any] = {
            "builder": {"id": self.builder_id},
            "buildType": self.build_type,
            "invocation": {
                "configSource": {},
                "parameters": {
                    "command": run.command,
                    "params": run.params,
                },
                "environment": {
                    "directory": run.environment.directory,
                    "variables": dict(run.environment.variables),
                },
            },
            "metadata": {
                "buildInvocationId": run_fingerprint(run),
                "buildStartedOn": _rfc3339(run.start_time),
                "buildFinishedOn": _rfc3339(run.end_time),
                "completeness": {
                    "parameters": True,
                    "environment": False,
                    "materials": False,
                },
                "reproducible": False,
            },
            "materials": [],
        }
        return {
            "_type": IN_TOTO_STATEMENT_TYPE,
            "subject": _subjects(run),
            "predicateType": SLSA_PROVENANCE_PREDICATE_TYPE,
            "predicate": predicate,
        }

    def persist(self, document: Dict[str, Any], path: str) -> None:
        """Write a document as indented JSON, replacing any existing file."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(document_dumps(document), encoding="utf-8")

    def write(self, run: Run, path: str) -> None:
        self.persist(self.build(run), path)

"""Capability contracts consumed by the run orchestrator.

The orchestrator never depends on concrete collaborators; anything that
structurally matches these protocols can be plugged in (tests use fakes).
"""

from typing import Any, Dict, List, Protocol, runtime_checkable

from buildtrace.kernel.run import Artifact, CommandOutput, CommandSpec, Run, RunEnvironment


@runtime_checkable
class Step(Protocol):
    """Source of the command a run is created from."""

    def command(self) -> str: ...

    def params(self) -> List[str]: ...


@runtime_checkable
class Watcher(Protocol):
    """Observer of an execution environment.

    ``snap`` records a baseline before the run; ``artifacts`` compares the
    environment against that baseline after the run. Both raise
    ObservationError on failure. Implementations may expose a ``name``
    attribute used in error messages.
    """

    def snap(self) -> None: ...

    def artifacts(self) -> List[Artifact]: ...


@runtime_checkable
class CommandExecutor(Protocol):
    """Runs a command to completion; raises ExecutionError on failure."""

    def run(
        self, spec: CommandSpec, environment: RunEnvironment, verbose: bool = False
    ) -> CommandOutput: ...


@runtime_checkable
class AttestationWriter(Protocol):
    """Turns a completed run into a persisted document.

    ``persist`` and ``write`` raise OSError when the destination cannot be
    written.
    """

    def build(self, run: Run) -> Dict[str, Any]: ...

    def persist(self, document: Dict[str, Any], path: str) -> None: ...

    def write(self, run: Run, path: str) -> None: ...


def describe_watcher(watcher: Any) -> str:
    """Human-readable watcher label for logs and errors."""
    name = getattr(watcher, "name", None)
    if isinstance(name, str) and name:
        return name
    return type(watcher).__name__

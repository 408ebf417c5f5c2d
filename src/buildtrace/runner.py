"""Run lifecycle orchestration.

A run moves through ``create_run -> snapshot -> execute -> write_attestation``
(with ``collect_artifacts`` between execute and attestation when watchers are
in use). Every phase checks the run state before doing anything so a
snapshot taken after execution, or an attestation written for a run that
never finished, fails loudly instead of recording wrong provenance.
"""

import os
import tempfile
import time
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

from pydantic import TypeAdapter, ValidationError

from buildtrace.codes import PHASE_PRECONDITIONS, RunState
from buildtrace.contracts import AttestationWriter, CommandExecutor, Step, Watcher, describe_watcher
from buildtrace.errors import (
    AttestationError,
    ConfigurationError,
    ExecutionError,
    ObservationError,
    PhaseOrderError,
)
from buildtrace.kernel.run import Artifact, CommandSpec, Run, RunEnvironment
from buildtrace.options import Options

_ARTIFACTS = TypeAdapter(List[Artifact])


def _require_state(phase: str, run: Run) -> None:
    expected = PHASE_PRECONDITIONS[phase]
    if run.state not in expected:
        raise PhaseOrderError(phase, run.state.value, tuple(s.value for s in expected))


class RunnerImplementation:
    """The four lifecycle phases, each mutating and returning the same run."""

    def __init__(self, executor: CommandExecutor, writer: AttestationWriter):
        self.executor = executor
        self.writer = writer

    def create_run(self, opts: Options, step: Step) -> Run:
        """Create a run from the data defined in the step."""
        cwd = opts.cwd
        if not cwd:
            try:
                cwd = os.getcwd()
            except OSError as e:
                raise ConfigurationError(f"getting current directory: {e}") from e

        try:
            spec = CommandSpec(name=step.command(), arguments=tuple(step.params()))
        except ValidationError as e:
            raise ConfigurationError(f"invalid step: {e}") from e

        run = Run(
            command_spec=spec,
            environment=RunEnvironment(directory=cwd, variables={}),
        )
        opts.logger.info("Executing command: %s %s", spec.name, " ".join(spec.arguments))
        return run

    def snapshot(self, opts: Options, run: Run, watchers: Iterable[Watcher]) -> Run:
        """Take the initial snapshots, in registration order.

        Stops at the first failing watcher; watchers snapped before it keep
        their baselines.
        """
        _require_state("snapshot", run)
        for index, watcher in enumerate(watchers):
            label = describe_watcher(watcher)
            try:
                watcher.snap()
            except (ObservationError, OSError) as e:
                raise ObservationError(
                    f"snapshotting watcher #{index} ({label}): {e}", watcher=label
                ) from e
            opts.logger.debug("Snapshotted watcher #%d (%s)", index, label)
        run.state = RunState.SNAPSHOTTED
        return run

    def execute(self, opts: Options, run: Run) -> Run:
        """Run the command to completion and record timing, exit code and output.

        Timing is recorded whether or not the command succeeds; output only
        on success. A failed run is terminal.
        """
        _require_state("execute", run)
        start = datetime.now(timezone.utc)
        started = time.monotonic()
        run.start_time = start
        try:
            output = self.executor.run(run.command_spec, run.environment, verbose=opts.verbose)
        except ExecutionError as e:
            if e.exit_code is not None:
                run.exit_code = e.exit_code
            run.state = RunState.FAILED
            raise ExecutionError(
                f"executing run: {e}", exit_code=e.exit_code, stdout=e.stdout, stderr=e.stderr
            ) from e
        except Exception as e:
            run.state = RunState.FAILED
            raise ExecutionError(f"executing run: {e}") from e
        finally:
            run.end_time = start + timedelta(seconds=time.monotonic() - started)

        run.output = output
        run.exit_code = output.exit_code
        run.state = RunState.EXECUTED
        if opts.verbose:
            opts.logger.info("%s", output)
        return run

    def collect_artifacts(self, opts: Options, run: Run, watchers: Iterable[Watcher]) -> Run:
        """Append the artifacts each watcher observed since its snapshot."""
        _require_state("collect artifacts", run)
        for index, watcher in enumerate(watchers):
            label = describe_watcher(watcher)
            try:
                found = _ARTIFACTS.validate_python(watcher.artifacts())
            except (ObservationError, OSError, ValidationError) as e:
                raise ObservationError(
                    f"collecting artifacts from watcher #{index} ({label}): {e}", watcher=label
                ) from e
            opts.logger.debug("Watcher #%d (%s) reported %d artifacts", index, label, len(found))
            run.artifacts.extend(found)
        return run

    def write_attestation(self, opts: Options, run: Run) -> str:
        """Write the run's attestation and return the path it was written to."""
        _require_state("write attestation", run)
        path = opts.attestation_path
        if not path:
            try:
                fd, path = tempfile.mkstemp(prefix="provenance-", suffix=".json")
                os.close(fd)
            except OSError as e:
                raise AttestationError(f"creating temp file to write attestation: {e}") from e
            opts.logger.debug("Writing attestation to temp file: %s", path)

        try:
            self.writer.write(run, path)
        except (OSError, ValueError) as e:
            raise AttestationError(f"writing attestation to {path}: {e}", path=path) from e

        run.state = RunState.ATTESTED
        opts.logger.info("Wrote provenance attestation to %s", path)
        return path


class Runner:
    """Drives a full lifecycle for one step with a fixed set of watchers."""

    def __init__(
        self,
        options: Optional[Options] = None,
        watchers: Optional[List[Watcher]] = None,
        executor: Optional[CommandExecutor] = None,
        writer: Optional[AttestationWriter] = None,
    ):
        if executor is None:
            from buildtrace.exec import SubprocessExecutor
            executor = SubprocessExecutor()
        if writer is None:
            from buildtrace.attestation import ProvenanceWriter
            writer = ProvenanceWriter()
        self.options = options or Options()
        self.watchers: List[Watcher] = list(watchers or [])
        self.impl = RunnerImplementation(executor, writer)
        self.attestation_path: Optional[str] = None

    def add_watcher(self, watcher: Watcher) -> None:
        self.watchers.append(watcher)

    def run(self, step: Step) -> Run:
        """Create, snapshot, execute, collect and attest. Errors propagate as raised."""
        run = self.impl.create_run(self.options, step)
        self.impl.snapshot(self.options, run, self.watchers)
        self.impl.execute(self.options, run)
        self.impl.collect_artifacts(self.options, run, self.watchers)
        self.attestation_path = self.impl.write_attestation(self.options, run)
        return run

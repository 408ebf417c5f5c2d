"""Subprocess-backed command executor."""

from __future__ import annotations

import logging
import os
import subprocess
import sys
import threading
from typing import IO, Dict, List, Optional, TextIO

from buildtrace.errors import ExecutionError
from buildtrace.kernel.run import CommandOutput, CommandSpec, RunEnvironment

logger = logging.getLogger(__name__)


def _decode_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def _tee(source: IO[str], sink: TextIO, captured: List[str]) -> None:
    for line in iter(source.readline, ""):
        captured.append(line)
        sink.write(line)
        sink.flush()
    source.close()


class SubprocessExecutor:
    """Runs commands as child processes, blocking until they exit.

    Silent mode captures stdout/stderr. Verbose mode additionally echoes
    both streams to the parent's stdout/stderr as lines arrive.
    """

    def __init__(self, stdout: Optional[TextIO] = None, stderr: Optional[TextIO] = None):
        self._stdout = stdout
        self._stderr = stderr

    def _child_env(self, environment: RunEnvironment) -> Dict[str, str]:
        env = dict(os.environ)
        env.update(environment.variables)
        return env

    def run(
        self, spec: CommandSpec, environment: RunEnvironment, verbose: bool = False
    ) -> CommandOutput:
        logger.debug("spawning %s in %s", spec.argv, environment.directory)
        try:
            if verbose:
                output = self._run_streaming(spec, environment)
            else:
                completed = subprocess.run(
                    spec.argv,
                    cwd=environment.directory,
                    env=self._child_env(environment),
                    stdin=subprocess.DEVNULL,
                    capture_output=True,
                    text=True,
                    errors="replace",
                    check=False,
                )
                output = CommandOutput(
                    stdout=_decode_text(completed.stdout),
                    stderr=_decode_text(completed.stderr),
                    exit_code=completed.returncode,
                )
        except (OSError, ValueError) as e:
            # ValueError: argv or environment holding a NUL byte
            raise ExecutionError(f"command {spec.name!r} could not be started: {e}") from e

        if not output.success:
            raise ExecutionError(
                f"command {spec.name!r} exited with status {output.exit_code}",
                exit_code=output.exit_code,
                stdout=output.stdout,
                stderr=output.stderr,
            )
        return output

    def _run_streaming(self, spec: CommandSpec, environment: RunEnvironment) -> CommandOutput:
        proc = subprocess.Popen(
            spec.argv,
            cwd=environment.directory,
            env=self._child_env(environment),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            errors="replace",
        )
        out: List[str] = []
        err: List[str] = []
        # Both pipes are drained concurrently so a chatty stderr cannot block stdout.
        readers = [
            threading.Thread(target=_tee, args=(proc.stdout, self._stdout or sys.stdout, out)),
            threading.Thread(target=_tee, args=(proc.stderr, self._stderr or sys.stderr, err)),
        ]
        for reader in readers:
            reader.daemon = True
            reader.start()
        exit_code = proc.wait()
        for reader in readers:
            reader.join()
        return CommandOutput(stdout="".join(out), stderr="".join(err), exit_code=exit_code)

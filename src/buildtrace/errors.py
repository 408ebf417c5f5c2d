"""Error taxonomy for the run lifecycle.

Each lifecycle phase raises exactly one family of errors, always chained to
the collaborator failure that caused it (``raise ... from err``):

- create_run        -> ConfigurationError
- snapshot/collect  -> ObservationError
- execute           -> ExecutionError
- write_attestation -> AttestationError

Invoking a phase out of order raises PhaseOrderError, which is a
ConfigurationError.
"""

from typing import Optional


class BuildtraceError(Exception):
    """Base exception for all run lifecycle errors."""
    pass


class ConfigurationError(BuildtraceError):
    """Raised when a run cannot be configured (e.g. working directory unresolvable)."""
    pass


class PhaseOrderError(ConfigurationError):
    """Raised when a lifecycle phase is invoked in the wrong run state."""
    def __init__(self, phase: str, state: str, expected: tuple[str, ...]):
        self.phase = phase
        self.state = state
        self.expected = expected
        expected_str = ", ".join(expected)
        super().__init__(
            f"cannot {phase}: run is '{state}', expected one of: {expected_str}"
        )


class ObservationError(BuildtraceError):
    """Raised when a watcher fails to snapshot or to report artifacts."""
    def __init__(self, message: str, watcher: Optional[str] = None):
        self.watcher = watcher
        super().__init__(message)


class ExecutionError(BuildtraceError):
    """Raised when the command fails to start or exits with a failure status."""
    def __init__(
        self,
        message: str,
        exit_code: Optional[int] = None,
        stdout: str = "",
        stderr: str = "",
    ):
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(message)


class AttestationError(BuildtraceError):
    """Raised when the attestation destination cannot be created or written."""
    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(message)

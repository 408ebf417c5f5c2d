"""buildtrace: build-run provenance recorder."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("buildtrace")
except PackageNotFoundError:
    __version__ = "dev"

# Public API exports
from buildtrace.errors import (
    AttestationError,
    BuildtraceError,
    ConfigurationError,
    ExecutionError,
    ObservationError,
    PhaseOrderError,
)
from buildtrace.kernel.run import Artifact, CommandOutput, CommandSpec, CommandStep, Run, RunEnvironment
from buildtrace.codes import RunState
from buildtrace.options import Options
from buildtrace.runner import Runner, RunnerImplementation

__all__ = [
    "__version__",
    "Artifact",
    "AttestationError",
    "BuildtraceError",
    "CommandOutput",
    "CommandSpec",
    "CommandStep",
    "ConfigurationError",
    "ExecutionError",
    "ObservationError",
    "Options",
    "PhaseOrderError",
    "Run",
    "RunEnvironment",
    "RunState",
    "Runner",
    "RunnerImplementation",
]

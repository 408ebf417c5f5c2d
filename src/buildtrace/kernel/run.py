"""Pydantic models for a build run and the step it was created from."""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from buildtrace.codes import RunState


class CommandSpec(BaseModel):
    """Immutable description of what to run."""
    name: str  # executable, resolved through PATH by the executor
    arguments: tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Reject empty or whitespace-only executable names."""
        if not v or not v.strip():
            raise ValueError("Command name must be a non-empty string")
        return v

    @property
    def argv(self) -> List[str]:
        return [self.name, *self.arguments]


class RunEnvironment(BaseModel):
    """Where and how a run executed."""
    directory: str
    variables: Dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")


class Artifact(BaseModel):
    """A file created or modified by a run, as reported by a watcher."""
    path: str
    checksum: Dict[str, str]  # algorithm -> hex digest, e.g. {"sha256": "ab12..."}
    time: Optional[datetime] = None  # last modification time, if known

    model_config = ConfigDict(extra="forbid")


class CommandOutput(BaseModel):
    """Captured output of a finished command."""
    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0

    model_config = ConfigDict(extra="forbid")

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    def __str__(self) -> str:
        return self.stdout + self.stderr


class Run(BaseModel):
    """Mutable record of one execution.

    Owned by the orchestrator for its whole lifetime. The command spec is
    fixed at creation; timing, exit code and output are written by
    ``execute``; artifacts are appended after execution from the watchers.
    """
    command_spec: CommandSpec
    environment: RunEnvironment
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    exit_code: int = 0  # 0 until execute runs
    output: Optional[CommandOutput] = None  # only set when the command succeeded
    artifacts: List[Artifact] = Field(default_factory=list)
    state: RunState = RunState.CREATED

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    @property
    def command(self) -> str:
        return self.command_spec.name

    @property
    def params(self) -> List[str]:
        return list(self.command_spec.arguments)

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.start_time is None or self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds()


class CommandStep(BaseModel):
    """A plain step: a command and its parameters.

    Anything exposing ``command()`` and ``params()`` can be used as a step;
    this is the implementation used by the CLI.
    """
    cmd: str
    args: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    def command(self) -> str:
        return self.cmd

    def params(self) -> List[str]:
        return list(self.args)

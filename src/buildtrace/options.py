"""Run options: the configuration handed to every orchestrator phase."""

import logging
import os
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

ENV_CWD = "BUILDTRACE_CWD"
ENV_VERBOSE = "BUILDTRACE_VERBOSE"
ENV_ATTESTATION_PATH = "BUILDTRACE_ATTESTATION_PATH"

_TRUTHY = {"1", "true", "yes", "on"}


def default_logger() -> logging.Logger:
    return logging.getLogger("buildtrace")


class Options(BaseModel):
    """Options recognized by the run orchestrator."""
    cwd: Optional[str] = None  # overrides the ambient working directory
    verbose: bool = False  # echo command output while it runs
    attestation_path: Optional[str] = None  # None -> temp file provenance-*.json
    logger: logging.Logger = Field(default_factory=default_logger)

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "Options":
        """Build options from BUILDTRACE_* variables.

        Keyword overrides that are not None take precedence over the
        environment (the CLI passes its flags this way).
        """
        if environ is None:
            environ = os.environ
        values = {
            "cwd": environ.get(ENV_CWD) or None,
            "verbose": environ.get(ENV_VERBOSE, "").strip().lower() in _TRUTHY,
            "attestation_path": environ.get(ENV_ATTESTATION_PATH) or None,
        }
        for key, value in overrides.items():
            if value is not None:
                values[key] = value
        return cls(**values)

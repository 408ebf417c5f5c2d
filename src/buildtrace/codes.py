"""Run lifecycle state constants.

These constants prevent stringly-typed states and make the phase
transitions checked by the orchestrator explicit.
"""

from enum import Enum


class RunState(str, Enum):
    """Lifecycle states of a run."""

    CREATED = "created"
    SNAPSHOTTED = "snapshotted"
    EXECUTED = "executed"  # command exited successfully
    FAILED = "failed"  # terminal: create a new run to retry
    ATTESTED = "attested"


# phase name -> states the run may be in when the phase starts
PHASE_PRECONDITIONS = {
    "snapshot": (RunState.CREATED,),
    "execute": (RunState.SNAPSHOTTED,),
    "collect artifacts": (RunState.EXECUTED,),
    "write attestation": (RunState.EXECUTED, RunState.ATTESTED),
}

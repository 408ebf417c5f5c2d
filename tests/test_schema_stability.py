"""Test that record and statement shapes don't change unintentionally."""

from buildtrace.attestation import ProvenanceWriter
from buildtrace.kernel.run import CommandSpec, Run, RunEnvironment


def test_run_fields_stable():
    """Adding a field to Run changes what a run records; update this list on purpose.

    This prevents "one more optional field" from creeping in during refactors.
    """
    schema = Run.model_json_schema()
    assert sorted(schema["properties"]) == [
        "artifacts",
        "command_spec",
        "end_time",
        "environment",
        "exit_code",
        "output",
        "start_time",
        "state",
    ]
    assert sorted(schema["required"]) == ["command_spec", "environment"]


def test_statement_keys_stable():
    run = Run(command_spec=CommandSpec(name="true"), environment=RunEnvironment(directory="/"))
    doc = ProvenanceWriter().build(run)

    assert sorted(doc) == ["_type", "predicate", "predicateType", "subject"]
    assert sorted(doc["predicate"]) == ["buildType", "builder", "invocation", "materials", "metadata"]
    assert sorted(doc["predicate"]["metadata"]) == [
        "buildFinishedOn",
        "buildInvocationId",
        "buildStartedOn",
        "completeness",
        "reproducible",
    ]
    # unset timing is recorded as null, not omitted
    assert doc["predicate"]["metadata"]["buildStartedOn"] is None

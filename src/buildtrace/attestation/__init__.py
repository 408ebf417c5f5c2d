"""Provenance attestation documents."""

from buildtrace.attestation.provenance import ProvenanceWriter

__all__ = ["ProvenanceWriter"]

"""Centralized JSON serialization for attestation documents.

Two forms are used:
- canonical_dumps: compact and byte-stable, used for hashing
- document_dumps: indented for humans, used when persisting attestations

Both sort keys so the same document always serializes to the same bytes.
"""

import json
from typing import Any


def canonical_dumps(obj: Any) -> str:
    """
    Canonical JSON serialization for byte-stable evidence.

    Rules:
    - UTF-8 encoding
    - Sorted keys
    - Stable separators (",", ":")
    - No trailing whitespace
    """
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False
    )


def document_dumps(obj: Any) -> str:
    """Indented JSON with sorted keys and a trailing newline."""
    return json.dumps(obj, sort_keys=True, indent=2, ensure_ascii=False) + "\n"

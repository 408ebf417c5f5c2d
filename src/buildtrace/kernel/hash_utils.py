"""Hash utilities with explicit canonicalization rules for stable hashing.

Key rules:
- Object keys sorted recursively
- Arrays preserve order
- Floats BANNED (hard validation error)
- Strings normalized to NFC
- Non-JSON types forbidden
"""

import hashlib
import unicodedata
from pathlib import Path
from typing import Any, Union

from buildtrace._internal.canonical_json import canonical_dumps
from buildtrace.kernel.run import Run

# Files are hashed in chunks so large build outputs are never fully loaded.
_CHUNK_SIZE = 1024 * 1024


class CanonicalizationError(ValueError):
    """Raised when an object cannot be canonicalized."""
    pass


def _normalize_string(s: str) -> str:
    """Normalize string to NFC (Unicode Normalization Form Canonical Composition)."""
    return unicodedata.normalize('NFC', s)


def _canonicalize_value(obj: Any, path: str = "") -> Any:
    """Validate and canonicalize a single JSON value.

    Raises CanonicalizationError for floats and non-JSON types. None is a
    valid value (JSON null); missing keys are simply absent.
    """
    if obj is None or isinstance(obj, bool) or isinstance(obj, int):
        return obj
    elif isinstance(obj, float):
        raise CanonicalizationError(
            f"Floats are not allowed (at {path or '<root>'}). Use strings instead."
        )
    elif isinstance(obj, str):
        return _normalize_string(obj)
    elif isinstance(obj, dict):
        result = {}
        for key in sorted(obj):
            if not isinstance(key, str):
                raise CanonicalizationError(
                    f"Dictionary keys must be strings at {path or '<root>'}, got {type(key).__name__}"
                )
            child = f"{path}.{key}" if path else key
            result[_normalize_string(key)] = _canonicalize_value(obj[key], child)
        return result
    elif isinstance(obj, (list, tuple)):
        return [
            _canonicalize_value(item, f"{path}[{i}]" if path else f"[{i}]")
            for i, item in enumerate(obj)
        ]
    else:
        raise CanonicalizationError(
            f"Non-JSON type at {path or '<root>'}: {type(obj).__name__}. "
            f"Only None, bool, int, str, dict, and list are allowed."
        )


def canonicalize_json(obj: Any) -> str:
    """Canonicalize a JSON-serializable object to a stable string representation.

    Args:
        obj: The object to canonicalize

    Returns:
        Canonical JSON string

    Raises:
        CanonicalizationError: If object contains floats or non-JSON types
    """
    canonicalized = _canonicalize_value(obj)
    return canonical_dumps(canonicalized)


def hash_bytes(content: Union[str, bytes]) -> str:
    """Compute the SHA256 hex digest of content (str is encoded as UTF-8)."""
    if isinstance(content, str):
        content = content.encode('utf-8')
    return hashlib.sha256(content).hexdigest()


def hash_file(path: Union[str, Path]) -> str:
    """Compute the SHA256 hex digest of a file's bytes.

    Raises:
        OSError: If the file cannot be read
    """
    digest = hashlib.sha256()
    with open(path, 'rb') as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b''):
            digest.update(chunk)
    return digest.hexdigest()


def run_fingerprint(run: Run) -> str:
    """Compute a stable fingerprint of what a run did.

    Covers the command, its parameters, the working directory and the sorted
    artifact digests. Timing is excluded so two identical runs share a
    fingerprint.

    Returns:
        SHA256 hash as hex string (prefixed with "sha256:")
    """
    payload = {
        "command": run.command,
        "params": run.params,
        "directory": run.environment.directory,
        "artifacts": sorted(
            [{"path": a.path, "sha256": a.checksum.get("sha256", "")} for a in run.artifacts],
            key=lambda a: (a["path"], a["sha256"]),
        ),
    }
    return f"sha256:{hash_bytes(canonicalize_json(payload))}"

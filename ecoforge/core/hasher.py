"""Canonical hashing helpers for run-record sealing and snapshot identity."""

from __future__ import annotations

import hashlib
import json
from typing import Any

from ecoforge.models.artifacts import SerializedFile

# Fields a RunRecord may change after creation; excluded from its seal.
_MUTABLE_RECORD_FIELDS = frozenset({"feedback", "feedback_pending", "record_hash"})


def canonical_json_bytes(obj: Any) -> bytes:
    """Produce canonical JSON bytes: deterministic, sorted, compact.

    - sorted keys
    - no whitespace separators (",", ":")
    - ensure_ascii=True
    - UTF-8 encoding
    """
    return json.dumps(
        obj, sort_keys=True, separators=(",", ":"), ensure_ascii=True
    ).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def compute_snapshot_hash(files: list[SerializedFile]) -> str:
    """SHA-256 over a tree snapshot, independent of file order."""
    payload = sorted((f.path, f.content) for f in files)
    return sha256_hex(canonical_json_bytes(payload))


def compute_record_hash(record_dict: dict[str, Any]) -> str:
    """SHA-256 of a run record, excluding the fields feedback may change.

    This is the seal that makes every other field of the record
    tamper-evident.
    """
    d = {k: v for k, v in record_dict.items() if k not in _MUTABLE_RECORD_FIELDS}
    return sha256_hex(canonical_json_bytes(d))

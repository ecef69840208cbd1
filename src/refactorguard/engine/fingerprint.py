"""Content fingerprints for normalized definition bodies."""

from __future__ import annotations

import hashlib

SHORT_LENGTH = 16


def compute_fingerprint(normalized_body: str) -> str:
    """Return the SHA-256 hex digest of a normalized body."""
    return hashlib.sha256(normalized_body.encode("utf-8")).hexdigest()


def short_fingerprint(fingerprint: str, length: int = SHORT_LENGTH) -> str:
    """Truncated digest for display."""
    return fingerprint[:length]

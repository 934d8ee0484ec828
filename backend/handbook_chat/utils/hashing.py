"""Content digests for documents."""

from __future__ import annotations

import hashlib


def sha256_bytes(data: bytes) -> str:
    """Return hex digest for bytes input."""
    return hashlib.sha256(data).hexdigest()


def fingerprint(data: bytes, length: int = 12) -> str:
    """Short digest prefix, enough to tell document versions apart in logs."""
    return sha256_bytes(data)[:length]

"""ID helpers."""

from __future__ import annotations

import secrets


def new_id(prefix: str | None = None, nbytes: int = 16) -> str:
    """Random URL-safe identifier with optional prefix.

    Session ids travel in cookies, so they come from ``secrets`` rather than uuid4.
    """
    base = secrets.token_urlsafe(nbytes)
    return f"{prefix}_{base}" if prefix else base

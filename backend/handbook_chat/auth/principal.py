"""Authenticated principal."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Principal:
    uid: str
    email: str | None
    name: str | None = None


__all__ = ["Principal"]

"""Email allow-list for sign-in."""

from __future__ import annotations

from typing import Iterable


class AllowList:
    """Immutable set of email addresses permitted to sign in.

    Addresses are compared case-insensitively, ignoring surrounding whitespace.
    """

    def __init__(self, emails: Iterable[str]) -> None:
        self._emails = frozenset(_normalize(email) for email in emails if email and email.strip())

    def allows(self, email: str | None) -> bool:
        if not email:
            return False
        return _normalize(email) in self._emails

    def __contains__(self, email: object) -> bool:
        return isinstance(email, str) and self.allows(email)

    def __len__(self) -> int:
        return len(self._emails)


def _normalize(email: str) -> str:
    return email.strip().lower()


__all__ = ["AllowList"]

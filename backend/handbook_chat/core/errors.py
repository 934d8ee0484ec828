"""Error taxonomy shared by the service layers."""

from __future__ import annotations


class HandbookChatError(Exception):
    """Base class for errors raised by Handbook Chat."""


class InvalidInputError(HandbookChatError, ValueError):
    """Raised when a request is rejected before any external call."""


class UpstreamServiceError(HandbookChatError):
    """Raised when an embedding or generation call fails."""

    def __init__(self, service: str, message: str):
        self.service = service
        self.message = message
        super().__init__(f"[{service}] {message}")


class DocumentUnavailableError(HandbookChatError):
    """Raised when the reference document cannot be loaded."""


class AuthenticationError(HandbookChatError):
    """Raised when a sign-in token cannot be verified."""


class AuthorizationError(HandbookChatError):
    """Raised when an authenticated principal is not allowed in."""

    def __init__(self, email: str | None):
        self.email = email
        super().__init__(f"{email or '<no email>'} is not on the allow-list")


__all__ = [
    "HandbookChatError",
    "InvalidInputError",
    "UpstreamServiceError",
    "DocumentUnavailableError",
    "AuthenticationError",
    "AuthorizationError",
]

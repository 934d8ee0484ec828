"""Document payloads and data URI helpers."""

from __future__ import annotations

import base64
import binascii
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from handbook_chat.core.errors import InvalidInputError
from handbook_chat.utils.hashing import sha256_bytes

DocumentOrigin = Literal["asset", "upload"]

SUPPORTED_MIME_TYPES = ("text/plain", "text/markdown", "application/pdf")

_SUFFIX_MIME = {
    ".txt": "text/plain",
    ".text": "text/plain",
    ".md": "text/markdown",
    ".markdown": "text/markdown",
    ".pdf": "application/pdf",
}


@dataclass(frozen=True, slots=True)
class Document:
    """Raw document bytes tagged with a media type."""

    content: bytes
    mime: str
    origin: DocumentOrigin = "asset"
    name: str | None = None

    def __post_init__(self) -> None:
        if not self.content:
            raise InvalidInputError("Document is empty")
        if self.mime not in SUPPORTED_MIME_TYPES:
            raise InvalidInputError(f"Unsupported document type: {self.mime}")

    @property
    def kind(self) -> str:
        """Short label used in prompts ("PDF" or "text")."""
        return "PDF" if self.mime == "application/pdf" else "text"

    @property
    def size_bytes(self) -> int:
        return len(self.content)

    @property
    def sha256(self) -> str:
        return sha256_bytes(self.content)

    @classmethod
    def from_path(cls, path: Path, mime: str | None = None, origin: DocumentOrigin = "asset") -> "Document":
        resolved = path.expanduser()
        return cls(
            content=resolved.read_bytes(),
            mime=mime or guess_mime(resolved),
            origin=origin,
            name=resolved.name,
        )

    @classmethod
    def from_data_uri(cls, uri: str, origin: DocumentOrigin = "upload", name: str | None = None) -> "Document":
        mime, content = parse_data_uri(uri)
        return cls(content=content, mime=mime, origin=origin, name=name)

    def to_data_uri(self) -> str:
        encoded = base64.b64encode(self.content).decode("ascii")
        return f"data:{self.mime};base64,{encoded}"


def guess_mime(path: Path) -> str:
    suffix = path.suffix.lower()
    if suffix in _SUFFIX_MIME:
        return _SUFFIX_MIME[suffix]
    guessed, _ = mimetypes.guess_type(path.name)
    return guessed or "application/octet-stream"


def parse_data_uri(uri: str) -> tuple[str, bytes]:
    """Split ``data:<mime>;base64,<payload>`` into media type and bytes."""
    if not uri.startswith("data:") or "," not in uri:
        raise InvalidInputError("Expected a data URI of the form data:<mimetype>;base64,<data>")
    header, payload = uri[len("data:") :].split(",", 1)
    parts = [part.strip() for part in header.split(";")]
    mime = parts[0].lower() or "text/plain"
    if "base64" not in (part.lower() for part in parts[1:]):
        raise InvalidInputError("Data URI must use base64 encoding")
    try:
        content = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidInputError("Data URI payload is not valid base64") from exc
    return mime, content


__all__ = [
    "Document",
    "DocumentOrigin",
    "SUPPORTED_MIME_TYPES",
    "guess_mime",
    "parse_data_uri",
]

"""Text extraction for supported document types."""

from __future__ import annotations

import fitz
from markdown_it import MarkdownIt

from handbook_chat.core.errors import InvalidInputError
from handbook_chat.core.logging import get_logger
from handbook_chat.documents.types import Document

logger = get_logger(__name__)

_MD = MarkdownIt()


class BaseLoader:
    """Common loader interface."""

    mime_types: tuple[str, ...] = ()

    def can_load(self, document: Document) -> bool:
        return document.mime in self.mime_types

    def extract_text(self, document: Document) -> str:  # pragma: no cover - interface
        raise NotImplementedError

    def validate(self, document: Document) -> None:
        """Raise InvalidInputError when the payload does not match its media type."""
        self.extract_text(document)


class TextLoader(BaseLoader):
    mime_types = ("text/plain",)

    def extract_text(self, document: Document) -> str:
        return _decode_utf8(document)


class MarkdownLoader(BaseLoader):
    mime_types = ("text/markdown",)

    def extract_text(self, document: Document) -> str:
        body = _decode_utf8(document)
        tokens = _MD.parse(body)
        blocks = [token.content.strip() for token in tokens if token.content.strip()]
        return "\n\n".join(blocks) if blocks else body


class PDFLoader(BaseLoader):
    mime_types = ("application/pdf",)

    def extract_text(self, document: Document) -> str:
        try:
            with fitz.open(stream=document.content, filetype="pdf") as doc:
                pages = [page.get_text("text", sort=True) for page in doc]
        except RuntimeError as exc:
            raise InvalidInputError(f"Could not read PDF document: {exc}") from exc
        logger.debug("Extracted %s pages from %s", len(pages), document.name or "<upload>")
        return "\n\n".join(page.strip() for page in pages if page.strip())

    def validate(self, document: Document) -> None:
        if not document.content.startswith(b"%PDF-"):
            raise InvalidInputError("PDF documents must start with a %PDF- header")
        try:
            with fitz.open(stream=document.content, filetype="pdf") as doc:
                pages = doc.page_count
        except RuntimeError as exc:
            raise InvalidInputError(f"Could not read PDF document: {exc}") from exc
        if pages < 1:
            raise InvalidInputError("PDF document has no pages")


class LoaderRegistry:
    """Registry that selects an appropriate loader for a document."""

    def __init__(self) -> None:
        self._loaders: list[BaseLoader] = [
            TextLoader(),
            MarkdownLoader(),
            PDFLoader(),
        ]

    def for_document(self, document: Document) -> BaseLoader:
        for loader in self._loaders:
            if loader.can_load(document):
                return loader
        raise InvalidInputError(f"No loader registered for {document.mime}")

    def extract_text(self, document: Document) -> str:
        return self.for_document(document).extract_text(document)

    def validate(self, document: Document) -> None:
        self.for_document(document).validate(document)


def extract_text(document: Document) -> str:
    """Return the plain text of a document for chunking."""
    return LoaderRegistry().extract_text(document)


def validate_document(document: Document) -> Document:
    """Check that the payload is readable before it is handed to a model."""
    LoaderRegistry().validate(document)
    return document


def _decode_utf8(document: Document) -> str:
    try:
        return document.content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise InvalidInputError("Text documents must be UTF-8 encoded") from exc


__all__ = [
    "BaseLoader",
    "TextLoader",
    "MarkdownLoader",
    "PDFLoader",
    "LoaderRegistry",
    "extract_text",
    "validate_document",
]

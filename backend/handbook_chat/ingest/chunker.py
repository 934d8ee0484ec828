"""Chunking utilities.

Text is segmented into sentences and the sentences are packed greedily into
chunks of roughly ``max_chunk_length`` characters. The length check runs
before a sentence is appended and does not count the joining space, so a
chunk can run one character over the limit, and a sentence that is longer
than the limit on its own becomes a chunk of its own.
"""

from __future__ import annotations

import re
from typing import Iterable, Iterator

from handbook_chat.core.errors import InvalidInputError
from handbook_chat.ingest.types import Chunk

DEFAULT_MAX_CHUNK_LENGTH = 500

_PARAGRAPH_RE = re.compile(r"\n\s*\n")
# Latin terminators need trailing whitespace (or the end of the paragraph);
# CJK terminators end a sentence wherever they appear.
_BOUNDARY_RE = re.compile(r"[.!?…]+[\"'”’)\]]*(?=\s|$)|[。！？]+[\"'”’」』)\]]*")
_LAST_TOKEN_RE = re.compile(r"(\S+)$")

_ABBREVIATIONS = frozenset(
    {
        "mr", "mrs", "ms", "dr", "prof", "sr", "jr", "st", "vs", "etc",
        "e.g", "i.e", "fig", "inc", "ltd", "co", "corp", "dept",
        "approx", "jan", "feb", "mar", "apr", "jun", "jul", "aug", "sep",
        "sept", "oct", "nov", "dec",
    }
)


def split_sentences(text: str) -> list[str]:
    """Segment text into sentences, dropping whitespace-only fragments."""
    return list(_iter_sentences(text))


def _iter_sentences(text: str) -> Iterator[str]:
    for paragraph in _PARAGRAPH_RE.split(text):
        start = 0
        for match in _BOUNDARY_RE.finditer(paragraph):
            if match.group().startswith(".") and _ends_with_abbreviation(paragraph[start : match.start()]):
                continue
            sentence = paragraph[start : match.end()].strip()
            if sentence:
                yield sentence
            start = match.end()
        tail = paragraph[start:].strip()
        if tail:
            yield tail


def _ends_with_abbreviation(preceding: str) -> bool:
    match = _LAST_TOKEN_RE.search(preceding)
    if not match:
        return False
    token = match.group(1).lstrip("(\"'“‘[").lower()
    return token in _ABBREVIATIONS


def chunk_text(text: str, max_chunk_length: int = DEFAULT_MAX_CHUNK_LENGTH) -> list[str]:
    """Pack sentences of ``text`` into chunks; boundaries fall between sentences."""
    if max_chunk_length < 1:
        raise InvalidInputError("max_chunk_length must be a positive integer")

    chunks: list[str] = []
    current = ""
    for sentence in split_sentences(text):
        if len(current + sentence) > max_chunk_length:
            if current:
                chunks.append(_finalize_chunk(current))
            current = sentence
        else:
            current += " " + sentence
    if current:
        chunks.append(_finalize_chunk(current))
    return chunks


def _finalize_chunk(current: str) -> str:
    # Only the first chunk can carry the joining space in front.
    return current[1:] if current.startswith(" ") else current


def build_chunks(texts: Iterable[str]) -> list[Chunk]:
    """Attach ordinals to chunk texts in document order."""
    return [Chunk(ordinal=ordinal, text=text) for ordinal, text in enumerate(texts)]


__all__ = ["DEFAULT_MAX_CHUNK_LENGTH", "split_sentences", "chunk_text", "build_chunks"]

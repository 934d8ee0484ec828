"""Common ingestion data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class Chunk:
    """Sentence-aligned span of document text."""

    ordinal: int
    text: str


@dataclass(slots=True)
class IndexEntry:
    """Record persisted in an index collection."""

    ordinal: int
    text: str
    embedding: list[float]


@dataclass(slots=True)
class ReindexResult:
    """Outcome of a completed index rebuild."""

    collection: str
    chunks: int
    model: str
    dim: int
    elapsed_s: float

    def to_dict(self) -> dict[str, object]:
        return {
            "collection": self.collection,
            "chunks": self.chunks,
            "model": self.model,
            "dim": self.dim,
            "elapsed_s": round(self.elapsed_s, 3),
        }


@dataclass(slots=True)
class IndexStats:
    collection: str
    entries: int
    dim: int | None
    models: list[str] = field(default_factory=list)


__all__ = ["Chunk", "IndexEntry", "ReindexResult", "IndexStats"]

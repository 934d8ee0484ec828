"""Embedding indexer: rebuilds an index collection from document chunks."""

from __future__ import annotations

import asyncio
from typing import Sequence

from handbook_chat.core.errors import HandbookChatError, UpstreamServiceError
from handbook_chat.core.logging import get_logger
from handbook_chat.core.metrics import EMBED_CALLS, INDEX_SIZE, REINDEX_DURATION
from handbook_chat.documents.loaders import extract_text
from handbook_chat.documents.types import Document
from handbook_chat.ingest.chunker import DEFAULT_MAX_CHUNK_LENGTH, build_chunks, chunk_text
from handbook_chat.ingest.embeddings import Embedder
from handbook_chat.ingest.store import IndexStore
from handbook_chat.ingest.types import IndexEntry, IndexStats, ReindexResult
from handbook_chat.utils.hashing import fingerprint
from handbook_chat.utils.time import elapsed_since, monotonic

logger = get_logger(__name__)

_COLLECTION_LOCKS: dict[str, asyncio.Lock] = {}


def collection_lock(collection: str) -> asyncio.Lock:
    """Return the lock that serializes rebuilds of one collection."""
    lock = _COLLECTION_LOCKS.get(collection)
    if lock is None:
        lock = _COLLECTION_LOCKS[collection] = asyncio.Lock()
    return lock


def reset_collection_locks() -> None:
    _COLLECTION_LOCKS.clear()


class EmbeddingIndexer:
    """Embed chunks concurrently and swap them into the store as one batch."""

    def __init__(
        self,
        store: IndexStore,
        embedder: Embedder,
        collection: str,
        max_chunk_length: int = DEFAULT_MAX_CHUNK_LENGTH,
        concurrency: int = 8,
    ) -> None:
        self.store = store
        self.embedder = embedder
        self.collection = collection
        self.max_chunk_length = max_chunk_length
        self.concurrency = max(1, concurrency)

    async def reindex(self, chunks: Sequence[str]) -> ReindexResult:
        """Replace every entry of the collection with ``chunks``.

        Embedding failures abort before the store is touched. Store failures
        roll the batch back and propagate as raised by the store.
        """
        pending = build_chunks(chunks)
        started = monotonic()
        async with collection_lock(self.collection):
            vectors = await self._embed_all([chunk.text for chunk in pending])
            entries = [
                IndexEntry(ordinal=chunk.ordinal, text=chunk.text, embedding=vector)
                for chunk, vector in zip(pending, vectors)
            ]
            with self.store.batch(self.collection) as batch:
                removed = batch.delete_all()
                batch.insert_many(entries, model=self.embedder.model_name)
        elapsed = elapsed_since(started)

        REINDEX_DURATION.labels(collection=self.collection).observe(elapsed)
        INDEX_SIZE.labels(collection=self.collection).set(len(entries))
        logger.info(
            "Successfully indexed %s chunks into %s (replaced %s)",
            len(entries),
            self.collection,
            removed,
            extra={"ctx_collection": self.collection, "ctx_elapsed_s": round(elapsed, 3)},
        )
        return ReindexResult(
            collection=self.collection,
            chunks=len(entries),
            model=self.embedder.model_name,
            dim=len(vectors[0]) if vectors else 0,
            elapsed_s=elapsed,
        )

    async def reindex_document(self, document: Document) -> ReindexResult:
        """Extract, chunk, and index a whole document."""
        chunks = chunk_text(extract_text(document), self.max_chunk_length)
        label = document.name or "<upload>"
        logger.info(
            "Chunked %s into %s chunks",
            label,
            len(chunks),
            extra={"ctx_sha": fingerprint(document.content), "ctx_kind": document.kind},
        )
        if not chunks:
            logger.warning("Document %s produced no chunks", label)
        return await self.reindex(chunks)

    def stats(self) -> IndexStats:
        return self.store.stats(self.collection)

    async def _embed_all(self, texts: Sequence[str]) -> list[list[float]]:
        semaphore = asyncio.Semaphore(self.concurrency)

        async def _bounded(text: str) -> list[float]:
            async with semaphore:
                return await self._embed_one(text)

        tasks = [asyncio.ensure_future(_bounded(text)) for text in texts]
        try:
            vectors = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            raise

        dims = {len(vector) for vector in vectors}
        if 0 in dims or len(dims) > 1:
            raise UpstreamServiceError("embedding", f"inconsistent embedding dimensions: {sorted(dims)}")
        return list(vectors)

    async def _embed_one(self, text: str) -> list[float]:
        backend = self.embedder.backend
        try:
            vector = await self.embedder.embed(text)
        except HandbookChatError:
            EMBED_CALLS.labels(backend=backend, outcome="error").inc()
            raise
        except Exception as exc:
            EMBED_CALLS.labels(backend=backend, outcome="error").inc()
            raise UpstreamServiceError("embedding", str(exc) or type(exc).__name__) from exc
        EMBED_CALLS.labels(backend=backend, outcome="ok").inc()
        return vector


__all__ = ["EmbeddingIndexer", "collection_lock", "reset_collection_locks"]

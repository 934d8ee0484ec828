"""Chunking and embedding-index components."""

from .chunker import chunk_text, split_sentences
from .embeddings import GeminiEmbedder, HashedEmbedder, get_embedder
from .indexer import EmbeddingIndexer
from .store import SQLiteIndexStore

__all__ = [
    "chunk_text",
    "split_sentences",
    "GeminiEmbedder",
    "HashedEmbedder",
    "get_embedder",
    "EmbeddingIndexer",
    "SQLiteIndexStore",
]

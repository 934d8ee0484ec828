"""Embedding backends."""

from __future__ import annotations

import hashlib
import math
import re
from typing import Protocol

from google import genai

from handbook_chat.core.config import Settings
from handbook_chat.core.errors import UpstreamServiceError
from handbook_chat.core.logging import get_logger

logger = get_logger(__name__)

_TOKEN_RE = re.compile(r"\w+")

DEFAULT_GEMINI_MODEL = "text-embedding-004"


class Embedder(Protocol):
    """Computes one fixed-length vector per text."""

    model_name: str
    backend: str

    async def embed(self, text: str) -> list[float]: ...


class HashedEmbedder:
    """Lightweight hashed embedding model with deterministic output."""

    backend = "hashed"

    def __init__(self, model_name: str = "hashed", dim: int = 384) -> None:
        self.model_name = model_name
        self.dim = dim

    async def embed(self, text: str) -> list[float]:
        return self.encode(text)

    def encode(self, text: str) -> list[float]:
        vector = [0.0] * self.dim
        for token in _tokenize(text):
            vector[_hash_token(token, self.dim)] += 1.0
        _normalize(vector)
        return vector


class GeminiEmbedder:
    """Embeds text with a hosted Gemini embedding model."""

    backend = "google"

    def __init__(
        self,
        model_name: str = DEFAULT_GEMINI_MODEL,
        api_key: str | None = None,
        client: genai.Client | None = None,
    ) -> None:
        self.model_name = model_name
        self._api_key = api_key
        self._client = client

    @property
    def client(self) -> genai.Client:
        # Created lazily: genai.Client fails without a key in the environment.
        if self._client is None:
            self._client = genai.Client(api_key=self._api_key) if self._api_key else genai.Client()
        return self._client

    async def embed(self, text: str) -> list[float]:
        response = await self.client.aio.models.embed_content(model=self.model_name, contents=text)
        embeddings = response.embeddings or []
        if not embeddings or not embeddings[0].values:
            raise UpstreamServiceError("embedding", f"{self.model_name} returned no embedding")
        return list(embeddings[0].values)


_INSTANCES: dict[tuple[str, str | None], Embedder] = {}


def get_embedder(settings: Settings) -> Embedder:
    """Return a shared embedder for the configured backend and model."""
    key = (settings.embedding_backend, settings.embedding_model)
    if key not in _INSTANCES:
        if settings.embedding_backend == "hashed":
            _INSTANCES[key] = HashedEmbedder(model_name=settings.embedding_model or "hashed")
        else:
            _INSTANCES[key] = GeminiEmbedder(
                settings.embedding_model or DEFAULT_GEMINI_MODEL, api_key=settings.google_api_key
            )
        logger.info("Using %s embeddings (%s)", settings.embedding_backend, _INSTANCES[key].model_name)
    return _INSTANCES[key]


def clear_embedders() -> None:
    _INSTANCES.clear()


def _tokenize(text: str) -> list[str]:
    return _TOKEN_RE.findall(text.lower())


def _hash_token(token: str, dim: int) -> int:
    digest = hashlib.blake2b(token.encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, "big") % dim


def _normalize(vector: list[float]) -> None:
    norm = math.sqrt(sum(value * value for value in vector))
    if norm == 0:
        return
    inv = 1.0 / norm
    for idx, value in enumerate(vector):
        vector[idx] = value * inv


__all__ = ["Embedder", "HashedEmbedder", "GeminiEmbedder", "get_embedder", "clear_embedders"]

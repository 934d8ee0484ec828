"""Text generation backends."""

from __future__ import annotations

from typing import Protocol

from google import genai
from google.genai import types

from handbook_chat.documents.types import Document


class Generator(Protocol):
    """Produces model text for a document plus a text prompt."""

    model_name: str

    async def generate(self, document: Document, prompt: str) -> str: ...


class GeminiGenerator:
    """Sends the document as an inline media part ahead of the prompt."""

    def __init__(
        self,
        model_name: str = "gemini-2.5-flash",
        api_key: str | None = None,
        client: genai.Client | None = None,
    ) -> None:
        self.model_name = model_name
        self._api_key = api_key
        self._client = client

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            self._client = genai.Client(api_key=self._api_key) if self._api_key else genai.Client()
        return self._client

    async def generate(self, document: Document, prompt: str) -> str:
        media = types.Part.from_bytes(data=document.content, mime_type=_model_mime(document.mime))
        response = await self.client.aio.models.generate_content(
            model=self.model_name,
            contents=[media, prompt],
        )
        return response.text or ""


def _model_mime(mime: str) -> str:
    return "application/pdf" if mime == "application/pdf" else "text/plain"


__all__ = ["Generator", "GeminiGenerator"]

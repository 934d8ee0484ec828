"""Question answering over a whole document.

The full document is handed to the model on every question. The index built
by the embedding indexer is not consulted here.
"""

from __future__ import annotations

from typing import Sequence

from handbook_chat.answer.generation import Generator
from handbook_chat.answer.prompts import build_prompt
from handbook_chat.chat.conversation import Message
from handbook_chat.core.errors import HandbookChatError, InvalidInputError, UpstreamServiceError
from handbook_chat.core.logging import get_logger
from handbook_chat.core.metrics import ANSWER_LATENCY
from handbook_chat.documents.types import Document
from handbook_chat.utils.time import elapsed_since, monotonic

logger = get_logger(__name__)


class QueryAnswerer:
    def __init__(self, generator: Generator) -> None:
        self.generator = generator

    async def answer(
        self,
        document: Document,
        question: str,
        history: Sequence[Message] | None = None,
    ) -> str:
        """Answer ``question`` about ``document``, given earlier turns."""
        if document is None:
            raise InvalidInputError("Document is not loaded yet")
        question = (question or "").strip()
        if not question:
            raise InvalidInputError("Question cannot be empty.")

        prompt = build_prompt(document.kind, question, history)
        started = monotonic()
        try:
            answer = await self.generator.generate(document, prompt)
        except HandbookChatError:
            raise
        except Exception as exc:
            logger.exception("Generation failed with %s", self.generator.model_name)
            raise UpstreamServiceError("generation", str(exc) or type(exc).__name__) from exc
        finally:
            ANSWER_LATENCY.labels(model=self.generator.model_name).observe(elapsed_since(started))

        answer = (answer or "").strip()
        if not answer:
            raise UpstreamServiceError("generation", f"{self.generator.model_name} returned an empty answer")
        logger.debug("Answered question with %s history turns", len(history or ()))
        return answer


__all__ = ["QueryAnswerer"]

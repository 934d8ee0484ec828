"""Chat orchestration: conversation bookkeeping around the answerer."""

from __future__ import annotations

from pathlib import Path

from handbook_chat.answer.answerer import QueryAnswerer
from handbook_chat.chat.conversation import Session
from handbook_chat.core.errors import DocumentUnavailableError, InvalidInputError, UpstreamServiceError
from handbook_chat.core.logging import get_logger
from handbook_chat.core.metrics import CHAT_REQUESTS
from handbook_chat.documents.loaders import validate_document
from handbook_chat.documents.types import Document
from handbook_chat.utils.hashing import fingerprint

logger = get_logger(__name__)

APOLOGY_MESSAGE = "Sorry, something went wrong while fetching the answer. Please try again."


class HandbookSource:
    """Reads the configured handbook asset once and hands out the same Document."""

    def __init__(self, path: Path, mime: str | None = None) -> None:
        self.path = path
        self.mime = mime
        self._document: Document | None = None

    def load(self) -> Document:
        if self._document is None:
            try:
                self._document = validate_document(Document.from_path(self.path, mime=self.mime, origin="asset"))
            except (OSError, InvalidInputError) as exc:
                logger.error("Could not load handbook %s: %s", self.path, exc)
                raise DocumentUnavailableError(f"Could not load the handbook at {self.path}") from exc
            logger.info(
                "Loaded handbook %s (%s bytes)",
                self.path,
                self._document.size_bytes,
                extra={"ctx_sha": fingerprint(self._document.content)},
            )
        return self._document


class ChatService:
    def __init__(self, answerer: QueryAnswerer, handbook: HandbookSource) -> None:
        self.answerer = answerer
        self.handbook = handbook

    def document_for(self, session: Session) -> Document:
        if session.document is None:
            session.document = self.handbook.load()
        return session.document

    def use_document(self, session: Session, document: Document) -> None:
        """Switch the session to an uploaded document; the conversation restarts.

        The payload is checked first so an unreadable upload never reaches the model.
        """
        session.document = validate_document(document)
        session.conversation.reset()

    async def ask(self, session: Session, question: str) -> str:
        question = (question or "").strip()
        if not question:
            CHAT_REQUESTS.labels(outcome="invalid").inc()
            raise InvalidInputError("Question cannot be empty.")
        # One question at a time per session so each prompt sees every earlier turn.
        async with session.lock:
            document = self.document_for(session)
            history = session.conversation.history()
            session.conversation.append("user", question)
            try:
                answer = await self.answerer.answer(document, question, history)
            except UpstreamServiceError:
                session.conversation.append("bot", APOLOGY_MESSAGE)
                CHAT_REQUESTS.labels(outcome="upstream_error").inc()
                raise
            session.conversation.append("bot", answer)
        CHAT_REQUESTS.labels(outcome="ok").inc()
        return answer

    def reset(self, session: Session) -> None:
        session.conversation.reset()


__all__ = ["APOLOGY_MESSAGE", "HandbookSource", "ChatService"]

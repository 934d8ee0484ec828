"""Prompt template for document question answering."""

from __future__ import annotations

from typing import Sequence

from handbook_chat.chat.conversation import Message

ANSWER_TEMPLATE = """You are an AI assistant that answers questions based on the content of a {kind} document.

Use the {kind} content provided above to answer the question.
{history}
Question: {question}

Answer:"""

_ROLE_LABELS = {"user": "User", "bot": "Assistant"}


def format_history(history: Sequence[Message] | None) -> str:
    if not history:
        return ""
    lines = [f"{_ROLE_LABELS[message.role]}: {message.content}" for message in history]
    return "\nConversation so far:\n" + "\n".join(lines) + "\n"


def build_prompt(kind: str, question: str, history: Sequence[Message] | None = None) -> str:
    return ANSWER_TEMPLATE.format(kind=kind, history=format_history(history), question=question)


__all__ = ["ANSWER_TEMPLATE", "format_history", "build_prompt"]

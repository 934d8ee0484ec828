"""In-memory conversations and sessions."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from handbook_chat.auth.principal import Principal
from handbook_chat.documents.types import Document
from handbook_chat.utils.ids import new_id
from handbook_chat.utils.time import utc_now

Role = Literal["user", "bot"]


@dataclass(frozen=True, slots=True)
class Message:
    role: Role
    content: str


@dataclass(slots=True)
class Conversation:
    """Ordered messages of one session; never persisted."""

    messages: list[Message] = field(default_factory=list)

    def append(self, role: Role, content: str) -> Message:
        message = Message(role=role, content=content)
        self.messages.append(message)
        return message

    def history(self) -> list[Message]:
        return list(self.messages)

    def reset(self) -> None:
        self.messages.clear()

    def __len__(self) -> int:
        return len(self.messages)


@dataclass(slots=True)
class Session:
    id: str
    principal: Principal
    document: Document | None = None
    conversation: Conversation = field(default_factory=Conversation)
    created_at: datetime = field(default_factory=utc_now)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)


class SessionStore:
    """Process-local session registry keyed by session id."""

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}

    def create(self, principal: Principal, document: Document | None = None) -> Session:
        session = Session(id=new_id("ses"), principal=principal, document=document)
        self._sessions[session.id] = session
        return session

    def get(self, session_id: str | None) -> Session | None:
        if not session_id:
            return None
        return self._sessions.get(session_id)

    def drop(self, session_id: str | None) -> bool:
        if not session_id:
            return False
        return self._sessions.pop(session_id, None) is not None

    def __len__(self) -> int:
        return len(self._sessions)


__all__ = ["Role", "Message", "Conversation", "Session", "SessionStore"]

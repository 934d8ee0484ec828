"""Pydantic DTOs exposed via API."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class SignInRequest(BaseModel):
    id_token: str = Field(min_length=1, description="ID token issued by the identity provider")


class LoginSurface(BaseModel):
    login_path: str
    provider: str = "google"
    message: str = "Sign in with an allow-listed account to continue."


class MessageDTO(BaseModel):
    role: Literal["user", "bot"]
    content: str


class DocumentInfo(BaseModel):
    name: str | None
    mime: str
    origin: Literal["asset", "upload"]
    size_bytes: int


class ChatSurface(BaseModel):
    email: str | None
    name: str | None = None
    document: DocumentInfo | None = None
    document_error: str | None = None
    messages: list[MessageDTO]


class ChatRequest(BaseModel):
    question: str = Field(description="Question about the current document")


class ChatResponse(BaseModel):
    answer: str
    messages: list[MessageDTO]


class ConversationResponse(BaseModel):
    messages: list[MessageDTO]


class DocumentUploadRequest(BaseModel):
    data_uri: str = Field(description="data:<mimetype>;base64,<encoded_data>")
    name: str | None = None


class RebuildRequest(BaseModel):
    data_uri: str | None = Field(default=None, description="Document to index, as a base64 data URI")
    path: str | None = Field(default=None, description="Filesystem path of the document to index")


class RebuildResponse(BaseModel):
    collection: str
    chunks: int
    model: str
    dim: int
    elapsed_s: float


class IndexStatsResponse(BaseModel):
    collection: str
    entries: int
    dim: int | None
    models: list[str]
    used_for_answers: bool = Field(
        default=False,
        description="Answers are generated from the full document; the index is not queried",
    )


__all__ = [
    "SignInRequest",
    "LoginSurface",
    "MessageDTO",
    "DocumentInfo",
    "ChatSurface",
    "ChatRequest",
    "ChatResponse",
    "ConversationResponse",
    "DocumentUploadRequest",
    "RebuildRequest",
    "RebuildResponse",
    "IndexStatsResponse",
]

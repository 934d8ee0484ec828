"""Chat API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from handbook_chat.api.dependencies import get_chat_service, get_current_session
from handbook_chat.chat.conversation import Message, Session
from handbook_chat.chat.service import ChatService
from handbook_chat.core.errors import DocumentUnavailableError
from handbook_chat.documents.types import Document
from handbook_chat.models.dto import (
    ChatRequest,
    ChatResponse,
    ChatSurface,
    ConversationResponse,
    DocumentInfo,
    DocumentUploadRequest,
    MessageDTO,
)

router = APIRouter()


@router.get("/", response_model=ChatSurface, summary="Main chat surface")
async def chat_surface(
    session: Session = Depends(get_current_session),
    service: ChatService = Depends(get_chat_service),
) -> ChatSurface:
    document_info: DocumentInfo | None = None
    document_error: str | None = None
    try:
        document_info = _document_info(service.document_for(session))
    except DocumentUnavailableError as exc:
        document_error = str(exc)
    return ChatSurface(
        email=session.principal.email,
        name=session.principal.name,
        document=document_info,
        document_error=document_error,
        messages=_messages(session.conversation.messages),
    )


@router.post("/chat", response_model=ChatResponse, summary="Ask a question about the document")
async def ask(
    request: ChatRequest,
    session: Session = Depends(get_current_session),
    service: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    answer = await service.ask(session, request.question)
    return ChatResponse(answer=answer, messages=_messages(session.conversation.messages))


@router.get("/chat/messages", response_model=ConversationResponse, summary="Current conversation")
async def messages(session: Session = Depends(get_current_session)) -> ConversationResponse:
    return ConversationResponse(messages=_messages(session.conversation.messages))


@router.post("/chat/reset", response_model=ConversationResponse, summary="Clear the conversation")
async def reset(
    session: Session = Depends(get_current_session),
    service: ChatService = Depends(get_chat_service),
) -> ConversationResponse:
    service.reset(session)
    return ConversationResponse(messages=[])


@router.post("/chat/document", response_model=DocumentInfo, summary="Chat about an uploaded document")
async def upload_document(
    request: DocumentUploadRequest,
    session: Session = Depends(get_current_session),
    service: ChatService = Depends(get_chat_service),
) -> DocumentInfo:
    document = Document.from_data_uri(request.data_uri, origin="upload", name=request.name)
    service.use_document(session, document)
    return _document_info(document)


def _messages(messages: list[Message]) -> list[MessageDTO]:
    return [MessageDTO(role=message.role, content=message.content) for message in messages]


def _document_info(document: Document) -> DocumentInfo:
    return DocumentInfo(
        name=document.name,
        mime=document.mime,
        origin=document.origin,
        size_bytes=document.size_bytes,
    )


__all__ = ["router"]

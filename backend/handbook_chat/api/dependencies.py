"""Shared FastAPI dependencies."""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, Request

from handbook_chat.answer.answerer import QueryAnswerer
from handbook_chat.answer.generation import GeminiGenerator, Generator
from handbook_chat.auth.allowlist import AllowList
from handbook_chat.auth.gate import AuthGate
from handbook_chat.auth.verifier import FirebaseTokenVerifier, TokenVerifier
from handbook_chat.chat.conversation import Session, SessionStore
from handbook_chat.chat.service import ChatService, HandbookSource
from handbook_chat.core.config import Settings, get_settings
from handbook_chat.db.sqlite import SQLiteDatabase
from handbook_chat.ingest.embeddings import Embedder, get_embedder
from handbook_chat.ingest.indexer import EmbeddingIndexer
from handbook_chat.ingest.store import SQLiteIndexStore

_DB: SQLiteDatabase | None = None
_INDEXER: EmbeddingIndexer | None = None
_GENERATOR: Generator | None = None
_CHAT_SERVICE: ChatService | None = None
_SESSIONS: SessionStore | None = None
_VERIFIER: TokenVerifier | None = None
_AUTH_GATE: AuthGate | None = None


@lru_cache(maxsize=1)
def get_app_settings() -> Settings:
    return get_settings()


def get_database() -> SQLiteDatabase:
    global _DB
    if _DB is None:
        settings = get_app_settings()
        db = SQLiteDatabase(settings.db_path)
        db.ensure_schema()
        _DB = db
    return _DB


def get_embedding_model() -> Embedder:
    return get_embedder(get_app_settings())


def get_indexer() -> EmbeddingIndexer:
    global _INDEXER
    if _INDEXER is None:
        settings = get_app_settings()
        _INDEXER = EmbeddingIndexer(
            store=SQLiteIndexStore(get_database()),
            embedder=get_embedding_model(),
            collection=settings.index_collection,
            max_chunk_length=settings.max_chunk_length,
            concurrency=settings.embed_concurrency,
        )
    return _INDEXER


def get_generator() -> Generator:
    global _GENERATOR
    if _GENERATOR is None:
        settings = get_app_settings()
        _GENERATOR = GeminiGenerator(settings.generation_model, api_key=settings.google_api_key)
    return _GENERATOR


def get_chat_service() -> ChatService:
    global _CHAT_SERVICE
    if _CHAT_SERVICE is None:
        settings = get_app_settings()
        _CHAT_SERVICE = ChatService(
            answerer=QueryAnswerer(get_generator()),
            handbook=HandbookSource(settings.handbook_path, settings.handbook_mime),
        )
    return _CHAT_SERVICE


def get_session_store() -> SessionStore:
    global _SESSIONS
    if _SESSIONS is None:
        _SESSIONS = SessionStore()
    return _SESSIONS


def get_token_verifier() -> TokenVerifier:
    global _VERIFIER
    if _VERIFIER is None:
        _VERIFIER = FirebaseTokenVerifier(project_id=get_app_settings().firebase_project_id)
    return _VERIFIER


def get_auth_gate() -> AuthGate:
    global _AUTH_GATE
    if _AUTH_GATE is None:
        settings = get_app_settings()
        _AUTH_GATE = AuthGate(
            verifier=get_token_verifier(),
            allow_list=AllowList(settings.allowed_emails),
            sessions=get_session_store(),
            login_path=settings.login_path,
            home_path=settings.home_path,
        )
    return _AUTH_GATE


def get_current_session(request: Request, gate: AuthGate = Depends(get_auth_gate)) -> Session:
    session_id = request.cookies.get(get_app_settings().session_cookie)
    return gate.require(session_id)


def reset_dependencies() -> None:
    """Drop cached singletons so the next request rebuilds them."""
    global _DB, _INDEXER, _GENERATOR, _CHAT_SERVICE, _SESSIONS, _VERIFIER, _AUTH_GATE
    if _DB is not None:
        _DB.close()
    _DB = None
    _INDEXER = None
    _GENERATOR = None
    _CHAT_SERVICE = None
    _SESSIONS = None
    _VERIFIER = None
    _AUTH_GATE = None
    get_app_settings.cache_clear()
    get_settings.cache_clear()


__all__ = [
    "get_app_settings",
    "get_database",
    "get_embedding_model",
    "get_indexer",
    "get_generator",
    "get_chat_service",
    "get_session_store",
    "get_token_verifier",
    "get_auth_gate",
    "get_current_session",
    "reset_dependencies",
]

"""Test fixtures for Handbook Chat."""

from __future__ import annotations

import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Sequence

import pytest

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from handbook_chat.auth.principal import Principal  # noqa: E402
from handbook_chat.core.errors import AuthenticationError  # noqa: E402
from handbook_chat.ingest.types import IndexEntry, IndexStats  # noqa: E402

HANDBOOK_TEXT = (
    "Welcome to the fuel operations handbook. "
    "All aircraft must be grounded before refuelling starts. "
    "Fire extinguishers are checked at the start of every shift.\n\n"
    "Spills larger than one litre are reported to the supervisor. "
    "The reporting form is kept in the operations office."
)


class FakeVerifier:
    """Treats the token itself as the email address; "bad" tokens fail."""

    def verify(self, id_token: str) -> Principal:
        if id_token.startswith("bad"):
            raise AuthenticationError("Sign-in token could not be verified")
        return Principal(uid=f"uid-{id_token}", email=id_token, name=id_token.split("@")[0])


class FakeGenerator:
    model_name = "fake-model"

    def __init__(self, answer: str = "Ground the aircraft first.", error: Exception | None = None) -> None:
        self.answer = answer
        self.error = error
        self.calls: list[tuple[object, str]] = []

    async def generate(self, document, prompt: str) -> str:
        self.calls.append((document, prompt))
        if self.error is not None:
            raise self.error
        return self.answer


class RecordingStore:
    """In-memory index store that records the batch calls it receives."""

    def __init__(self, entries: Sequence[IndexEntry] = (), fail_on_insert: bool = False) -> None:
        self.entries: dict[str, list[IndexEntry]] = {}
        self.calls: list[tuple[str, str, int]] = []
        self.fail_on_insert = fail_on_insert
        if entries:
            self.entries["handbook_embeddings"] = list(entries)

    @contextmanager
    def batch(self, collection: str) -> Iterator["_RecordingBatch"]:
        pending = _RecordingBatch(self, collection)
        yield pending
        self.entries[collection] = pending.apply(list(self.entries.get(collection, [])))

    def count(self, collection: str) -> int:
        return len(self.entries.get(collection, []))

    def stats(self, collection: str) -> IndexStats:
        entries = self.entries.get(collection, [])
        return IndexStats(
            collection=collection,
            entries=len(entries),
            dim=len(entries[0].embedding) if entries else None,
        )


class _RecordingBatch:
    def __init__(self, store: RecordingStore, collection: str) -> None:
        self.store = store
        self.collection = collection
        self._delete = False
        self._inserts: list[IndexEntry] = []

    def delete_all(self) -> int:
        self.store.calls.append(("delete_all", self.collection, self.store.count(self.collection)))
        self._delete = True
        return self.store.count(self.collection)

    def insert_many(self, entries: Sequence[IndexEntry], model: str) -> int:
        self.store.calls.append(("insert_many", self.collection, len(entries)))
        if self.store.fail_on_insert:
            raise RuntimeError("store unavailable")
        self._inserts.extend(entries)
        return len(entries)

    def apply(self, existing: list[IndexEntry]) -> list[IndexEntry]:
        return ([] if self._delete else existing) + self._inserts


@pytest.fixture(autouse=True)
def reset_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Reset global singletons and environment between tests."""
    handbook = tmp_path / "handbook.txt"
    handbook.write_text(HANDBOOK_TEXT, encoding="utf-8")
    monkeypatch.setenv("HBCHAT_DB_PATH", str(tmp_path / "index.db"))
    monkeypatch.setenv("HBCHAT_HANDBOOK_PATH", str(handbook))
    monkeypatch.setenv("HBCHAT_EMBEDDING_BACKEND", "hashed")
    monkeypatch.setenv("HBCHAT_ALLOWED_EMAILS", "user1@example.com, User2@Example.com")
    monkeypatch.delenv("HBCHAT_CONFIG", raising=False)
    monkeypatch.delenv("HBCHAT_ADMIN_TOKEN", raising=False)

    from handbook_chat.api import dependencies as deps
    from handbook_chat.ingest.embeddings import clear_embedders
    from handbook_chat.ingest.indexer import reset_collection_locks

    clear_embedders()
    reset_collection_locks()
    deps.reset_dependencies()
    yield
    clear_embedders()
    reset_collection_locks()
    deps.reset_dependencies()


@pytest.fixture
def fake_backends() -> FakeGenerator:
    """Install the fake verifier and generator; returns the generator."""
    from handbook_chat.api import dependencies as deps

    generator = FakeGenerator()
    deps._GENERATOR = generator
    deps._VERIFIER = FakeVerifier()
    return generator


@pytest.fixture(scope="session")
def sample_text() -> str:
    return HANDBOOK_TEXT

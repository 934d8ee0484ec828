"""Index collection storage."""

from __future__ import annotations

import sqlite3
from array import array
from contextlib import contextmanager
from typing import ContextManager, Iterator, Protocol, Sequence

from handbook_chat.db.sqlite import SQLiteDatabase
from handbook_chat.ingest.types import IndexEntry, IndexStats
from handbook_chat.utils.ids import new_id
from handbook_chat.utils.time import now_ms


class IndexBatch(Protocol):
    """Writes applied together when the surrounding batch commits."""

    def delete_all(self) -> int: ...

    def insert_many(self, entries: Sequence[IndexEntry], model: str) -> int: ...


class IndexStore(Protocol):
    def batch(self, collection: str) -> ContextManager[IndexBatch]: ...

    def count(self, collection: str) -> int: ...

    def stats(self, collection: str) -> IndexStats: ...


class SQLiteIndexStore:
    """Index collections kept in the service database, one row per chunk."""

    def __init__(self, db: SQLiteDatabase) -> None:
        self.db = db

    @contextmanager
    def batch(self, collection: str) -> Iterator["_SQLiteBatch"]:
        with self.db.transaction() as cursor:
            yield _SQLiteBatch(cursor, collection)

    def count(self, collection: str) -> int:
        row = self.db.execute(
            "SELECT COUNT(*) AS count FROM index_entries WHERE collection = ?",
            [collection],
        ).fetchone()
        return int(row["count"]) if row else 0

    def entries(self, collection: str) -> list[IndexEntry]:
        rows = self.db.query(
            "SELECT ordinal, text, embedding FROM index_entries WHERE collection = ? ORDER BY ordinal",
            [collection],
        )
        return [
            IndexEntry(ordinal=row["ordinal"], text=row["text"], embedding=_from_bytes(row["embedding"]))
            for row in rows
        ]

    def stats(self, collection: str) -> IndexStats:
        rows = self.db.query(
            "SELECT model, dim, COUNT(*) AS count FROM index_entries WHERE collection = ? GROUP BY model, dim",
            [collection],
        )
        return IndexStats(
            collection=collection,
            entries=sum(int(row["count"]) for row in rows),
            dim=rows[0]["dim"] if rows else None,
            models=[row["model"] for row in rows],
        )


class _SQLiteBatch:
    def __init__(self, cursor: sqlite3.Cursor, collection: str) -> None:
        self._cursor = cursor
        self.collection = collection

    def delete_all(self) -> int:
        self._cursor.execute("DELETE FROM index_entries WHERE collection = ?", [self.collection])
        return self._cursor.rowcount

    def insert_many(self, entries: Sequence[IndexEntry], model: str) -> int:
        now = now_ms()
        self._cursor.executemany(
            """
            INSERT INTO index_entries (id, collection, ordinal, text, embedding, dim, model, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    new_id("ent"),
                    self.collection,
                    entry.ordinal,
                    entry.text,
                    _as_bytes(entry.embedding),
                    len(entry.embedding),
                    model,
                    now,
                )
                for entry in entries
            ],
        )
        return len(entries)


def _as_bytes(vector: Sequence[float]) -> bytes:
    return array("f", vector).tobytes()


def _from_bytes(payload: bytes) -> list[float]:
    floats = array("f")
    floats.frombytes(payload)
    return list(floats)


__all__ = ["IndexBatch", "IndexStore", "SQLiteIndexStore"]

"""SQLite storage adapter.

Implements the core CacheStorePort and QuoteStorePort using a single SQLite
database file.
"""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Iterator, Optional

from core.errors import InvalidInput, StoreFailure
from core.models import CacheEntry, Quote, QuoteEntry


def _dump(value: dict[str, Any]) -> str:
    try:
        return json.dumps(value, ensure_ascii=False, sort_keys=True)
    except (TypeError, ValueError) as exc:
        raise InvalidInput(f"Payload cannot be stored as JSON: {exc}") from exc


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SQLiteStorage:
    """Thin SQLite wrapper that satisfies the cache and quote store ports."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        # Foreign keys are off by default and must be enabled per connection
        # for quote_entry rows to cascade.
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection whose work commits together or not at all."""

        try:
            conn = self._connect()
        except sqlite3.Error as exc:
            raise StoreFailure(f"Cannot open database {self._db_path}: {exc}") from exc
        try:
            with conn:
                yield conn
        except sqlite3.Error as exc:
            raise StoreFailure(str(exc)) from exc
        finally:
            conn.close()

    def init_db(self) -> None:
        """Create tables if they do not exist.

        Tables:
        - cache_entry: recent messages keyed by (chat_id, message_id)
        - quote: saved quotes, one row per /addquote
        - quote_entry: ordered message snapshots owned by a quote
        """

        with self._transaction() as conn:
            # cache_entry holds the latest known copy of each message.
            # Fields:
            # - chat_id, message_id: message identity (UNIQUE together)
            # - reply_id: message_id this one replies to, same chat; not a
            #   foreign key because the target may never have been cached
            # - date: original send time (unix seconds), used for eviction
            # - message: JSON payload as received
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS cache_entry (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    chat_id INTEGER NOT NULL,
                    message_id INTEGER NOT NULL,
                    reply_id INTEGER,
                    date INTEGER NOT NULL,
                    message TEXT NOT NULL,
                    created_at TIMESTAMP NOT NULL,
                    updated_at TIMESTAMP NOT NULL,
                    UNIQUE (chat_id, message_id)
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_cache_entry_date ON cache_entry (date)")
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_cache_entry_reply
                ON cache_entry (chat_id, reply_id) WHERE reply_id IS NOT NULL
                """
            )
            # quote rows are immutable once written.
            # Fields:
            # - creator: JSON snapshot of the user who issued /addquote
            # - chat_id: chat the quote belongs to
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS quote (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    creator TEXT NOT NULL,
                    chat_id INTEGER NOT NULL,
                    created_at TIMESTAMP NOT NULL
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_quote_chat_id ON quote (chat_id)")
            # quote_entry keeps its own copy of each message so later edits or
            # evictions in cache_entry never alter a saved quote.
            # Fields:
            # - order: 0-based position in the thread, oldest first
            # - message: JSON payload snapshot
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS quote_entry (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    quote_id INTEGER NOT NULL REFERENCES quote (id) ON DELETE CASCADE,
                    "order" INTEGER NOT NULL,
                    message TEXT NOT NULL,
                    created_at TIMESTAMP NOT NULL,
                    UNIQUE (quote_id, "order")
                )
                """
            )

    # Cache store

    def upsert_entry(self, entry: CacheEntry) -> None:
        """Insert a cache entry or overwrite the one with the same key."""

        now = _now()
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO cache_entry (
                    chat_id, message_id, reply_id, date, message, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(chat_id, message_id) DO UPDATE SET
                    reply_id = excluded.reply_id,
                    date = excluded.date,
                    message = excluded.message,
                    updated_at = excluded.updated_at
                """,
                (
                    entry.chat_id,
                    entry.message_id,
                    entry.reply_id,
                    entry.date,
                    _dump(entry.message),
                    now,
                    now,
                ),
            )

    def get_entry(self, chat_id: int, message_id: int) -> Optional[CacheEntry]:
        """Return the cached message, if any."""

        with self._transaction() as conn:
            row = conn.execute(
                """
                SELECT chat_id, message_id, reply_id, date, message
                FROM cache_entry WHERE chat_id = ? AND message_id = ?
                """,
                (chat_id, message_id),
            ).fetchone()
        if row is None:
            return None
        return CacheEntry(
            chat_id=row["chat_id"],
            message_id=row["message_id"],
            reply_id=row["reply_id"],
            date=row["date"],
            message=json.loads(row["message"]),
        )

    def edit_entry(
        self,
        chat_id: int,
        message_id: int,
        merge: Callable[[dict[str, Any]], dict[str, Any]],
    ) -> bool:
        """Replace a cached payload with ``merge(current)``.

        Read and write share one write-locked transaction so concurrent edits
        of the same message cannot interleave. Returns False when the message
        is not cached.
        """

        with self._transaction() as conn:
            conn.execute("BEGIN IMMEDIATE")
            row = conn.execute(
                "SELECT id, message FROM cache_entry WHERE chat_id = ? AND message_id = ?",
                (chat_id, message_id),
            ).fetchone()
            if row is None:
                return False
            merged = merge(json.loads(row["message"]))
            conn.execute(
                "UPDATE cache_entry SET message = ?, updated_at = ? WHERE id = ?",
                (_dump(merged), _now(), row["id"]),
            )
        return True

    def delete_entries_before(self, cutoff: int) -> int:
        """Delete cache entries dated at or before ``cutoff``; return the count."""

        with self._transaction() as conn:
            cur = conn.execute("DELETE FROM cache_entry WHERE date <= ?", (cutoff,))
            return cur.rowcount

    def count_entries(self) -> int:
        with self._transaction() as conn:
            row = conn.execute("SELECT COUNT(*) AS total FROM cache_entry").fetchone()
        return int(row["total"])

    # Quote store

    def store_quote(
        self, creator: dict[str, Any], chat_id: int, messages: list[dict[str, Any]]
    ) -> Quote:
        """Persist a quote and its entries atomically and return it reloaded."""

        if not messages:
            raise InvalidInput("Cannot store a quote with no entries")

        now = _now()
        with self._transaction() as conn:
            cur = conn.execute(
                "INSERT INTO quote (creator, chat_id, created_at) VALUES (?, ?, ?)",
                (_dump(creator), chat_id, now),
            )
            quote_id = cur.lastrowid
            conn.executemany(
                """
                INSERT INTO quote_entry (quote_id, "order", message, created_at)
                VALUES (?, ?, ?, ?)
                """,
                [(quote_id, order, _dump(message), now) for order, message in enumerate(messages)],
            )
            quote = self._load_quote(conn, quote_id)
        if quote is None:
            raise StoreFailure(f"Quote {quote_id} vanished after insert")
        return quote

    def get_quote(self, quote_id: int) -> Optional[Quote]:
        with self._transaction() as conn:
            return self._load_quote(conn, quote_id)

    def get_random_quote(self, chat_id: int) -> Optional[Quote]:
        """Return a uniformly random quote of the chat, or None."""

        with self._transaction() as conn:
            row = conn.execute(
                "SELECT id FROM quote WHERE chat_id = ? ORDER BY RANDOM() LIMIT 1",
                (chat_id,),
            ).fetchone()
            if row is None:
                return None
            return self._load_quote(conn, row["id"])

    def count_quotes(self, chat_id: int) -> int:
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT COUNT(*) AS total FROM quote WHERE chat_id = ?",
                (chat_id,),
            ).fetchone()
        return int(row["total"])

    def delete_quote(self, quote_id: int) -> bool:
        """Delete a quote together with its entries."""

        with self._transaction() as conn:
            cur = conn.execute("DELETE FROM quote WHERE id = ?", (quote_id,))
            return cur.rowcount > 0

    def _load_quote(self, conn: sqlite3.Connection, quote_id: int) -> Optional[Quote]:
        row = conn.execute(
            "SELECT id, creator, chat_id, created_at FROM quote WHERE id = ?",
            (quote_id,),
        ).fetchone()
        if row is None:
            return None
        entry_rows = conn.execute(
            """
            SELECT quote_id, "order", message FROM quote_entry
            WHERE quote_id = ? ORDER BY "order" ASC
            """,
            (quote_id,),
        ).fetchall()
        return Quote(
            id=row["id"],
            creator=json.loads(row["creator"]),
            chat_id=row["chat_id"],
            created_at=datetime.fromisoformat(row["created_at"]),
            entries=[
                QuoteEntry(
                    order=entry["order"],
                    message=json.loads(entry["message"]),
                    quote_id=entry["quote_id"],
                )
                for entry in entry_rows
            ],
        )

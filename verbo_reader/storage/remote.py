"""Authenticated per-user remote store.

``RemoteStore`` is the boundary the synchronizer talks to. Values in the
``encrypted_content`` columns are ciphertext; this layer never sees
plaintext. ``SQLiteRemoteStore`` implements the same contract over the local
schema and is used for development and tests.
"""

import asyncio
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol

from verbo_reader.storage.database import get_connection, initialize_database

Row = dict[str, Any]


class RemoteStore(Protocol):
    """CRUD operations scoped to a single authenticated user."""

    async def fetch_notes(self, user_id: str) -> list[Row]: ...

    async def upsert_note(self, user_id: str, verse_id: str, encrypted_content: str) -> None: ...

    async def fetch_bookmarks(self, user_id: str) -> list[Row]: ...

    async def insert_bookmark(self, user_id: str, row: Row) -> None: ...

    async def delete_bookmark(self, user_id: str, verse_id: str) -> None: ...

    async def fetch_chat_history(self, user_id: str) -> list[Row]: ...

    async def insert_chat_message(self, user_id: str, row: Row) -> None: ...

    async def clear_chat_history(self, user_id: str) -> None: ...

    async def fetch_profile(self, user_id: str) -> Row | None: ...

    async def update_profile_stats(self, user_id: str, stats: dict[str, Any]) -> None: ...


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SQLiteRemoteStore:
    """RemoteStore backed by a SQLite database file.

    Each call opens its own connection in a worker thread so the event
    loop is never blocked on disk I/O.

    Args:
        db_path: Path to the SQLite database file. The schema is created
            if missing.
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = db_path
        initialize_database(db_path)

    def _query(self, sql: str, params: tuple = ()) -> list[Row]:
        conn = get_connection(self._db_path)
        try:
            return [dict(row) for row in conn.execute(sql, params).fetchall()]
        finally:
            conn.close()

    def _execute(self, sql: str, params: tuple = ()) -> None:
        conn = get_connection(self._db_path)
        try:
            conn.execute(sql, params)
            conn.commit()
        finally:
            conn.close()

    # ── Notes ────────────────────────────────────────────────────────────

    async def fetch_notes(self, user_id: str) -> list[Row]:
        return await asyncio.to_thread(
            self._query,
            "SELECT verse_id, encrypted_content FROM notes WHERE user_id = ?",
            (user_id,),
        )

    async def upsert_note(self, user_id: str, verse_id: str, encrypted_content: str) -> None:
        await asyncio.to_thread(
            self._execute,
            """
            INSERT INTO notes (user_id, verse_id, encrypted_content, updated_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(user_id, verse_id) DO UPDATE SET
                encrypted_content = excluded.encrypted_content,
                updated_at = excluded.updated_at
            """,
            (user_id, verse_id, encrypted_content, _now()),
        )

    # ── Bookmarks ────────────────────────────────────────────────────────

    async def fetch_bookmarks(self, user_id: str) -> list[Row]:
        return await asyncio.to_thread(
            self._query,
            """
            SELECT verse_id, verse_num, verse_text, book_name, chapter_num
            FROM bookmarks WHERE user_id = ? ORDER BY created_at, rowid
            """,
            (user_id,),
        )

    async def insert_bookmark(self, user_id: str, row: Row) -> None:
        await asyncio.to_thread(
            self._execute,
            """
            INSERT INTO bookmarks
                (user_id, verse_id, verse_num, verse_text, book_name, chapter_num)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                user_id,
                row["verse_id"],
                row.get("verse_num"),
                row.get("verse_text"),
                row.get("book_name"),
                row.get("chapter_num"),
            ),
        )

    async def delete_bookmark(self, user_id: str, verse_id: str) -> None:
        await asyncio.to_thread(
            self._execute,
            "DELETE FROM bookmarks WHERE user_id = ? AND verse_id = ?",
            (user_id, verse_id),
        )

    # ── Chat history ─────────────────────────────────────────────────────

    async def fetch_chat_history(self, user_id: str) -> list[Row]:
        return await asyncio.to_thread(
            self._query,
            """
            SELECT id, role, encrypted_content, image_url, created_at
            FROM chat_history WHERE user_id = ? ORDER BY created_at, seq
            """,
            (user_id,),
        )

    async def insert_chat_message(self, user_id: str, row: Row) -> None:
        await asyncio.to_thread(
            self._execute,
            """
            INSERT INTO chat_history (id, user_id, role, encrypted_content, image_url, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                row["id"],
                user_id,
                row["role"],
                row.get("encrypted_content"),
                row.get("image_url"),
                row.get("created_at") or _now(),
            ),
        )

    async def clear_chat_history(self, user_id: str) -> None:
        await asyncio.to_thread(
            self._execute, "DELETE FROM chat_history WHERE user_id = ?", (user_id,)
        )

    # ── Profiles ─────────────────────────────────────────────────────────

    def create_profile(self, user_id: str, name: str = "", email: str = "") -> None:
        """Insert an empty profile row (registration is handled elsewhere)."""
        self._execute(
            "INSERT OR IGNORE INTO profiles (id, name, email, stats_json) VALUES (?, ?, ?, ?)",
            (user_id, name, email, json.dumps({})),
        )

    async def fetch_profile(self, user_id: str) -> Row | None:
        rows = await asyncio.to_thread(
            self._query,
            "SELECT id, name, email, role, stats_json FROM profiles WHERE id = ?",
            (user_id,),
        )
        if not rows:
            return None
        row = rows[0]
        row["stats"] = json.loads(row.pop("stats_json") or "{}")
        return row

    async def update_profile_stats(self, user_id: str, stats: dict[str, Any]) -> None:
        await asyncio.to_thread(
            self._execute,
            "UPDATE profiles SET stats_json = ? WHERE id = ?",
            (json.dumps(stats), user_id),
        )

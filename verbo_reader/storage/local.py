"""Guest-mode local state: JSON blobs keyed by name."""

import json
import logging
from pathlib import Path
from typing import Any

from verbo_reader.storage.database import get_connection, initialize_database

logger = logging.getLogger(__name__)

THEME_KEY = "verbo_theme"
BOOKMARKS_KEY = "verbo_bookmarks_final"
NOTES_KEY = "verbo_notes_final"
PROGRESS_KEY = "verbo_progress"


class LocalStorage:
    """Key/value store of JSON blobs kept in the ``settings`` table.

    Every write replaces the whole value for its key.

    Args:
        db_path: Path to the local SQLite file.
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = db_path
        initialize_database(db_path)

    def get_json(self, key: str, default: Any = None) -> Any:
        """Return the decoded value for ``key``, or ``default`` if absent or corrupt."""
        conn = get_connection(self._db_path)
        try:
            row = conn.execute("SELECT value FROM settings WHERE key = ?", (key,)).fetchone()
        finally:
            conn.close()
        if row is None:
            return default
        try:
            return json.loads(row["value"])
        except json.JSONDecodeError:
            logger.warning("Ignoring corrupt local value for key %s", key)
            return default

    def set_json(self, key: str, value: Any) -> None:
        """Overwrite ``key`` with the JSON encoding of ``value``."""
        conn = get_connection(self._db_path)
        try:
            conn.execute(
                """
                INSERT INTO settings (key, value, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (key, json.dumps(value, ensure_ascii=False)),
            )
            conn.commit()
        finally:
            conn.close()

    def remove(self, key: str) -> None:
        conn = get_connection(self._db_path)
        try:
            conn.execute("DELETE FROM settings WHERE key = ?", (key,))
            conn.commit()
        finally:
            conn.close()

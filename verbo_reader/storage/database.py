"""SQLite database initialization and connection management."""

import sqlite3
from pathlib import Path


BUSY_TIMEOUT_SECONDS = 10.0


def get_connection(db_path: str | Path) -> sqlite3.Connection:
    """Open a short-lived connection to a reader database.

    Remote-store calls run in worker threads and each opens its own
    connection, so writers may overlap; they wait up to
    ``BUSY_TIMEOUT_SECONDS`` for the lock instead of failing at once.

    Args:
        db_path: Path to the SQLite database file.

    Returns:
        A connection returning ``sqlite3.Row`` rows.
    """
    conn = sqlite3.connect(str(db_path), timeout=BUSY_TIMEOUT_SECONDS)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    return conn


def initialize_database(db_path: str | Path) -> None:
    """Create the database schema if it doesn't exist.

    Args:
        db_path: Path to the SQLite database file.
    """
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = get_connection(db_path)
    try:
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS profiles (
                id TEXT PRIMARY KEY,
                name TEXT DEFAULT '',
                email TEXT DEFAULT '',
                role TEXT DEFAULT 'user',
                stats_json TEXT,
                joined_date TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );

            CREATE TABLE IF NOT EXISTS notes (
                user_id TEXT NOT NULL,
                verse_id TEXT NOT NULL,
                encrypted_content TEXT,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                PRIMARY KEY (user_id, verse_id)
            );

            CREATE TABLE IF NOT EXISTS bookmarks (
                user_id TEXT NOT NULL,
                verse_id TEXT NOT NULL,
                verse_num TEXT,
                verse_text TEXT,
                book_name TEXT,
                chapter_num TEXT,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                PRIMARY KEY (user_id, verse_id)
            );

            CREATE TABLE IF NOT EXISTS chat_history (
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                id TEXT NOT NULL,
                user_id TEXT NOT NULL,
                role TEXT NOT NULL,
                encrypted_content TEXT,
                image_url TEXT,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );

            CREATE TABLE IF NOT EXISTS settings (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );
            """
        )
        conn.commit()
    finally:
        conn.close()

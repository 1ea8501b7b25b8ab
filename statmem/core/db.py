"""
SQLite persistence for memory documents. SQLite holds the canonical
documents; the vector index is derived from it and rebuilt on startup.
"""

import sqlite3
from contextlib import contextmanager
from typing import Generator
from .config import get_db_path, ensure_db_directory


@contextmanager
def get_db(db_path: str = None) -> Generator[sqlite3.Connection, None, None]:
    """Get a SQLite database connection, committing on success."""
    conn = sqlite3.connect(db_path or get_db_path())
    try:
        yield conn
        conn.commit()
    finally:
        conn.close()


def init_db(db_path: str = None):
    """Initialize the database with required tables."""
    db_path = db_path or get_db_path()
    ensure_db_directory(db_path)

    with get_db(db_path) as conn:
        cursor = conn.cursor()

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS documents (
                id TEXT PRIMARY KEY,
                content TEXT NOT NULL,
                tags TEXT NOT NULL DEFAULT '[]',         -- JSON array
                properties TEXT NOT NULL DEFAULT '{}',   -- JSON object
                favorite BOOLEAN DEFAULT FALSE,
                created_at TIMESTAMP NOT NULL
            )
        ''')

        cursor.execute('CREATE INDEX IF NOT EXISTS idx_documents_created_at ON documents(created_at)')


def health_check(db_path: str = None) -> bool:
    """Check if database is accessible."""
    try:
        with get_db(db_path) as conn:
            conn.execute("SELECT 1")
        return True
    except sqlite3.Error:
        return False

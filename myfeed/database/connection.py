"""
Database connection management and schema initialization.
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator


class DatabaseConnection:
    """Manages database connection and schema."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    @contextmanager
    def conn(self) -> Iterator[sqlite3.Connection]:
        """Get database connection with row factory. Commits on success, rolls back on error."""
        connection = sqlite3.connect(self.db_path)
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON")
        try:
            yield connection
            connection.commit()
        except Exception:
            connection.rollback()
            raise
        finally:
            connection.close()

    def _init_schema(self):
        """Initialize database schema."""
        with self.conn() as connection:
            connection.executescript("""
                CREATE TABLE IF NOT EXISTS folders (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    position INTEGER NOT NULL DEFAULT 0,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                );

                CREATE TABLE IF NOT EXISTS feeds (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    url TEXT NOT NULL,
                    title TEXT NOT NULL,
                    category TEXT NOT NULL DEFAULT 'General',
                    folder_id INTEGER REFERENCES folders(id) ON DELETE SET NULL,
                    feed_type TEXT NOT NULL DEFAULT 'rss',
                    last_fetched_at TIMESTAMP,
                    last_error TEXT,
                    error_count INTEGER NOT NULL DEFAULT 0,
                    article_count INTEGER NOT NULL DEFAULT 0,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    UNIQUE(user_id, url)
                );

                CREATE TABLE IF NOT EXISTS articles (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    feed_id INTEGER REFERENCES feeds(id) ON DELETE CASCADE,
                    guid TEXT NOT NULL,
                    title TEXT NOT NULL,
                    link TEXT,
                    description TEXT,
                    full_content TEXT,
                    author TEXT,
                    pub_date TIMESTAMP,
                    category TEXT,
                    is_read BOOLEAN NOT NULL DEFAULT FALSE,
                    is_bookmarked BOOLEAN NOT NULL DEFAULT FALSE,
                    is_read_later BOOLEAN NOT NULL DEFAULT FALSE,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    UNIQUE(user_id, guid)
                );

                CREATE INDEX IF NOT EXISTS idx_folders_user ON folders(user_id, position);
                CREATE INDEX IF NOT EXISTS idx_feeds_user ON feeds(user_id, created_at DESC);
                CREATE INDEX IF NOT EXISTS idx_articles_user_pub ON articles(user_id, pub_date DESC);
                CREATE INDEX IF NOT EXISTS idx_articles_unread ON articles(user_id, is_read, pub_date DESC);
                CREATE INDEX IF NOT EXISTS idx_articles_feed ON articles(feed_id);
            """)

"""
Feed repository - CRUD operations for feeds.
"""

import sqlite3
from datetime import datetime, timezone

from ..exceptions import StoreWriteError
from .connection import DatabaseConnection
from .converters import row_to_feed
from .models import DBFeed, NewFeed

_UNSET = object()


class FeedRepository:
    """Repository for feed operations. Every query is scoped by user_id."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    def add(self, user_id: str, feed: NewFeed) -> int:
        """
        Add a new feed. Returns feed ID.

        Raises:
            StoreWriteError: If the user already has this URL or the insert fails
        """
        try:
            with self._db.conn() as conn:
                cursor = conn.execute(
                    """INSERT INTO feeds (user_id, url, title, category, feed_type, folder_id)
                       VALUES (?, ?, ?, ?, ?, ?)""",
                    (user_id, feed.url, feed.title, feed.category, feed.feed_type, feed.folder_id)
                )
                return cursor.lastrowid
        except sqlite3.Error as e:
            raise StoreWriteError(f"Could not add feed {feed.url}: {e}") from e

    def add_many(self, user_id: str, feeds: list[NewFeed]) -> dict[str, int]:
        """
        Insert several feeds in one transaction.

        Either every row is written or none is.

        Returns:
            Generated IDs keyed by URL

        Raises:
            StoreWriteError: If any insert fails (the whole batch is rolled back)
        """
        if not feeds:
            return {}
        ids: dict[str, int] = {}
        try:
            with self._db.conn() as conn:
                for feed in feeds:
                    cursor = conn.execute(
                        """INSERT INTO feeds (user_id, url, title, category, feed_type, folder_id)
                           VALUES (?, ?, ?, ?, ?, ?)""",
                        (user_id, feed.url, feed.title, feed.category, feed.feed_type, feed.folder_id)
                    )
                    ids[feed.url] = cursor.lastrowid
        except sqlite3.Error as e:
            raise StoreWriteError(f"Bulk feed insert failed: {e}") from e
        return ids

    def get(self, user_id: str, feed_id: int) -> DBFeed | None:
        """Get single feed by ID."""
        with self._db.conn() as conn:
            row = conn.execute(
                "SELECT * FROM feeds WHERE id = ? AND user_id = ?", (feed_id, user_id)
            ).fetchone()
            return row_to_feed(row) if row else None

    def get_all(self, user_id: str) -> list[DBFeed]:
        """Get all of a user's feeds, newest first."""
        with self._db.conn() as conn:
            rows = conn.execute(
                "SELECT * FROM feeds WHERE user_id = ? ORDER BY created_at DESC, id DESC",
                (user_id,)
            ).fetchall()
            return [row_to_feed(row) for row in rows]

    def get_urls(self, user_id: str) -> set[str]:
        """URLs the user is already subscribed to."""
        with self._db.conn() as conn:
            rows = conn.execute("SELECT url FROM feeds WHERE user_id = ?", (user_id,)).fetchall()
            return {row["url"] for row in rows}

    def update(
        self,
        user_id: str,
        feed_id: int,
        title: str | None = None,
        category: str | None = None,
        folder_id: int | None | object = _UNSET,
    ) -> DBFeed | None:
        """Update feed details. Pass folder_id=None to unfile the feed."""
        updates: list[str] = []
        params: list = []
        if title is not None:
            updates.append("title = ?")
            params.append(title)
        if category is not None:
            updates.append("category = ?")
            params.append(category)
        if folder_id is not _UNSET:
            updates.append("folder_id = ?")
            params.append(folder_id)

        if updates:
            with self._db.conn() as conn:
                conn.execute(
                    f"UPDATE feeds SET {', '.join(updates)} WHERE id = ? AND user_id = ?",
                    (*params, feed_id, user_id)
                )
        return self.get(user_id, feed_id)

    def record_success(self, user_id: str, feed_id: int, article_count: int | None = None):
        """Clear the error flag and stamp the fetch time."""
        now = datetime.now(timezone.utc).isoformat()
        with self._db.conn() as conn:
            if article_count is None:
                conn.execute(
                    """UPDATE feeds SET last_fetched_at = ?, last_error = NULL, error_count = 0
                       WHERE id = ? AND user_id = ?""",
                    (now, feed_id, user_id)
                )
            else:
                conn.execute(
                    """UPDATE feeds SET last_fetched_at = ?, last_error = NULL, error_count = 0,
                       article_count = ? WHERE id = ? AND user_id = ?""",
                    (now, article_count, feed_id, user_id)
                )

    def record_failure(self, user_id: str, feed_id: int, error: str):
        """Stamp the fetch time and record the error message."""
        with self._db.conn() as conn:
            conn.execute(
                """UPDATE feeds SET last_fetched_at = ?, last_error = ?, error_count = error_count + 1
                   WHERE id = ? AND user_id = ?""",
                (datetime.now(timezone.utc).isoformat(), error, feed_id, user_id)
            )

    def delete(self, user_id: str, feed_id: int) -> bool:
        """Delete feed and (by cascade) its articles."""
        with self._db.conn() as conn:
            cursor = conn.execute(
                "DELETE FROM feeds WHERE id = ? AND user_id = ?", (feed_id, user_id)
            )
            return cursor.rowcount > 0

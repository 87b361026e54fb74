"""
Article repository - upsert, listing and per-article state for articles.
"""

import sqlite3
from datetime import datetime, timezone

from ..exceptions import StoreWriteError
from .connection import DatabaseConnection
from .converters import row_to_article
from .models import ArticlePage, ArticleStats, DBArticle, Digest, DigestGroup, NewArticle

READ_FILTERS = ("unread", "read", "all")

_SELECT_WITH_FEED = """
    SELECT a.*, f.title AS feed_title, f.url AS feed_url
    FROM articles a
    LEFT JOIN feeds f ON a.feed_id = f.id
"""

_ORDER = "ORDER BY a.pub_date DESC NULLS LAST, a.created_at DESC, a.id DESC"


def _timestamp(value: datetime | None) -> str | None:
    """Store every timestamp as UTC ISO-8601 so text ordering is chronological."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


class ArticleRepository:
    """Repository for article operations. Every query is scoped by user_id."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    def upsert_many(self, rows: list[NewArticle]) -> int:
        """
        Insert or update articles keyed on (user_id, guid) in one statement batch.

        Existing rows keep their read/bookmark/read-later state; everything
        else is refreshed from the incoming row. Callers must de-duplicate
        the batch first.

        Returns:
            Number of rows written

        Raises:
            StoreWriteError: If the write is rejected (the batch is rolled back)
        """
        if not rows:
            return 0
        now = datetime.now(timezone.utc).isoformat()
        params = [
            (
                row.user_id, row.feed_id, row.guid, row.title, row.link,
                row.description, row.full_content, row.author,
                _timestamp(row.pub_date), row.category, now,
            )
            for row in rows
        ]
        try:
            with self._db.conn() as conn:
                conn.executemany(
                    """INSERT INTO articles
                       (user_id, feed_id, guid, title, link, description, full_content,
                        author, pub_date, category, updated_at)
                       VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                       ON CONFLICT(user_id, guid) DO UPDATE SET
                           feed_id = excluded.feed_id,
                           title = excluded.title,
                           link = excluded.link,
                           description = excluded.description,
                           full_content = COALESCE(excluded.full_content, articles.full_content),
                           author = excluded.author,
                           pub_date = excluded.pub_date,
                           category = excluded.category,
                           updated_at = excluded.updated_at""",
                    params
                )
        except sqlite3.Error as e:
            raise StoreWriteError(f"Article upsert failed: {e}") from e
        return len(rows)

    def get(self, user_id: str, article_id: int) -> DBArticle | None:
        """Get single article by ID."""
        with self._db.conn() as conn:
            row = conn.execute(
                _SELECT_WITH_FEED + " WHERE a.id = ? AND a.user_id = ?",
                (article_id, user_id)
            ).fetchone()
            return row_to_article(row) if row else None

    def get_by_guid(self, user_id: str, guid: str) -> DBArticle | None:
        with self._db.conn() as conn:
            row = conn.execute(
                _SELECT_WITH_FEED + " WHERE a.guid = ? AND a.user_id = ?",
                (guid, user_id)
            ).fetchone()
            return row_to_article(row) if row else None

    def get_page(
        self,
        user_id: str,
        category: str | None = None,
        read_filter: str = "unread",
        feed_id: int | None = None,
        limit: int = 20,
        offset: int = 0
    ) -> ArticlePage:
        """
        Get one page of articles, newest first, with the total match count.

        Args:
            category: Only this category ("All" or None for every category)
            read_filter: "unread", "read" or "all"
        """
        if read_filter not in READ_FILTERS:
            raise ValueError(f"read_filter must be one of {', '.join(READ_FILTERS)}")

        where = " WHERE a.user_id = ?"
        params: list = [user_id]
        if category and category != "All":
            where += " AND a.category = ?"
            params.append(category)
        if feed_id is not None:
            where += " AND a.feed_id = ?"
            params.append(feed_id)
        if read_filter == "unread":
            where += " AND a.is_read = 0"
        elif read_filter == "read":
            where += " AND a.is_read = 1"

        with self._db.conn() as conn:
            total = conn.execute(
                "SELECT COUNT(*) FROM articles a" + where, params
            ).fetchone()[0]
            rows = conn.execute(
                _SELECT_WITH_FEED + where + f" {_ORDER} LIMIT ? OFFSET ?",
                (*params, limit, offset)
            ).fetchall()

        return ArticlePage(
            articles=[row_to_article(row) for row in rows],
            total=total,
            has_more=offset + limit < total,
        )

    def get_read_later(self, user_id: str) -> list[DBArticle]:
        with self._db.conn() as conn:
            rows = conn.execute(
                _SELECT_WITH_FEED + f" WHERE a.user_id = ? AND a.is_read_later = 1 {_ORDER}",
                (user_id,)
            ).fetchall()
            return [row_to_article(row) for row in rows]

    def count(self, user_id: str) -> int:
        with self._db.conn() as conn:
            return conn.execute(
                "SELECT COUNT(*) FROM articles WHERE user_id = ?", (user_id,)
            ).fetchone()[0]

    def mark_read(self, user_id: str, article_id: int, is_read: bool = True) -> bool:
        """Mark article as read/unread."""
        with self._db.conn() as conn:
            cursor = conn.execute(
                "UPDATE articles SET is_read = ? WHERE id = ? AND user_id = ?",
                (is_read, article_id, user_id)
            )
            return cursor.rowcount > 0

    def mark_many_read(self, user_id: str, article_ids: list[int], is_read: bool = True) -> int:
        """Mark several articles as read/unread. Returns rows changed."""
        if not article_ids:
            return 0
        placeholders = ",".join("?" * len(article_ids))
        with self._db.conn() as conn:
            cursor = conn.execute(
                f"UPDATE articles SET is_read = ? WHERE user_id = ? AND id IN ({placeholders})",
                (is_read, user_id, *article_ids)
            )
            return cursor.rowcount

    def mark_all_read(self, user_id: str) -> int:
        with self._db.conn() as conn:
            cursor = conn.execute(
                "UPDATE articles SET is_read = 1 WHERE user_id = ? AND is_read = 0", (user_id,)
            )
            return cursor.rowcount

    def toggle_bookmark(self, user_id: str, article_id: int) -> bool | None:
        """Flip the bookmark flag. Returns the new state, or None if not found."""
        return self._toggle(user_id, article_id, "is_bookmarked")

    def toggle_read_later(self, user_id: str, article_id: int) -> bool | None:
        """Flip the read-later flag. Returns the new state, or None if not found."""
        return self._toggle(user_id, article_id, "is_read_later")

    def _toggle(self, user_id: str, article_id: int, column: str) -> bool | None:
        with self._db.conn() as conn:
            cursor = conn.execute(
                f"UPDATE articles SET {column} = NOT {column} WHERE id = ? AND user_id = ?",
                (article_id, user_id)
            )
            if cursor.rowcount == 0:
                return None
            row = conn.execute(
                f"SELECT {column} FROM articles WHERE id = ?", (article_id,)
            ).fetchone()
            return bool(row[0])

    def clear(self, user_id: str, feed_id: int | None = None) -> int:
        """Delete a user's articles (optionally only one feed's). Returns rows deleted."""
        with self._db.conn() as conn:
            if feed_id is None:
                cursor = conn.execute("DELETE FROM articles WHERE user_id = ?", (user_id,))
            else:
                cursor = conn.execute(
                    "DELETE FROM articles WHERE user_id = ? AND feed_id = ?", (user_id, feed_id)
                )
            return cursor.rowcount

    def get_stats(self, user_id: str) -> ArticleStats:
        """Reading totals and per-category article counts."""
        with self._db.conn() as conn:
            totals = conn.execute(
                """SELECT COUNT(*) AS total,
                          COALESCE(SUM(is_read), 0) AS read,
                          COALESCE(SUM(is_bookmarked), 0) AS bookmarked,
                          COALESCE(SUM(is_read_later), 0) AS read_later
                   FROM articles WHERE user_id = ?""",
                (user_id,)
            ).fetchone()
            categories = conn.execute(
                """SELECT COALESCE(category, 'General') AS category, COUNT(*) AS count
                   FROM articles WHERE user_id = ?
                   GROUP BY COALESCE(category, 'General')
                   ORDER BY count DESC, category ASC""",
                (user_id,)
            ).fetchall()

        total = totals["total"]
        read = totals["read"]
        return ArticleStats(
            total=total,
            read=read,
            unread=total - read,
            bookmarked=totals["bookmarked"],
            read_later=totals["read_later"],
            read_pct=round(read / total * 100) if total else 0,
            by_category={row["category"]: row["count"] for row in categories},
        )

    def search(self, user_id: str, query: str, limit: int = 20) -> list[DBArticle]:
        """Case-insensitive substring match on title, description or author, newest first."""
        escaped = query.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        pattern = f"%{escaped}%"
        with self._db.conn() as conn:
            rows = conn.execute(
                _SELECT_WITH_FEED + f"""
                WHERE a.user_id = ?
                  AND (lower(a.title) LIKE ? ESCAPE '\\'
                       OR lower(COALESCE(a.description, '')) LIKE ? ESCAPE '\\'
                       OR lower(COALESCE(a.author, '')) LIKE ? ESCAPE '\\')
                {_ORDER} LIMIT ?""",
                (user_id, pattern, pattern, pattern, limit)
            ).fetchall()
            return [row_to_article(row) for row in rows]

    def get_digest(self, user_id: str, since: datetime) -> Digest:
        """Articles published at or after `since`, grouped by category ("General" when unset)."""
        with self._db.conn() as conn:
            rows = conn.execute(
                _SELECT_WITH_FEED + f" WHERE a.user_id = ? AND a.pub_date >= ? {_ORDER}",
                (user_id, _timestamp(since))
            ).fetchall()

        grouped: dict[str, list[DBArticle]] = {}
        for row in rows:
            article = row_to_article(row)
            grouped.setdefault(article.category or "General", []).append(article)

        groups = [DigestGroup(category, articles) for category, articles in grouped.items()]
        groups.sort(key=lambda group: (-len(group.articles), group.category))
        return Digest(since=since, groups=groups)

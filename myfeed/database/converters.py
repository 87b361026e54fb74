"""
Database row converters - convert SQLite rows to dataclasses.
"""

import sqlite3
from datetime import datetime

from .models import DBArticle, DBFeed, DBFolder


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def _optional(row: sqlite3.Row, col: str):
    """Column value, or None when the query did not select it."""
    try:
        return row[col]
    except (IndexError, KeyError):
        return None


def row_to_folder(row: sqlite3.Row) -> DBFolder:
    """Convert a database row to a DBFolder."""
    return DBFolder(
        id=row["id"],
        user_id=row["user_id"],
        name=row["name"],
        position=row["position"],
        created_at=_parse_timestamp(row["created_at"]),
    )


def row_to_feed(row: sqlite3.Row) -> DBFeed:
    """Convert a database row to a DBFeed."""
    return DBFeed(
        id=row["id"],
        user_id=row["user_id"],
        url=row["url"],
        title=row["title"],
        category=row["category"],
        folder_id=row["folder_id"],
        feed_type=row["feed_type"],
        last_fetched_at=_parse_timestamp(row["last_fetched_at"]),
        last_error=row["last_error"],
        error_count=row["error_count"] or 0,
        article_count=row["article_count"] or 0,
        created_at=_parse_timestamp(row["created_at"]),
    )


def row_to_article(row: sqlite3.Row) -> DBArticle:
    """Convert a database row to a DBArticle."""
    return DBArticle(
        id=row["id"],
        user_id=row["user_id"],
        feed_id=row["feed_id"],
        guid=row["guid"],
        title=row["title"],
        link=row["link"],
        description=row["description"],
        full_content=row["full_content"],
        author=row["author"],
        pub_date=_parse_timestamp(row["pub_date"]),
        category=row["category"],
        is_read=bool(row["is_read"]),
        is_bookmarked=bool(row["is_bookmarked"]),
        is_read_later=bool(row["is_read_later"]),
        created_at=_parse_timestamp(row["created_at"]),
        feed_title=_optional(row, "feed_title"),
        feed_url=_optional(row, "feed_url"),
    )

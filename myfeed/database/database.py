"""
Database facade - provides unified access to all repositories.

Services talk to this narrow CRUD surface rather than to SQL directly.
"""

from datetime import datetime
from pathlib import Path

from .article_repository import ArticleRepository
from .connection import DatabaseConnection
from .feed_repository import FeedRepository
from .folder_repository import FolderRepository
from .models import ArticlePage, ArticleStats, DBArticle, DBFeed, DBFolder, Digest, NewArticle, NewFeed


class Database:
    """Unified per-user store for feeds, articles and folders."""

    def __init__(self, db_path: Path):
        self._connection = DatabaseConnection(db_path)

        self.feeds = FeedRepository(self._connection)
        self.articles = ArticleRepository(self._connection)
        self.folders = FolderRepository(self._connection)

    # ─────────────────────────────────────────────────────────────
    # Feed operations (delegated to FeedRepository)
    # ─────────────────────────────────────────────────────────────

    def add_feed(self, user_id: str, feed: NewFeed) -> int:
        return self.feeds.add(user_id, feed)

    def add_feeds_bulk(self, user_id: str, feeds: list[NewFeed]) -> dict[str, int]:
        return self.feeds.add_many(user_id, feeds)

    def get_feed(self, user_id: str, feed_id: int) -> DBFeed | None:
        return self.feeds.get(user_id, feed_id)

    def get_feeds(self, user_id: str) -> list[DBFeed]:
        return self.feeds.get_all(user_id)

    def get_feed_urls(self, user_id: str) -> set[str]:
        return self.feeds.get_urls(user_id)

    def update_feed(self, user_id: str, feed_id: int, **changes) -> DBFeed | None:
        return self.feeds.update(user_id, feed_id, **changes)

    def delete_feed(self, user_id: str, feed_id: int) -> bool:
        return self.feeds.delete(user_id, feed_id)

    # ─────────────────────────────────────────────────────────────
    # Article operations (delegated to ArticleRepository)
    # ─────────────────────────────────────────────────────────────

    def upsert_articles(self, rows: list[NewArticle]) -> int:
        return self.articles.upsert_many(rows)

    def get_article(self, user_id: str, article_id: int) -> DBArticle | None:
        return self.articles.get(user_id, article_id)

    def get_articles(
        self,
        user_id: str,
        category: str | None = None,
        read_filter: str = "unread",
        feed_id: int | None = None,
        limit: int = 20,
        offset: int = 0
    ) -> ArticlePage:
        return self.articles.get_page(user_id, category, read_filter, feed_id, limit, offset)

    def get_read_later(self, user_id: str) -> list[DBArticle]:
        return self.articles.get_read_later(user_id)

    def mark_read(self, user_id: str, article_id: int, is_read: bool = True) -> bool:
        return self.articles.mark_read(user_id, article_id, is_read)

    def bulk_mark_read(self, user_id: str, article_ids: list[int], is_read: bool = True) -> int:
        return self.articles.mark_many_read(user_id, article_ids, is_read)

    def mark_all_read(self, user_id: str) -> int:
        return self.articles.mark_all_read(user_id)

    def toggle_bookmark(self, user_id: str, article_id: int) -> bool | None:
        return self.articles.toggle_bookmark(user_id, article_id)

    def toggle_read_later(self, user_id: str, article_id: int) -> bool | None:
        return self.articles.toggle_read_later(user_id, article_id)

    def clear_articles(self, user_id: str, feed_id: int | None = None) -> int:
        return self.articles.clear(user_id, feed_id)

    def get_stats(self, user_id: str) -> ArticleStats:
        return self.articles.get_stats(user_id)

    def search_articles(self, user_id: str, query: str, limit: int = 20) -> list[DBArticle]:
        return self.articles.search(user_id, query, limit)

    def get_digest(self, user_id: str, since: datetime) -> Digest:
        return self.articles.get_digest(user_id, since)

    # ─────────────────────────────────────────────────────────────
    # Folder operations (delegated to FolderRepository)
    # ─────────────────────────────────────────────────────────────

    def get_folders(self, user_id: str) -> list[DBFolder]:
        return self.folders.get_all(user_id)

    def get_folder(self, user_id: str, folder_id: int) -> DBFolder | None:
        return self.folders.get(user_id, folder_id)

    def create_folder(self, user_id: str, name: str) -> DBFolder:
        return self.folders.add(user_id, name)

    def update_folder(
        self,
        user_id: str,
        folder_id: int,
        name: str | None = None,
        position: int | None = None
    ) -> DBFolder | None:
        return self.folders.update(user_id, folder_id, name, position)

    def delete_folder(self, user_id: str, folder_id: int) -> bool:
        return self.folders.delete(user_id, folder_id)

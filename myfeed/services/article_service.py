"""
Article service: business logic for article operations.

Handles paginated listing, search, the digest, per-article state, stats
and on-demand full text.
"""

from datetime import datetime, timedelta, timezone

from fastapi import HTTPException

from ..database import ArticlePage, ArticleStats, Database, DBArticle, Digest
from ..exceptions import require_article, require_feed
from ..full_text import FullTextResolver, FullTextResult


SEARCH_MIN_LENGTH = 2
DIGEST_RANGES = ("today", "week")


def digest_start(range_name: str, now: datetime | None = None) -> datetime:
    """Start of a digest window: midnight UTC today, or seven days back."""
    now = now or datetime.now(timezone.utc)
    if range_name == "today":
        return now.replace(hour=0, minute=0, second=0, microsecond=0)
    if range_name == "week":
        return now - timedelta(days=7)
    raise ValueError(f"range must be one of {', '.join(DIGEST_RANGES)}")


class ArticleService:
    """Service for article-related business logic."""

    def __init__(self, db: Database, resolver: FullTextResolver | None = None):
        self.db = db
        self.resolver = resolver

    # ─────────────────────────────────────────────────────────────
    # Listing
    # ─────────────────────────────────────────────────────────────

    def list_articles(
        self,
        user_id: str,
        category: str | None = None,
        read_filter: str = "unread",
        feed_id: int | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> ArticlePage:
        """
        Get one page of articles, newest first.

        Args:
            user_id: Owner of the articles
            category: Restrict to one category ("All" means no restriction)
            read_filter: "unread" (default), "read" or "all"
            feed_id: Restrict to one feed
            limit: Page size
            offset: Pagination offset

        Returns:
            Page with the articles, the total match count and has_more
        """
        try:
            return self.db.get_articles(user_id, category, read_filter, feed_id, limit, offset)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    def get_article(self, user_id: str, article_id: int) -> DBArticle:
        return require_article(self.db.get_article(user_id, article_id))

    def list_read_later(self, user_id: str) -> list[DBArticle]:
        return self.db.get_read_later(user_id)

    def get_stats(self, user_id: str) -> ArticleStats:
        return self.db.get_stats(user_id)

    def search(self, user_id: str, query: str, limit: int = 20) -> list[DBArticle]:
        """Match the query against title, description and author, ignoring case."""
        query = query.strip()
        if len(query) < SEARCH_MIN_LENGTH:
            raise HTTPException(status_code=400, detail=f"Search query must be at least {SEARCH_MIN_LENGTH} characters")
        return self.db.search_articles(user_id, query, limit)

    def get_digest(self, user_id: str, range_name: str = "today") -> Digest:
        try:
            since = digest_start(range_name)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return self.db.get_digest(user_id, since)

    # ─────────────────────────────────────────────────────────────
    # State
    # ─────────────────────────────────────────────────────────────

    def mark_read(self, user_id: str, article_id: int, is_read: bool = True) -> None:
        require_article(self.db.get_article(user_id, article_id))
        self.db.mark_read(user_id, article_id, is_read)

    def bulk_mark_read(self, user_id: str, article_ids: list[int], is_read: bool = True) -> int:
        if not article_ids:
            raise HTTPException(status_code=400, detail="No article IDs provided")
        if len(article_ids) > 1000:
            raise HTTPException(status_code=400, detail="Maximum 1000 articles per request")
        return self.db.bulk_mark_read(user_id, article_ids, is_read)

    def mark_all_read(self, user_id: str) -> int:
        return self.db.mark_all_read(user_id)

    def toggle_bookmark(self, user_id: str, article_id: int) -> bool:
        return require_article(self.db.toggle_bookmark(user_id, article_id))

    def toggle_read_later(self, user_id: str, article_id: int) -> bool:
        return require_article(self.db.toggle_read_later(user_id, article_id))

    def clear_articles(self, user_id: str, feed_id: int | None = None) -> int:
        """Delete the user's articles, or only one feed's."""
        if feed_id is not None:
            require_feed(self.db.get_feed(user_id, feed_id))
        return self.db.clear_articles(user_id, feed_id)

    # ─────────────────────────────────────────────────────────────
    # Full text
    # ─────────────────────────────────────────────────────────────

    async def get_full_text(self, user_id: str, article_id: int) -> tuple[DBArticle, FullTextResult | None]:
        """
        Resolve the best available full text for an article.

        A None result means the reader should link out to the original.
        """
        if not self.resolver:
            raise HTTPException(status_code=500, detail="Full-text resolver not initialized")
        article = require_article(self.db.get_article(user_id, article_id))
        result = await self.resolver.resolve(article.link, article.full_content)
        return article, result

"""
Ingest service: turn fetched feed items into stored articles.

Handles:
- Mapping RawFeedItems onto article rows bound to a user and feed
- De-duplicating a batch on (user_id, guid) before the single upsert
- Refreshing one or all of a user's feeds through the bounded worker pool
"""

import logging
from dataclasses import dataclass, field

from ..config import PipelineConfig
from ..database import Database, DBFeed, NewArticle
from ..exceptions import StoreWriteError
from ..feed_parser import FeedFetcher, ParsedFeed, RawFeedItem
from ..worker_pool import ProgressCallback, run_with_concurrency
from .feed_health import FeedHealthTracker

logger = logging.getLogger(__name__)


@dataclass
class RefreshReport:
    """Outcome of refreshing a set of feeds."""
    refreshed: int = 0
    failed: int = 0
    articles_upserted: int = 0
    errors: dict[int, str] = field(default_factory=dict)  # feed_id -> message
    upsert_error: str | None = None


def deduplicate_articles(rows: list[NewArticle]) -> list[NewArticle]:
    """
    Collapse rows sharing (user_id, guid) into one.

    The last row for a key wins; keys keep the position of their first
    appearance.
    """
    unique: dict[tuple[str, str], NewArticle] = {}
    for row in rows:
        unique[row.key] = row
    return list(unique.values())


def items_to_rows(
    user_id: str,
    feed_id: int,
    category: str | None,
    items: list[RawFeedItem],
) -> list[NewArticle]:
    """Bind fetched items to a feed. The category is copied, not joined."""
    return [
        NewArticle(
            user_id=user_id,
            feed_id=feed_id,
            guid=item.guid,
            title=item.title,
            link=item.link,
            description=item.teaser,
            full_content=item.full_text,
            author=item.author or None,
            pub_date=item.pub_date,
            category=category,
        )
        for item in items
    ]


class IngestService:
    """Fetches feeds and writes their items through the single upsert path."""

    def __init__(
        self,
        db: Database,
        fetcher: FeedFetcher,
        config: PipelineConfig | None = None,
        health: FeedHealthTracker | None = None,
    ):
        self.db = db
        self.fetcher = fetcher
        self.config = config or PipelineConfig()
        self.health = health or FeedHealthTracker(db)

    def upsert(self, rows: list[NewArticle]) -> int:
        """
        De-duplicate a batch and upsert it in one write.

        Returns:
            Number of distinct articles written

        Raises:
            StoreWriteError: If the store rejects the write
        """
        unique = deduplicate_articles(rows)
        if len(unique) < len(rows):
            logger.debug(f"Dropped {len(rows) - len(unique)} duplicate rows from upsert batch")
        return self.db.upsert_articles(unique)

    def rows_for_feed(self, user_id: str, feed: DBFeed, parsed: ParsedFeed) -> list[NewArticle]:
        """Article rows for the newest items of a fetched feed."""
        items = parsed.items[:self.config.articles_per_feed]
        return items_to_rows(user_id, feed.id, feed.category, items)

    # ─────────────────────────────────────────────────────────────
    # Refresh
    # ─────────────────────────────────────────────────────────────

    async def refresh_feed(self, user_id: str, feed: DBFeed) -> RefreshReport:
        """Refresh a single feed."""
        return await self.refresh_feeds(user_id, [feed])

    async def refresh_all(
        self,
        user_id: str,
        on_progress: ProgressCallback | None = None,
    ) -> RefreshReport:
        """Refresh every feed the user has."""
        return await self.refresh_feeds(user_id, self.db.get_feeds(user_id), on_progress)

    async def refresh_feeds(
        self,
        user_id: str,
        feeds: list[DBFeed],
        on_progress: ProgressCallback | None = None,
    ) -> RefreshReport:
        """
        Fetch feeds independently and upsert everything fetched in one batch.

        A feed that cannot be fetched is recorded as failed and does not
        affect its siblings.
        """
        report = RefreshReport()
        if not feeds:
            return report

        tasks = [lambda feed=feed: self.fetcher.fetch(feed.url) for feed in feeds]
        results = await run_with_concurrency(tasks, self.config.refresh_concurrency, on_progress)

        rows: list[NewArticle] = []
        for feed, result in zip(feeds, results):
            if isinstance(result, BaseException):
                message = str(result) or type(result).__name__
                report.failed += 1
                report.errors[feed.id] = message
                self.health.record_failure(user_id, feed.id, message)
                continue
            report.refreshed += 1
            rows.extend(self.rows_for_feed(user_id, feed, result))
            self.health.record_success(user_id, feed.id, article_count=len(result.items))

        if rows:
            try:
                report.articles_upserted = self.upsert(rows)
            except StoreWriteError as e:
                logger.error(f"Refresh upsert failed for user {user_id}: {e}")
                report.upsert_error = str(e)

        logger.info(
            f"Refreshed {report.refreshed}/{len(feeds)} feeds for user {user_id} "
            f"({report.articles_upserted} articles, {report.failed} failed)"
        )
        return report

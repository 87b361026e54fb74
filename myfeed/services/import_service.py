"""
Import service: bulk OPML import.

The import runs in four steps:
1. Drop outlines whose URL the user already has (reported as duplicates)
2. Insert every new feed row in one transaction
3. Fetch each new feed through the bounded worker pool
4. Upsert all fetched articles in one batch

Only step 2 can fail the import. A feed that cannot be fetched stays
saved and still counts as imported; a failed article upsert only means
nothing was pre-populated.
"""

import logging
from dataclasses import dataclass, field, replace

from ..config import PipelineConfig
from ..database import Database, NewArticle, NewFeed
from ..exceptions import StoreWriteError
from ..feed_parser import FeedFetcher
from ..opml import OPMLFeed, parse_opml
from ..url_validator import normalize_feed_url
from ..worker_pool import ProgressCallback, run_with_concurrency
from .feed_health import FeedHealthTracker
from .ingest_service import IngestService, items_to_rows

logger = logging.getLogger(__name__)


@dataclass
class ImportReport:
    """Outcome of an OPML import."""
    total: int
    succeeded: int = 0
    skipped: int = 0  # Already subscribed (or repeated within the file)
    fetch_failed: int = 0  # Saved, but no articles pre-populated
    articles_upserted: int = 0
    feed_ids: dict[str, int] = field(default_factory=dict)
    duplicates: list[str] = field(default_factory=list)
    upsert_error: str | None = None


class BulkImportOrchestrator:
    """Drives an OPML import for one user."""

    def __init__(
        self,
        db: Database,
        fetcher: FeedFetcher,
        config: PipelineConfig | None = None,
        health: FeedHealthTracker | None = None,
        ingest: IngestService | None = None,
    ):
        self.db = db
        self.fetcher = fetcher
        self.config = config or PipelineConfig()
        self.health = health or FeedHealthTracker(db)
        self.ingest = ingest or IngestService(db, fetcher, self.config, self.health)

    async def import_opml(
        self,
        user_id: str,
        opml_content: str | bytes,
        category_overrides: dict[str, str] | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> ImportReport:
        """
        Parse and import an OPML document.

        Raises:
            OPMLParseError: If the file is invalid or has no feeds
            StoreWriteError: If the feed rows could not be saved
        """
        feeds = parse_opml(opml_content, default_category=self.config.default_category)
        return await self.import_feeds(user_id, feeds, category_overrides, on_progress)

    def split_duplicates(self, user_id: str, feeds: list[OPMLFeed]) -> tuple[list[OPMLFeed], list[OPMLFeed]]:
        """
        Partition outlines into (new, duplicate) against the user's subscriptions.

        URLs are normalized first, so feed:// and scheme-less outlines match
        the https:// URL already stored.
        """
        seen = self.db.get_feed_urls(user_id)
        new: list[OPMLFeed] = []
        duplicates: list[OPMLFeed] = []
        for feed in feeds:
            feed = replace(feed, url=normalize_feed_url(feed.url))
            if feed.url in seen:
                duplicates.append(feed)
            else:
                seen.add(feed.url)
                new.append(feed)
        return new, duplicates

    async def import_feeds(
        self,
        user_id: str,
        feeds: list[OPMLFeed],
        category_overrides: dict[str, str] | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> ImportReport:
        """
        Import parsed outlines.

        Args:
            category_overrides: Category chosen per URL, replacing the file's
            on_progress: Called as on_progress(completed, total) after each fetch

        Raises:
            StoreWriteError: If the bulk feed insert fails (nothing is saved)
        """
        overrides = {normalize_feed_url(url): category for url, category in (category_overrides or {}).items()}
        new_feeds, duplicates = self.split_duplicates(user_id, feeds)
        report = ImportReport(
            total=len(feeds),
            skipped=len(duplicates),
            duplicates=[feed.url for feed in duplicates],
        )
        if not new_feeds:
            return report

        categories = {
            feed.url: overrides.get(feed.url) or feed.category or self.config.default_category
            for feed in new_feeds
        }

        try:
            feed_ids = self.db.add_feeds_bulk(user_id, [
                NewFeed(url=feed.url, title=feed.title, category=categories[feed.url])
                for feed in new_feeds
            ])
        except StoreWriteError:
            logger.exception(f"OPML import aborted for user {user_id}: feed rows not saved")
            raise
        report.feed_ids = feed_ids
        report.succeeded = len(new_feeds)

        tasks = [lambda feed=feed: self.fetcher.fetch(feed.url) for feed in new_feeds]
        results = await run_with_concurrency(tasks, self.config.import_concurrency, on_progress)

        rows: list[NewArticle] = []
        for feed, result in zip(new_feeds, results):
            feed_id = feed_ids[feed.url]
            if isinstance(result, BaseException):
                report.fetch_failed += 1
                self.health.record_failure(user_id, feed_id, str(result))
                continue
            items = result.items[:self.config.articles_per_feed]
            rows.extend(items_to_rows(user_id, feed_id, categories[feed.url], items))
            self.health.record_success(user_id, feed_id, article_count=len(result.items))

        if rows:
            try:
                report.articles_upserted = self.ingest.upsert(rows)
            except StoreWriteError as e:
                logger.error(f"Article pre-population failed for user {user_id}: {e}")
                report.upsert_error = str(e)

        logger.info(
            f"Imported {report.succeeded} feeds for user {user_id} "
            f"({report.skipped} duplicates, {report.fetch_failed} without articles)"
        )
        return report

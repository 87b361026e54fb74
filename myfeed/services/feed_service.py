"""
Feed service: business logic for feed management operations.

Handles subscription, refresh, newsletters and OPML/CSV import/export.
Domain errors from the pipeline are translated into HTTP errors here.
"""

import logging

from fastapi import HTTPException

from ..config import PipelineConfig, state
from ..database import Database, DBFeed, NewFeed
from ..exceptions import FeedFetchError, OPMLParseError, StoreWriteError, require_feed, require_folder
from ..feed_parser import FeedFetcher
from ..newsletters import (
    NEWSLETTER_CATEGORY,
    NEWSLETTER_FEED_TYPE,
    NewsletterInbox,
    create_newsletter_inbox,
    substack_feed_url,
    substack_title,
)
from ..opml import OPMLFeed, generate_csv, generate_opml, parse_opml
from ..url_validator import InvalidFeedURLError, validate_feed_url, validate_feed_url_or_raise_http
from .feed_health import FeedHealthTracker
from .import_service import BulkImportOrchestrator, ImportReport
from .ingest_service import IngestService, RefreshReport

logger = logging.getLogger(__name__)


class FeedService:
    """Service for feed-related business logic."""

    def __init__(
        self,
        db: Database,
        fetcher: FeedFetcher | None = None,
        config: PipelineConfig | None = None,
    ):
        self.db = db
        self.fetcher = fetcher
        self.config = config or PipelineConfig()
        self.health = FeedHealthTracker(db)

    def _require_fetcher(self) -> FeedFetcher:
        if not self.fetcher:
            raise HTTPException(status_code=500, detail="Feed fetcher not initialized")
        return self.fetcher

    def _ingest(self) -> IngestService:
        return IngestService(self.db, self._require_fetcher(), self.config, self.health)

    # ─────────────────────────────────────────────────────────────
    # Feed Management
    # ─────────────────────────────────────────────────────────────

    def list_feeds(self, user_id: str) -> list[DBFeed]:
        """List the user's feeds, newest first."""
        return self.db.get_feeds(user_id)

    def get_feed(self, user_id: str, feed_id: int) -> DBFeed:
        return require_feed(self.db.get_feed(user_id, feed_id))

    async def validate(self, url: str) -> tuple[bool, str | None]:
        """Check a URL is a fetchable feed. Returns (valid, feed title)."""
        try:
            url = validate_feed_url(url)
        except InvalidFeedURLError:
            return False, None
        return await self._require_fetcher().validate(url)

    async def subscribe(
        self,
        user_id: str,
        url: str,
        title: str | None = None,
        category: str | None = None,
        folder_id: int | None = None,
        feed_type: str = "rss",
    ) -> DBFeed:
        """
        Subscribe to a new feed and pre-populate its newest articles.

        Nothing is saved when the feed cannot be fetched.

        Raises:
            HTTPException: 400 for invalid/unfetchable URLs, 409 for duplicates
        """
        fetcher = self._require_fetcher()
        url = validate_feed_url_or_raise_http(url)
        if url in self.db.get_feed_urls(user_id):
            raise HTTPException(status_code=409, detail="You are already subscribed to this feed")
        if folder_id is not None:
            require_folder(self.db.get_folder(user_id, folder_id))

        try:
            parsed = await fetcher.fetch(url)
        except FeedFetchError as e:
            raise HTTPException(status_code=400, detail=str(e))

        try:
            feed_id = self.db.add_feed(user_id, NewFeed(
                url=url,
                title=title or parsed.title,
                category=category or self.config.default_category,
                feed_type=feed_type,
                folder_id=folder_id,
            ))
        except StoreWriteError as e:
            raise HTTPException(status_code=409, detail=str(e))

        feed = require_feed(self.db.get_feed(user_id, feed_id))
        ingest = self._ingest()
        try:
            ingest.upsert(ingest.rows_for_feed(user_id, feed, parsed))
        except StoreWriteError as e:
            logger.error(f"Could not pre-populate articles for feed {feed_id}: {e}")
        self.health.record_success(user_id, feed_id, article_count=len(parsed.items))

        logger.info(f"User {user_id} subscribed to {url}")
        return require_feed(self.db.get_feed(user_id, feed_id))

    def update_feed(
        self,
        user_id: str,
        feed_id: int,
        title: str | None = None,
        category: str | None = None,
    ) -> DBFeed:
        """Rename or recategorise a feed. Existing articles keep their category."""
        require_feed(self.db.get_feed(user_id, feed_id))
        return require_feed(self.db.update_feed(user_id, feed_id, title=title, category=category))

    def move_to_folder(self, user_id: str, feed_id: int, folder_id: int | None) -> DBFeed:
        """File a feed under a folder, or unfile it with folder_id=None."""
        require_feed(self.db.get_feed(user_id, feed_id))
        if folder_id is not None:
            require_folder(self.db.get_folder(user_id, folder_id))
        return require_feed(self.db.update_feed(user_id, feed_id, folder_id=folder_id))

    def unsubscribe(self, user_id: str, feed_id: int) -> None:
        """Delete a feed together with its articles."""
        require_feed(self.db.get_feed(user_id, feed_id))
        self.db.delete_feed(user_id, feed_id)

    # ─────────────────────────────────────────────────────────────
    # Refresh
    # ─────────────────────────────────────────────────────────────

    def is_refreshing(self, user_id: str) -> bool:
        return user_id in state.refresh_in_progress

    async def refresh_all(self, user_id: str) -> RefreshReport | None:
        """
        Refresh every feed of a user.

        Returns:
            The report, or None if a refresh for this user is already running
        """
        if self.is_refreshing(user_id):
            return None
        state.refresh_in_progress.add(user_id)
        try:
            return await self._ingest().refresh_all(user_id)
        finally:
            state.refresh_in_progress.discard(user_id)

    async def refresh_feed(self, user_id: str, feed_id: int) -> RefreshReport:
        """Refresh one feed."""
        feed = require_feed(self.db.get_feed(user_id, feed_id))
        return await self._ingest().refresh_feed(user_id, feed)

    # ─────────────────────────────────────────────────────────────
    # Newsletters
    # ─────────────────────────────────────────────────────────────

    async def add_newsletter(self, user_id: str, feed_url: str, title: str) -> DBFeed:
        """
        Save a newsletter feed without requiring it to be fetchable yet.

        Bridge inboxes publish nothing until the first email arrives, so the
        initial refresh is best-effort.
        """
        feed_url = validate_feed_url_or_raise_http(feed_url)
        if feed_url in self.db.get_feed_urls(user_id):
            raise HTTPException(status_code=409, detail="You are already subscribed to this feed")

        try:
            feed_id = self.db.add_feed(user_id, NewFeed(
                url=feed_url,
                title=title,
                category=NEWSLETTER_CATEGORY,
                feed_type=NEWSLETTER_FEED_TYPE,
            ))
        except StoreWriteError as e:
            raise HTTPException(status_code=409, detail=str(e))

        feed = require_feed(self.db.get_feed(user_id, feed_id))
        await self._ingest().refresh_feed(user_id, feed)
        return require_feed(self.db.get_feed(user_id, feed_id))

    async def add_substack(self, user_id: str, publication: str) -> DBFeed:
        """Subscribe to a Substack publication by name or URL."""
        try:
            feed_url = substack_feed_url(publication)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return await self.add_newsletter(user_id, feed_url, substack_title(publication))

    def create_inbox(self) -> NewsletterInbox:
        """Generate an email-to-feed inbox; the caller adds its feed once subscribed."""
        return create_newsletter_inbox()

    # ─────────────────────────────────────────────────────────────
    # OPML Import/Export
    # ─────────────────────────────────────────────────────────────

    def preview_opml(self, user_id: str, opml_content: str) -> tuple[list[OPMLFeed], list[OPMLFeed]]:
        """Parse an OPML file and split it into (new, already subscribed)."""
        try:
            feeds = parse_opml(opml_content, default_category=self.config.default_category)
        except OPMLParseError as e:
            raise HTTPException(status_code=400, detail=str(e))
        orchestrator = BulkImportOrchestrator(self.db, self.fetcher, self.config, self.health)
        return orchestrator.split_duplicates(user_id, feeds)

    async def import_opml(
        self,
        user_id: str,
        opml_content: str,
        category_overrides: dict[str, str] | None = None,
    ) -> ImportReport:
        """
        Import feeds from OPML content.

        Raises:
            HTTPException: 400 if the OPML is invalid, 500 if feeds could not be saved
        """
        orchestrator = BulkImportOrchestrator(self.db, self._require_fetcher(), self.config, self.health)
        try:
            return await orchestrator.import_opml(user_id, opml_content, category_overrides)
        except OPMLParseError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except StoreWriteError as e:
            raise HTTPException(status_code=500, detail=f"Failed to save feeds: {e}")

    def _export_feeds(self, user_id: str) -> list[OPMLFeed]:
        return [
            OPMLFeed(url=f.url, title=f.title, category=f.category, created_at=f.created_at)
            for f in self.db.get_feeds(user_id)
        ]

    def export_opml(self, user_id: str) -> dict:
        """Export the user's feeds as OPML grouped by category."""
        feeds = self._export_feeds(user_id)
        return {"opml": generate_opml(feeds), "feed_count": len(feeds)}

    def export_csv(self, user_id: str) -> str:
        """Export the user's feeds as CSV."""
        return generate_csv(self._export_feeds(user_id))

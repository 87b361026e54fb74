"""
Tests for article de-duplication, upsert and feed refresh.
"""

import sqlite3
from dataclasses import replace
from unittest.mock import patch

import pytest

from conftest import ATOM_FEED, USER, OTHER_USER
from myfeed.database import NewFeed
from myfeed.exceptions import StoreWriteError
from myfeed.services.feed_health import FeedHealthTracker
from myfeed.services.ingest_service import IngestService, deduplicate_articles

BLOG_URL = "https://blog.example.com/feed.xml"
ATOM_URL = "https://atom.example.com/feed"


@pytest.fixture
def ingest(test_db, fetcher, pipeline):
    return IngestService(test_db, fetcher, pipeline)


class TestDeduplicate:
    """Tests for batch de-duplication."""

    def test_last_row_wins(self, make_article):
        rows = [
            make_article("g-1", "Old title"),
            make_article("g-2", "Other"),
            make_article("g-1", "New title"),
        ]
        unique = deduplicate_articles(rows)
        assert [(row.guid, row.title) for row in unique] == [("g-1", "New title"), ("g-2", "Other")]

    def test_same_guid_different_users_kept(self, make_article):
        rows = [make_article("g-1"), make_article("g-1", user_id=OTHER_USER)]
        assert len(deduplicate_articles(rows)) == 2


class TestUpsert:
    """Tests for the single upsert path."""

    def test_upsert_is_idempotent(self, test_db, ingest, make_article):
        rows = [make_article("g-1"), make_article("g-2")]
        ingest.upsert(rows)
        ingest.upsert(rows)
        assert test_db.articles.count(USER) == 2

    def test_duplicate_batch_writes_once(self, test_db, ingest, make_article):
        written = ingest.upsert([make_article("g-1", "A"), make_article("g-1", "B")])
        assert written == 1
        assert test_db.articles.get_by_guid(USER, "g-1").title == "B"

    def test_update_keeps_reader_state(self, test_db, ingest, make_article):
        ingest.upsert([make_article("g-1", "Before", full_content="Stored body")])
        article = test_db.articles.get_by_guid(USER, "g-1")
        test_db.mark_read(USER, article.id)
        test_db.toggle_bookmark(USER, article.id)

        ingest.upsert([make_article("g-1", "After", full_content=None)])

        updated = test_db.articles.get_by_guid(USER, "g-1")
        assert updated.id == article.id
        assert updated.title == "After"
        assert updated.is_read is True
        assert updated.is_bookmarked is True
        assert updated.full_content == "Stored body"

    def test_store_error_propagates(self, ingest, make_article):
        with patch.object(ingest.db, "upsert_articles", side_effect=StoreWriteError("disk full")):
            with pytest.raises(StoreWriteError):
                ingest.upsert([make_article("g-1")])


class TestRefresh:
    """Tests for refreshing subscribed feeds."""

    @pytest.mark.asyncio
    async def test_refresh_twice_does_not_duplicate(self, test_db, ingest, serve_feed):
        serve_feed(BLOG_URL)
        test_db.add_feed(USER, NewFeed(url=BLOG_URL, title="Blog", category="Tech"))

        first = await ingest.refresh_all(USER)
        count = test_db.articles.count(USER)
        second = await ingest.refresh_all(USER)

        assert first.refreshed == second.refreshed == 1
        assert count == 3
        assert test_db.articles.count(USER) == count

    @pytest.mark.asyncio
    async def test_category_copied_from_feed(self, test_db, ingest, serve_feed):
        serve_feed(BLOG_URL)
        feed_id = test_db.add_feed(USER, NewFeed(url=BLOG_URL, title="Blog", category="Tech"))
        await ingest.refresh_all(USER)

        test_db.update_feed(USER, feed_id, category="News")
        page = test_db.get_articles(USER, category="Tech", read_filter="all")
        assert page.total == 3
        assert all(article.feed_id == feed_id for article in page.articles)

    @pytest.mark.asyncio
    async def test_failures_are_isolated(self, test_db, ingest, serve_feed):
        serve_feed(ATOM_URL, ATOM_FEED)
        good = test_db.add_feed(USER, NewFeed(url=ATOM_URL, title="Atom"))
        bad = test_db.add_feed(USER, NewFeed(url="https://down.example.com/rss", title="Down"))

        report = await ingest.refresh_all(USER)

        assert report.refreshed == 1
        assert report.failed == 1
        assert bad in report.errors
        assert report.articles_upserted == 1

        good_feed = test_db.get_feed(USER, good)
        assert good_feed.last_error is None
        assert good_feed.last_fetched_at is not None
        assert good_feed.article_count == 1

        bad_feed = test_db.get_feed(USER, bad)
        assert "Could not fetch this feed" in bad_feed.last_error
        assert bad_feed.error_count == 1

    @pytest.mark.asyncio
    async def test_success_clears_previous_error(self, test_db, ingest, serve_feed):
        feed_id = test_db.add_feed(USER, NewFeed(url=ATOM_URL, title="Atom"))
        await ingest.refresh_all(USER)
        assert test_db.get_feed(USER, feed_id).error_count == 1

        serve_feed(ATOM_URL, ATOM_FEED)
        await ingest.refresh_all(USER)

        feed = test_db.get_feed(USER, feed_id)
        assert feed.last_error is None
        assert feed.error_count == 0

    @pytest.mark.asyncio
    async def test_articles_per_feed_cap(self, test_db, fetcher, pipeline, serve_feed):
        serve_feed(BLOG_URL)
        test_db.add_feed(USER, NewFeed(url=BLOG_URL, title="Blog"))
        service = IngestService(test_db, fetcher, replace(pipeline, articles_per_feed=2))

        report = await service.refresh_all(USER)
        assert report.articles_upserted == 2

    @pytest.mark.asyncio
    async def test_upsert_failure_is_reported(self, test_db, ingest, serve_feed):
        serve_feed(BLOG_URL)
        test_db.add_feed(USER, NewFeed(url=BLOG_URL, title="Blog"))

        with patch.object(test_db, "upsert_articles", side_effect=StoreWriteError("locked")):
            report = await ingest.refresh_all(USER)

        assert report.refreshed == 1
        assert report.upsert_error == "locked"
        assert test_db.articles.count(USER) == 0

    @pytest.mark.asyncio
    async def test_no_feeds(self, ingest):
        report = await ingest.refresh_all(USER)
        assert report.refreshed == 0
        assert report.failed == 0

    @pytest.mark.asyncio
    async def test_progress(self, test_db, ingest, serve_feed):
        serve_feed(BLOG_URL)
        serve_feed(ATOM_URL, ATOM_FEED)
        test_db.add_feed(USER, NewFeed(url=BLOG_URL, title="Blog"))
        test_db.add_feed(USER, NewFeed(url=ATOM_URL, title="Atom"))

        progress = []
        await ingest.refresh_all(USER, on_progress=lambda done, total: progress.append((done, total)))
        assert progress == [(1, 2), (2, 2)]


class TestFeedHealthTracker:

    def test_store_errors_are_logged_not_raised(self, test_db, caplog):
        tracker = FeedHealthTracker(test_db)
        with patch.object(test_db.feeds, "record_failure", side_effect=sqlite3.OperationalError("locked")):
            tracker.record_failure(USER, 1, "boom")
        assert "Could not record failure" in caplog.text

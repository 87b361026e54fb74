"""
Pytest fixtures for myfeed tests.
"""

import asyncio
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from myfeed.config import PipelineConfig, state
from myfeed.content_extractor import ContentExtractor
from myfeed.database import Database, NewArticle, NewFeed
from myfeed.feed_parser import FeedFetcher
from myfeed.full_text import FullTextResolver
from myfeed.proxies import ProxyResponse, proxy_url
from myfeed.rate_limit import limiter
from myfeed.server import app

USER = "user-1"
OTHER_USER = "user-2"

RSS_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:content="http://purl.org/rss/1.0/modules/content/">
  <channel>
    <title>Example Blog</title>
    <link>https://blog.example.com</link>
    <description>Posts about examples</description>
    <item>
      <title>First post</title>
      <link>https://blog.example.com/first</link>
      <guid>https://blog.example.com/?p=1</guid>
      <pubDate>Tue, 02 Jan 2024 10:00:00 GMT</pubDate>
      <author>alice@example.com (Alice)</author>
      <description>Short teaser for the first post.</description>
      <content:encoded><![CDATA[<p>The first paragraph of the first post.</p><p>The second paragraph.</p>]]></content:encoded>
    </item>
    <item>
      <title>Second post</title>
      <link>https://blog.example.com/second</link>
      <pubDate>Mon, 01 Jan 2024 09:00:00 GMT</pubDate>
      <description>&lt;b&gt;Bold&lt;/b&gt; teaser for the second post.</description>
    </item>
    <item>
      <description>An item with neither title nor link nor guid.</description>
      <pubDate>Sun, 31 Dec 2023 08:00:00 GMT</pubDate>
    </item>
  </channel>
</rss>
"""

ATOM_FEED = """<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Example Atom</title>
  <subtitle>An Atom feed</subtitle>
  <id>urn:uuid:feed</id>
  <updated>2024-02-01T12:00:00Z</updated>
  <entry>
    <title>Atom entry</title>
    <link rel="alternate" href="https://atom.example.com/entry-1"/>
    <id>urn:uuid:entry-1</id>
    <updated>2024-02-01T12:00:00Z</updated>
    <published>2024-01-31T12:00:00Z</published>
    <author><name>Bob</name></author>
    <summary>Atom summary</summary>
    <content type="html">&lt;p&gt;Full atom content.&lt;/p&gt;</content>
  </entry>
</feed>
"""

NOT_A_FEED = """<?xml version="1.0"?>
<html><head><title>Just a page</title></head><body><p>Nothing to see</p></body></html>
"""


@dataclass
class FakeRoute:
    status: int = 200
    text: str = ""
    content_type: str = "text/xml"
    delay: float = 0
    error: Exception | None = None


class FakeProxyClient:
    """Stands in for ProxyClient; maps full proxy URLs to canned replies."""

    def __init__(self):
        self.routes: dict[str, FakeRoute] = {}
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def add(self, url: str, text: str = "", status: int = 200, content_type: str = "text/xml",
            delay: float = 0, error: Exception | None = None):
        self.routes[url] = FakeRoute(status, text, content_type, delay, error)

    async def get(self, url: str) -> ProxyResponse:
        self.calls.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            route = self.routes.get(url)
            if route is None:
                raise ConnectionError(f"No route for {url}")
            if route.delay:
                await asyncio.sleep(route.delay)
            if route.error:
                raise route.error
            return ProxyResponse(status=route.status, content_type=route.content_type, text=route.text)
        finally:
            self.in_flight -= 1


@pytest.fixture
def pipeline():
    """Pipeline settings pointing at fake proxies with short timeouts."""
    return PipelineConfig(
        rss2json_url="https://rss2json.test/api?rss_url={url}",
        allorigins_url="https://allorigins.test/get?url={url}",
        corsproxy_url="https://corsproxy.test/?{url}",
        microlink_url="https://microlink.test/?url={url}",
        feed_fetch_timeout=0.5,
        full_text_timeout=0.5,
    )


@pytest.fixture
def fake_client():
    return FakeProxyClient()


@pytest.fixture
def serve_feed(fake_client, pipeline):
    """Register a feed document behind the corsproxy relay (other proxies fail)."""
    def _serve(feed_url: str, document: str = RSS_FEED, delay: float = 0):
        fake_client.add(proxy_url(pipeline.corsproxy_url, feed_url), document, delay=delay)
    return _serve


@pytest.fixture
def fetcher(fake_client, pipeline):
    return FeedFetcher(fake_client, pipeline)


@pytest.fixture
def resolver(fake_client, pipeline):
    return FullTextResolver(
        fake_client,
        pipeline,
        ContentExtractor(pipeline.extract_min_length, pipeline.extract_max_length),
    )


@pytest.fixture
def temp_db_path():
    """Create a temporary database file path."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        yield Path(f.name)
    if os.path.exists(f.name):
        os.unlink(f.name)


@pytest.fixture
def test_db(temp_db_path):
    """Create a test database instance."""
    yield Database(temp_db_path)


@pytest.fixture
def make_article():
    """Factory for article rows."""
    def _make(guid: str, title: str = "Title", user_id: str = USER, feed_id: int | None = None,
              category: str | None = "General", full_content: str | None = None, pub_date=None):
        return NewArticle(
            user_id=user_id,
            feed_id=feed_id,
            guid=guid,
            title=title,
            link=f"https://example.com/{guid}",
            description=f"Teaser for {title}",
            full_content=full_content,
            author=None,
            pub_date=pub_date,
            category=category,
        )
    return _make


@pytest.fixture
def client(temp_db_path, fake_client, pipeline):
    """Create a test client with isolated database and fake proxies."""
    originals = (
        state.db, state.pipeline, state.proxy_client,
        state.feed_fetcher, state.full_text_resolver,
    )

    state.db = Database(temp_db_path)
    state.pipeline = pipeline
    state.proxy_client = fake_client
    state.feed_fetcher = FeedFetcher(fake_client, pipeline)
    state.full_text_resolver = FullTextResolver(fake_client, pipeline)
    state.refresh_in_progress.clear()
    limiter.reset()

    with TestClient(app, raise_server_exceptions=False, headers={"X-User-Id": USER}) as test_client:
        yield test_client

    (
        state.db, state.pipeline, state.proxy_client,
        state.feed_fetcher, state.full_text_resolver,
    ) = originals
    state.refresh_in_progress.clear()


@pytest.fixture
def client_with_data(client, make_article):
    """Test client with one feed and two articles (one read)."""
    db = state.db
    feed_id = db.add_feed(USER, NewFeed(
        url="https://blog.example.com/feed.xml",
        title="Example Blog",
        category="Tech",
    ))
    db.upsert_articles([
        make_article("a-1", "Read article", feed_id=feed_id, category="Tech",
                     full_content="word " * 400),
        make_article("a-2", "Unread article", feed_id=feed_id, category="Tech"),
    ])
    first = db.articles.get_by_guid(USER, "a-1")
    second = db.articles.get_by_guid(USER, "a-2")
    db.mark_read(USER, first.id, True)

    return client, {"feed_id": feed_id, "article_ids": [first.id, second.id]}

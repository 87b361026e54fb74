"""
Feed Parser - Fetch and normalize RSS/Atom feeds through CORS proxies.

Handles:
- Racing three proxy strategies (rss2json, allorigins, corsproxy)
- RSS 2.0 and Atom documents via feedparser, rss2json's pre-parsed JSON
- Format-specific normalizers converging on one RawFeedItem shape
- Teaser and full-text derivation from embedded content
- Stable guid fallback for items without guid or link
"""

import hashlib
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from enum import Enum
from time import struct_time
from typing import Any
from xml.sax import SAXParseException

import feedparser

from .config import PipelineConfig
from .content_extractor import html_to_text, strip_html
from .exceptions import AllStrategiesFailedError, FeedFetchError, FeedFormatError
from .proxies import ProxyClient, proxy_url, unwrap_body
from .proxy_race import Strategy, race

logger = logging.getLogger(__name__)


class FeedFormat(str, Enum):
    """Detected shape of a fetched feed."""
    RSS = "rss"
    ATOM = "atom"
    JSON = "json"  # rss2json's pre-parsed representation


@dataclass
class RawFeedItem:
    """One normalized item, consumed immediately by the upsert step."""
    title: str
    link: str
    teaser: str
    full_text: str | None
    pub_date: datetime | None
    author: str
    guid: str


@dataclass
class ParsedFeed:
    """A normalized feed document."""
    url: str
    title: str
    description: str
    format: FeedFormat
    items: list[RawFeedItem] = field(default_factory=list)


# ─────────────────────────────────────────────────────────────
# Normalization helpers
# ─────────────────────────────────────────────────────────────

def stable_guid(feed_url: str, title: str, pub_date: str) -> str:
    """Deterministic identifier for items carrying neither guid nor link."""
    digest = hashlib.sha256(f"{feed_url}|{title}|{pub_date}".encode()).hexdigest()[:32]
    return f"urn:myfeed:{digest}"


def _struct_to_datetime(value: struct_time | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime(*value[:6], tzinfo=timezone.utc)
    except (TypeError, ValueError):
        return None


def parse_date(value: str | None) -> datetime | None:
    """Parse ISO-8601 ("2024-01-02 10:00:00") or RFC 822 date strings."""
    if not value:
        return None
    value = value.strip()
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        try:
            parsed = parsedate_to_datetime(value)
        except (TypeError, ValueError):
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _make_item(
    feed_url: str,
    config: PipelineConfig,
    title: str | None,
    link: str | None,
    raw_content: str,
    teaser_source: str,
    pub_date: datetime | None,
    raw_date: str,
    author: str | None,
    guid: str | None,
) -> RawFeedItem:
    title = (title or "").strip() or "Untitled"
    link = (link or "").strip()
    guid = (guid or "").strip() or link or stable_guid(feed_url, title, raw_date)
    full_text = html_to_text(raw_content)
    return RawFeedItem(
        title=title,
        link=link,
        teaser=strip_html(teaser_source)[:config.teaser_length],
        full_text=full_text or None,
        pub_date=pub_date,
        author=(author or "").strip(),
        guid=guid,
    )


def _entry_content(entry: Any) -> str:
    """Prefer the full-content field (content:encoded / atom:content) over summary."""
    contents = entry.get("content") or []
    for content in contents:
        value = content.get("value")
        if value:
            return value
    return entry.get("summary") or entry.get("description") or ""


def _normalize_rss_entry(entry: Any, feed_url: str, config: PipelineConfig) -> RawFeedItem:
    raw_content = _entry_content(entry)
    # dc:date surfaces as "updated" in feedparser
    raw_date = entry.get("published") or entry.get("updated") or ""
    pub_date = _struct_to_datetime(entry.get("published_parsed") or entry.get("updated_parsed"))
    return _make_item(
        feed_url, config,
        title=entry.get("title"),
        link=entry.get("link"),
        raw_content=raw_content,
        teaser_source=raw_content,
        pub_date=pub_date,
        raw_date=raw_date,
        author=entry.get("author"),
        guid=entry.get("id"),
    )


def _atom_link(entry: Any) -> str:
    link = entry.get("link")
    if link:
        return link
    for candidate in entry.get("links") or []:
        if candidate.get("rel", "alternate") == "alternate" and candidate.get("href"):
            return candidate["href"]
    return ""


def _normalize_atom_entry(entry: Any, feed_url: str, config: PipelineConfig) -> RawFeedItem:
    raw_content = _entry_content(entry)
    raw_date = entry.get("updated") or entry.get("published") or ""
    pub_date = _struct_to_datetime(entry.get("updated_parsed") or entry.get("published_parsed"))
    author_detail = entry.get("author_detail") or {}
    return _make_item(
        feed_url, config,
        title=entry.get("title"),
        link=_atom_link(entry),
        raw_content=raw_content,
        teaser_source=raw_content,
        pub_date=pub_date,
        raw_date=raw_date,
        author=author_detail.get("name") or entry.get("author"),
        guid=entry.get("id"),
    )


def _normalize_json_item(item: dict, feed_url: str, config: PipelineConfig) -> RawFeedItem:
    raw_date = item.get("pubDate") or ""
    return _make_item(
        feed_url, config,
        title=item.get("title"),
        link=item.get("link"),
        raw_content=item.get("content") or item.get("description") or "",
        teaser_source=item.get("description") or item.get("content") or "",
        pub_date=parse_date(raw_date),
        raw_date=raw_date,
        author=item.get("author"),
        guid=item.get("guid"),
    )


# ─────────────────────────────────────────────────────────────
# Document parsing
# ─────────────────────────────────────────────────────────────

def is_malformed(error: BaseException | None) -> bool:
    """
    Whether a feedparser bozo error means the XML itself is broken.

    A truncated or otherwise ill-formed body still yields the items before
    the break; those must not count as the feed. Encoding overrides and
    undefined HTML entities are tolerated.
    """
    if isinstance(error, feedparser.NonXMLContentType):
        return True
    if isinstance(error, SAXParseException):
        return "undefined entity" not in str(error)
    return False


def detect_format(parsed: Any) -> FeedFormat | None:
    """Classify a feedparser result as RSS, Atom, or neither."""
    version = parsed.get("version") or ""
    if version.startswith("atom"):
        return FeedFormat.ATOM
    if version.startswith("rss"):
        return FeedFormat.RSS
    return None


def parse_feed_document(content: str, feed_url: str, config: PipelineConfig | None = None) -> ParsedFeed:
    """
    Parse an RSS or Atom document.

    Raises:
        FeedFormatError: If the XML is unparseable or has no channel/feed root
    """
    config = config or PipelineConfig()
    if not content or not content.strip():
        raise FeedFormatError("Empty response from proxy")

    parsed = feedparser.parse(content)

    if parsed.bozo and (not parsed.entries or is_malformed(parsed.get("bozo_exception"))):
        raise FeedFormatError(f"Invalid XML: {parsed.get('bozo_exception')}")

    feed_format = detect_format(parsed)
    if feed_format is None:
        raise FeedFormatError("No RSS channel or Atom feed element found")
    if not parsed.feed and not parsed.entries:
        raise FeedFormatError(f"No {'feed' if feed_format is FeedFormat.ATOM else 'channel'} found")

    normalize = _normalize_atom_entry if feed_format is FeedFormat.ATOM else _normalize_rss_entry
    items = [
        normalize(entry, feed_url, config)
        for entry in parsed.entries[:config.max_feed_items]
    ]

    return ParsedFeed(
        url=feed_url,
        title=parsed.feed.get("title") or feed_url,
        description=parsed.feed.get("subtitle") or parsed.feed.get("description") or "",
        format=feed_format,
        items=items,
    )


def parse_json_feed(data: Any, feed_url: str, config: PipelineConfig | None = None) -> ParsedFeed:
    """
    Normalize rss2json's response.

    Raises:
        FeedFormatError: If the converter reports an error
    """
    config = config or PipelineConfig()
    if not isinstance(data, dict) or data.get("status") != "ok":
        message = data.get("message") if isinstance(data, dict) else None
        raise FeedFormatError(f"rss2json error: {message or 'unexpected response'}")

    feed_meta = data.get("feed") or {}
    items = [
        _normalize_json_item(item, feed_url, config)
        for item in (data.get("items") or [])[:config.max_feed_items]
        if isinstance(item, dict)
    ]
    return ParsedFeed(
        url=feed_url,
        title=feed_meta.get("title") or feed_url,
        description=feed_meta.get("description") or "",
        format=FeedFormat.JSON,
        items=items,
    )


# ─────────────────────────────────────────────────────────────
# Fetching
# ─────────────────────────────────────────────────────────────

class FeedFetcher:
    """Fetches feeds by racing several proxy strategies."""

    def __init__(self, client: ProxyClient, config: PipelineConfig | None = None):
        self.client = client
        self.config = config or PipelineConfig()

    async def fetch(self, url: str) -> ParsedFeed:
        """
        Fetch and parse a feed URL.

        Raises:
            FeedFetchError: If every proxy strategy failed
        """
        strategies = [
            Strategy("rss2json", lambda: self._fetch_via_rss2json(url)),
            Strategy("allorigins", lambda: self._fetch_via_relay(self.config.allorigins_url, url)),
            Strategy("corsproxy", lambda: self._fetch_via_relay(self.config.corsproxy_url, url)),
        ]
        try:
            feed = await race(strategies, timeout=self.config.feed_fetch_timeout)
        except AllStrategiesFailedError as e:
            logger.warning(f"All proxies failed for {url}: {[str(err) for err in e.errors]}")
            raise FeedFetchError() from e

        logger.info(f"Fetched {url} as {feed.format.value} ({len(feed.items)} items)")
        return feed

    async def validate(self, url: str) -> tuple[bool, str | None]:
        """Check whether a URL is a fetchable feed. Returns (valid, title)."""
        try:
            feed = await self.fetch(url)
        except FeedFetchError:
            return False, None
        return True, feed.title

    async def _fetch_via_rss2json(self, url: str) -> ParsedFeed:
        response = await self.client.get(proxy_url(self.config.rss2json_url, url))
        if not response.ok:
            raise FeedFormatError(f"rss2json failed with HTTP {response.status}")
        return parse_json_feed(response.json(), url, self.config)

    async def _fetch_via_relay(self, template: str, url: str) -> ParsedFeed:
        response = await self.client.get(proxy_url(template, url))
        if not response.ok:
            raise FeedFormatError(f"Proxy request failed with HTTP {response.status}")
        document = unwrap_body(response)
        return parse_feed_document(document, url, self.config)

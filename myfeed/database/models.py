"""
Database models - dataclasses for database entities.
"""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class DBFolder:
    id: int
    user_id: str
    name: str
    position: int
    created_at: datetime | None = None


@dataclass
class DBFeed:
    id: int
    user_id: str
    url: str
    title: str
    category: str
    folder_id: int | None
    feed_type: str
    last_fetched_at: datetime | None
    last_error: str | None = None
    error_count: int = 0
    article_count: int = 0
    created_at: datetime | None = None


@dataclass
class DBArticle:
    id: int
    user_id: str
    feed_id: int | None
    guid: str
    title: str
    link: str | None
    description: str | None  # Teaser, at most 280 characters
    full_content: str | None
    author: str | None
    pub_date: datetime | None
    category: str | None  # Copied from the feed at ingestion time
    is_read: bool
    is_bookmarked: bool
    is_read_later: bool
    created_at: datetime | None = None

    # Joined from feeds when available
    feed_title: str | None = None
    feed_url: str | None = None


@dataclass
class NewFeed:
    """A feed row about to be inserted."""
    url: str
    title: str
    category: str = "General"
    feed_type: str = "rss"
    folder_id: int | None = None


@dataclass
class NewArticle:
    """An article row about to be upserted on (user_id, guid)."""
    user_id: str
    feed_id: int | None
    guid: str
    title: str
    link: str
    description: str
    full_content: str | None
    author: str | None
    pub_date: datetime | None
    category: str | None

    @property
    def key(self) -> tuple[str, str]:
        return (self.user_id, self.guid)


@dataclass
class ArticlePage:
    articles: list[DBArticle]
    total: int
    has_more: bool


@dataclass
class ArticleStats:
    total: int
    read: int
    unread: int
    bookmarked: int
    read_later: int
    read_pct: int
    by_category: dict[str, int]


@dataclass
class DigestGroup:
    category: str
    articles: list[DBArticle]

    @property
    def unread(self) -> int:
        return sum(1 for article in self.articles if not article.is_read)


@dataclass
class Digest:
    """Recent articles grouped by category, largest group first."""
    since: datetime
    groups: list[DigestGroup]

    @property
    def total(self) -> int:
        return sum(len(group.articles) for group in self.groups)

    @property
    def unread(self) -> int:
        return sum(group.unread for group in self.groups)

"""
Pydantic models for API request/response validation.
"""

from pydantic import BaseModel, Field

from .database import ArticlePage, ArticleStats, DBArticle, DBFeed, DBFolder, Digest
from .full_text import FullTextResult
from .newsletters import NewsletterInbox
from .opml import OPMLFeed
from .services import ImportReport, RefreshReport


# ─────────────────────────────────────────────────────────────
# Feed Schemas
# ─────────────────────────────────────────────────────────────

class FeedResponse(BaseModel):
    """A subscribed feed with its health."""
    id: int
    url: str
    title: str
    category: str
    folder_id: int | None
    feed_type: str
    last_fetched_at: str | None
    last_error: str | None
    error_count: int
    article_count: int
    created_at: str | None

    @classmethod
    def from_db(cls, feed: DBFeed) -> "FeedResponse":
        return cls(
            id=feed.id,
            url=feed.url,
            title=feed.title,
            category=feed.category,
            folder_id=feed.folder_id,
            feed_type=feed.feed_type,
            last_fetched_at=feed.last_fetched_at.isoformat() if feed.last_fetched_at else None,
            last_error=feed.last_error,
            error_count=feed.error_count,
            article_count=feed.article_count,
            created_at=feed.created_at.isoformat() if feed.created_at else None,
        )


class AddFeedRequest(BaseModel):
    """Request to subscribe to a feed."""
    url: str
    title: str | None = None
    category: str | None = None
    folder_id: int | None = None


class UpdateFeedRequest(BaseModel):
    """Request to rename or recategorise a feed."""
    title: str | None = None
    category: str | None = None


class MoveFeedRequest(BaseModel):
    """Request to file a feed under a folder (null to unfile)."""
    folder_id: int | None = None


class ValidateFeedRequest(BaseModel):
    url: str


class ValidateFeedResponse(BaseModel):
    valid: bool
    title: str | None = None


class RefreshResponse(BaseModel):
    """Outcome of a refresh."""
    success: bool
    message: str
    refreshed: int = 0
    failed: int = 0
    articles_upserted: int = 0
    errors: dict[int, str] = Field(default_factory=dict)

    @classmethod
    def from_report(cls, report: RefreshReport) -> "RefreshResponse":
        return cls(
            success=report.upsert_error is None,
            message=report.upsert_error or "Refresh complete",
            refreshed=report.refreshed,
            failed=report.failed,
            articles_upserted=report.articles_upserted,
            errors=report.errors,
        )


# ─────────────────────────────────────────────────────────────
# OPML Schemas
# ─────────────────────────────────────────────────────────────

class OPMLImportRequest(BaseModel):
    """Request to import feeds from OPML."""
    opml_content: str
    category_overrides: dict[str, str] = Field(default_factory=dict)


class OPMLFeedResponse(BaseModel):
    url: str
    title: str
    category: str

    @classmethod
    def from_opml(cls, feed: OPMLFeed) -> "OPMLFeedResponse":
        return cls(url=feed.url, title=feed.title, category=feed.category)


class OPMLPreviewResponse(BaseModel):
    """Feeds found in an OPML file, split by whether they are new."""
    new_feeds: list[OPMLFeedResponse]
    duplicates: list[OPMLFeedResponse]


class OPMLImportResponse(BaseModel):
    """Response from OPML import."""
    total: int
    succeeded: int
    skipped: int
    fetch_failed: int
    articles_upserted: int
    duplicates: list[str]
    feed_ids: dict[str, int]

    @classmethod
    def from_report(cls, report: ImportReport) -> "OPMLImportResponse":
        return cls(
            total=report.total,
            succeeded=report.succeeded,
            skipped=report.skipped,
            fetch_failed=report.fetch_failed,
            articles_upserted=report.articles_upserted,
            duplicates=report.duplicates,
            feed_ids=report.feed_ids,
        )


# ─────────────────────────────────────────────────────────────
# Newsletter Schemas
# ─────────────────────────────────────────────────────────────

class SubstackRequest(BaseModel):
    """A Substack name, host or URL."""
    publication: str


class NewsletterFeedRequest(BaseModel):
    """Request to add a newsletter bridge feed once the inbox is subscribed."""
    feed_url: str
    title: str = "Email Newsletter"


class NewsletterInboxResponse(BaseModel):
    email: str
    feed_url: str

    @classmethod
    def from_inbox(cls, inbox: NewsletterInbox) -> "NewsletterInboxResponse":
        return cls(email=inbox.email, feed_url=inbox.feed_url)


# ─────────────────────────────────────────────────────────────
# Article Schemas
# ─────────────────────────────────────────────────────────────

class ArticleResponse(BaseModel):
    """Article for list view."""
    id: int
    feed_id: int | None
    guid: str
    title: str
    link: str | None
    description: str | None
    author: str | None
    pub_date: str | None
    category: str | None
    is_read: bool
    is_bookmarked: bool
    is_read_later: bool
    feed_title: str | None = None

    @classmethod
    def from_db(cls, article: DBArticle) -> "ArticleResponse":
        return cls(
            id=article.id,
            feed_id=article.feed_id,
            guid=article.guid,
            title=article.title,
            link=article.link,
            description=article.description,
            author=article.author,
            pub_date=article.pub_date.isoformat() if article.pub_date else None,
            category=article.category,
            is_read=article.is_read,
            is_bookmarked=article.is_bookmarked,
            is_read_later=article.is_read_later,
            feed_title=article.feed_title,
        )


class ArticleDetailResponse(ArticleResponse):
    """Article with stored content for detail view."""
    full_content: str | None = None

    @classmethod
    def from_db(cls, article: DBArticle) -> "ArticleDetailResponse":
        base = ArticleResponse.from_db(article)
        return cls(**base.model_dump(), full_content=article.full_content)


class ArticlePageResponse(BaseModel):
    """One page of articles."""
    articles: list[ArticleResponse]
    total: int
    has_more: bool

    @classmethod
    def from_page(cls, page: ArticlePage) -> "ArticlePageResponse":
        return cls(
            articles=[ArticleResponse.from_db(a) for a in page.articles],
            total=page.total,
            has_more=page.has_more,
        )


class BulkMarkReadRequest(BaseModel):
    """Request to mark multiple articles as read/unread."""
    article_ids: list[int]
    is_read: bool = True


class FullTextResponse(BaseModel):
    """Resolved full text. available=False means link out to the original."""
    article_id: int
    link: str | None
    available: bool
    content: str | None = None
    source: str | None = None
    reading_time_minutes: int | None = None

    @classmethod
    def from_result(cls, article: DBArticle, result: FullTextResult | None) -> "FullTextResponse":
        if result is None:
            return cls(article_id=article.id, link=article.link, available=False)
        return cls(
            article_id=article.id,
            link=article.link,
            available=True,
            content=result.content,
            source=result.source.value,
            reading_time_minutes=result.reading_time_minutes,
        )


class StatsResponse(BaseModel):
    """Reading statistics."""
    total: int
    read: int
    unread: int
    bookmarked: int
    read_later: int
    read_pct: int
    by_category: dict[str, int]

    @classmethod
    def from_stats(cls, stats: ArticleStats) -> "StatsResponse":
        return cls(
            total=stats.total,
            read=stats.read,
            unread=stats.unread,
            bookmarked=stats.bookmarked,
            read_later=stats.read_later,
            read_pct=stats.read_pct,
            by_category=stats.by_category,
        )


class DigestGroupResponse(BaseModel):
    category: str
    unread: int
    articles: list[ArticleResponse]


class DigestResponse(BaseModel):
    """Recent articles grouped by category."""
    since: str
    total: int
    unread: int
    groups: list[DigestGroupResponse]

    @classmethod
    def from_digest(cls, digest: Digest) -> "DigestResponse":
        return cls(
            since=digest.since.isoformat(),
            total=digest.total,
            unread=digest.unread,
            groups=[
                DigestGroupResponse(
                    category=group.category,
                    unread=group.unread,
                    articles=[ArticleResponse.from_db(a) for a in group.articles],
                )
                for group in digest.groups
            ],
        )


# ─────────────────────────────────────────────────────────────
# Folder Schemas
# ─────────────────────────────────────────────────────────────

class FolderResponse(BaseModel):
    id: int
    name: str
    position: int

    @classmethod
    def from_db(cls, folder: DBFolder) -> "FolderResponse":
        return cls(id=folder.id, name=folder.name, position=folder.position)


class CreateFolderRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)


class UpdateFolderRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    position: int | None = Field(default=None, ge=0)

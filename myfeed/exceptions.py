"""
Domain exceptions and HTTP exception utilities.

Pipeline code raises the domain errors below; routes translate them into
HTTP responses. The require_* helpers reduce boilerplate for 404s.
"""

from typing import TypeVar

from fastapi import HTTPException

T = TypeVar("T")


class MyFeedError(Exception):
    """Base class for pipeline errors."""


class AllStrategiesFailedError(MyFeedError):
    """Raised when every strategy in a race failed or timed out."""

    def __init__(self, errors: list[BaseException], message: str = "All strategies exhausted"):
        super().__init__(message)
        self.errors = errors


class FeedFetchError(MyFeedError):
    """A feed could not be fetched through any proxy."""

    def __init__(self, message: str = "Could not fetch this feed. All proxies failed."):
        super().__init__(message)


class FeedFormatError(MyFeedError):
    """A proxy returned something that is not a usable RSS/Atom document."""


class OPMLParseError(MyFeedError):
    """An OPML file was unreadable or contained no feeds."""


class StoreWriteError(MyFeedError):
    """The article/feed store rejected a write."""


def require_resource(resource: T | None, detail: str = "Resource not found") -> T:
    """
    Raise 404 if resource is None, otherwise return the resource.

    Usage:
        article = require_resource(db.get_article(user_id, id), "Article not found")
    """
    if resource is None:
        raise HTTPException(status_code=404, detail=detail)
    return resource


def require_article(article: T | None) -> T:
    """Raise 404 if article is None."""
    return require_resource(article, "Article not found")


def require_feed(feed: T | None) -> T:
    """Raise 404 if feed is None."""
    return require_resource(feed, "Feed not found")


def require_folder(folder: T | None) -> T:
    """Raise 404 if folder is None."""
    return require_resource(folder, "Folder not found")

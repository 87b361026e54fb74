"""
Database module - SQLite storage for feeds, articles and folders.

Uses repository pattern for better separation of concerns.
"""

from .connection import DatabaseConnection
from .models import (
    ArticlePage,
    ArticleStats,
    DBArticle,
    DBFeed,
    DBFolder,
    Digest,
    DigestGroup,
    NewArticle,
    NewFeed,
)
from .article_repository import ArticleRepository
from .feed_repository import FeedRepository
from .folder_repository import FolderRepository
from .database import Database

__all__ = [
    "Database",
    "DatabaseConnection",
    "ArticlePage",
    "ArticleStats",
    "DBArticle",
    "DBFeed",
    "DBFolder",
    "Digest",
    "DigestGroup",
    "NewArticle",
    "NewFeed",
    "ArticleRepository",
    "FeedRepository",
    "FolderRepository",
]

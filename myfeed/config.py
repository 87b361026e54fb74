"""
Configuration and application state management.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from dotenv import load_dotenv
from fastapi import HTTPException

if TYPE_CHECKING:
    from .database import Database
    from .feed_parser import FeedFetcher
    from .full_text import FullTextResolver
    from .proxies import ProxyClient

# Load environment variables
load_dotenv()


def _parse_int(value: str | None, default: int) -> int:
    """Parse a positive integer from an environment variable."""
    try:
        parsed = int(value) if value is not None else default
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _parse_float(value: str | None, default: float) -> float:
    """Parse a positive float from an environment variable."""
    try:
        parsed = float(value) if value is not None else default
    except ValueError:
        return default
    return parsed if parsed > 0 else default


class Config:
    """Application configuration from environment."""
    DB_PATH: Path = Path(os.getenv("DB_PATH", "./data/myfeed.db"))
    PORT: int = int(os.getenv("PORT", "5005"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    RATE_LIMIT_PER_MINUTE: int = int(os.getenv("RATE_LIMIT_PER_MINUTE", "120"))
    USER_AGENT: str = os.getenv(
        "USER_AGENT",
        "Mozilla/5.0 (compatible; myFeed/1.0; +https://github.com/myfeed)"
    )

    # Timeouts (seconds) applied to each individual proxy strategy
    FEED_FETCH_TIMEOUT: float = _parse_float(os.getenv("FEED_FETCH_TIMEOUT"), 8.0)
    FULL_TEXT_TIMEOUT: float = _parse_float(os.getenv("FULL_TEXT_TIMEOUT"), 5.0)

    # Fan-out limits
    IMPORT_CONCURRENCY: int = _parse_int(os.getenv("IMPORT_CONCURRENCY"), 8)
    REFRESH_CONCURRENCY: int = _parse_int(os.getenv("REFRESH_CONCURRENCY"), 8)
    ARTICLES_PER_FEED: int = _parse_int(os.getenv("ARTICLES_PER_FEED"), 10)

    # Third-party proxies. "{url}" is replaced with the percent-encoded target.
    RSS2JSON_URL: str = os.getenv(
        "RSS2JSON_URL", "https://api.rss2json.com/v1/api.json?rss_url={url}"
    )
    ALLORIGINS_URL: str = os.getenv(
        "ALLORIGINS_URL", "https://api.allorigins.win/get?url={url}"
    )
    CORSPROXY_URL: str = os.getenv("CORSPROXY_URL", "https://corsproxy.io/?{url}")
    MICROLINK_URL: str = os.getenv(
        "MICROLINK_URL",
        "https://api.microlink.io/?url={url}&meta=false&video=false&audio=false&screenshot=false",
    )


config = Config()


@dataclass(frozen=True)
class PipelineConfig:
    """
    Knobs for the ingestion and full-text pipeline.

    Passed explicitly to every pipeline component so tests can swap in
    fake endpoints and short timeouts.
    """
    rss2json_url: str = Config.RSS2JSON_URL
    allorigins_url: str = Config.ALLORIGINS_URL
    corsproxy_url: str = Config.CORSPROXY_URL
    microlink_url: str = Config.MICROLINK_URL

    feed_fetch_timeout: float = 8.0
    full_text_timeout: float = 5.0

    max_feed_items: int = 20
    teaser_length: int = 280
    articles_per_feed: int = 10

    # Full-text tiers
    stored_content_min_length: int = 300
    partial_content_min_length: int = 0  # 0 accepts any non-blank stored text
    metadata_api_min_length: int = 100
    html_proxy_min_length: int = 150

    # HTML extraction
    extract_min_length: int = 200
    extract_max_length: int = 5000

    import_concurrency: int = 8
    refresh_concurrency: int = 8

    default_category: str = "General"
    user_agent: str = field(default=Config.USER_AGENT)

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        """Build pipeline settings from the environment-backed Config."""
        return cls(
            rss2json_url=config.RSS2JSON_URL,
            allorigins_url=config.ALLORIGINS_URL,
            corsproxy_url=config.CORSPROXY_URL,
            microlink_url=config.MICROLINK_URL,
            feed_fetch_timeout=config.FEED_FETCH_TIMEOUT,
            full_text_timeout=config.FULL_TEXT_TIMEOUT,
            articles_per_feed=config.ARTICLES_PER_FEED,
            import_concurrency=config.IMPORT_CONCURRENCY,
            refresh_concurrency=config.REFRESH_CONCURRENCY,
            user_agent=config.USER_AGENT,
        )


class AppState:
    """Shared application state."""

    def __init__(self):
        self.db: "Database | None" = None
        self.pipeline: PipelineConfig | None = None
        self.proxy_client: "ProxyClient | None" = None
        self.feed_fetcher: "FeedFetcher | None" = None
        self.full_text_resolver: "FullTextResolver | None" = None
        # User ids with a manual refresh running.
        self.refresh_in_progress: set[str] = set()


state = AppState()


def get_db() -> "Database":
    """Dependency to get database instance."""
    if not state.db:
        raise HTTPException(status_code=500, detail="Database not initialized")
    return state.db

"""
Feed health: last success/failure bookkeeping per feed.

Recording health never interrupts the caller. A store error while stamping
a feed is logged and the refresh or import carries on.
"""

import logging
import sqlite3

from ..database import Database

logger = logging.getLogger(__name__)

UNKNOWN_ERROR = "Unknown error"


class FeedHealthTracker:
    """Stamps fetch outcomes onto feed rows."""

    def __init__(self, db: Database):
        self.db = db

    def record_success(self, user_id: str, feed_id: int, article_count: int | None = None) -> None:
        """Clear the feed's error, stamp the fetch time and optionally its article count."""
        try:
            self.db.feeds.record_success(user_id, feed_id, article_count)
        except sqlite3.Error as e:
            logger.error(f"Could not record success for feed {feed_id}: {e}")

    def record_failure(self, user_id: str, feed_id: int, error: str | None) -> None:
        """Stamp the fetch time and keep the error message."""
        try:
            self.db.feeds.record_failure(user_id, feed_id, error or UNKNOWN_ERROR)
        except sqlite3.Error as e:
            logger.error(f"Could not record failure for feed {feed_id}: {e}")

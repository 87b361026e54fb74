"""
Background tasks for feed refreshing.
"""

import logging

from .config import PipelineConfig, state
from .services.ingest_service import IngestService, RefreshReport

logger = logging.getLogger(__name__)


async def refresh_user_feeds(user_id: str) -> RefreshReport | None:
    """Background task to refresh all of a user's feeds."""
    if not state.db or not state.feed_fetcher:
        logger.warning("Refresh skipped: database or feed fetcher not initialized")
        return None
    if user_id in state.refresh_in_progress:
        logger.info(f"Refresh already in progress for user {user_id}")
        return None

    state.refresh_in_progress.add(user_id)
    try:
        ingest = IngestService(state.db, state.feed_fetcher, state.pipeline or PipelineConfig())
        return await ingest.refresh_all(user_id)
    except Exception:
        logger.exception(f"Background refresh failed for user {user_id}")
        return None
    finally:
        state.refresh_in_progress.discard(user_id)

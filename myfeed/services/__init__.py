"""
Service layer for business logic.

Services encapsulate business logic, keeping routes as thin HTTP adapters.
Each service receives its dependencies via constructor injection.

Usage in routes:
    from ..services import FeedServiceDep

    @router.get("/feeds")
    async def list_feeds(
        service: FeedServiceDep,
        user_id: Annotated[str, Depends(get_current_user)]
    ):
        return service.list_feeds(user_id)
"""

from typing import Annotated

from fastapi import Depends

from ..config import PipelineConfig, get_db, state
from ..database import Database

from .article_service import ArticleService
from .feed_health import FeedHealthTracker
from .feed_service import FeedService
from .import_service import BulkImportOrchestrator, ImportReport
from .ingest_service import IngestService, RefreshReport, deduplicate_articles

__all__ = [
    # Services
    "ArticleService",
    "BulkImportOrchestrator",
    "FeedHealthTracker",
    "FeedService",
    "IngestService",
    # Results
    "ImportReport",
    "RefreshReport",
    "deduplicate_articles",
    # Dependency factories
    "get_article_service",
    "get_feed_service",
    # Type aliases for dependency injection
    "ArticleServiceDep",
    "FeedServiceDep",
]


def get_article_service(db: Annotated[Database, Depends(get_db)]) -> ArticleService:
    """Dependency to get ArticleService instance."""
    return ArticleService(db=db, resolver=state.full_text_resolver)


def get_feed_service(db: Annotated[Database, Depends(get_db)]) -> FeedService:
    """Dependency to get FeedService instance."""
    return FeedService(
        db=db,
        fetcher=state.feed_fetcher,
        config=state.pipeline or PipelineConfig(),
    )


ArticleServiceDep = Annotated[ArticleService, Depends(get_article_service)]
FeedServiceDep = Annotated[FeedService, Depends(get_feed_service)]

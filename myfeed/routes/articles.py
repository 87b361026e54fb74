"""
Article routes: listing, search, digest, state, stats and full text.
"""

from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query

from ..auth import get_current_user
from ..schemas import (
    ArticleDetailResponse,
    ArticlePageResponse,
    ArticleResponse,
    BulkMarkReadRequest,
    DigestResponse,
    FullTextResponse,
    StatsResponse,
)
from ..services import ArticleServiceDep

router = APIRouter(prefix="/articles", tags=["articles"])

UserId = Annotated[str, Depends(get_current_user)]


@router.get("")
async def list_articles(
    service: ArticleServiceDep,
    user_id: UserId,
    category: str | None = None,
    read_filter: Literal["unread", "read", "all"] = "unread",
    feed_id: int | None = None,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
) -> ArticlePageResponse:
    """List articles newest first, one page at a time."""
    page = service.list_articles(user_id, category, read_filter, feed_id, limit, offset)
    return ArticlePageResponse.from_page(page)


@router.get("/read-later")
async def list_read_later(service: ArticleServiceDep, user_id: UserId) -> list[ArticleResponse]:
    """Articles saved for later."""
    return [ArticleResponse.from_db(a) for a in service.list_read_later(user_id)]


@router.get("/stats")
async def get_stats(service: ArticleServiceDep, user_id: UserId) -> StatsResponse:
    """Reading statistics."""
    return StatsResponse.from_stats(service.get_stats(user_id))


@router.get("/search")
async def search_articles(
    service: ArticleServiceDep,
    user_id: UserId,
    q: str = Query(max_length=200),
    limit: int = Query(default=20, ge=1, le=100),
) -> list[ArticleResponse]:
    """Search titles, teasers and authors, newest first."""
    return [ArticleResponse.from_db(a) for a in service.search(user_id, q, limit)]


@router.get("/digest")
async def get_digest(
    service: ArticleServiceDep,
    user_id: UserId,
    period: Literal["today", "week"] = Query(default="today", alias="range"),
) -> DigestResponse:
    """Today's or this week's articles grouped by category."""
    return DigestResponse.from_digest(service.get_digest(user_id, period))


@router.post("/bulk/read")
async def bulk_mark_read(
    request: BulkMarkReadRequest,
    service: ArticleServiceDep,
    user_id: UserId,
) -> dict:
    """Mark multiple articles as read/unread."""
    count = service.bulk_mark_read(user_id, request.article_ids, request.is_read)
    return {"success": True, "count": count}


@router.post("/read-all")
async def mark_all_read(service: ArticleServiceDep, user_id: UserId) -> dict:
    """Mark every unread article as read."""
    return {"success": True, "count": service.mark_all_read(user_id)}


@router.delete("")
async def clear_articles(
    service: ArticleServiceDep,
    user_id: UserId,
    feed_id: int | None = None,
) -> dict:
    """Delete all articles, or only one feed's."""
    return {"success": True, "count": service.clear_articles(user_id, feed_id)}


@router.get("/{article_id}")
async def get_article(article_id: int, service: ArticleServiceDep, user_id: UserId) -> ArticleDetailResponse:
    """Get one article with its stored content."""
    return ArticleDetailResponse.from_db(service.get_article(user_id, article_id))


@router.get("/{article_id}/full-text")
async def get_full_text(article_id: int, service: ArticleServiceDep, user_id: UserId) -> FullTextResponse:
    """Resolve the best available full text for an article."""
    article, result = await service.get_full_text(user_id, article_id)
    return FullTextResponse.from_result(article, result)


@router.post("/{article_id}/read")
async def mark_read(
    article_id: int,
    service: ArticleServiceDep,
    user_id: UserId,
    is_read: bool = True,
) -> dict:
    """Mark article as read/unread."""
    service.mark_read(user_id, article_id, is_read)
    return {"success": True, "is_read": is_read}


@router.post("/{article_id}/bookmark")
async def toggle_bookmark(article_id: int, service: ArticleServiceDep, user_id: UserId) -> dict:
    """Toggle bookmark status."""
    return {"success": True, "is_bookmarked": service.toggle_bookmark(user_id, article_id)}


@router.post("/{article_id}/read-later")
async def toggle_read_later(article_id: int, service: ArticleServiceDep, user_id: UserId) -> dict:
    """Toggle read-later status."""
    return {"success": True, "is_read_later": service.toggle_read_later(user_id, article_id)}

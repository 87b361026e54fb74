"""
Feed routes: management, refresh, newsletters, OPML/CSV import and export.
"""

from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends
from fastapi.responses import PlainTextResponse

from ..auth import get_current_user
from ..schemas import (
    AddFeedRequest,
    FeedResponse,
    MoveFeedRequest,
    NewsletterFeedRequest,
    NewsletterInboxResponse,
    OPMLFeedResponse,
    OPMLImportRequest,
    OPMLImportResponse,
    OPMLPreviewResponse,
    RefreshResponse,
    SubstackRequest,
    UpdateFeedRequest,
    ValidateFeedRequest,
    ValidateFeedResponse,
)
from ..services import FeedServiceDep
from ..tasks import refresh_user_feeds

router = APIRouter(prefix="/feeds", tags=["feeds"])

UserId = Annotated[str, Depends(get_current_user)]


# ─────────────────────────────────────────────────────────────
# Feed Management
# ─────────────────────────────────────────────────────────────

@router.get("")
async def list_feeds(service: FeedServiceDep, user_id: UserId) -> list[FeedResponse]:
    """List subscribed feeds, newest first."""
    return [FeedResponse.from_db(f) for f in service.list_feeds(user_id)]


@router.post("")
async def add_feed(
    request: AddFeedRequest,
    service: FeedServiceDep,
    user_id: UserId,
) -> FeedResponse:
    """Subscribe to a new feed. The feed must be fetchable."""
    feed = await service.subscribe(
        user_id,
        request.url,
        title=request.title,
        category=request.category,
        folder_id=request.folder_id,
    )
    return FeedResponse.from_db(feed)


@router.post("/validate")
async def validate_feed(request: ValidateFeedRequest, service: FeedServiceDep) -> ValidateFeedResponse:
    """Check whether a URL is a fetchable feed."""
    valid, title = await service.validate(request.url)
    return ValidateFeedResponse(valid=valid, title=title)


@router.put("/{feed_id}")
async def update_feed(
    feed_id: int,
    request: UpdateFeedRequest,
    service: FeedServiceDep,
    user_id: UserId,
) -> FeedResponse:
    """Rename or recategorise a feed."""
    feed = service.update_feed(user_id, feed_id, title=request.title, category=request.category)
    return FeedResponse.from_db(feed)


@router.put("/{feed_id}/folder")
async def move_feed(
    feed_id: int,
    request: MoveFeedRequest,
    service: FeedServiceDep,
    user_id: UserId,
) -> FeedResponse:
    """Move a feed into a folder, or out of one."""
    return FeedResponse.from_db(service.move_to_folder(user_id, feed_id, request.folder_id))


@router.delete("/{feed_id}")
async def remove_feed(feed_id: int, service: FeedServiceDep, user_id: UserId) -> dict:
    """Unsubscribe from a feed and delete its articles."""
    service.unsubscribe(user_id, feed_id)
    return {"success": True}


# ─────────────────────────────────────────────────────────────
# Refresh
# ─────────────────────────────────────────────────────────────

@router.post("/refresh")
async def refresh_feeds(
    service: FeedServiceDep,
    user_id: UserId,
    background_tasks: BackgroundTasks,
    background: bool = False,
) -> RefreshResponse:
    """Refresh all feeds, or schedule the refresh with background=true."""
    if service.is_refreshing(user_id):
        return RefreshResponse(success=True, message="Refresh already in progress")

    if background:
        background_tasks.add_task(refresh_user_feeds, user_id)
        return RefreshResponse(success=True, message="Refresh started")

    report = await service.refresh_all(user_id)
    if report is None:
        return RefreshResponse(success=True, message="Refresh already in progress")
    return RefreshResponse.from_report(report)


@router.post("/{feed_id}/refresh")
async def refresh_feed(feed_id: int, service: FeedServiceDep, user_id: UserId) -> RefreshResponse:
    """Refresh a single feed."""
    return RefreshResponse.from_report(await service.refresh_feed(user_id, feed_id))


# ─────────────────────────────────────────────────────────────
# Newsletters
# ─────────────────────────────────────────────────────────────

@router.post("/newsletters/substack")
async def add_substack(request: SubstackRequest, service: FeedServiceDep, user_id: UserId) -> FeedResponse:
    """Subscribe to a Substack publication by name or URL."""
    return FeedResponse.from_db(await service.add_substack(user_id, request.publication))


@router.post("/newsletters/inbox")
async def create_inbox(service: FeedServiceDep, user_id: UserId) -> NewsletterInboxResponse:
    """Generate an email address whose newsletters are published as a feed."""
    return NewsletterInboxResponse.from_inbox(service.create_inbox())


@router.post("/newsletters")
async def add_newsletter(
    request: NewsletterFeedRequest,
    service: FeedServiceDep,
    user_id: UserId,
) -> FeedResponse:
    """Add a newsletter feed (e.g. an inbox's feed URL)."""
    return FeedResponse.from_db(await service.add_newsletter(user_id, request.feed_url, request.title))


# ─────────────────────────────────────────────────────────────
# OPML Import/Export
# ─────────────────────────────────────────────────────────────

@router.post("/import-opml/preview")
async def preview_opml(
    request: OPMLImportRequest,
    service: FeedServiceDep,
    user_id: UserId,
) -> OPMLPreviewResponse:
    """List the feeds in an OPML file and which are already subscribed."""
    new_feeds, duplicates = service.preview_opml(user_id, request.opml_content)
    return OPMLPreviewResponse(
        new_feeds=[OPMLFeedResponse.from_opml(f) for f in new_feeds],
        duplicates=[OPMLFeedResponse.from_opml(f) for f in duplicates],
    )


@router.post("/import-opml")
async def import_opml(
    request: OPMLImportRequest,
    service: FeedServiceDep,
    user_id: UserId,
) -> OPMLImportResponse:
    """Import feeds from OPML content and pre-populate their articles."""
    report = await service.import_opml(user_id, request.opml_content, request.category_overrides)
    return OPMLImportResponse.from_report(report)


@router.get("/export-opml")
async def export_opml(service: FeedServiceDep, user_id: UserId) -> dict:
    """Export all feeds as OPML."""
    return service.export_opml(user_id)


@router.get("/export-csv", response_class=PlainTextResponse)
async def export_csv(service: FeedServiceDep, user_id: UserId) -> PlainTextResponse:
    """Export all feeds as CSV."""
    return PlainTextResponse(
        service.export_csv(user_id),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="myfeed-sources.csv"'},
    )

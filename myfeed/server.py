"""
myFeed API Server

FastAPI application providing endpoints for:
- Feed management (subscribe, refresh, newsletters, OPML/CSV)
- Articles (paginated listing, read state, bookmarks, read later, full text)
- Folders
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from . import __version__
from .config import PipelineConfig, config, state
from .content_extractor import ContentExtractor
from .database import Database
from .feed_parser import FeedFetcher
from .full_text import FullTextResolver
from .proxies import ProxyClient
from .rate_limit import setup_rate_limiting
from .routes import articles_router, feeds_router, folders_router, misc_router

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize application resources."""
    if state.db is None:
        state.db = Database(config.DB_PATH)
    if state.pipeline is None:
        state.pipeline = PipelineConfig.from_env()
    if state.proxy_client is None:
        state.proxy_client = ProxyClient(user_agent=state.pipeline.user_agent)
    if state.feed_fetcher is None:
        state.feed_fetcher = FeedFetcher(state.proxy_client, state.pipeline)
    if state.full_text_resolver is None:
        state.full_text_resolver = FullTextResolver(
            state.proxy_client,
            state.pipeline,
            ContentExtractor(
                min_length=state.pipeline.extract_min_length,
                max_length=state.pipeline.extract_max_length,
            ),
        )
    logger.info(f"myFeed API ready (database: {config.DB_PATH})")

    yield


app = FastAPI(
    title="myFeed API",
    version=__version__,
    lifespan=lifespan
)

setup_rate_limiting(app)

app.include_router(misc_router)
app.include_router(feeds_router)
app.include_router(articles_router)
app.include_router(folders_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=config.PORT)

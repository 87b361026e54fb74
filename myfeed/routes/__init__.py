"""
API route modules.
"""

from .articles import router as articles_router
from .feeds import router as feeds_router
from .folders import router as folders_router
from .misc import router as misc_router

__all__ = [
    "articles_router",
    "feeds_router",
    "folders_router",
    "misc_router",
]

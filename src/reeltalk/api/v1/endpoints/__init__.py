# src/reeltalk/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .bookmarks import router as bookmarks_router
from .posts import router as posts_router
from .reactions import router as reactions_router
from .replies import router as replies_router

__all__ = [
    "bookmarks_router",
    "posts_router",
    "reactions_router",
    "replies_router",
]

# src/reeltalk/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    bookmarks_router,
    posts_router,
    reactions_router,
    replies_router,
)

__all__ = [
    "bookmarks_router",
    "posts_router",
    "reactions_router",
    "replies_router",
]

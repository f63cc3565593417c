# src/reeltalk/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .bookmark import BookmarkListResponse, BookmarkStatus
from .common import ErrorResponse, Pagination
from .post import FeedResponse, PostCreate, PostResponse, PostUpdate
from .reaction import ReactionChange, ReactionRequest, ReactionState
from .reply import (
    ReplyCreate,
    ReplyNodeResponse,
    ReplyResponse,
    ReplyTreeResponse,
    ReplyUpdate,
)

__all__ = [
    "BookmarkListResponse", "BookmarkStatus",
    "ErrorResponse", "Pagination",
    "FeedResponse", "PostCreate", "PostResponse", "PostUpdate",
    "ReactionChange", "ReactionRequest", "ReactionState",
    "ReplyCreate", "ReplyNodeResponse", "ReplyResponse", "ReplyTreeResponse", "ReplyUpdate",
]

# src/reeltalk/models/__init__.py
"""SQLAlchemy models for the ReelTalk discussion engine."""

from .bookmark import Bookmark
from .category import Category
from .enums import PostStatus, ReactionType, TargetType
from .post import Post, PostTag
from .reaction import Reaction
from .reply import Reply

__all__ = [
    "Bookmark",
    "Category",
    "Post", "PostTag",
    "PostStatus", "ReactionType", "TargetType",
    "Reaction",
    "Reply",
]

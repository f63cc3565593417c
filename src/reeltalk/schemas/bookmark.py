"""Bookmark-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel

from reeltalk.schemas.common import Pagination
from reeltalk.schemas.post import PostResponse
from reeltalk.schemas.reply import ReplyResponse


class BookmarkStatus(BaseModel):
    """Whether the caller has saved a target."""

    bookmarked: bool


class BookmarkedPost(PostResponse):
    """A saved post with the time it was saved."""

    bookmarked_at: datetime


class BookmarkedReply(ReplyResponse):
    """A saved reply with the time it was saved."""

    bookmarked_at: datetime


class BookmarkListResponse(BaseModel):
    """One page of saved posts or saved replies, newest first."""

    posts: list[BookmarkedPost] | None = None
    replies: list[BookmarkedReply] | None = None
    pagination: Pagination

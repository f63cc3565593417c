# src/reeltalk/schemas/post.py
"""Post-related Pydantic schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from reeltalk.models import PostStatus


class PostCreate(BaseModel):
    """Schema for creating a new post. Content arrives already sanitized."""

    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1, max_length=10_000, description="Sanitized body")
    tags: list[str] = Field(default_factory=list, max_length=5)
    category_id: int | None = Field(None, description="Optional category")
    tmdb_id: int | None = Field(None, description="Catalog id of the discussed title")
    media_type: Literal["movie", "tv"] | None = None
    status: PostStatus = PostStatus.PUBLIC
    scheduled_at: datetime | None = Field(
        None,
        description="Hide the post from listings until this time",
    )


class PostUpdate(BaseModel):
    """Schema for an author's edit; omitted fields are left unchanged."""

    title: str | None = Field(None, min_length=1, max_length=200)
    content: str | None = Field(None, min_length=1, max_length=10_000)
    tags: list[str] | None = Field(None, max_length=5)
    category_id: int | None = None


class PostResponse(BaseModel):
    """Schema for post information returned by the API."""

    id: int
    author_id: str
    category_id: int | None
    title: str
    content: str
    tags: list[str]
    tmdb_id: int | None
    media_type: str | None
    status: str
    scheduled_at: datetime | None
    created_at: datetime
    updated_at: datetime
    views: int
    upvotes: int
    downvotes: int
    score: int
    reply_count: int

    model_config = ConfigDict(from_attributes=True)


class FeedResponse(BaseModel):
    """A page of the post feed."""

    items: list[PostResponse]
    next_cursor: str | None = Field(
        None,
        description="Pass back to fetch the following page; null once exhausted.",
    )

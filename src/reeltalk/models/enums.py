"""Enumerations shared by the discussion models and services."""

from __future__ import annotations

from enum import Enum


class TargetType(str, Enum):
    """Kind of content a reaction or bookmark attaches to."""

    POST = "post"
    REPLY = "reply"


class ReactionType(str, Enum):
    """A user's vote on a target; NONE is never stored, it means "no row"."""

    UPVOTE = "upvote"
    DOWNVOTE = "downvote"
    NONE = "none"


class PostStatus(str, Enum):
    """Publication state of a post. Only PUBLIC posts are listed."""

    PUBLIC = "public"
    PRIVATE = "private"
    ARCHIVED = "archived"

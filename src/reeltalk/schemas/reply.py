"""Reply-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from reeltalk.services.reply_tree import ReplyNode


class ReplyCreate(BaseModel):
    """Schema for creating a reply; content arrives already sanitized."""

    content: str = Field(..., min_length=1, max_length=5_000)
    parent_reply_id: int | None = Field(None, description="Reply being answered, if any")


class ReplyUpdate(BaseModel):
    """Schema for replacing a reply's content."""

    content: str = Field(..., min_length=1, max_length=5_000)


class ReplyResponse(BaseModel):
    """A single reply without its children."""

    id: int
    post_id: int
    parent_reply_id: int | None
    author_id: str
    content: str
    created_at: datetime
    updated_at: datetime
    upvotes: int
    downvotes: int
    score: int

    model_config = ConfigDict(from_attributes=True)


class ReplyNodeResponse(ReplyResponse):
    """A reply positioned in the thread, with its displayed children."""

    depth: int
    orphaned: bool = False
    flattened: bool = False
    replies: list[ReplyNodeResponse] = Field(default_factory=list)

    @classmethod
    def from_node(cls, node: ReplyNode) -> ReplyNodeResponse:
        base = ReplyResponse.model_validate(node.reply)
        return cls(
            **base.model_dump(),
            depth=node.depth,
            orphaned=node.orphaned,
            flattened=node.flattened,
            replies=[cls.from_node(child) for child in node.children],
        )


class ReplyTreeResponse(BaseModel):
    """The reply forest of a post."""

    post_id: int
    total: int
    replies: list[ReplyNodeResponse]

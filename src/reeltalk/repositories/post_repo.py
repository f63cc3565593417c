"""Data access helpers for working with posts and replies."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from reeltalk.models import Post, PostTag, Reply

__all__ = ["PostRepository"]


class PostRepository:
    """Thin wrapper around database access for post and reply entities."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def get_by_id(self, post_id: int) -> Post | None:
        """Return a post by identifier."""
        return self.session.get(Post, post_id)

    def get_reply(self, reply_id: int) -> Reply | None:
        """Return a reply by identifier."""
        return self.session.get(Reply, reply_id)

    def create(
        self,
        *,
        author_id: str,
        title: str,
        content: str,
        tags: list[str],
        category_id: int | None,
        tmdb_id: int | None,
        media_type: str | None,
        status: str,
        scheduled_at: datetime | None,
    ) -> Post:
        """Insert a new post and return the flushed ORM instance.

        Args:
            author_id: Opaque id of the author.
            title: Post title.
            content: Sanitized body content.
            tags: Ordered tags; positions follow list order.
            category_id: Optional category.
            tmdb_id: Optional catalog id of the discussed title.
            media_type: Catalog media type, set together with ``tmdb_id``.
            status: One of the PostStatus values.
            scheduled_at: Optional publication time.
        """
        post = Post(
            author_id=author_id,
            title=title,
            content=content,
            category_id=category_id,
            tmdb_id=tmdb_id,
            media_type=media_type,
            status=status,
            scheduled_at=scheduled_at,
        )
        post.tag_rows = [PostTag(position=pos, tag=tag) for pos, tag in enumerate(tags)]
        self.session.add(post)
        self.session.flush()
        return post

    def update(self, post: Post, *, tags: list[str] | None = None, **values: Any) -> Post:
        """Assign new column values and, when given, a new tag list, then flush."""
        for field, value in values.items():
            setattr(post, field, value)
        if tags is not None:
            self.set_tags(post, tags)
        self.session.flush()
        return post

    def set_tags(self, post: Post, tags: list[str]) -> None:
        """Rewrite the post's tag rows in place so positions stay dense."""
        rows = post.tag_rows
        for pos, tag in enumerate(tags):
            if pos < len(rows):
                rows[pos].tag = tag
            else:
                rows.append(PostTag(position=pos, tag=tag))
        del rows[len(tags):]

    def create_reply(
        self,
        *,
        post_id: int,
        author_id: str,
        content: str,
        parent_reply_id: int | None,
    ) -> Reply:
        """Insert a new reply and return the flushed ORM instance."""
        reply = Reply(
            post_id=post_id,
            author_id=author_id,
            content=content,
            parent_reply_id=parent_reply_id,
        )
        self.session.add(reply)
        self.session.flush()
        return reply

    def refresh_reply_count(self, post_id: int) -> int:
        """Recompute ``reply_count`` from the reply relation and store it."""
        count = self.session.scalar(
            select(func.count()).select_from(Reply).where(Reply.post_id == post_id)
        ) or 0
        self.session.execute(
            update(Post)
            .where(Post.id == post_id)
            .values(reply_count=count)
            .execution_options(synchronize_session=False)
        )
        return count

    def increment_views(self, post_id: int) -> int:
        """Increment the view counter in SQL and return the new value."""
        self.session.execute(
            update(Post)
            .where(Post.id == post_id)
            .values(views=Post.views + 1)
            .execution_options(synchronize_session=False)
        )
        return self.session.scalar(select(Post.views).where(Post.id == post_id)) or 0

"""Service-level helpers for creating and reading posts and replies."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from reeltalk.core.errors import Forbidden, Invalid, NotFound, StorageFailure, Unauthorized
from reeltalk.core.settings import settings
from reeltalk.db.time import utcnow
from reeltalk.models import Category, Post, PostStatus, Reply
from reeltalk.repositories.post_repo import PostRepository

logger = logging.getLogger(__name__)


def _clean_text(value: str, field: str, max_length: int) -> str:
    text = (value or "").strip()
    if not text:
        raise Invalid(f"{field} is required")
    if len(text) > max_length:
        raise Invalid(f"{field} must be {max_length:,} characters or less")
    return text


def _clean_tags(tags: list[str] | None) -> list[str]:
    cleaned: list[str] = []
    for tag in tags or []:
        tag = tag.strip()
        if not tag or len(tag) > settings.tag_max_length:
            raise Invalid(f"Tags must be 1 to {settings.tag_max_length} characters")
        if tag not in cleaned:
            cleaned.append(tag)
    if len(cleaned) > settings.post_max_tags:
        raise Invalid(f"A post can have at most {settings.post_max_tags} tags")
    return cleaned


def _commit(session: Session) -> None:
    try:
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        raise StorageFailure() from exc


def _check_category(session: Session, category_id: int | None) -> None:
    if category_id is None:
        return
    category = session.get(Category, category_id)
    if category is None or not category.is_active:
        raise Invalid("Invalid or inactive category")


def create_post(
    session: Session,
    *,
    author_id: str | None,
    title: str,
    content: str,
    tags: list[str] | None = None,
    category_id: int | None = None,
    tmdb_id: int | None = None,
    media_type: str | None = None,
    status: PostStatus | str = PostStatus.PUBLIC,
    scheduled_at: datetime | None = None,
) -> Post:
    """Create a post from already-sanitized content.

    Raises:
        Unauthorized: If the author is anonymous.
        Invalid: If the title, content, tags, category or catalog reference
            are unacceptable.
    """
    if author_id is None:
        raise Unauthorized()
    title = _clean_text(title, "Title", settings.post_title_max_length)
    content = _clean_text(content, "Content", settings.post_content_max_length)
    clean_tags = _clean_tags(tags)
    try:
        post_status = PostStatus(status)
    except ValueError as err:
        raise Invalid(f"Unknown post status: {status!r}") from err
    if (tmdb_id is None) != (media_type is None):
        raise Invalid("tmdb_id and media_type must be given together")

    _check_category(session, category_id)

    repo = PostRepository(session)
    try:
        post = repo.create(
            author_id=author_id,
            title=title,
            content=content,
            tags=clean_tags,
            category_id=category_id,
            tmdb_id=tmdb_id,
            media_type=media_type,
            status=post_status.value,
            scheduled_at=scheduled_at,
        )
    except SQLAlchemyError as exc:
        session.rollback()
        raise StorageFailure() from exc
    _commit(session)
    logger.debug("User %s created post %s", author_id, post.id)
    return post


def create_reply(
    session: Session,
    *,
    author_id: str | None,
    post_id: int,
    content: str,
    parent_reply_id: int | None = None,
) -> Reply:
    """Create a reply and recompute the post's reply count in one transaction.

    Raises:
        Unauthorized: If the author is anonymous.
        NotFound: If the post or the parent reply does not exist.
        Invalid: If the content is unacceptable or the parent belongs to
            another post.
    """
    if author_id is None:
        raise Unauthorized()
    content = _clean_text(content, "Content", settings.reply_content_max_length)

    repo = PostRepository(session)
    if repo.get_by_id(post_id) is None:
        raise NotFound("Post not found")
    if parent_reply_id is not None:
        parent = repo.get_reply(parent_reply_id)
        if parent is None:
            raise NotFound("Parent reply not found")
        if parent.post_id != post_id:
            raise Invalid("Parent reply does not belong to this post")

    try:
        reply = repo.create_reply(
            post_id=post_id,
            author_id=author_id,
            content=content,
            parent_reply_id=parent_reply_id,
        )
        repo.refresh_reply_count(post_id)
    except SQLAlchemyError as exc:
        session.rollback()
        raise StorageFailure() from exc
    _commit(session)
    logger.debug("User %s replied %s on post %s", author_id, reply.id, post_id)
    return reply


POST_EDITABLE_FIELDS = frozenset({"title", "content", "tags", "category_id"})


def update_post(
    session: Session,
    post_id: int,
    *,
    editor_id: str | None,
    **changes: Any,
) -> Post:
    """Apply an author's edits to a post.

    Only the fields present in ``changes`` are touched; ``tags`` replaces the
    whole tag list.

    Raises:
        Unauthorized: If the editor is anonymous.
        Invalid: If a field cannot be edited or its new value is unacceptable.
        NotFound: If the post does not exist.
        Forbidden: If the editor did not write the post.
    """
    if editor_id is None:
        raise Unauthorized()
    unknown = set(changes) - POST_EDITABLE_FIELDS
    if unknown:
        raise Invalid(f"Cannot edit {', '.join(sorted(unknown))}")

    repo = PostRepository(session)
    post = repo.get_by_id(post_id)
    if post is None:
        raise NotFound("Post not found")
    if post.author_id != editor_id:
        raise Forbidden("You can only edit your own posts")

    values: dict[str, Any] = {}
    if "title" in changes:
        values["title"] = _clean_text(changes["title"], "Title", settings.post_title_max_length)
    if "content" in changes:
        values["content"] = _clean_text(
            changes["content"], "Content", settings.post_content_max_length
        )
    if "category_id" in changes:
        _check_category(session, changes["category_id"])
        values["category_id"] = changes["category_id"]
    tags = _clean_tags(changes["tags"]) if "tags" in changes else None
    if not values and tags is None:
        return post

    try:
        repo.update(post, tags=tags, updated_at=utcnow(), **values)
    except SQLAlchemyError as exc:
        session.rollback()
        raise StorageFailure() from exc
    _commit(session)
    logger.debug("User %s edited post %s", editor_id, post_id)
    return post


def update_reply(
    session: Session,
    reply_id: int,
    *,
    editor_id: str | None,
    content: str,
) -> Reply:
    """Replace the content of an author's reply.

    Raises:
        Unauthorized: If the editor is anonymous.
        NotFound: If the reply does not exist.
        Forbidden: If the editor did not write the reply.
        Invalid: If the content is unacceptable.
    """
    if editor_id is None:
        raise Unauthorized()
    repo = PostRepository(session)
    reply = repo.get_reply(reply_id)
    if reply is None:
        raise NotFound("Reply not found")
    if reply.author_id != editor_id:
        raise Forbidden("You can only edit your own replies")
    content = _clean_text(content, "Content", settings.reply_content_max_length)

    reply.content = content
    reply.updated_at = utcnow()
    _commit(session)
    logger.debug("User %s edited reply %s", editor_id, reply_id)
    return reply


def get_post(session: Session, post_id: int, *, record_view: bool = False) -> Post:
    """Return a post, optionally counting a view.

    Raises:
        NotFound: If the post does not exist.
    """
    repo = PostRepository(session)
    post = repo.get_by_id(post_id)
    if post is None:
        raise NotFound("Post not found")
    if record_view:
        try:
            repo.increment_views(post_id)
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise StorageFailure() from exc
        session.refresh(post)
    return post


__all__ = ["create_post", "create_reply", "get_post", "update_post", "update_reply"]

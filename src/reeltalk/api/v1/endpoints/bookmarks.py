"""Bookmark endpoints for saved posts and saved replies."""

from fastapi import APIRouter, Query
from sqlalchemy.orm import Session

from reeltalk.api.v1.dependencies import CurrentUserIdDep, SessionDep
from reeltalk.models import TargetType
from reeltalk.repositories.targets import get_target
from reeltalk.schemas.bookmark import (
    BookmarkedPost,
    BookmarkedReply,
    BookmarkListResponse,
    BookmarkStatus,
)
from reeltalk.schemas.common import Pagination
from reeltalk.schemas.post import PostResponse
from reeltalk.schemas.reply import ReplyResponse
from reeltalk.services.bookmarks import BookmarkRegistry

router = APIRouter(tags=["bookmarks"])


@router.get("/bookmarks", response_model=BookmarkListResponse)
def list_bookmarks(
    current_user_id: CurrentUserIdDep,
    db: SessionDep,
    target_type: TargetType = Query(TargetType.POST, description="post or reply"),
    page: int = Query(1, description="1-based page number"),
    limit: int | None = Query(None, description="Page size"),
) -> BookmarkListResponse:
    """List the caller's saved posts or saved replies, most recently saved first."""
    result = BookmarkRegistry(db).list(current_user_id, target_type, page, limit)
    pagination = Pagination(
        page=result.page,
        limit=result.page_size,
        total=result.total,
        total_pages=result.total_pages,
    )
    if target_type is TargetType.POST:
        posts = [
            BookmarkedPost(
                **PostResponse.model_validate(item.target).model_dump(),
                bookmarked_at=item.bookmarked_at,
            )
            for item in result.items
        ]
        return BookmarkListResponse(posts=posts, pagination=pagination)
    replies = [
        BookmarkedReply(
            **ReplyResponse.model_validate(item.target).model_dump(),
            bookmarked_at=item.bookmarked_at,
        )
        for item in result.items
    ]
    return BookmarkListResponse(replies=replies, pagination=pagination)


def _status(db: Session, user_id: str | None, kind: TargetType, target_id: int) -> BookmarkStatus:
    get_target(db, kind, target_id)
    return BookmarkStatus(bookmarked=BookmarkRegistry(db).is_bookmarked(user_id, kind, target_id))


@router.get("/posts/{post_id}/bookmark", response_model=BookmarkStatus)
def get_post_bookmark(
    post_id: int,
    current_user_id: CurrentUserIdDep,
    db: SessionDep,
) -> BookmarkStatus:
    """Check whether the caller saved a post."""
    return _status(db, current_user_id, TargetType.POST, post_id)


@router.post("/posts/{post_id}/bookmark", response_model=BookmarkStatus)
def toggle_post_bookmark(
    post_id: int,
    current_user_id: CurrentUserIdDep,
    db: SessionDep,
) -> BookmarkStatus:
    """Save or unsave a post."""
    bookmarked = BookmarkRegistry(db).toggle(current_user_id, TargetType.POST, post_id)
    return BookmarkStatus(bookmarked=bookmarked)


@router.get("/replies/{reply_id}/bookmark", response_model=BookmarkStatus)
def get_reply_bookmark(
    reply_id: int,
    current_user_id: CurrentUserIdDep,
    db: SessionDep,
) -> BookmarkStatus:
    """Check whether the caller saved a reply."""
    return _status(db, current_user_id, TargetType.REPLY, reply_id)


@router.post("/replies/{reply_id}/bookmark", response_model=BookmarkStatus)
def toggle_reply_bookmark(
    reply_id: int,
    current_user_id: CurrentUserIdDep,
    db: SessionDep,
) -> BookmarkStatus:
    """Save or unsave a reply."""
    bookmarked = BookmarkRegistry(db).toggle(current_user_id, TargetType.REPLY, reply_id)
    return BookmarkStatus(bookmarked=bookmarked)

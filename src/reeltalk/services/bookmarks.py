"""Bookmark registry for saved posts and saved replies."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from reeltalk.core.errors import Conflict, ForumError, Invalid, StorageFailure, Unauthorized
from reeltalk.core.settings import settings
from reeltalk.models import Bookmark, Post, Reply, TargetType
from reeltalk.repositories.targets import coerce_target_type, get_target, target_model
from reeltalk.services.locks import BOOKMARK_LOCKS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookmarkedItem:
    """A saved target together with the time it was saved."""

    target: Post | Reply
    bookmarked_at: datetime


@dataclass(frozen=True)
class BookmarkPage:
    """One page of a user's bookmarks, newest first."""

    items: list[BookmarkedItem]
    page: int
    page_size: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.total else 0


class BookmarkRegistry:
    """Track which posts and replies a user has saved."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def is_bookmarked(
        self,
        user_id: str | None,
        target_type: TargetType | str,
        target_id: int,
    ) -> bool:
        """Return whether the caller saved the target; anonymous callers never have."""
        kind = coerce_target_type(target_type)
        if user_id is None:
            return False
        return self._find(user_id, kind, target_id) is not None

    def toggle(
        self,
        user_id: str | None,
        target_type: TargetType | str,
        target_id: int,
    ) -> bool:
        """Flip the bookmark on a target and return the new state.

        Raises:
            Unauthorized: If the caller is anonymous.
            NotFound: If a new bookmark points at a missing target.
            Conflict: If a concurrent writer beat us twice.
            StorageFailure: If the store failed; nothing was changed.
        """
        if user_id is None:
            raise Unauthorized()
        kind = coerce_target_type(target_type)
        with BOOKMARK_LOCKS.hold((user_id, kind.value, target_id)):
            try:
                return self._transact(user_id, kind, target_id)
            except (IntegrityError, StaleDataError):
                logger.debug(
                    "Bookmark toggle for %s on %s %s collided; retrying",
                    user_id,
                    kind.value,
                    target_id,
                )
            try:
                return self._transact(user_id, kind, target_id)
            except (IntegrityError, StaleDataError) as exc:
                raise Conflict("Bookmark changed concurrently, please retry") from exc

    def list(
        self,
        user_id: str | None,
        target_type: TargetType | str,
        page: int = 1,
        page_size: int | None = None,
    ) -> BookmarkPage:
        """Return one page of the caller's bookmarks of ``target_type``.

        Reads go straight to the store so a toggle is visible immediately.

        Raises:
            Unauthorized: If the caller is anonymous.
            Invalid: If ``page`` or ``page_size`` is out of range.
        """
        if user_id is None:
            raise Unauthorized()
        kind = coerce_target_type(target_type)
        size = settings.bookmark_page_size if page_size is None else page_size
        if page < 1:
            raise Invalid("page must be 1 or greater")
        if not 1 <= size <= settings.bookmark_max_page_size:
            raise Invalid(f"limit must be between 1 and {settings.bookmark_max_page_size}")

        model = target_model(kind)
        filters = (Bookmark.user_id == user_id, Bookmark.target_type == kind.value)
        try:
            total = self.session.scalar(
                select(func.count())
                .select_from(Bookmark)
                .join(model, model.id == Bookmark.target_id)
                .where(*filters)
            ) or 0
            rows = self.session.execute(
                select(model, Bookmark.created_at)
                .join(Bookmark, model.id == Bookmark.target_id)
                .where(*filters)
                .order_by(Bookmark.created_at.desc(), Bookmark.id.desc())
                .offset((page - 1) * size)
                .limit(size)
            ).all()
        except SQLAlchemyError as exc:
            raise StorageFailure() from exc

        items = [BookmarkedItem(target=target, bookmarked_at=saved) for target, saved in rows]
        return BookmarkPage(items=items, page=page, page_size=size, total=total)

    def _find(self, user_id: str, kind: TargetType, target_id: int) -> Bookmark | None:
        return self.session.scalars(
            select(Bookmark).where(
                Bookmark.user_id == user_id,
                Bookmark.target_type == kind.value,
                Bookmark.target_id == target_id,
            )
        ).first()

    def _transact(self, user_id: str, kind: TargetType, target_id: int) -> bool:
        try:
            existing = self._find(user_id, kind, target_id)
            if existing is not None:
                deleted = self.session.execute(
                    delete(Bookmark)
                    .where(Bookmark.id == existing.id)
                    .execution_options(synchronize_session=False)
                )
                if deleted.rowcount != 1:
                    raise StaleDataError("Bookmark was removed by another writer")
                self.session.expunge(existing)
                bookmarked = False
            else:
                get_target(self.session, kind, target_id)
                self.session.add(
                    Bookmark(user_id=user_id, target_type=kind.value, target_id=target_id)
                )
                bookmarked = True
            self.session.commit()
        except (IntegrityError, StaleDataError, ForumError):
            self.session.rollback()
            raise
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StorageFailure() from exc
        logger.debug(
            "User %s %s %s %s",
            user_id,
            "saved" if bookmarked else "unsaved",
            kind.value,
            target_id,
        )
        return bookmarked

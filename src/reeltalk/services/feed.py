"""Keyset pagination over the visible post listing.

Positions are ``(sort key, post id)`` pairs carried in an opaque cursor, never
offsets, so posts inserted or removed between fetches cannot shift an
already-seen post into the next page or push an unseen one out of it. Every
sort is descending on its key with ``id`` ascending as the tiebreak, which
makes the order total.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from blake3 import blake3
from sqlalchemy import Select, and_, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from reeltalk.core.errors import Invalid, StorageFailure
from reeltalk.core.settings import settings
from reeltalk.db.time import as_utc, utcnow
from reeltalk.models import Category, Post, PostStatus, PostTag

logger = logging.getLogger(__name__)

CURSOR_VERSION = 1


class FeedSort(str, Enum):
    """Supported feed orderings."""

    NEWEST = "newest"
    MOST_VIEWED = "most_viewed"
    MOST_LIKED = "most_liked"
    MOST_REPLIES = "most_replies"


_SORT_COLUMNS = {
    FeedSort.NEWEST: Post.created_at,
    FeedSort.MOST_VIEWED: Post.views,
    FeedSort.MOST_LIKED: Post.score,
    FeedSort.MOST_REPLIES: Post.reply_count,
}


@dataclass(frozen=True)
class FeedFilter:
    """Conjunction of listing filters; unset fields do not constrain."""

    category_id: int | None = None
    category_slug: str | None = None
    tag: str | None = None
    author_id: str | None = None
    search: str | None = None
    tmdb_id: int | None = None
    media_type: str | None = None

    def __post_init__(self) -> None:
        if (self.tmdb_id is None) != (self.media_type is None):
            raise Invalid("tmdb_id and media_type must be given together")
        if self.search is not None:
            object.__setattr__(self, "search", self.search.strip() or None)

    def fingerprint(self) -> str:
        """Return a short stable digest binding a cursor to this filter."""
        canonical = json.dumps(asdict(self), sort_keys=True, separators=(",", ":"))
        return blake3(canonical.encode("utf-8")).hexdigest()[:16]


@dataclass(frozen=True)
class FeedCursor:
    """Decoded position of the last item a client has seen."""

    sort: FeedSort
    key: Any
    last_id: int
    filter_fingerprint: str

    def encode(self) -> str:
        key = self.key
        if isinstance(key, datetime):
            key = as_utc(key).isoformat()
        payload = {
            "v": CURSOR_VERSION,
            "s": self.sort.value,
            "k": key,
            "i": self.last_id,
            "f": self.filter_fingerprint,
        }
        raw = json.dumps(payload, separators=(",", ":")).encode("utf-8")
        return base64.urlsafe_b64encode(raw).decode().rstrip("=")

    @classmethod
    def decode(cls, token: str) -> FeedCursor:
        """Parse a cursor token.

        Raises:
            Invalid: If the token is corrupt or from an unknown version.
        """
        padding = "=" * (-len(token) % 4)
        try:
            payload = json.loads(base64.urlsafe_b64decode(token + padding))
            if payload["v"] != CURSOR_VERSION:
                raise ValueError("unsupported cursor version")
            sort = FeedSort(payload["s"])
            raw_key = payload["k"]
            if sort is FeedSort.NEWEST:
                key: Any = as_utc(datetime.fromisoformat(raw_key))
            elif isinstance(raw_key, int) and not isinstance(raw_key, bool):
                key = raw_key
            else:
                raise ValueError("cursor key must be an integer")
            last_id = payload["i"]
            if not isinstance(last_id, int) or isinstance(last_id, bool):
                raise ValueError("cursor id must be an integer")
            fingerprint = str(payload["f"])
        except (binascii.Error, UnicodeDecodeError, ValueError, KeyError, TypeError) as err:
            raise Invalid("Malformed feed cursor") from err
        return cls(sort=sort, key=key, last_id=last_id, filter_fingerprint=fingerprint)


@dataclass(frozen=True)
class FeedPage:
    """One page of the feed; ``next_cursor`` is None once the feed is exhausted."""

    items: list[Post]
    next_cursor: str | None = None


def coerce_sort(value: FeedSort | str) -> FeedSort:
    """Return ``value`` as a FeedSort, raising Invalid for unknown keys."""
    try:
        return FeedSort(value)
    except ValueError as err:
        choices = ", ".join(sort.value for sort in FeedSort)
        raise Invalid(f"Unknown sort {value!r}; expected one of: {choices}") from err


class FeedPaginator:
    """Serve successive pages of the filtered, sorted post listing."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def next_page(
        self,
        feed_filter: FeedFilter | None,
        sort: FeedSort | str,
        cursor: str | None = None,
        limit: int | None = None,
        *,
        now: datetime | None = None,
    ) -> FeedPage:
        """Return the posts strictly after ``cursor`` under ``sort``.

        Raises:
            Invalid: For an unknown sort, a bad limit, or a cursor that is
                corrupt or was issued for another sort or filter.
            StorageFailure: If the store could not be read.
        """
        feed_filter = feed_filter or FeedFilter()
        order = coerce_sort(sort)
        size = settings.feed_page_size if limit is None else limit
        if not 1 <= size <= settings.feed_max_page_size:
            raise Invalid(f"limit must be between 1 and {settings.feed_max_page_size}")

        fingerprint = feed_filter.fingerprint()
        position = FeedCursor.decode(cursor) if cursor else None
        if position is not None and (
            position.sort is not order or position.filter_fingerprint != fingerprint
        ):
            raise Invalid("Cursor does not belong to this feed")

        stmt = self._visible(now or utcnow())
        stmt = self._apply_filter(stmt, feed_filter)
        column = _SORT_COLUMNS[order]
        if position is not None:
            stmt = stmt.where(
                or_(
                    column < position.key,
                    and_(column == position.key, Post.id > position.last_id),
                )
            )
        stmt = stmt.order_by(column.desc(), Post.id.asc()).limit(size + 1)

        try:
            rows = list(self.session.scalars(stmt).all())
        except SQLAlchemyError as exc:
            raise StorageFailure() from exc

        items = rows[:size]
        next_cursor = None
        if len(rows) > size:
            last = items[-1]
            next_cursor = FeedCursor(
                sort=order,
                key=getattr(last, column.key),
                last_id=last.id,
                filter_fingerprint=fingerprint,
            ).encode()
        logger.debug(
            "Feed page sort=%s size=%d returned=%d more=%s",
            order.value,
            size,
            len(items),
            next_cursor is not None,
        )
        return FeedPage(items=items, next_cursor=next_cursor)

    @staticmethod
    def _visible(now: datetime) -> Select:
        # Visibility is part of the query so page sizes count only listable posts.
        return select(Post).where(
            Post.status == PostStatus.PUBLIC.value,
            or_(Post.scheduled_at.is_(None), Post.scheduled_at <= now),
        )

    @staticmethod
    def _apply_filter(stmt: Select, feed_filter: FeedFilter) -> Select:
        if feed_filter.category_id is not None:
            stmt = stmt.where(Post.category_id == feed_filter.category_id)
        if feed_filter.category_slug:
            stmt = stmt.where(
                Post.category_id.in_(
                    select(Category.id).where(Category.slug == feed_filter.category_slug)
                )
            )
        if feed_filter.tag:
            stmt = stmt.where(
                Post.id.in_(select(PostTag.post_id).where(PostTag.tag == feed_filter.tag))
            )
        if feed_filter.author_id:
            stmt = stmt.where(Post.author_id == feed_filter.author_id)
        if feed_filter.search:
            stmt = stmt.where(
                or_(
                    Post.title.icontains(feed_filter.search, autoescape=True),
                    Post.content.icontains(feed_filter.search, autoescape=True),
                )
            )
        if feed_filter.tmdb_id is not None:
            stmt = stmt.where(
                Post.tmdb_id == feed_filter.tmdb_id,
                Post.media_type == feed_filter.media_type,
            )
        return stmt


@dataclass
class FeedSession:
    """Client-side accumulation of feed pages for infinite scrolling.

    A page is merged only when it answers the session's current cursor, so a
    retried or duplicated fetch of an already-merged position is ignored.
    """

    items: list[Any] = field(default_factory=list)
    cursor: str | None = None
    started: bool = False
    exhausted: bool = False

    def merge(self, requested_cursor: str | None, page: FeedPage) -> bool:
        """Append ``page`` if it was fetched for the current position."""
        if self.exhausted or requested_cursor != self.cursor:
            return False
        if requested_cursor is None and self.started:
            return False
        self.items.extend(page.items)
        self.cursor = page.next_cursor
        self.started = True
        self.exhausted = page.next_cursor is None
        return True

    def load_more(self, fetch: Callable[[str | None], FeedPage]) -> bool:
        """Fetch the page after the current position and merge it."""
        if self.exhausted:
            return False
        requested = self.cursor
        return self.merge(requested, fetch(requested))

    def reset(self) -> None:
        """Forget everything, e.g. after the filter or sort changed."""
        self.items.clear()
        self.cursor = None
        self.started = False
        self.exhausted = False

# src/reeltalk/models/post.py
"""SQLAlchemy models for posts and their tags."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from reeltalk.db.session import Base
from reeltalk.db.time import utcnow
from reeltalk.models.enums import PostStatus


class Post(Base):
    """Top-level discussion thread.

    ``upvotes``, ``downvotes`` and ``score`` are written only by the score
    aggregator; ``reply_count`` only by the reply creation path.
    """

    __tablename__ = "post"
    __table_args__ = (
        CheckConstraint(
            "status IN ('public', 'private', 'archived')",
            name="ck_post_status",
        ),
        Index("ix_post_created_at_id", "created_at", "id"),
        Index("ix_post_score_id", "score", "id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    author_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    category_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("category.id"),
        nullable=True,
    )

    title: Mapped[str] = mapped_column(Text, nullable=False)
    # Already sanitized upstream; stored verbatim.
    content: Mapped[str] = mapped_column(Text, nullable=False)

    # Catalog reference (movie or tv show), both set or both null.
    tmdb_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    media_type: Mapped[str | None] = mapped_column(String(16), nullable=True)

    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=PostStatus.PUBLIC.value,
    )
    # Invisible to listings until this moment passes.
    scheduled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    views: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    upvotes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    downvotes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    reply_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    tag_rows: Mapped[list[PostTag]] = relationship(
        "PostTag",
        order_by="PostTag.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def tags(self) -> list[str]:
        """Return the post's tags in authored order."""
        return [row.tag for row in self.tag_rows]


class PostTag(Base):
    """One tag of a post; ``position`` keeps the authored order."""

    __tablename__ = "post_tag"
    __table_args__ = (Index("ix_post_tag_tag", "tag"),)

    post_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("post.id", ondelete="CASCADE"),
        primary_key=True,
    )
    position: Mapped[int] = mapped_column(SmallInteger, primary_key=True)
    tag: Mapped[str] = mapped_column(String(64), nullable=False)

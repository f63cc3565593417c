"""SQLAlchemy model for replies to posts."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from reeltalk.db.session import Base
from reeltalk.db.time import utcnow


class Reply(Base):
    """A reply in a post's discussion.

    Top-level replies have ``parent_reply_id = NULL``. A reply's ``post_id``
    always equals its parent's.
    """

    __tablename__ = "reply"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("post.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Parent chain for nested replies.
    parent_reply_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("reply.id"),
        nullable=True,
    )
    author_id: Mapped[str] = mapped_column(String(64), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
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

    upvotes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    downvotes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

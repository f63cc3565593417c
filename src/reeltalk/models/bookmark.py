"""Models for saved posts and saved replies."""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from reeltalk.db.session import Base
from reeltalk.db.time import utcnow


class Bookmark(Base):
    """A user's bookmark on a post or a reply, independent of reactions."""

    __tablename__ = "bookmark"
    __table_args__ = (
        UniqueConstraint("user_id", "target_type", "target_id", name="uq_bookmark_identity"),
        CheckConstraint("target_type IN ('post', 'reply')", name="ck_bookmark_target_type"),
        Index("ix_bookmark_user_listing", "user_id", "target_type", "created_at"),
    )

    # Surrogate key gives a stable tiebreak when listing newest first.
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    target_type: Mapped[str] = mapped_column(String(8), nullable=False)
    target_id: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

# src/reeltalk/models/reaction.py
"""Models capturing voting interactions on posts and replies."""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from reeltalk.db.session import Base
from reeltalk.db.time import utcnow


class Reaction(Base):
    """Per-user vote on a post or reply.

    The composite primary key makes "upvote XOR downvote XOR none" structural:
    a user can hold at most one row per target, and no row means no reaction.
    """

    __tablename__ = "reaction"
    __table_args__ = (
        CheckConstraint("value IN ('upvote', 'downvote')", name="ck_reaction_value"),
        CheckConstraint("target_type IN ('post', 'reply')", name="ck_reaction_target_type"),
        Index("ix_reaction_target", "target_type", "target_id"),
    )

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    target_type: Mapped[str] = mapped_column(String(8), primary_key=True)
    target_id: Mapped[int] = mapped_column(Integer, primary_key=True)

    value: Mapped[str] = mapped_column(String(8), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

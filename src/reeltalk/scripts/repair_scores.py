# src/reeltalk/scripts/repair_scores.py
"""
Maintenance job that re-derives vote totals from the reaction ledger.

Run it after restoring a backup or whenever totals are suspected to have
drifted:
1. Replay every post's reactions into its upvotes/downvotes/score
2. Do the same for every reply
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from reeltalk.core.logging import configure_logging
from reeltalk.db.session import SessionLocal
from reeltalk.models import Post, Reply, TargetType
from reeltalk.services.aggregates import ScoreAggregator

BATCH_SIZE = 500


def repair_targets(db: Session, target_type: TargetType) -> int:
    """Recompute the aggregate of every target of one kind.

    Args:
        db: Database session
        target_type: Which kind of target to repair

    Returns:
        Number of targets checked
    """
    model = Post if target_type is TargetType.POST else Reply
    aggregator = ScoreAggregator(db)
    checked = 0
    for target_id in db.scalars(select(model.id).order_by(model.id)).all():
        aggregator.recompute(target_type, target_id)
        checked += 1
        if checked % BATCH_SIZE == 0:
            db.commit()
    db.commit()
    return checked


if __name__ == "__main__":
    configure_logging()

    db = SessionLocal()
    try:
        posts = repair_targets(db, TargetType.POST)
        replies = repair_targets(db, TargetType.REPLY)
    finally:
        db.close()
    print(f"Checked vote totals of {posts} posts and {replies} replies")

"""Score aggregation for posts and replies.

The aggregator is the only code path that writes ``upvotes``, ``downvotes`` and
``score``. Deltas are applied with a single UPDATE so a vote switch moves both
counters together and no reader sees a removed-but-not-replaced vote.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from reeltalk.core.errors import Conflict, NotFound
from reeltalk.models import Reaction, ReactionType, TargetType
from reeltalk.repositories.targets import coerce_target_type, get_target, target_model
from reeltalk.services.locks import AGGREGATE_LOCKS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoreDelta:
    """Adjustment to a target's (upvotes, downvotes) pair."""

    upvotes: int = 0
    downvotes: int = 0

    @property
    def is_zero(self) -> bool:
        return self.upvotes == 0 and self.downvotes == 0

    @property
    def score(self) -> int:
        return self.upvotes - self.downvotes


@dataclass(frozen=True)
class Aggregate:
    """The public vote totals of one target."""

    upvotes: int = 0
    downvotes: int = 0

    @property
    def score(self) -> int:
        return self.upvotes - self.downvotes


class ScoreAggregator:
    """Maintain the running vote aggregate per target."""

    def __init__(self, session: Session) -> None:
        self.session = session

    @contextmanager
    def hold(self, target_type: TargetType, target_id: int) -> Iterator[None]:
        """Serialize aggregate writers for one target within this process."""
        with AGGREGATE_LOCKS.hold((TargetType(target_type).value, target_id)):
            yield

    def apply_delta(
        self,
        target_type: TargetType | str,
        target_id: int,
        delta: ScoreDelta,
    ) -> Aggregate:
        """Apply ``delta`` to the target and return the new aggregate.

        The session is flushed but not committed; the caller owns the
        transaction and rolls it back together with its ledger change.

        Raises:
            NotFound: If the target does not exist.
            Conflict: If the delta would drive a counter below zero.
        """
        kind = coerce_target_type(target_type)
        model = target_model(kind)
        with self.hold(kind, target_id):
            if delta.is_zero:
                return self.get_aggregate(kind, target_id)

            self.session.flush()
            result = self.session.execute(
                update(model)
                .where(model.id == target_id)
                .values(
                    upvotes=model.upvotes + delta.upvotes,
                    downvotes=model.downvotes + delta.downvotes,
                    score=model.score + delta.score,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise NotFound(f"{kind.value.capitalize()} not found")

            aggregate = self.get_aggregate(kind, target_id)
            if aggregate.upvotes < 0 or aggregate.downvotes < 0:
                raise Conflict("Vote totals diverged from the reaction ledger")

        logger.debug(
            "Applied delta %+d/%+d to %s %s -> score %d",
            delta.upvotes,
            delta.downvotes,
            kind.value,
            target_id,
            aggregate.score,
        )
        return aggregate

    def get_aggregate(self, target_type: TargetType | str, target_id: int) -> Aggregate:
        """Return the current aggregate, reloading the row from the store."""
        kind = coerce_target_type(target_type)
        target = self.session.get(target_model(kind), target_id, populate_existing=True)
        if target is None:
            raise NotFound(f"{kind.value.capitalize()} not found")
        return Aggregate(upvotes=target.upvotes, downvotes=target.downvotes)

    def recompute(self, target_type: TargetType | str, target_id: int) -> Aggregate:
        """Re-derive the aggregate by replaying the reaction ledger.

        Writes the replayed totals back when they differ from the stored ones.
        The caller commits.
        """
        kind = coerce_target_type(target_type)
        with self.hold(kind, target_id):
            target = get_target(self.session, kind, target_id)
            rows = self.session.execute(
                select(Reaction.value, func.count())
                .where(
                    Reaction.target_type == kind.value,
                    Reaction.target_id == target_id,
                )
                .group_by(Reaction.value)
            ).all()
            counts = {value: count for value, count in rows}
            replayed = Aggregate(
                upvotes=counts.get(ReactionType.UPVOTE.value, 0),
                downvotes=counts.get(ReactionType.DOWNVOTE.value, 0),
            )
            if (target.upvotes, target.downvotes, target.score) != (
                replayed.upvotes,
                replayed.downvotes,
                replayed.score,
            ):
                logger.info(
                    "Repairing aggregate of %s %s: %d/%d -> %d/%d",
                    kind.value,
                    target_id,
                    target.upvotes,
                    target.downvotes,
                    replayed.upvotes,
                    replayed.downvotes,
                )
                target.upvotes = replayed.upvotes
                target.downvotes = replayed.downvotes
                target.score = replayed.score
                self.session.flush()
        return replayed

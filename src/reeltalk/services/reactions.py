"""Reaction ledger: one user's vote on one post or reply."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from reeltalk.core.errors import Conflict, ForumError, Invalid, StorageFailure, Unauthorized
from reeltalk.models import Reaction, ReactionType, TargetType
from reeltalk.repositories.targets import coerce_target_type, get_target
from reeltalk.services.aggregates import Aggregate, ScoreAggregator, ScoreDelta
from reeltalk.services.locks import LEDGER_LOCKS

logger = logging.getLogger(__name__)

_COUNTER_STEP: dict[ReactionType, ScoreDelta] = {
    ReactionType.UPVOTE: ScoreDelta(upvotes=1),
    ReactionType.DOWNVOTE: ScoreDelta(downvotes=1),
    ReactionType.NONE: ScoreDelta(),
}


@dataclass(frozen=True)
class ReactionResult:
    """Outcome of a ``set_reaction`` call."""

    previous: ReactionType
    current: ReactionType
    delta: ScoreDelta
    aggregate: Aggregate


def coerce_reaction(value: ReactionType | str | None) -> ReactionType:
    """Return ``value`` as a ReactionType; ``None`` means NONE."""
    if value is None:
        return ReactionType.NONE
    try:
        return ReactionType(value)
    except ValueError as err:
        raise Invalid(
            "Invalid reaction type. Must be 'upvote', 'downvote' or 'none'"
        ) from err


def resolve_transition(
    stored: ReactionType,
    desired: ReactionType,
) -> tuple[ReactionType, ScoreDelta]:
    """Return the effective reaction and the counter delta for a request.

    Asking for the value already stored retracts it.
    """
    current = ReactionType.NONE if desired is stored else desired
    removed = _COUNTER_STEP[stored]
    added = _COUNTER_STEP[current]
    delta = ScoreDelta(
        upvotes=added.upvotes - removed.upvotes,
        downvotes=added.downvotes - removed.downvotes,
    )
    return current, delta


class ReactionLedger:
    """Source of truth for per-user reactions.

    Each ``set_reaction`` call reads the stored value, writes the new one and
    applies the resulting delta to the aggregate in one transaction, holding
    the lock for the narrow ``(user, target type, target id)`` key until the
    commit.
    """

    def __init__(self, session: Session, aggregator: ScoreAggregator | None = None) -> None:
        self.session = session
        self.aggregator = aggregator or ScoreAggregator(session)

    def get_reaction(
        self,
        user_id: str | None,
        target_type: TargetType | str,
        target_id: int,
    ) -> ReactionType:
        """Return the caller's stored reaction; anonymous callers have none."""
        kind = coerce_target_type(target_type)
        if user_id is None:
            return ReactionType.NONE
        row = self.session.get(Reaction, (user_id, kind.value, target_id))
        return ReactionType(row.value) if row is not None else ReactionType.NONE

    def set_reaction(
        self,
        user_id: str | None,
        target_type: TargetType | str,
        target_id: int,
        desired: ReactionType | str | None,
    ) -> ReactionResult:
        """Set, switch or retract the caller's reaction on a target.

        Raises:
            Unauthorized: If the caller is anonymous.
            NotFound: If the target does not exist.
            Invalid: If the reaction value is unknown.
            Conflict: If a concurrent writer beat us twice.
            StorageFailure: If the store failed; nothing was changed.
        """
        if user_id is None:
            raise Unauthorized()
        kind = coerce_target_type(target_type)
        wanted = coerce_reaction(desired)

        key = (user_id, kind.value, target_id)
        with LEDGER_LOCKS.hold(key), self.aggregator.hold(kind, target_id):
            try:
                return self._transact(user_id, kind, target_id, wanted)
            except IntegrityError:
                logger.debug("Reaction write for %s collided; retrying with a fresh read", key)
            try:
                return self._transact(user_id, kind, target_id, wanted)
            except IntegrityError as exc:
                raise Conflict("Reaction changed concurrently, please retry") from exc

    def _transact(
        self,
        user_id: str,
        kind: TargetType,
        target_id: int,
        wanted: ReactionType,
    ) -> ReactionResult:
        try:
            result = self._apply(user_id, kind, target_id, wanted)
            self.session.commit()
        except (IntegrityError, ForumError):
            self.session.rollback()
            raise
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StorageFailure() from exc
        logger.debug(
            "User %s reaction on %s %s: %s -> %s",
            user_id,
            kind.value,
            target_id,
            result.previous.value,
            result.current.value,
        )
        return result

    def _apply(
        self,
        user_id: str,
        kind: TargetType,
        target_id: int,
        wanted: ReactionType,
    ) -> ReactionResult:
        get_target(self.session, kind, target_id)

        row = self.session.get(
            Reaction,
            (user_id, kind.value, target_id),
            populate_existing=True,
        )
        previous = ReactionType(row.value) if row is not None else ReactionType.NONE
        current, delta = resolve_transition(previous, wanted)

        if current is ReactionType.NONE:
            if row is not None:
                self.session.delete(row)
        elif row is None:
            self.session.add(
                Reaction(
                    user_id=user_id,
                    target_type=kind.value,
                    target_id=target_id,
                    value=current.value,
                )
            )
        else:
            row.value = current.value
        self.session.flush()

        aggregate = self.aggregator.apply_delta(kind, target_id, delta)
        return ReactionResult(
            previous=previous,
            current=current,
            delta=delta,
            aggregate=aggregate,
        )

"""Reaction endpoints for posts and replies."""

from fastapi import APIRouter

from reeltalk.api.v1.dependencies import CurrentUserIdDep, SessionDep
from reeltalk.models import ReactionType, TargetType
from reeltalk.schemas.reaction import ReactionChange, ReactionRequest, ReactionState
from reeltalk.services.aggregates import ScoreAggregator
from reeltalk.services.reactions import ReactionLedger

router = APIRouter(tags=["reactions"])


def _state(
    ledger: ReactionLedger,
    user_id: str | None,
    kind: TargetType,
    target_id: int,
) -> ReactionState:
    aggregate = ScoreAggregator(ledger.session).get_aggregate(kind, target_id)
    reaction = ledger.get_reaction(user_id, kind, target_id)
    return ReactionState(
        reaction_type=None if reaction is ReactionType.NONE else reaction.value,
        upvotes=aggregate.upvotes,
        downvotes=aggregate.downvotes,
        score=aggregate.score,
    )


@router.get("/posts/{post_id}/reactions", response_model=ReactionState)
def get_post_reaction(
    post_id: int,
    current_user_id: CurrentUserIdDep,
    db: SessionDep,
) -> ReactionState:
    """Get the caller's reaction on a post and the post's totals."""
    return _state(ReactionLedger(db), current_user_id, TargetType.POST, post_id)


@router.post("/posts/{post_id}/reactions", response_model=ReactionChange)
def set_post_reaction(
    post_id: int,
    payload: ReactionRequest,
    current_user_id: CurrentUserIdDep,
    db: SessionDep,
) -> ReactionChange:
    """Upvote, downvote, or clear the caller's reaction on a post."""
    result = ReactionLedger(db).set_reaction(
        current_user_id, TargetType.POST, post_id, payload.reaction_type
    )
    return ReactionChange.from_result(result)


@router.get("/replies/{reply_id}/reactions", response_model=ReactionState)
def get_reply_reaction(
    reply_id: int,
    current_user_id: CurrentUserIdDep,
    db: SessionDep,
) -> ReactionState:
    """Get the caller's reaction on a reply and the reply's totals."""
    return _state(ReactionLedger(db), current_user_id, TargetType.REPLY, reply_id)


@router.post("/replies/{reply_id}/reactions", response_model=ReactionChange)
def set_reply_reaction(
    reply_id: int,
    payload: ReactionRequest,
    current_user_id: CurrentUserIdDep,
    db: SessionDep,
) -> ReactionChange:
    """Upvote, downvote, or clear the caller's reaction on a reply."""
    result = ReactionLedger(db).set_reaction(
        current_user_id, TargetType.REPLY, reply_id, payload.reaction_type
    )
    return ReactionChange.from_result(result)

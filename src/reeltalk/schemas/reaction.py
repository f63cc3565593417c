# src/reeltalk/schemas/reaction.py
"""Reaction-related Pydantic schemas."""

from typing import Literal

from pydantic import BaseModel, Field

from reeltalk.services.reactions import ReactionResult


class ReactionRequest(BaseModel):
    """Schema for setting a reaction; repeating the current value retracts it."""

    reaction_type: Literal["upvote", "downvote"] | None = Field(
        ...,
        description="'upvote', 'downvote', or null to clear",
    )


class ReactionState(BaseModel):
    """The caller's reaction on a target together with its public totals."""

    reaction_type: Literal["upvote", "downvote"] | None
    upvotes: int
    downvotes: int
    score: int


class ReactionChange(ReactionState):
    """Result of a reaction mutation, enough to update a view without re-reading."""

    previous: Literal["upvote", "downvote"] | None
    upvote_delta: int
    downvote_delta: int

    @classmethod
    def from_result(cls, result: ReactionResult) -> "ReactionChange":
        def _wire(value: str) -> str | None:
            return None if value == "none" else value

        return cls(
            reaction_type=_wire(result.current.value),
            previous=_wire(result.previous.value),
            upvotes=result.aggregate.upvotes,
            downvotes=result.aggregate.downvotes,
            score=result.aggregate.score,
            upvote_delta=result.delta.upvotes,
            downvote_delta=result.delta.downvotes,
        )

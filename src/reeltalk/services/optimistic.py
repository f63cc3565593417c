"""Optimistic view-state updates for reaction and bookmark buttons.

The view is patched before the server answers, replaced by the server's state
when it does, and restored to its previous value when the call fails.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Generic, TypeVar

from reeltalk.models import ReactionType
from reeltalk.services.reactions import ReactionResult, resolve_transition

StateT = TypeVar("StateT")


class OptimisticUpdate(Generic[StateT]):
    """Hold a piece of view state and run optimistic mutations against it."""

    def __init__(self, state: StateT) -> None:
        self.state = state
        self._listeners: list[Callable[[StateT], None]] = []

    def subscribe(self, listener: Callable[[StateT], None]) -> None:
        """Call ``listener`` with every new state."""
        self._listeners.append(listener)

    def _set(self, state: StateT) -> None:
        self.state = state
        for listener in self._listeners:
            listener(state)

    def run(
        self,
        predict: Callable[[StateT], StateT],
        commit: Callable[[], StateT],
    ) -> StateT:
        """Show ``predict(state)`` immediately, then settle on ``commit()``.

        Exceptions from ``commit`` propagate after the state is reverted.
        """
        previous = self.state
        self._set(predict(previous))
        try:
            confirmed = commit()
        except Exception:
            self._set(previous)
            raise
        self._set(confirmed)
        return confirmed


@dataclass(frozen=True)
class ReactionView:
    """What a vote widget shows: the viewer's reaction and the public totals."""

    reaction: ReactionType = ReactionType.NONE
    upvotes: int = 0
    downvotes: int = 0

    @property
    def score(self) -> int:
        return self.upvotes - self.downvotes

    @classmethod
    def from_result(cls, result: ReactionResult) -> ReactionView:
        return cls(
            reaction=result.current,
            upvotes=result.aggregate.upvotes,
            downvotes=result.aggregate.downvotes,
        )


def predict_reaction(view: ReactionView, desired: ReactionType) -> ReactionView:
    """Return the view the server is expected to produce for ``desired``."""
    current, delta = resolve_transition(view.reaction, desired)
    return replace(
        view,
        reaction=current,
        upvotes=view.upvotes + delta.upvotes,
        downvotes=view.downvotes + delta.downvotes,
    )

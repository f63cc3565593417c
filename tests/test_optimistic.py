# tests/test_optimistic.py
"""Tests for optimistic view updates around reaction calls."""

import pytest

from reeltalk.core.errors import StorageFailure
from reeltalk.models import ReactionType, TargetType
from reeltalk.services import OptimisticUpdate, ReactionView, predict_reaction
from reeltalk.services.reactions import ReactionLedger


def test_prediction_matches_server(db_session, test_post, user_id) -> None:
    """The predicted view equals the state the ledger reports."""
    ledger = ReactionLedger(db_session)
    update = OptimisticUpdate(ReactionView())

    for desired in (ReactionType.UPVOTE, ReactionType.DOWNVOTE, ReactionType.DOWNVOTE):
        predicted = predict_reaction(update.state, desired)
        confirmed = update.run(
            lambda view, desired=desired: predict_reaction(view, desired),
            lambda desired=desired: ReactionView.from_result(
                ledger.set_reaction(user_id, TargetType.POST, test_post.id, desired)
            ),
        )
        assert confirmed == predicted


def test_listeners_see_prediction_then_confirmation() -> None:
    seen = []
    update = OptimisticUpdate(ReactionView(upvotes=4, downvotes=1))
    update.subscribe(seen.append)

    update.run(
        lambda view: predict_reaction(view, ReactionType.UPVOTE),
        lambda: ReactionView(reaction=ReactionType.UPVOTE, upvotes=6, downvotes=1),
    )

    assert [view.upvotes for view in seen] == [5, 6]
    assert update.state.score == 5


def test_failed_commit_reverts() -> None:
    seen = []
    start = ReactionView(reaction=ReactionType.DOWNVOTE, upvotes=2, downvotes=3)
    update = OptimisticUpdate(start)
    update.subscribe(seen.append)

    def failing_commit():
        raise StorageFailure()

    with pytest.raises(StorageFailure):
        update.run(lambda view: predict_reaction(view, ReactionType.UPVOTE), failing_commit)

    assert update.state == start
    assert seen[0] == ReactionView(reaction=ReactionType.UPVOTE, upvotes=3, downvotes=2)
    assert seen[-1] == start


def test_bookmark_state_is_generic() -> None:
    update = OptimisticUpdate(False)
    assert update.run(lambda saved: not saved, lambda: True) is True
    assert update.state is True

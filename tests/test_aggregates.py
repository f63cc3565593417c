# tests/test_aggregates.py
"""Tests for the score aggregator."""

import pytest

from reeltalk.core.errors import Conflict, Invalid, NotFound
from reeltalk.models import Reaction, TargetType
from reeltalk.services.aggregates import Aggregate, ScoreAggregator, ScoreDelta


def test_new_targets_start_at_zero(db_session, test_post, test_reply) -> None:
    aggregator = ScoreAggregator(db_session)

    assert aggregator.get_aggregate(TargetType.POST, test_post.id) == Aggregate()
    assert aggregator.get_aggregate("reply", test_reply.id).score == 0


def test_apply_delta_updates_all_three_columns(db_session, test_post) -> None:
    aggregator = ScoreAggregator(db_session)

    aggregate = aggregator.apply_delta(TargetType.POST, test_post.id, ScoreDelta(upvotes=3, downvotes=1))
    db_session.commit()

    assert aggregate == Aggregate(upvotes=3, downvotes=1)
    assert aggregate.score == 2
    assert (test_post.upvotes, test_post.downvotes, test_post.score) == (3, 1, 2)


def test_zero_delta_is_a_read(db_session, test_post) -> None:
    aggregate = ScoreAggregator(db_session).apply_delta(TargetType.POST, test_post.id, ScoreDelta())
    assert aggregate == Aggregate()


def test_negative_totals_are_rejected(db_session, test_post) -> None:
    """A delta that would push a counter below zero means the ledger diverged."""
    with pytest.raises(Conflict):
        ScoreAggregator(db_session).apply_delta(TargetType.POST, test_post.id, ScoreDelta(upvotes=-1))
    db_session.rollback()
    assert test_post.upvotes == 0


def test_missing_target(db_session) -> None:
    aggregator = ScoreAggregator(db_session)

    with pytest.raises(NotFound):
        aggregator.apply_delta(TargetType.REPLY, 999, ScoreDelta(upvotes=1))
    with pytest.raises(NotFound):
        aggregator.get_aggregate(TargetType.POST, 999)


def test_unknown_target_type(db_session) -> None:
    with pytest.raises(Invalid):
        ScoreAggregator(db_session).get_aggregate("thread", 1)


def test_recompute_repairs_drifted_totals(db_session, test_post) -> None:
    """Replaying the ledger overwrites totals that drifted from it."""
    db_session.add_all(
        [
            Reaction(user_id="u1", target_type="post", target_id=test_post.id, value="upvote"),
            Reaction(user_id="u2", target_type="post", target_id=test_post.id, value="upvote"),
            Reaction(user_id="u3", target_type="post", target_id=test_post.id, value="downvote"),
        ]
    )
    test_post.upvotes = 7
    test_post.score = 7
    db_session.commit()

    replayed = ScoreAggregator(db_session).recompute(TargetType.POST, test_post.id)
    db_session.commit()

    assert replayed == Aggregate(upvotes=2, downvotes=1)
    assert (test_post.upvotes, test_post.downvotes, test_post.score) == (2, 1, 1)


def test_recompute_ignores_other_targets(db_session, test_post, test_reply) -> None:
    db_session.add(
        Reaction(user_id="u1", target_type="reply", target_id=test_reply.id, value="upvote")
    )
    db_session.commit()

    assert ScoreAggregator(db_session).recompute(TargetType.POST, test_post.id) == Aggregate()
    assert ScoreAggregator(db_session).recompute(TargetType.REPLY, test_reply.id) == Aggregate(1, 0)


def test_repair_job_fixes_every_target(db_session, make_post, make_reply) -> None:
    from reeltalk.scripts.repair_scores import repair_targets

    posts = [make_post(upvotes=3, score=3), make_post(downvotes=2, score=-2)]
    make_reply(posts[0], upvotes=1, score=1)

    assert repair_targets(db_session, TargetType.POST) == 2
    assert repair_targets(db_session, TargetType.REPLY) == 1
    assert [(p.upvotes, p.downvotes, p.score) for p in posts] == [(0, 0, 0), (0, 0, 0)]

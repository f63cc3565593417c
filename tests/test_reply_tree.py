# tests/test_reply_tree.py
"""Tests for building nested reply threads."""

import random
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import pytest

from reeltalk.core.errors import Invalid, NotFound
from reeltalk.services.reply_tree import ReplyTreeService, build_tree, flatten_tree

T0 = datetime(2024, 3, 1, tzinfo=UTC)


@dataclass(frozen=True)
class FakeReply:
    id: str
    parent_reply_id: str | None
    created_at: datetime
    score: int = 0


def reply(rid, parent=None, minute=0, score=0):
    return FakeReply(rid, parent, T0 + timedelta(minutes=minute), score)


def ids(nodes):
    return [node.reply.id for node in nodes]


def shape(forest):
    """Comparable description of a forest: (id, depth, orphaned, flattened, children)."""
    return [
        (node.reply.id, node.depth, node.orphaned, node.flattened, shape(node.children))
        for node in forest
    ]


def thread_with_orphan():
    """25 replies: five answer r03 and r09 points at a parent that does not exist."""
    replies = []
    for n in range(1, 26):
        rid = f"r{n:02d}"
        if 4 <= n <= 8:
            parent = "r03"
        elif n == 9:
            parent = "zzz"
        else:
            parent = None
        replies.append(reply(rid, parent, minute=n))
    return replies


class TestBuildTree:
    """Structure of the built forest."""

    def test_orphan_scenario(self) -> None:
        forest = build_tree(thread_with_orphan(), max_depth=5)

        assert len(forest) == 20
        assert ids(forest)[:4] == ["r01", "r02", "r03", "r09"]
        r03 = forest[2]
        assert ids(r03.children) == ["r04", "r05", "r06", "r07", "r08"]
        assert all(child.depth == 1 for child in r03.children)
        r09 = forest[3]
        assert r09.orphaned
        assert r09.depth == 0
        assert not any(node.orphaned for node in forest if node is not r09)

    def test_every_reply_appears_exactly_once(self) -> None:
        replies = thread_with_orphan()
        seen = ids(flatten_tree(build_tree(replies, max_depth=5)))

        assert sorted(seen) == sorted(r.id for r in replies)
        assert len(seen) == len(set(seen))

    def test_result_independent_of_input_order(self) -> None:
        replies = thread_with_orphan() + [
            reply("c1", "c2", minute=40),
            reply("c2", "c1", minute=41),
            reply("d1", "r04", minute=42, score=3),
            reply("d2", "r04", minute=43, score=3),
        ]
        expected = shape(build_tree(replies, max_depth=2))

        rng = random.Random(7)
        for _ in range(20):
            shuffled = list(replies)
            rng.shuffle(shuffled)
            assert shape(build_tree(shuffled, max_depth=2)) == expected

    def test_duplicate_ids_with_equal_timestamps(self) -> None:
        """Copies of one reply that differ only in parent resolve the same way in any order."""
        under_b = reply("d", "b", minute=5)
        under_a = reply("d", "a", minute=5)
        base = [reply("a", minute=0), reply("b", minute=1)]

        forward = build_tree(base + [under_b, under_a], max_depth=5)
        backward = build_tree(base + [under_a, under_b], max_depth=5)

        assert shape(forward) == shape(backward)
        assert ids(forward[0].children) == ["d"]
        assert forward[1].children == []

    def test_top_level_duplicate_wins_a_timestamp_tie(self) -> None:
        copies = [reply("d", "a", minute=5, score=9), reply("d", minute=5)]
        base = [reply("a", minute=0)]

        for ordering in (copies, copies[::-1]):
            forest = build_tree(base + ordering, max_depth=5)
            assert ids(forest) == ["a", "d"]
            assert forest[0].children == []

    def test_roots_oldest_first_children_by_score(self) -> None:
        replies = [
            reply("b", minute=2),
            reply("a", minute=1),
            reply("a-low", "a", minute=3, score=-1),
            reply("a-high", "a", minute=5, score=10),
            reply("a-tie-old", "a", minute=4, score=2),
            reply("a-tie-new", "a", minute=6, score=2),
        ]

        forest = build_tree(replies, max_depth=5)

        assert ids(forest) == ["a", "b"]
        assert ids(forest[0].children) == ["a-high", "a-tie-old", "a-tie-new", "a-low"]

    def test_equal_timestamps_fall_back_to_id(self) -> None:
        replies = [reply("y"), reply("x"), reply("z")]
        assert ids(build_tree(replies, max_depth=5)) == ["x", "y", "z"]

    def test_empty_input(self) -> None:
        assert build_tree([], max_depth=5) == []


class TestCycles:
    """Parent cycles terminate and surface as orphans."""

    def test_two_reply_cycle_is_cut_at_earliest_member(self) -> None:
        replies = [
            reply("x", "y", minute=1),
            reply("y", "x", minute=2),
            reply("z", "x", minute=3),
        ]

        forest = build_tree(replies, max_depth=5)

        assert ids(forest) == ["x"]
        assert forest[0].orphaned
        assert ids(forest[0].children) == ["y", "z"]

    def test_self_parent(self) -> None:
        forest = build_tree([reply("w", "w")], max_depth=5)

        assert ids(forest) == ["w"]
        assert forest[0].orphaned

    def test_long_cycle_hanging_off_a_chain(self) -> None:
        replies = [reply(f"n{i}", f"n{(i + 1) % 50}", minute=i) for i in range(50)]
        replies.append(reply("tail", "n25", minute=60))

        flat = list(flatten_tree(build_tree(replies, max_depth=100)))

        assert len(flat) == 51
        assert flat[0].reply.id == "n0"
        assert flat[0].orphaned

    def test_deep_chain_does_not_recurse(self) -> None:
        replies = [reply("c0", minute=0)]
        replies += [reply(f"c{i}", f"c{i - 1}", minute=i) for i in range(1, 5000)]

        flat = list(flatten_tree(build_tree(replies, max_depth=10_000)))

        assert len(flat) == 5000
        assert flat[-1].depth == 4999


class TestDepthCap:
    """Replies deeper than the cap attach to the deepest allowed ancestor."""

    def test_chain_is_flattened_under_cap(self) -> None:
        replies = [
            reply("a", minute=1),
            reply("b", "a", minute=2),
            reply("c", "b", minute=3),
            reply("d", "c", minute=4),
            reply("e", "d", minute=5),
        ]

        forest = build_tree(replies, max_depth=2)

        a = forest[0]
        b = a.children[0]
        assert ids(b.children) == ["c", "d", "e"]
        assert [node.depth for node in b.children] == [2, 2, 2]
        assert [node.flattened for node in b.children] == [False, True, True]
        assert max(node.depth for node in flatten_tree(forest)) == 2

    def test_zero_depth_is_fully_flat(self) -> None:
        replies = [reply("a", minute=1), reply("b", "a", minute=2), reply("c", "b", minute=3)]

        forest = build_tree(replies, max_depth=0)

        assert ids(forest) == ["a", "b", "c"]
        assert [node.depth for node in forest] == [0, 0, 0]
        assert [node.flattened for node in forest] == [False, True, True]

    def test_negative_depth_is_invalid(self) -> None:
        with pytest.raises(Invalid):
            build_tree([reply("a")], max_depth=-1)


class TestFlattenTree:
    def test_preorder(self) -> None:
        replies = [
            reply("a", minute=1),
            reply("a1", "a", minute=2),
            reply("a1x", "a1", minute=3),
            reply("a2", "a", minute=4),
            reply("b", minute=5),
        ]
        assert ids(flatten_tree(build_tree(replies, max_depth=5))) == ["a", "a1", "a1x", "a2", "b"]


class TestReplyTreeService:
    """Loading a thread from the database."""

    def test_tree_for_post(self, db_session, test_post, make_reply) -> None:
        top = make_reply(test_post)
        child = make_reply(test_post, top)
        make_reply(test_post, child)

        forest = ReplyTreeService(db_session).tree_for_post(test_post.id)

        assert [node.reply.id for node in forest] == [top.id]
        assert [n.depth for n in flatten_tree(forest)] == [0, 1, 2]

    def test_other_posts_are_excluded(self, db_session, make_post, make_reply) -> None:
        first, second = make_post(), make_post()
        make_reply(first)
        make_reply(second)

        forest = ReplyTreeService(db_session).tree_for_post(first.id)

        assert len(forest) == 1
        assert forest[0].reply.post_id == first.id

    def test_depth_override(self, db_session, test_post, make_reply) -> None:
        top = make_reply(test_post)
        make_reply(test_post, top)

        forest = ReplyTreeService(db_session).tree_for_post(test_post.id, max_depth=0)

        assert len(forest) == 2

    def test_missing_post(self, db_session) -> None:
        with pytest.raises(NotFound):
            ReplyTreeService(db_session).tree_for_post(12345)

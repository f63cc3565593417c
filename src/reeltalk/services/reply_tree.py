"""Reconstruction of nested reply threads from flat reply rows.

The builder is pure: it takes any objects exposing ``id``, ``parent_reply_id``,
``created_at`` and ``score`` and returns the same forest for the same set of
replies regardless of arrival order. Every input reply appears exactly once.
Dangling parents and parent cycles become root-level orphans; replies nested
deeper than the cap hang off the deepest allowed ancestor instead.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Iterator
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session

from reeltalk.core.errors import Invalid, NotFound
from reeltalk.core.settings import settings
from reeltalk.db.time import as_utc
from reeltalk.models import Post, Reply


class ReplyLike(Protocol):
    """Shape of the rows the builder consumes."""

    id: Any
    parent_reply_id: Any
    created_at: datetime
    score: int


@dataclass
class ReplyNode:
    """A reply positioned in the displayed thread."""

    reply: Any
    depth: int = 0
    children: list[ReplyNode] = field(default_factory=list)
    # Declared parent missing from the input or part of a parent cycle.
    orphaned: bool = False
    # Attached above its true parent because of the depth cap.
    flattened: bool = False


def _root_order(reply: ReplyLike) -> tuple[datetime, Any]:
    return (as_utc(reply.created_at), reply.id)


def _child_order(reply: ReplyLike) -> tuple[int, datetime, Any]:
    return (-reply.score, as_utc(reply.created_at), reply.id)


def _duplicate_order(reply: ReplyLike) -> tuple:
    # Prefers the oldest copy, then a top-level one, then the higher score.
    parent = reply.parent_reply_id
    return (_root_order(reply), parent is not None, str(parent), -reply.score)


def _index(replies: Iterable[ReplyLike]) -> dict[Hashable, ReplyLike]:
    """Keep one copy per id, chosen by row fields only so input order never matters."""
    index: dict[Hashable, ReplyLike] = {}
    for reply in replies:
        seen = index.get(reply.id)
        if seen is None or _duplicate_order(reply) < _duplicate_order(seen):
            index[reply.id] = reply
    return index


def _break_cycles(index: dict[Hashable, ReplyLike], parent_of: dict[Hashable, Any]) -> set:
    """Cut every parent cycle at its earliest member; return the cut ids.

    Walks up each chain with an explicit visited set instead of recursing.
    """
    cut: set = set()
    settled: set = set()
    for start in sorted(index, key=lambda rid: _root_order(index[rid])):
        path: list = []
        on_path: set = set()
        node = start
        while node is not None and node not in settled and node not in on_path:
            path.append(node)
            on_path.add(node)
            node = parent_of[node]
        if node is not None and node in on_path:
            cycle = path[path.index(node):]
            breaker = min(cycle, key=lambda rid: _root_order(index[rid]))
            parent_of[breaker] = None
            cut.add(breaker)
        settled.update(path)
    return cut


def _depths(parent_of: dict[Hashable, Any]) -> dict[Hashable, int]:
    depth: dict[Hashable, int] = {}
    for start in parent_of:
        chain: list = []
        node = start
        while node is not None and node not in depth:
            chain.append(node)
            node = parent_of[node]
        base = -1 if node is None else depth[node]
        for offset, rid in enumerate(reversed(chain), start=1):
            depth[rid] = base + offset
    return depth


def build_tree(replies: Iterable[ReplyLike], max_depth: int) -> list[ReplyNode]:
    """Return the ordered forest for ``replies``.

    Roots (top-level replies and orphans) are ordered oldest first; siblings
    below them by score descending, then oldest first. Replies whose depth
    would exceed ``max_depth`` are attached to their ancestor at depth
    ``max_depth - 1`` so they render at ``max_depth``; with ``max_depth == 0``
    the whole thread is flat.

    Raises:
        Invalid: If ``max_depth`` is negative.
    """
    if max_depth < 0:
        raise Invalid("max_depth must be zero or greater")

    index = _index(replies)
    orphans: set = set()
    parent_of: dict[Hashable, Any] = {}
    for rid, reply in index.items():
        parent = reply.parent_reply_id
        if parent is None:
            parent_of[rid] = None
        elif parent not in index or parent == rid:
            parent_of[rid] = None
            orphans.add(rid)
        else:
            parent_of[rid] = parent
    orphans |= _break_cycles(index, parent_of)
    true_depth = _depths(parent_of)

    nodes = {
        rid: ReplyNode(reply=reply, orphaned=rid in orphans)
        for rid, reply in index.items()
    }
    roots: list[ReplyNode] = []
    for rid, node in nodes.items():
        parent = parent_of[rid]
        depth = true_depth[rid]
        if depth > max_depth:
            node.flattened = True
            # Climb to the ancestor sitting at max_depth - 1.
            for _ in range(depth - max_depth):
                parent = parent_of[parent] if parent is not None else None
            depth = max_depth
        node.depth = depth
        if parent is None:
            roots.append(node)
        else:
            nodes[parent].children.append(node)

    for node in nodes.values():
        node.children.sort(key=lambda child: _child_order(child.reply))
    roots.sort(key=lambda root: _root_order(root.reply))
    return roots


def flatten_tree(forest: Iterable[ReplyNode]) -> Iterator[ReplyNode]:
    """Yield nodes in display order (depth-first, pre-order)."""
    stack = list(reversed(list(forest)))
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


class ReplyTreeService:
    """Load a post's replies and arrange them as a thread."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def tree_for_post(self, post_id: int, max_depth: int | None = None) -> list[ReplyNode]:
        """Return the reply forest of ``post_id``.

        Raises:
            NotFound: If the post does not exist.
        """
        if self.session.get(Post, post_id) is None:
            raise NotFound("Post not found")
        replies = self.session.scalars(
            select(Reply).where(Reply.post_id == post_id).order_by(Reply.id)
        ).all()
        depth_cap = settings.reply_max_depth if max_depth is None else max_depth
        return build_tree(replies, depth_cap)

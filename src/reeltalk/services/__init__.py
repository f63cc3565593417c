# src/reeltalk/services/__init__.py
"""Business logic services for the ReelTalk discussion engine."""

from .aggregates import Aggregate, ScoreAggregator, ScoreDelta
from .bookmarks import BookmarkPage, BookmarkRegistry
from .feed import FeedFilter, FeedPage, FeedPaginator, FeedSession, FeedSort
from .optimistic import OptimisticUpdate, ReactionView, predict_reaction
from .reactions import ReactionLedger, ReactionResult
from .reply_tree import ReplyNode, ReplyTreeService, build_tree

__all__ = [
    "Aggregate", "ScoreAggregator", "ScoreDelta",
    "BookmarkPage", "BookmarkRegistry",
    "FeedFilter", "FeedPage", "FeedPaginator", "FeedSession", "FeedSort",
    "OptimisticUpdate", "ReactionView", "predict_reaction",
    "ReactionLedger", "ReactionResult",
    "ReplyNode", "ReplyTreeService", "build_tree",
]

"""
People-to-follow sourcing — independent strategies feeding one deduplicating set.

Strategies (each implements SourceStrategy):
- friends_of_friends: 2-hop traversal of the follow graph
- follows_you: accounts that follow the viewer but are not followed back
- like_overlap: viewers who liked the same content recently
- new_accounts: accounts joined within new_account_days
- engaged_with_you: viewers who recently engaged with the viewer's content

When the union is smaller than the requested limit (cold start), fallback
strategies (popular accounts) top it up. New strategies plug in without
touching the scorer.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Protocol, Sequence, Set

from ..errors import StoreUnavailableError
from ..models.catalog import CandidateFilter, CandidateKind, CandidateOrder, UserAccount
from ..models.config import DiscoveryConfig
from ..models.scoring import PeopleSignals
from ..stores.base import InteractionLogStore
from ..stores.catalog import ContentRepository

logger = logging.getLogger(__name__)


@dataclass
class SourceContext:
    """Per-request inputs shared by every strategy."""

    viewer_id: str
    following: Set[str]
    followers: Set[str]
    # Viewer, already-followed, seen, not-interested and caller exclusions
    excluded_ids: Set[str]
    repository: ContentRepository
    interactions: InteractionLogStore
    now: datetime
    config: DiscoveryConfig

    @property
    def pool_size(self) -> int:
        return self.config.people_strategy_pool_size


class SourceStrategy(Protocol):
    name: str

    def collect(self, context: SourceContext) -> Dict[str, PeopleSignals]:
        """Candidate account ids mapped to the evidence this strategy found."""
        ...


def _signals(name: str, user_ids: Iterable[str], **evidence) -> Dict[str, PeopleSignals]:
    return {uid: PeopleSignals(user_id=uid, sources={name}, **evidence) for uid in user_ids}


class FriendsOfFriendsStrategy:
    name = "friends_of_friends"

    def collect(self, context: SourceContext) -> Dict[str, PeopleSignals]:
        paths: Dict[str, int] = {}
        for followee in sorted(context.following):
            for candidate in context.repository.get_following(followee):
                if candidate in context.excluded_ids:
                    continue
                paths[candidate] = paths.get(candidate, 0) + 1
        ranked = sorted(paths.items(), key=lambda kv: (-kv[1], kv[0]))[: context.pool_size]
        return {
            uid: PeopleSignals(user_id=uid, second_degree_paths=count, sources={self.name})
            for uid, count in ranked
        }


class FollowsYouStrategy:
    name = "follows_you"

    def collect(self, context: SourceContext) -> Dict[str, PeopleSignals]:
        not_followed_back = sorted(context.followers - context.following - context.excluded_ids)
        return _signals(self.name, not_followed_back[: context.pool_size], follows_viewer=True)


class LikeOverlapStrategy:
    name = "like_overlap"

    def collect(self, context: SourceContext) -> Dict[str, PeopleSignals]:
        since = context.now - timedelta(days=context.config.like_overlap_days)
        liked = context.interactions.liked_content_ids(context.viewer_id, since, context.pool_size)
        if not liked:
            return {}
        co_likers = context.interactions.co_likers(liked, since, context.viewer_id, context.pool_size)
        return {
            uid: PeopleSignals(user_id=uid, co_engagement=shared, sources={self.name})
            for uid, shared in co_likers.items()
            if uid not in context.excluded_ids
        }


class NewAccountsStrategy:
    name = "new_accounts"

    def collect(self, context: SourceContext) -> Dict[str, PeopleSignals]:
        candidate_filter = CandidateFilter(
            kind=CandidateKind.USER,
            joined_after=context.now - timedelta(days=context.config.new_account_days),
            exclude_ids=frozenset(context.excluded_ids),
            order=CandidateOrder.RECENT,
        )
        users = context.repository.list_candidates(candidate_filter, limit=context.pool_size)
        return _signals(self.name, _user_ids(users, context.excluded_ids))


class RecentEngagersStrategy:
    name = "engaged_with_you"

    def collect(self, context: SourceContext) -> Dict[str, PeopleSignals]:
        since = context.now - timedelta(days=context.config.engaged_with_you_days)
        engagers = context.interactions.recent_engagers(context.viewer_id, since, context.pool_size)
        return _signals(self.name, sorted(engagers - context.excluded_ids), engaged_with_viewer=True)


class PopularAccountsStrategy:
    name = "popular"

    def collect(self, context: SourceContext) -> Dict[str, PeopleSignals]:
        candidate_filter = CandidateFilter(
            kind=CandidateKind.USER,
            exclude_ids=frozenset(context.excluded_ids),
            order=CandidateOrder.POPULAR,
        )
        users = context.repository.list_candidates(candidate_filter, limit=context.pool_size)
        return _signals(self.name, _user_ids(users, context.excluded_ids))


def _user_ids(users: Sequence, excluded_ids: Set[str]) -> List[str]:
    return [u.id for u in users if isinstance(u, UserAccount) and u.id not in excluded_ids]


DEFAULT_STRATEGIES: Sequence[SourceStrategy] = (
    FriendsOfFriendsStrategy(),
    FollowsYouStrategy(),
    LikeOverlapStrategy(),
    NewAccountsStrategy(),
    RecentEngagersStrategy(),
)

FALLBACK_STRATEGIES: Sequence[SourceStrategy] = (PopularAccountsStrategy(),)


def _run_strategies(
    strategies: Sequence[SourceStrategy],
    context: SourceContext,
    merged: Dict[str, PeopleSignals],
) -> None:
    """Run each strategy independently; a failing strategy contributes nothing."""
    for strategy in strategies:
        try:
            found = strategy.collect(context)
        except StoreUnavailableError as e:
            logger.warning("[people] Strategy %s skipped viewer=%s: %s", strategy.name, context.viewer_id, e)
            continue
        for uid, signals in found.items():
            if uid in merged:
                merged[uid].merge(signals)
            else:
                merged[uid] = signals


def count_mutual_connections(context: SourceContext, candidate_id: str) -> int:
    """Accounts connected (either follow direction) to both the viewer and the candidate."""
    viewer_network = context.following | context.followers
    candidate_network = context.repository.get_following(candidate_id) | context.repository.get_followers(
        candidate_id
    )
    return len((viewer_network & candidate_network) - {context.viewer_id, candidate_id})


def _drop_ineligible(merged: Dict[str, PeopleSignals], context: SourceContext) -> None:
    """Remove unknown and inactive accounts so they never count toward the limit."""
    for uid in sorted(merged):
        user = context.repository.get_user(uid)
        if user is None:
            logger.warning("[people] Candidate not found, skipping user_id=%s", uid)
            del merged[uid]
        elif not user.is_active:
            del merged[uid]


def source_people_candidates(
    context: SourceContext,
    limit: int,
    strategies: Sequence[SourceStrategy] = DEFAULT_STRATEGIES,
    fallbacks: Sequence[SourceStrategy] = FALLBACK_STRATEGIES,
) -> Dict[str, PeopleSignals]:
    """
    Union of every strategy's candidates, deduplicated, with mutual counts filled in.

    Only active, known accounts are kept. Fallback strategies run only when
    the eligible union is smaller than limit.
    """
    merged: Dict[str, PeopleSignals] = {}
    _run_strategies(strategies, context, merged)
    _drop_ineligible(merged, context)

    if len(merged) < limit:
        logger.info(
            "[people] Only %d candidates for viewer=%s, running fallbacks", len(merged), context.viewer_id
        )
        _run_strategies(fallbacks, context, merged)
        _drop_ineligible(merged, context)

    for uid, signals in merged.items():
        signals.mutual_connections = count_mutual_connections(context, uid)
    return merged

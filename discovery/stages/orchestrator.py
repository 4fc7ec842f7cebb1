"""
Pipeline orchestrator — sourcing, scoring, then diversity for each surface.

build_personalized_feed: content surfaces (reels, voice, explore).
build_suggested_people: people-to-follow.

Both mark what they return in the seen ledger as a best-effort side effect.
Signal reads that fail degrade to neutral defaults; if the seen ledger or the
exclusion provider cannot be read, the request returns an empty page, since
excluded items must never be served.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Iterable, List, Optional, Set, Tuple, TypeVar

from ..errors import StoreUnavailableError
from ..models.config import DiscoveryConfig
from ..models.interaction import ContentClass
from ..models.scoring import RankedItem, RankedProfile, ScoredContent, ScoredProfile
from ..models.signals import InterestProfile, SeenKind
from ..stores.base import ExclusionProvider, SignalStore
from ..stores.catalog import ContentRepository
from .candidate_pool import merge_exclusions, source_content_candidates
from .people_sources import SourceContext, source_people_candidates
from .ranking import (
    ViewerContext,
    content_constraints,
    diversify,
    interleave_by_creator,
    people_constraints,
    score_contents,
    score_profile,
    seeded_random,
    session_seed_key,
)
from .seen import mark_seen

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _safe_read(label: str, read: Callable[[], T], default: T) -> T:
    """Run a store read; on failure log and fall back to default."""
    try:
        return read()
    except StoreUnavailableError as e:
        logger.warning("[sourcing] %s unavailable, using default: %s", label, e)
        return default


def _load_exclusions(
    store: SignalStore,
    exclusions: Optional[ExclusionProvider],
    viewer_id: str,
    seen_kind: SeenKind,
    now: datetime,
) -> Optional[Tuple[Set[str], Set[str], Set[str]]]:
    """(seen ids, not-interested content ids, not-interested creator ids), or None if unreadable."""
    try:
        seen = store.active_seen_ids(viewer_id, seen_kind, now)
        if exclusions is None:
            return seen, set(), set()
        return seen, exclusions.excluded_content_ids(viewer_id), exclusions.excluded_creator_ids(viewer_id)
    except StoreUnavailableError as e:
        logger.warning("[sourcing] Exclusions unavailable viewer=%s, returning no results: %s", viewer_id, e)
        return None


def _mark_shown(
    store: SignalStore,
    viewer_id: str,
    seen_kind: SeenKind,
    item_ids: Iterable[str],
    now: datetime,
    config: DiscoveryConfig,
    session_id: Optional[str],
) -> None:
    try:
        mark_seen(store, viewer_id, seen_kind, item_ids, now, config, session_id)
    except StoreUnavailableError as e:
        logger.warning("[seen] Could not mark %s items seen viewer=%s: %s", seen_kind.value, viewer_id, e)


def _viewer_context(
    store: SignalStore,
    repository: ContentRepository,
    viewer_id: str,
    content_ids: List[str],
    now: datetime,
    config: DiscoveryConfig,
) -> ViewerContext:
    """Load profile, follows, top creators, fatigue and velocity for one request."""
    profile = _safe_read("interest profile", lambda: store.get_interest_profile(viewer_id), None)
    since = now - timedelta(hours=config.velocity_window_hours)
    return ViewerContext(
        viewer_id=viewer_id,
        profile=profile or InterestProfile(viewer_id=viewer_id),
        following=repository.get_following(viewer_id),
        top_creators=set(
            _safe_read("top creators", lambda: store.top_creator_ids(viewer_id, config.top_creator_limit), [])
        ),
        fatigue=_safe_read("fatigue", lambda: store.fatigue_scores(content_ids), {}),
        velocity=_safe_read("velocity", lambda: store.current_velocities(content_ids, since), {}),
        now=now,
    )


def _ranked_items(page: List[ScoredContent]) -> List[RankedItem]:
    return [
        RankedItem(
            content_id=s.item.id,
            creator_id=s.item.creator_id,
            content_class=s.item.content_class,
            score=round(s.score, 4),
            position=position,
            breakdown={k: round(v, 4) for k, v in s.breakdown.items()},
        )
        for position, s in enumerate(page)
    ]


def _ranked_profiles(page: List[ScoredProfile]) -> List[RankedProfile]:
    return [
        RankedProfile(
            user_id=s.user.id,
            username=s.user.username,
            display_name=s.user.display_name,
            score=round(s.score, 4),
            position=position,
            mutual_connections=s.signals.mutual_connections,
            reasons=sorted(s.signals.sources),
            breakdown={k: round(v, 4) for k, v in s.breakdown.items()},
        )
        for position, s in enumerate(page)
    ]


def build_personalized_feed(
    viewer_id: str,
    content_class: Optional[ContentClass],
    page_size: int,
    session_id: Optional[str],
    store: SignalStore,
    repository: ContentRepository,
    exclusions: Optional[ExclusionProvider],
    config: DiscoveryConfig,
    now: datetime,
    extra_exclusions: Optional[Set[str]] = None,
    interleave: bool = False,
) -> List[RankedItem]:
    """
    Build one ranked content page (sourcing → scoring → diversity).

    Returns [] for an empty pool. With interleave=True creators are
    round-robined instead of spaced.
    """
    loaded = _load_exclusions(store, exclusions, viewer_id, SeenKind.CONTENT, now)
    if loaded is None:
        return []
    seen_ids, not_interested_ids, not_interested_creators = loaded
    excluded_ids = merge_exclusions(seen_ids, not_interested_ids, extra_exclusions)

    # Sourcing: oversized pool
    pool = source_content_candidates(
        repository, viewer_id, content_class, page_size, excluded_ids, not_interested_creators, config
    )
    if not pool:
        return []

    # Scoring: one context load, jitter from the session stream
    seed_key = session_seed_key(viewer_id, session_id)
    context = _viewer_context(store, repository, viewer_id, [item.id for item in pool], now, config)
    scored = score_contents(pool, context, config, seeded_random(seed_key, "jitter"))

    # Diversity
    if interleave:
        page = interleave_by_creator(scored, config.interleave_max_per_creator)[:page_size]
    else:
        page = diversify(scored, page_size, content_constraints(config), seeded_random(seed_key, "shuffle"))

    _mark_shown(store, viewer_id, SeenKind.CONTENT, [s.item.id for s in page], now, config, session_id)
    logger.debug(
        "[sourcing] Feed viewer=%s class=%s pool=%d page=%d",
        viewer_id, content_class.value if content_class else "ALL", len(pool), len(page),
    )
    return _ranked_items(page)


def build_suggested_people(
    viewer_id: str,
    limit: int,
    session_id: Optional[str],
    store: SignalStore,
    repository: ContentRepository,
    exclusions: Optional[ExclusionProvider],
    config: DiscoveryConfig,
    now: datetime,
    extra_exclusions: Optional[Set[str]] = None,
) -> List[RankedProfile]:
    """
    Build one ranked page of accounts to follow.

    Excludes the viewer, accounts already followed, profiles suggested within
    the profile TTL, not-interested creators and caller extras.
    """
    loaded = _load_exclusions(store, exclusions, viewer_id, SeenKind.PROFILE, now)
    if loaded is None:
        return []
    seen_ids, _, not_interested_creators = loaded

    following = repository.get_following(viewer_id)
    followers = repository.get_followers(viewer_id)
    excluded_ids = merge_exclusions(seen_ids, not_interested_creators, extra_exclusions, following, {viewer_id})

    context = SourceContext(
        viewer_id=viewer_id,
        following=following,
        followers=followers,
        excluded_ids=excluded_ids,
        repository=repository,
        interactions=store,
        now=now,
        config=config,
    )
    candidates = source_people_candidates(context, limit)
    if not candidates:
        return []

    viewer_account = repository.get_user(viewer_id)
    seed_key = session_seed_key(viewer_id, session_id)
    jitter_rng = seeded_random(seed_key, "people-jitter")
    scored: List[ScoredProfile] = []
    for uid in sorted(candidates):
        user = repository.get_user(uid)
        if user is None:
            continue
        scored.append(score_profile(user, candidates[uid], viewer_account, now, config, jitter_rng))

    page = diversify(
        scored, limit, people_constraints(config, limit), seeded_random(seed_key, "people-shuffle")
    )
    _mark_shown(store, viewer_id, SeenKind.PROFILE, [s.user.id for s in page], now, config, session_id)
    return _ranked_profiles(page)

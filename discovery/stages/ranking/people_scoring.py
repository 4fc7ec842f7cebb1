"""
Tiered scoring for people suggestions.

The composite sums independently capped tiers so no single signal dominates:
- social:     mutuals * 40 (cap 200) + 2-hop paths * 25 (cap 100) + 100 if they follow the viewer
- engagement: co-engagement * 15 (cap 150) + bio keyword overlap * 10 (cap 100)
- similarity: per ordinal attribute 50 / 25 / 10 / 0 by bucket distance (cap 200)
- quality:    verified, completeness, activity, follower ratio, influence (cap 150)
- growth:     new-account boost, engaged-with-you, brand-new poster (uncapped)
- jitter:     uniform in [0, jitter_max), added last
"""

import re
from datetime import datetime
from typing import Dict, List, Optional, Set

from ...models.catalog import UserAccount
from ...models.config import DiscoveryConfig
from ...models.scoring import PeopleSignals, ScoredProfile
from ...utils.scores import days_between
from .shuffle import RandomSource

SOCIAL_CAP = 400.0
MUTUAL_WEIGHT, MUTUAL_CAP = 40.0, 200.0
PATH_WEIGHT, PATH_CAP = 25.0, 100.0
FOLLOWS_VIEWER_BONUS = 100.0

ENGAGEMENT_CAP = 250.0
CO_ENGAGEMENT_WEIGHT, CO_ENGAGEMENT_CAP = 15.0, 150.0
KEYWORD_WEIGHT, KEYWORD_CAP = 10.0, 100.0

SIMILARITY_CAP = 200.0
# Bucket distance -> points
SIMILARITY_POINTS = {0: 50.0, 1: 25.0, 2: 10.0}

QUALITY_CAP = 150.0
VERIFIED_BONUS = 50.0
RATIO_CAP = 30.0
INFLUENCE_CAP = 40.0

NEW_ACCOUNT_BASE = 75.0
NEW_ACCOUNT_DECAY_PER_DAY = 5.0
ENGAGED_WITH_VIEWER_BONUS = 80.0
BRAND_NEW_POSTER_BONUS = 40.0

_WORD = re.compile(r"[a-z0-9]+")
_STOPWORDS = frozenset(
    "about also from have just like love more only that their them they this what when with your".split()
)


def bio_keywords(text: Optional[str]) -> Set[str]:
    """Lowercase words of 4+ characters, minus common filler."""
    if not text:
        return set()
    return {w for w in _WORD.findall(text.lower()) if len(w) >= 4 and w not in _STOPWORDS}


def social_tier(signals: PeopleSignals) -> float:
    score = min(signals.mutual_connections * MUTUAL_WEIGHT, MUTUAL_CAP)
    score += min(signals.second_degree_paths * PATH_WEIGHT, PATH_CAP)
    if signals.follows_viewer:
        score += FOLLOWS_VIEWER_BONUS
    return min(score, SOCIAL_CAP)


def engagement_tier(signals: PeopleSignals, viewer: Optional[UserAccount], user: UserAccount) -> float:
    score = min(signals.co_engagement * CO_ENGAGEMENT_WEIGHT, CO_ENGAGEMENT_CAP)
    if viewer is not None:
        overlap = len(bio_keywords(viewer.bio) & bio_keywords(user.bio))
        score += min(overlap * KEYWORD_WEIGHT, KEYWORD_CAP)
    return min(score, ENGAGEMENT_CAP)


def bucket_similarity(a: int, b: int) -> float:
    """50 for the same bucket, 25 adjacent, 10 two apart, else 0."""
    return SIMILARITY_POINTS.get(abs(a - b), 0.0)


def similarity_tier(viewer: Optional[UserAccount], user: UserAccount, attributes: List[str]) -> float:
    if viewer is None:
        return 0.0
    score = 0.0
    for name in attributes:
        if name in viewer.attributes and name in user.attributes:
            score += bucket_similarity(viewer.attributes[name], user.attributes[name])
    return min(score, SIMILARITY_CAP)


def quality_tier(user: UserAccount, now: datetime) -> float:
    score = VERIFIED_BONUS if user.is_verified else 0.0

    # Profile completeness
    if user.avatar_url:
        score += 10
    if user.bio and len(user.bio) > 20:
        score += 10
    if user.display_name and user.display_name.strip().lower() != user.username.lower():
        score += 5
    if user.cover_url:
        score += 5

    if user.last_active_at is not None:
        score += max(0, 30 - days_between(user.last_active_at, now))

    ratio = user.follower_count / max(1, user.following_count)
    if ratio >= 1:
        score += min(ratio * 10, RATIO_CAP)

    score += min(user.influence_score / 50, INFLUENCE_CAP)
    return min(score, QUALITY_CAP)


def growth_tier(user: UserAccount, signals: PeopleSignals, now: datetime, config: DiscoveryConfig) -> float:
    age_days = days_between(user.created_at, now)
    score = 0.0
    if age_days <= config.new_account_days:
        score += max(0.0, NEW_ACCOUNT_BASE - age_days * NEW_ACCOUNT_DECAY_PER_DAY)
    if signals.engaged_with_viewer:
        score += ENGAGED_WITH_VIEWER_BONUS
    if age_days <= config.brand_new_days and user.post_count >= 1:
        score += BRAND_NEW_POSTER_BONUS
    return score


def score_profile(
    user: UserAccount,
    signals: PeopleSignals,
    viewer: Optional[UserAccount],
    now: datetime,
    config: DiscoveryConfig,
    rng: RandomSource,
) -> ScoredProfile:
    """Compute the tiered score and breakdown for one suggested account."""
    breakdown: Dict[str, float] = {
        "social": social_tier(signals),
        "engagement": engagement_tier(signals, viewer, user),
        "similarity": similarity_tier(viewer, user, config.similarity_attributes),
        "quality": quality_tier(user, now),
        "growth": growth_tier(user, signals, now, config),
    }
    breakdown["jitter"] = rng.random() * config.jitter_max
    return ScoredProfile(user=user, signals=signals, score=sum(breakdown.values()), breakdown=breakdown)

"""
Per-candidate content scoring.

score = creator boost                      (100 followed, 80 top affinity, else 0)
      + likes + 2 * comments - fatigue     (engagement minus fatigue)
      + preference_weight * class preference
      + velocity term                      (viral or inside the boost window)
      + recency_weight * recency step
      + jitter in [0, jitter_max)          (added last)

Every term is reported in the breakdown so a ranking can be explained.
"""

from datetime import datetime
from typing import Dict, List, Set

from pydantic import BaseModel, Field

from ...models.catalog import ContentItem
from ...models.config import DiscoveryConfig
from ...models.policy import VIRAL_THRESHOLD
from ...models.scoring import ScoredContent
from ...models.signals import InterestProfile
from ...utils.scores import hours_between, recency_multiplier
from .shuffle import RandomSource


class ViewerContext(BaseModel):
    """Everything the scorer knows about the viewer and the pool, loaded once per request."""

    viewer_id: str
    profile: InterestProfile
    following: Set[str] = Field(default_factory=set)
    top_creators: Set[str] = Field(default_factory=set)
    fatigue: Dict[str, int] = Field(default_factory=dict)
    velocity: Dict[str, float] = Field(default_factory=dict)
    now: datetime


def is_in_golden_hour(created_at: datetime, now: datetime) -> bool:
    """True during the first hour after publishing."""
    return hours_between(created_at, now) <= 1


def is_in_boost_window(created_at: datetime, now: datetime, window_hours: float = 6.0) -> bool:
    return hours_between(created_at, now) <= window_hours


def creator_boost(item: ContentItem, context: ViewerContext, config: DiscoveryConfig) -> float:
    if item.creator_id in context.following:
        return config.followed_creator_boost
    if item.creator_id in context.top_creators:
        return config.affinity_creator_boost
    return 0.0


def velocity_term(item: ContentItem, context: ViewerContext, config: DiscoveryConfig) -> float:
    """Velocity boost; below the viral threshold only fresh content gets it."""
    velocity = context.velocity.get(item.id, 0.0)
    if velocity <= 0:
        return 0.0
    fresh = is_in_boost_window(item.created_at, context.now, config.boost_window_hours)
    if velocity <= VIRAL_THRESHOLD and not fresh:
        return 0.0
    term = min(velocity * config.velocity_weight, config.velocity_cap)
    if is_in_golden_hour(item.created_at, context.now):
        term *= config.golden_hour_multiplier
    return term


def score_content(
    item: ContentItem,
    context: ViewerContext,
    config: DiscoveryConfig,
    rng: RandomSource,
) -> ScoredContent:
    """Compute the composite score and its breakdown for one content candidate."""
    fatigue = float(context.fatigue.get(item.id, 0))
    age_hours = max(0.0, hours_between(item.created_at, context.now))

    breakdown = {
        "creator": creator_boost(item, context, config),
        "engagement": float(item.like_count + item.comment_count * 2),
        "fatigue": -fatigue,
        "preference": config.preference_weight * context.profile.preference_for(item.content_class),
        "velocity": velocity_term(item, context, config),
        "recency": config.recency_weight * recency_multiplier(age_hours),
    }
    # Jitter is drawn after every deterministic term
    breakdown["jitter"] = rng.random() * config.jitter_max
    return ScoredContent(item=item, score=sum(breakdown.values()), breakdown=breakdown)


def score_contents(
    items: List[ContentItem],
    context: ViewerContext,
    config: DiscoveryConfig,
    rng: RandomSource,
) -> List[ScoredContent]:
    """Score every candidate in pool order (the rng stream depends on that order)."""
    return [score_content(item, context, config, rng) for item in items]

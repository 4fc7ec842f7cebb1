"""
Ranking: score candidates, then diversify them into a page.

Public API: score_contents, score_profile, diversify.
- content_scoring / people_scoring: composite scores with breakdowns.
- diversity: caps, spacing, tier shuffle, creator interleave.
- shuffle: seeded SplitMix64 source used for jitter and tier shuffles.
"""

from .content_scoring import ViewerContext, score_content, score_contents
from .diversity import (
    DiversityConstraints,
    content_constraints,
    diversify,
    interleave_by_creator,
    people_constraints,
)
from .people_scoring import score_profile
from .shuffle import SplitMix64, seeded_random, session_seed_key, shuffle_within_tiers

__all__ = [
    "DiversityConstraints",
    "SplitMix64",
    "ViewerContext",
    "content_constraints",
    "diversify",
    "interleave_by_creator",
    "people_constraints",
    "score_content",
    "score_contents",
    "score_profile",
    "seeded_random",
    "session_seed_key",
    "shuffle_within_tiers",
]

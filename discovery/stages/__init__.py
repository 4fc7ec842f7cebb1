"""
Pipeline stages.

Write path: recorder fans an interaction out to interest, fatigue, velocity
and seen. Read path: candidate_pool / people_sources → ranking → orchestrator.
"""

from .candidate_pool import source_content_candidates
from .orchestrator import build_personalized_feed, build_suggested_people
from .people_sources import (
    DEFAULT_STRATEGIES,
    FALLBACK_STRATEGIES,
    SourceContext,
    SourceStrategy,
    source_people_candidates,
)
from .recorder import record_interaction
from .seen import sweep_expired
from .velocity import get_viral_content

__all__ = [
    "DEFAULT_STRATEGIES",
    "FALLBACK_STRATEGIES",
    "SourceContext",
    "SourceStrategy",
    "build_personalized_feed",
    "build_suggested_people",
    "get_viral_content",
    "record_interaction",
    "source_content_candidates",
    "source_people_candidates",
    "sweep_expired",
]

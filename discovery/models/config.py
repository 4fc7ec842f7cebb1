"""
Discovery configuration — sourcing, scoring, diversity, and people-suggestion parameters.

DiscoveryConfig defaults are defined here. The server may pass a dict
(e.g. from a JSON file at DISCOVERY_CONFIG_PATH); from_dict() merges it with these defaults.
Fixed policy (interaction deltas, fatigue steps, velocity weights) lives in models/policy.py.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, model_validator


class DiscoveryConfig(BaseModel):
    """Configuration for the discovery engine."""

    # -------------------------------------------------------------------------
    # Candidate Sourcing
    # -------------------------------------------------------------------------

    # Pool size = page_size * overfetch_factor. Must stay within 2-5x.
    overfetch_factor: int = 3

    # Upper bound for page_size / limit on every surface.
    max_page_size: int = 100

    # Max repository pages fetched while topping up a filtered pool.
    max_source_pages: int = 3

    # -------------------------------------------------------------------------
    # Seen-Item Ledger
    # -------------------------------------------------------------------------

    content_seen_ttl_hours: float = 24.0
    profile_seen_ttl_hours: float = 6.0

    # -------------------------------------------------------------------------
    # Content Scoring
    # score = creator boost + (likes + 2*comments - fatigue)
    #         + preference + velocity + recency + jitter
    # -------------------------------------------------------------------------

    # Flat boost when the viewer follows the creator.
    followed_creator_boost: float = 100.0
    # Flat boost when the creator is in the viewer's top creator-affinity list.
    affinity_creator_boost: float = 80.0
    # Size of the top creator-affinity list.
    top_creator_limit: int = 20

    # Class preference (0-100) is multiplied by this.
    preference_weight: float = 0.3

    # Velocity term = min(velocity * velocity_weight, velocity_cap).
    velocity_weight: float = 2.0
    velocity_cap: float = 60.0
    # Trailing window for "current velocity" and viral lookups.
    velocity_window_hours: int = 24
    # Content younger than this gets its velocity term even below the viral threshold.
    boost_window_hours: float = 6.0
    # Velocity term multiplier during the first hour after publishing.
    golden_hour_multiplier: float = 1.5

    # Recency step (1.0 ... 0.1) is multiplied by this.
    recency_weight: float = 30.0

    # Discovery jitter: uniform in [0, jitter_max).
    jitter_max: float = 15.0

    # -------------------------------------------------------------------------
    # Diversity (in-processing selection loop)
    # -------------------------------------------------------------------------

    # Minimum index distance between two items from the same creator.
    min_spacing: int = 4
    # Hard cap per creator within one page.
    max_per_creator: int = 3
    # Items per same-score tier for the seeded shuffle.
    tier_size: int = 5
    shuffle_within_tiers: bool = True
    # effective_score = score * (recent_creator_penalty ** earlier_items_from_creator)
    use_score_weighting: bool = True
    recent_creator_penalty: float = 0.3
    # Explore surface: round-robin creators instead of spacing-based selection.
    explore_interleave: bool = False
    interleave_max_per_creator: int = 2

    # -------------------------------------------------------------------------
    # People Suggestions
    # -------------------------------------------------------------------------

    # Max candidates each source strategy contributes.
    people_strategy_pool_size: int = 50
    # Accounts younger than this are "new" (sourcing and growth boost).
    new_account_days: int = 14
    # Accounts younger than this with at least one post get the brand-new bonus.
    brand_new_days: int = 7
    # Lookback for like-overlap and engaged-with-you strategies.
    like_overlap_days: int = 30
    engaged_with_you_days: int = 7
    # Per mutual-count bucket cap = ceil(limit / people_bucket_divisor).
    people_bucket_divisor: int = 3
    # Ordinal attributes compared by the profile-similarity tier.
    similarity_attributes: List[str] = ["economic_tier"]

    @model_validator(mode="after")
    def check_ranges(self):
        if not 2 <= self.overfetch_factor <= 5:
            raise ValueError(f"overfetch_factor must be within [2, 5], got {self.overfetch_factor}")
        if self.content_seen_ttl_hours <= 0 or self.profile_seen_ttl_hours <= 0:
            raise ValueError("Seen TTLs must be positive")
        if self.min_spacing < 1 or self.max_per_creator < 1 or self.tier_size < 1:
            raise ValueError("min_spacing, max_per_creator and tier_size must be >= 1")
        if not 0.0 <= self.recent_creator_penalty <= 1.0:
            raise ValueError(
                f"recent_creator_penalty must be within [0, 1], got {self.recent_creator_penalty}"
            )
        if self.jitter_max < 0:
            raise ValueError("jitter_max must be >= 0")
        if self.max_page_size < 1 or self.people_bucket_divisor < 1:
            raise ValueError("max_page_size and people_bucket_divisor must be >= 1")
        return self

    @classmethod
    def from_dict(cls, config_dict: Dict) -> "DiscoveryConfig":
        """Create config from dictionary (e.g., loaded from JSON). Unknown keys are ignored."""
        flat = {}
        for section in ("feed", "seen", "scoring", "diversity", "people"):
            if section in config_dict:
                flat.update(config_dict[section])
        if "seen" in config_dict:
            seen = config_dict["seen"]
            if "content_ttl_hours" in seen:
                flat["content_seen_ttl_hours"] = seen["content_ttl_hours"]
            if "profile_ttl_hours" in seen:
                flat["profile_seen_ttl_hours"] = seen["profile_ttl_hours"]
        # Top-level keys override grouped ones
        flat.update({k: v for k, v in config_dict.items() if not isinstance(v, dict)})
        allowed = set(cls.model_fields)
        filtered = {k: v for k, v in flat.items() if k in allowed}
        return cls.model_validate(filtered)


DEFAULT_CONFIG = DiscoveryConfig()


def resolve_config(config: Optional["DiscoveryConfig"]) -> "DiscoveryConfig":
    """Return config or DEFAULT_CONFIG when none is provided."""
    return config if config is not None else DEFAULT_CONFIG

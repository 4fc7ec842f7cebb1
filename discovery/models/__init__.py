"""Data models for the discovery engine."""

from .catalog import (
    CandidateFilter,
    CandidateKind,
    CandidateOrder,
    ContentItem,
    ExclusionTarget,
    UserAccount,
    Visibility,
)
from .config import DEFAULT_CONFIG, DiscoveryConfig, resolve_config
from .interaction import ContentClass, InteractionEvent, InteractionKind, Surface
from .scoring import (
    PeopleSignals,
    RankedItem,
    RankedProfile,
    RecordResult,
    ScoredContent,
    ScoredProfile,
)
from .signals import (
    ContentFatigue,
    ContentVelocity,
    CreatorAffinity,
    InterestProfile,
    SeenKind,
    SeenRecord,
)

__all__ = [
    "CandidateFilter",
    "CandidateKind",
    "CandidateOrder",
    "ContentClass",
    "ContentFatigue",
    "ContentItem",
    "ContentVelocity",
    "CreatorAffinity",
    "DEFAULT_CONFIG",
    "DiscoveryConfig",
    "ExclusionTarget",
    "InteractionEvent",
    "InteractionKind",
    "InterestProfile",
    "PeopleSignals",
    "RankedItem",
    "RankedProfile",
    "RecordResult",
    "ScoredContent",
    "ScoredProfile",
    "SeenKind",
    "SeenRecord",
    "Surface",
    "UserAccount",
    "Visibility",
    "resolve_config",
]

"""
Signal policy constants.

Fixed policy values, not part of DiscoveryConfig:
- INTERACTION_DELTAS: per-kind adjustment of interest profile and creator affinity
- fatigue step sizes (fast penalty on skip, slow recovery on engagement)
- velocity weights and the viral threshold
"""

from typing import Dict, NamedTuple, Optional

from .interaction import InteractionKind


class SignalDelta(NamedTuple):
    profile: int
    affinity: Optional[int]


# kind -> (interest profile delta, creator affinity delta or None)
INTERACTION_DELTAS: Dict[InteractionKind, SignalDelta] = {
    InteractionKind.SAVE: SignalDelta(10, 20),
    InteractionKind.SHARE: SignalDelta(8, 15),
    InteractionKind.COMMENT: SignalDelta(5, 10),
    InteractionKind.LIKE: SignalDelta(3, 5),
    InteractionKind.VIEW: SignalDelta(2, None),
    InteractionKind.REWATCH: SignalDelta(15, 25),
    InteractionKind.SKIP: SignalDelta(-5, None),
}

# A VIEW only moves the profile when the viewer watched most of the item.
VIEW_COMPLETION_THRESHOLD = 0.8

PREFERENCE_DEFAULT = 50
PREFERENCE_MIN = 0
PREFERENCE_MAX = 100

FATIGUE_SKIP_DELTA = 10
FATIGUE_ENGAGEMENT_DELTA = -2
FATIGUE_MIN = 0
FATIGUE_MAX = 100

VELOCITY_WEIGHTS: Dict[InteractionKind, float] = {
    InteractionKind.VIEW: 1.0,
    InteractionKind.LIKE: 2.0,
    InteractionKind.SAVE: 3.0,
    InteractionKind.SHARE: 4.0,
    InteractionKind.COMMENT: 2.5,
}

# Velocity score strictly above this marks content as viral.
VIRAL_THRESHOLD = 5.0


def profile_delta(kind: InteractionKind, completion: float) -> int:
    """Interest profile delta for one interaction; VIEW counts only above the completion threshold."""
    if kind == InteractionKind.VIEW and completion <= VIEW_COMPLETION_THRESHOLD:
        return 0
    return INTERACTION_DELTAS[kind].profile


def affinity_delta(kind: InteractionKind) -> Optional[int]:
    """Creator affinity delta, or None when the kind does not qualify."""
    return INTERACTION_DELTAS[kind].affinity


def fatigue_delta(is_skip: bool) -> int:
    return FATIGUE_SKIP_DELTA if is_skip else FATIGUE_ENGAGEMENT_DELTA


def velocity_weight(kind: InteractionKind) -> Optional[float]:
    """Weight of this kind in the velocity score, or None when unmapped."""
    return VELOCITY_WEIGHTS.get(kind)

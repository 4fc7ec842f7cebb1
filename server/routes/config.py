"""Configuration endpoints: active tuning values and the fixed signal policy."""

from fastapi import APIRouter

from discovery.models.policy import (
    FATIGUE_ENGAGEMENT_DELTA,
    FATIGUE_SKIP_DELTA,
    INTERACTION_DELTAS,
    VELOCITY_WEIGHTS,
    VIEW_COMPLETION_THRESHOLD,
    VIRAL_THRESHOLD,
)

from ..state import get_state

router = APIRouter()


def _policy_table() -> dict:
    return {
        "interaction_deltas": {
            kind.value: {"profile": delta.profile, "affinity": delta.affinity}
            for kind, delta in INTERACTION_DELTAS.items()
        },
        "view_completion_threshold": VIEW_COMPLETION_THRESHOLD,
        "fatigue": {"skip": FATIGUE_SKIP_DELTA, "engagement": FATIGUE_ENGAGEMENT_DELTA},
        "velocity_weights": {kind.value: weight for kind, weight in VELOCITY_WEIGHTS.items()},
        "viral_threshold": VIRAL_THRESHOLD,
    }


@router.get("")
def get_discovery_config():
    """Return the DiscoveryConfig in use and the signal policy table."""
    state = get_state()
    path = state.config.discovery_config_path
    return {
        "config": state.engine.config.model_dump(),
        "source": str(path) if path else "defaults",
        "policy": _policy_table(),
    }


@router.get("/policy")
def get_signal_policy():
    """Return the fixed interaction deltas, fatigue steps and velocity weights."""
    return _policy_table()

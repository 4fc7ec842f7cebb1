"""
Interest profile and creator affinity updates.

Profile: every interaction moves the viewer's preference for the content class
by the policy delta (clamped to [0,100]) and folds watch time and completion
into the running averages.
Affinity: only LIKE/SAVE/SHARE/COMMENT/REWATCH with a known creator qualify.
"""

from datetime import datetime

from ..models.interaction import InteractionEvent
from ..models.policy import affinity_delta, profile_delta
from ..stores.base import CreatorAffinityStore, InterestProfileStore


def update_interest_profile(store: InterestProfileStore, event: InteractionEvent, now: datetime) -> int:
    """Apply the event to the viewer's profile; returns the delta applied."""
    delta = profile_delta(event.kind, event.completion)
    store.apply_interest_delta(
        event.viewer_id,
        event.content_class,
        delta,
        event.watch_time_ms,
        event.completion,
        now,
    )
    return delta


def qualifies_for_affinity(event: InteractionEvent) -> bool:
    return event.creator_id is not None and affinity_delta(event.kind) is not None


def update_creator_affinity(store: CreatorAffinityStore, event: InteractionEvent, now: datetime) -> bool:
    """Apply the event to (viewer, creator) affinity; False when the event does not qualify."""
    if not qualifies_for_affinity(event):
        return False
    store.apply_affinity_delta(
        event.viewer_id,
        event.creator_id,
        event.kind,
        affinity_delta(event.kind),
        event.watch_time_ms,
        event.completion,
        now,
    )
    return True

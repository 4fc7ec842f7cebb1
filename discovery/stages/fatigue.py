"""
Content fatigue updates.

Skips push fatigue up by 10, every other impression pulls it down by 2, always
within [0,100]. Fatigue is a subtractive scoring term, never a filter.
"""

from datetime import datetime

from ..models.interaction import InteractionEvent
from ..stores.base import ContentFatigueStore


def update_fatigue(store: ContentFatigueStore, event: InteractionEvent, now: datetime) -> None:
    store.apply_fatigue(
        event.content_id,
        event.content_class,
        event.is_skip,
        event.watch_time_ms,
        event.completion,
        now,
    )

"""
Content velocity tracking.

Engagement is bucketed by whole hours since the content was published;
velocity_score = weighted counters / max(1, hour_bucket + 1). A bucket stops
changing once its hour has passed. Current velocity is the best bucket
recorded within the trailing window; above VIRAL_THRESHOLD content is viral.
"""

import logging
import math
from datetime import datetime, timedelta
from typing import List, Optional

from ..models.config import DiscoveryConfig
from ..models.interaction import ContentClass, InteractionEvent
from ..models.policy import VIRAL_THRESHOLD, velocity_weight
from ..stores.base import ContentVelocityStore
from ..stores.catalog import ContentRepository
from ..utils.scores import hours_between

logger = logging.getLogger(__name__)


def hour_bucket(created_at: datetime, now: datetime) -> int:
    """Whole hours since publishing; never negative (clock skew clamps to 0)."""
    return max(0, math.floor(hours_between(created_at, now)))


def record_velocity(
    store: ContentVelocityStore,
    repository: ContentRepository,
    event: InteractionEvent,
    now: datetime,
) -> bool:
    """Count the event in its hour bucket; False for unmapped kinds or unknown content."""
    if velocity_weight(event.kind) is None:
        return False
    content = repository.get_content(event.content_id)
    if content is None:
        logger.warning("[velocity] Content not found, skipping content_id=%s", event.content_id)
        return False
    bucket = hour_bucket(content.created_at, now)
    store.record_velocity(event.content_id, content.content_class, bucket, event.kind, now)
    return True


def velocity_window_start(now: datetime, config: DiscoveryConfig) -> datetime:
    return now - timedelta(hours=config.velocity_window_hours)


def get_viral_content(
    store: ContentVelocityStore,
    content_class: Optional[ContentClass],
    limit: int,
    now: datetime,
    config: DiscoveryConfig,
) -> List[str]:
    """Distinct content ids above the viral threshold in the trailing window, fastest first."""
    return store.viral_content_ids(
        content_class,
        VIRAL_THRESHOLD,
        velocity_window_start(now, config),
        limit,
    )

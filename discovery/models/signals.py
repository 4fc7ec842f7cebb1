"""
Derived signal models — read views of the rows owned by the signal stores.

- InterestProfile: per viewer, class preferences and watch averages
- CreatorAffinity: per (viewer, creator), accumulating affinity and counters
- ContentFatigue: per content item, impressions/skips and fatigue score
- ContentVelocity: per (content item, hour bucket), weighted engagement
- SeenRecord: per (viewer, item), a time-bounded exclusion marker
"""

from datetime import datetime
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel

from .interaction import ContentClass
from .policy import PREFERENCE_DEFAULT

PREFERENCE_FIELDS: Dict[ContentClass, str] = {
    ContentClass.VIDEO: "video_preference",
    ContentClass.VOICE: "voice_preference",
    ContentClass.PHOTO: "photo_preference",
    ContentClass.TEXT: "text_preference",
}


class SeenKind(str, Enum):
    CONTENT = "CONTENT"
    PROFILE = "PROFILE"


class InterestProfile(BaseModel):
    viewer_id: str
    video_preference: int = PREFERENCE_DEFAULT
    voice_preference: int = PREFERENCE_DEFAULT
    photo_preference: int = PREFERENCE_DEFAULT
    text_preference: int = PREFERENCE_DEFAULT
    avg_watch_time_ms: float = 0.0
    avg_completion: float = 0.0
    total_interactions: int = 0
    updated_at: Optional[datetime] = None

    def preference_for(self, content_class: ContentClass) -> int:
        return getattr(self, PREFERENCE_FIELDS[content_class])


class CreatorAffinity(BaseModel):
    viewer_id: str
    creator_id: str
    affinity_score: int = 0
    total_views: int = 0
    total_likes: int = 0
    total_shares: int = 0
    total_saves: int = 0
    total_comments: int = 0
    interaction_count: int = 0
    avg_watch_time_ms: float = 0.0
    avg_completion: float = 0.0
    last_interacted_at: Optional[datetime] = None


class ContentFatigue(BaseModel):
    content_id: str
    content_class: ContentClass
    total_impressions: int = 0
    total_skips: int = 0
    skip_rate: float = 0.0
    avg_watch_time_ms: float = 0.0
    avg_completion: float = 0.0
    fatigue_score: int = 0
    last_shown_at: Optional[datetime] = None


class ContentVelocity(BaseModel):
    """
    One hour bucket of engagement for a content item.

    velocity_score = weighted sum of counters / max(1, hour_bucket + 1).
    """

    content_id: str
    content_class: ContentClass
    hour_bucket: int
    views: int = 0
    likes: int = 0
    saves: int = 0
    shares: int = 0
    comments: int = 0
    velocity_score: float = 0.0
    recorded_at: Optional[datetime] = None


class SeenRecord(BaseModel):
    viewer_id: str
    item_kind: SeenKind
    item_id: str
    seen_at: datetime
    expires_at: datetime
    session_id: Optional[str] = None

    def is_active(self, now: datetime) -> bool:
        return self.expires_at > now

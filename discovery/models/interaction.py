"""
Interaction model — one user action on one content item.

InteractionEvent is ephemeral input to the recorder: it is appended to the
interaction log for analytics and fanned out to the signal stores, never mutated.
Built from API dicts via InteractionEvent.model_validate(d).
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils.scores import ensure_utc


class ContentClass(str, Enum):
    """Content classes with their own preference score in the interest profile."""

    VIDEO = "VIDEO"
    VOICE = "VOICE"
    PHOTO = "PHOTO"
    TEXT = "TEXT"


class InteractionKind(str, Enum):
    VIEW = "VIEW"
    LIKE = "LIKE"
    SAVE = "SAVE"
    SHARE = "SHARE"
    COMMENT = "COMMENT"
    SKIP = "SKIP"
    REWATCH = "REWATCH"


class Surface(str, Enum):
    """Discovery surfaces. People is served by the suggestions pipeline."""

    REELS = "reels"
    VOICE = "voice"
    EXPLORE = "explore"
    PEOPLE = "people"

    @property
    def content_class(self) -> Optional[ContentClass]:
        """Content class served by this surface; None means every class."""
        return _SURFACE_CLASSES.get(self)


_SURFACE_CLASSES = {
    Surface.REELS: ContentClass.VIDEO,
    Surface.VOICE: ContentClass.VOICE,
}


def _upper_enum_value(value):
    if isinstance(value, str):
        return value.strip().upper()
    return value


class InteractionEvent(BaseModel):
    """
    A single user action on a content item.

    watch_time_ms and completion default to zero. creator_id is optional but
    creator affinity is only updated when it is present.
    """

    model_config = ConfigDict(frozen=True)

    viewer_id: str = Field(min_length=1)
    content_id: str = Field(min_length=1)
    content_class: ContentClass
    kind: InteractionKind
    watch_time_ms: int = Field(default=0, ge=0)
    completion: float = Field(default=0.0, ge=0.0, le=1.0)
    creator_id: Optional[str] = None
    session_id: Optional[str] = None
    occurred_at: Optional[datetime] = None

    @field_validator("viewer_id", "content_id", mode="before")
    @classmethod
    def strip_required_ids(cls, v):
        if isinstance(v, str):
            v = v.strip()
        return v

    @field_validator("creator_id", "session_id", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("content_class", "kind", mode="before")
    @classmethod
    def accept_lowercase(cls, v):
        return _upper_enum_value(v)

    @field_validator("occurred_at")
    @classmethod
    def occurred_at_utc(cls, v):
        return ensure_utc(v)

    @property
    def is_skip(self) -> bool:
        return self.kind == InteractionKind.SKIP

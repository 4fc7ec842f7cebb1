"""
Catalog models — raw content and user accounts owned by the surrounding application.

The engine only reads these through a ContentRepository; it never writes them.
Built from repository dicts via ContentItem.model_validate(d) / UserAccount.model_validate(d).
"""

from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils.scores import ensure_utc
from .interaction import ContentClass


class Visibility(str, Enum):
    PUBLIC = "PUBLIC"
    FOLLOWERS = "FOLLOWERS"
    PRIVATE = "PRIVATE"


class ContentItem(BaseModel):
    """A published piece of content (reel, voice note, photo, text post)."""

    model_config = ConfigDict(extra="allow")

    id: str
    creator_id: str
    content_class: ContentClass
    created_at: datetime
    visibility: Visibility = Visibility.PUBLIC
    like_count: int = 0
    comment_count: int = 0
    view_count: int = 0
    caption: Optional[str] = None

    @field_validator("created_at")
    @classmethod
    def created_at_utc(cls, v):
        return ensure_utc(v)


class UserAccount(BaseModel):
    """
    A user account as seen by people suggestions.

    attributes holds ordinal buckets (e.g. {"economic_tier": 2}) used by the
    profile-similarity tier.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    username: str
    display_name: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    cover_url: Optional[str] = None
    is_verified: bool = False
    is_active: bool = True
    created_at: datetime
    last_active_at: Optional[datetime] = None
    follower_count: int = 0
    following_count: int = 0
    post_count: int = 0
    influence_score: float = 0.0
    attributes: Dict[str, int] = Field(default_factory=dict)

    @field_validator("created_at", "last_active_at")
    @classmethod
    def timestamps_utc(cls, v):
        return ensure_utc(v)


class CandidateKind(str, Enum):
    CONTENT = "CONTENT"
    USER = "USER"


class CandidateOrder(str, Enum):
    RECENT = "RECENT"
    POPULAR = "POPULAR"


class CandidateFilter(BaseModel):
    """
    Cheap filter pushed down to the repository's ListCandidates.

    For content: public visibility, optional class, exclusions by id and creator.
    For users: active accounts, optional joined_after, exclusions by id.
    """

    model_config = ConfigDict(frozen=True)

    kind: CandidateKind
    content_class: Optional[ContentClass] = None
    exclude_ids: FrozenSet[str] = frozenset()
    exclude_creator_ids: FrozenSet[str] = frozenset()
    joined_after: Optional[datetime] = None
    order: CandidateOrder = CandidateOrder.RECENT


class ExclusionTarget(str, Enum):
    """What a "not interested" mark points at."""

    CONTENT = "CONTENT"
    CREATOR = "CREATOR"

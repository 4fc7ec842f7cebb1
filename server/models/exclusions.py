"""Request/response models for "not interested" marks."""

from typing import Optional

from pydantic import BaseModel, Field

from discovery.models import ExclusionTarget


class NotInterestedRequest(BaseModel):
    viewer_id: str = Field(min_length=1)
    target_type: ExclusionTarget
    target_id: str = Field(min_length=1)
    reason: Optional[str] = None
    # True removes an existing mark
    interested: bool = False


class NotInterestedResponse(BaseModel):
    viewer_id: str
    target_type: ExclusionTarget
    target_id: str
    recorded: bool
    error: Optional[str] = None

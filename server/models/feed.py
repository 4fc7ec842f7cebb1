"""Response models for the feed, people and viral endpoints."""

from typing import List, Optional

from pydantic import BaseModel

from discovery.models import ContentClass, RankedItem, RankedProfile


class FeedResponse(BaseModel):
    surface: str
    viewer_id: str
    session_id: Optional[str] = None
    items: List[RankedItem]
    count: int


class PeopleResponse(BaseModel):
    viewer_id: str
    session_id: Optional[str] = None
    profiles: List[RankedProfile]
    count: int


class ViralResponse(BaseModel):
    content_class: Optional[ContentClass] = None
    content_ids: List[str]
    count: int

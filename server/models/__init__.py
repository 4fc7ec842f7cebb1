"""Pydantic request/response models for the API."""

from .common import ComponentStatus, HealthResponse, SweepResponse
from .exclusions import NotInterestedRequest, NotInterestedResponse
from .feed import FeedResponse, PeopleResponse, ViralResponse

__all__ = [
    "ComponentStatus",
    "HealthResponse",
    "SweepResponse",
    "NotInterestedRequest",
    "NotInterestedResponse",
    "FeedResponse",
    "PeopleResponse",
    "ViralResponse",
]

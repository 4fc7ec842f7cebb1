"""Common Pydantic models shared across routes."""

from pydantic import BaseModel


class ComponentStatus(BaseModel):
    available: bool
    message: str


class HealthResponse(BaseModel):
    status: str
    database: ComponentStatus
    catalog: str


class SweepResponse(BaseModel):
    removed: int

"""Root and health endpoints."""

from typing import Tuple

from fastapi import APIRouter

from discovery import StoreUnavailableError

from ..models import ComponentStatus, HealthResponse
from ..state import get_state

router = APIRouter()


def _database_available(state) -> Tuple[bool, str]:
    """Return (available, message) for the signal store."""
    try:
        state.signal_store.ping()
    except StoreUnavailableError as e:
        return False, str(e)
    return True, "connected"


@router.get("/")
def root():
    state = get_state()
    return {
        "name": "Discovery Engine API",
        "version": "1.0.0",
        "catalog": type(state.repository).__name__,
        "endpoints": {
            "feed": ["/api/feed/{surface}", "/api/content/viral"],
            "people": ["/api/people/suggested"],
            "interactions": ["/api/interactions"],
            "exclusions": ["/api/not-interested"],
            "config": ["/api/config", "/api/config/policy"],
            "maintenance": ["/api/maintenance/sweep-seen"],
        },
    }


@router.get("/api/health", response_model=HealthResponse)
def health():
    state = get_state()
    available, message = _database_available(state)
    return HealthResponse(
        status="healthy" if available else "degraded",
        database=ComponentStatus(available=available, message=message),
        catalog=type(state.repository).__name__,
    )

"""Maintenance endpoints."""

from fastapi import APIRouter, HTTPException

from discovery import StoreUnavailableError

from ..models import SweepResponse
from ..state import get_state

router = APIRouter()


@router.post("/sweep-seen", response_model=SweepResponse)
def sweep_seen():
    """Delete expired seen-ledger rows. Safe to call on any schedule."""
    state = get_state()
    try:
        removed = state.engine.sweep_expired_seen()
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return SweepResponse(removed=removed)

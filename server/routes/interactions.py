"""Interaction ingestion endpoint."""

from typing import Any, Dict

from fastapi import APIRouter, Body, HTTPException

from discovery import InvalidInputError
from discovery.models import RecordResult

from ..state import get_state

router = APIRouter()


@router.post("", response_model=RecordResult)
def record_interaction(payload: Dict[str, Any] = Body(...)):
    """
    Record one viewer interaction.

    Malformed events are rejected with 400 before any store is touched.
    Store failures are reported per step in the response and never fail the request.
    """
    state = get_state()
    try:
        return state.engine.record_interaction(payload)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))

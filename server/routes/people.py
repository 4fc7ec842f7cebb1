"""People suggestion endpoint."""

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query

from discovery import InvalidInputError

from ..models import PeopleResponse
from ..state import get_state

router = APIRouter()


@router.get("/suggested", response_model=PeopleResponse)
def get_suggested_people(
    viewer_id: str = Query(..., description="Viewer requesting suggestions"),
    limit: int = Query(20),
    session_id: Optional[str] = Query(None),
    exclude: List[str] = Query([], description="Extra user ids to hide"),
):
    state = get_state()
    try:
        profiles = state.engine.get_suggested_people(
            viewer_id, limit=limit, session_id=session_id, extra_exclusions=exclude
        )
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return PeopleResponse(viewer_id=viewer_id, session_id=session_id, profiles=profiles, count=len(profiles))

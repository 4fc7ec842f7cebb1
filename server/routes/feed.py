"""Content feed endpoints: per-surface ranked pages and viral content."""

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query

from discovery import InvalidInputError

from ..models import FeedResponse, ViralResponse
from ..state import get_state

router = APIRouter()


@router.get("/feed/{surface}", response_model=FeedResponse)
def get_feed(
    surface: str,
    viewer_id: str = Query(..., description="Viewer requesting the page"),
    page_size: int = Query(20, description="Items per page"),
    session_id: Optional[str] = Query(None, description="Seeds the page shuffle"),
    exclude: List[str] = Query([], description="Extra content ids to hide"),
):
    """Ranked page for reels, voice or explore."""
    state = get_state()
    try:
        items = state.engine.get_surface_feed(
            surface.lower(),
            viewer_id,
            page_size=page_size,
            session_id=session_id,
            extra_exclusions=exclude,
        )
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return FeedResponse(
        surface=surface.lower(),
        viewer_id=viewer_id,
        session_id=session_id,
        items=items,
        count=len(items),
    )


@router.get("/content/viral", response_model=ViralResponse)
def get_viral_content(
    content_class: Optional[str] = Query(None, description="VIDEO or VOICE; all classes when omitted"),
    limit: int = Query(20),
):
    state = get_state()
    try:
        content_ids = state.engine.get_viral_content(content_class, limit=limit)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ViralResponse(
        content_class=content_class.upper() if content_class else None,
        content_ids=content_ids,
        count=len(content_ids),
    )

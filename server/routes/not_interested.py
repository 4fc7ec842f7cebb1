"""'Not interested' marks for content and creators."""

import logging

from fastapi import APIRouter

from discovery import StoreUnavailableError

from ..models import NotInterestedRequest, NotInterestedResponse
from ..state import get_state

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=NotInterestedResponse)
def mark_not_interested(request: NotInterestedRequest):
    """
    Hide a content item or a creator from the viewer's feeds and suggestions.

    With interested=true an existing mark is removed instead. A store outage
    is reported in the body (recorded=false) rather than as a server error.
    """
    state = get_state()
    try:
        if request.interested:
            recorded = state.exclusions.clear_not_interested(
                request.viewer_id, request.target_type, request.target_id
            )
        else:
            state.exclusions.mark_not_interested(
                request.viewer_id,
                request.target_type,
                request.target_id,
                reason=request.reason,
                now=state.engine.now(),
            )
            recorded = True
    except StoreUnavailableError as e:
        logger.warning("[exclusions] %s: %s", request.viewer_id, e)
        return NotInterestedResponse(
            viewer_id=request.viewer_id,
            target_type=request.target_type,
            target_id=request.target_id,
            recorded=False,
            error=str(e),
        )
    return NotInterestedResponse(
        viewer_id=request.viewer_id,
        target_type=request.target_type,
        target_id=request.target_id,
        recorded=recorded,
    )

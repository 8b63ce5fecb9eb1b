"""
tabulation/routes/events.py
Event lifecycle routes.
"""

from fastapi import APIRouter, Depends

from tabulation.data_access.base import TabulationStore
from tabulation.dependencies import get_store
from tabulation.schemas.tabulation import EventResponse, LifecycleResponse
from tabulation.state_machines.lifecycle import LifecycleStateMachine


router = APIRouter(prefix="/api/events", tags=["events"])


@router.put("/{event_id}/activate", response_model=LifecycleResponse)
async def activate_event(
    event_id: int,
    store: TabulationStore = Depends(get_store)
):
    """
    Activate a draft event.

    Segment weights must sum to 1.0, every segment's category weights must sum
    to exactly 1.0, and the event needs segments, participants and judges.
    """
    event = await LifecycleStateMachine(store).activate_event(event_id)
    return LifecycleResponse(
        message="Event activated successfully.",
        event=EventResponse(**event.summary())
    )

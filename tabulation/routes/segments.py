"""
tabulation/routes/segments.py
Segment activation and lock routes.
"""

from fastapi import APIRouter, Depends, Query

from tabulation.data_access.base import TabulationStore
from tabulation.dependencies import get_store
from tabulation.schemas.tabulation import LifecycleResponse, LockResponse, SegmentResponse
from tabulation.services.lock_orchestrator import LockOrchestrator
from tabulation.state_machines.lifecycle import LifecycleStateMachine


router = APIRouter(prefix="/api/segments", tags=["segments"])


@router.put("/{segment_id}/activate", response_model=LifecycleResponse)
async def activate_segment(
    segment_id: int,
    store: TabulationStore = Depends(get_store)
):
    """Activate a draft or inactive segment of an active event."""
    segment = await LifecycleStateMachine(store).activate_segment(segment_id)
    return LifecycleResponse(
        message="Segment activated successfully.",
        segment=SegmentResponse(**segment.summary())
    )


@router.post("/{segment_id}/lock", response_model=LockResponse)
async def lock_segment(
    segment_id: int,
    confirm_ties: bool = Query(False, description="Advance every participant tied at the cutoff"),
    store: TabulationStore = Depends(get_store)
):
    """
    Lock an active segment.

    Eliminates the participants who do not advance, then closes the segment.
    A tie at a top_n cutoff answers 409 until the call is repeated with
    confirm_ties=true.
    """
    result = await LockOrchestrator(store).lock_segment(segment_id, confirm_ties=confirm_ties)
    data = result.to_dict()
    return LockResponse(
        message="Segment locked successfully.",
        segment=SegmentResponse(**data["segment"]),
        advanced=data["advanced"],
        eliminated=data["eliminated"],
        tie_detected=data["tie_detected"],
        resumed=data["resumed"],
        applied=data["applied"],
    )

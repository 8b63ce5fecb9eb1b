"""
tabulation/routes/rankings.py
Administrator leaderboards.
"""
from fastapi import APIRouter, Depends

from tabulation.data_access.base import TabulationStore
from tabulation.dependencies import get_store
from tabulation.schemas.tabulation import RankingResponse
from tabulation.services.ranking_report_service import RankingReportService

router = APIRouter(prefix="/api/admin/events", tags=["rankings"])


@router.get(
    "/{event_id}/segments/{segment_id}/categories/{category_id}/ranking",
    response_model=RankingResponse
)
async def category_ranking(
    event_id: int,
    segment_id: int,
    category_id: int,
    store: TabulationStore = Depends(get_store)
):
    return await RankingReportService(store).category_ranking(event_id, segment_id, category_id)


@router.get("/{event_id}/segments/{segment_id}/ranking", response_model=RankingResponse)
async def segment_ranking(
    event_id: int,
    segment_id: int,
    store: TabulationStore = Depends(get_store)
):
    return await RankingReportService(store).segment_ranking(event_id, segment_id)


@router.get("/{event_id}/ranking", response_model=RankingResponse)
async def final_ranking(
    event_id: int,
    store: TabulationStore = Depends(get_store)
):
    """Overall leaderboard across every segment, per gender."""
    return await RankingReportService(store).final_ranking(event_id)

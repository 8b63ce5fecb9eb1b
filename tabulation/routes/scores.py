"""
tabulation/routes/scores.py
Judge score submission routes.
"""

from fastapi import APIRouter, Depends, status

from tabulation.data_access.base import TabulationStore
from tabulation.dependencies import get_store
from tabulation.schemas.tabulation import ScoreResponse, ScoreWrite
from tabulation.services.score_admission_service import (
    ScoreSubmission,
    create_score,
    update_score,
)


router = APIRouter(prefix="/api/scores", tags=["scores"])


def _submission(request: ScoreWrite) -> ScoreSubmission:
    return ScoreSubmission(
        value=request.value,
        participant_id=request.participant_id,
        category_id=request.category_id,
        judge_id=request.judge_id,
        segment_id=request.segment_id,
    )


@router.post("", response_model=ScoreResponse, status_code=status.HTTP_201_CREATED)
async def submit_score(
    request: ScoreWrite,
    store: TabulationStore = Depends(get_store)
):
    """Record a judge's score for one participant in one category."""
    score = await create_score(store, _submission(request))
    return ScoreResponse.model_validate(score)


@router.put("/{score_id}", response_model=ScoreResponse)
async def change_score(
    score_id: int,
    request: ScoreWrite,
    store: TabulationStore = Depends(get_store)
):
    """Change the value of an existing score."""
    score = await update_score(store, score_id, _submission(request))
    return ScoreResponse.model_validate(score)

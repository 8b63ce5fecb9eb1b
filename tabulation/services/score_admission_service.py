"""
Score Admission Service

Create and update judge scores. Every write passes the admission checks of
the weight validator and keeps at most one score per
(participant, category, judge, segment).
"""
import logging
from dataclasses import dataclass

from tabulation.data_access.base import TabulationStore
from tabulation.exceptions import NotFoundError, ValidationError
from tabulation.models.snapshots import ScoreSnapshot, SegmentSnapshot
from tabulation.services.weight_validator import check_score_admission

logger = logging.getLogger(__name__)


@dataclass
class ScoreSubmission:
    value: float
    participant_id: int
    category_id: int
    judge_id: int
    segment_id: int


async def _load_segment(store: TabulationStore, submission: ScoreSubmission) -> SegmentSnapshot:
    segment = await store.find_segment(submission.segment_id)
    if not segment:
        raise NotFoundError("Segment", submission.segment_id)

    participant = await store.find_participant(submission.participant_id)
    if not participant or participant.event_id != segment.event_id:
        raise NotFoundError("Participant", submission.participant_id)

    judge = await store.find_judge(submission.judge_id)
    if not judge:
        raise NotFoundError("Judge", submission.judge_id)

    return segment


async def create_score(store: TabulationStore, submission: ScoreSubmission) -> ScoreSnapshot:
    """
    Record a new score.

    Raises:
        NotFoundError: Unknown segment, participant or judge
        ValidationError: Admission checks failed or the score already exists
    """
    segment = await _load_segment(store, submission)
    check_score_admission(segment, submission.category_id, submission.value)

    existing = await store.find_score_by_key(
        submission.participant_id,
        submission.category_id,
        submission.judge_id,
        submission.segment_id,
    )
    if existing:
        raise ValidationError(
            "Score already exists for this category.",
            details={"score_id": existing.id}
        )

    score = await store.create_score(
        value=submission.value,
        participant_id=submission.participant_id,
        category_id=submission.category_id,
        judge_id=submission.judge_id,
        segment_id=submission.segment_id,
        event_id=segment.event_id,
    )
    logger.info(
        f"Score {score.id} created: participant={score.participant_id} "
        f"category={score.category_id} judge={score.judge_id} value={score.value}"
    )
    return score


async def update_score(store: TabulationStore, score_id: int, submission: ScoreSubmission) -> ScoreSnapshot:
    """
    Change the value of an existing score.

    The submission must describe the same (participant, category, judge,
    segment) tuple as the stored score.
    """
    current = await store.find_score(score_id)
    if not current:
        raise NotFoundError("Score", score_id)

    segment = await _load_segment(store, submission)
    check_score_admission(segment, submission.category_id, submission.value)

    existing = await store.find_score_by_key(
        submission.participant_id,
        submission.category_id,
        submission.judge_id,
        submission.segment_id,
    )
    if not existing or existing.id != score_id:
        raise ValidationError("Score does not exist for this category and participant.")

    score = await store.update_score_value(score_id, submission.value)
    logger.info(f"Score {score_id} updated: {current.value} -> {score.value}")
    return score

"""
Score Aggregator

Reduces raw per-judge scores into category averages, segment totals and a
final cross-segment score per participant.

Uses Decimal for all numeric computation so that re-running on the same
score set always yields identical values. Rounding is applied only when a
value is presented (see quantize_score).
"""
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional

from tabulation.exceptions import ConfigurationError
from tabulation.models.enums import ScoringMode
from tabulation.models.snapshots import (
    CategorySnapshot,
    ParticipantSnapshot,
    ScoreSnapshot,
    SegmentSnapshot,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

QUANTIZER_2DP = Decimal("0.01")

# Averages are 28-digit divisions; totals are compared at this precision so
# equal sums reached through different averages stay equal.
COMPARISON_QUANTIZER = Decimal("1e-9")


def to_decimal(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quantize_score(value: Decimal, places: int = 2) -> Decimal:
    """Round a score for presentation (half up)."""
    quantizer = QUANTIZER_2DP if places == 2 else Decimal(1).scaleb(-places)
    return to_decimal(value).quantize(quantizer, rounding=ROUND_HALF_UP)


def comparable_score(value) -> Decimal:
    """Round a total for ordering and cutoff comparisons."""
    return to_decimal(value).quantize(COMPARISON_QUANTIZER, rounding=ROUND_HALF_UP)


@dataclass
class CategoryResult:
    category_id: int
    name: str
    average: Decimal
    active_judge_count: int
    judge_scores: Dict[str, Optional[Decimal]] = field(default_factory=dict)

    @property
    def counted(self) -> bool:
        """False when no judge is active; the category then adds zero."""
        return self.active_judge_count > 0


@dataclass
class SegmentResult:
    segment_id: int
    name: str
    order: int
    total: Decimal
    contribution: Decimal
    categories: Dict[int, CategoryResult] = field(default_factory=dict)


@dataclass
class ParticipantAggregate:
    participant: ParticipantSnapshot
    segments: Dict[int, SegmentResult] = field(default_factory=dict)
    final_score: Decimal = ZERO

    def segment_total(self, segment_id: int) -> Decimal:
        result = self.segments.get(segment_id)
        return result.total if result else ZERO


def display_names(items) -> Dict[int, str]:
    """Map id to a display name, suffixing the id when names collide.

    Used for judge, category and segment columns, whose names are not unique.
    """
    items = list(items)
    counts: Dict[str, int] = defaultdict(int)
    for item in items:
        counts[item.name] += 1
    return {
        item.id: item.name if counts[item.name] == 1 else f"{item.name} #{item.id}"
        for item in items
    }


def category_average(category: CategorySnapshot, scores: Iterable[ScoreSnapshot]) -> Decimal:
    """
    Average of active-judge scores for one participant in one category.

    The divisor is the number of active judges, not the number of submitted
    scores: a missing score counts as zero. With no active judge the category
    contributes zero and any stray scores are ignored.
    """
    judge_count = len(category.active_judges)
    if judge_count == 0:
        return ZERO

    active_ids = category.active_judge_ids
    total = sum(
        (to_decimal(score.value) for score in scores
         if score.category_id == category.id and score.judge_id in active_ids),
        ZERO
    )
    return total / Decimal(judge_count)


def judge_breakdown(category: CategorySnapshot, scores: Iterable[ScoreSnapshot]) -> Dict[str, Optional[Decimal]]:
    """One cell per active judge: the submitted value, or None when missing."""
    by_judge = {
        score.judge_id: to_decimal(score.value)
        for score in scores
        if score.category_id == category.id
    }
    names = display_names(category.active_judges)
    return {names[judge.id]: by_judge.get(judge.id) for judge in category.active_judges}


def segment_total(segment: SegmentSnapshot, scores: Iterable[ScoreSnapshot]) -> Decimal:
    """Sum of category averages; category weights are not re-applied."""
    scores = list(scores)
    return sum((category_average(category, scores) for category in segment.categories), ZERO)


def segment_contribution(segment: SegmentSnapshot, total: Decimal) -> Decimal:
    """
    Share of a segment total that goes into the final score.

    normalized: total * segment weight
    raw_category: total (category weights already partition the segment max)
    """
    if segment.scoring_mode == ScoringMode.NORMALIZED:
        return total * to_decimal(segment.weight)
    if segment.scoring_mode == ScoringMode.RAW_CATEGORY:
        return total
    raise ConfigurationError(
        f"Unknown scoring mode '{segment.scoring_mode}' for segment #{segment.order}",
        details={"segment_id": segment.id}
    )


def aggregate_segment_for_participant(segment: SegmentSnapshot, scores: List[ScoreSnapshot]) -> SegmentResult:
    categories: Dict[int, CategoryResult] = {}
    for category in segment.categories:
        categories[category.id] = CategoryResult(
            category_id=category.id,
            name=category.name,
            average=category_average(category, scores),
            active_judge_count=len(category.active_judges),
            judge_scores=judge_breakdown(category, scores),
        )

    total = sum((result.average for result in categories.values()), ZERO)
    return SegmentResult(
        segment_id=segment.id,
        name=segment.name,
        order=segment.order,
        total=total,
        contribution=segment_contribution(segment, total),
        categories=categories,
    )


def aggregate(
    participants: Iterable[ParticipantSnapshot],
    scores: Iterable[ScoreSnapshot],
    segments: Iterable[SegmentSnapshot],
) -> Dict[int, ParticipantAggregate]:
    """
    Aggregate scores for every participant across the given segments.

    Args:
        participants: Participants to report on (each appears even with no scores)
        scores: Raw judge scores; scores for other participants or segments are ignored
        segments: Segments with categories and active judges loaded

    Returns:
        Dict mapping participant id to ParticipantAggregate
    """
    segments = sorted(segments, key=lambda s: s.order)

    grouped: Dict[int, Dict[int, List[ScoreSnapshot]]] = defaultdict(lambda: defaultdict(list))
    for score in scores:
        grouped[score.participant_id][score.segment_id].append(score)

    results: Dict[int, ParticipantAggregate] = {}
    for participant in participants:
        entry = ParticipantAggregate(participant=participant)
        participant_scores = grouped.get(participant.id, {})
        for segment in segments:
            segment_result = aggregate_segment_for_participant(
                segment, participant_scores.get(segment.id, [])
            )
            entry.segments[segment.id] = segment_result
        entry.final_score = sum(
            (result.contribution for result in entry.segments.values()), ZERO
        )
        results[participant.id] = entry

    logger.debug(
        f"Aggregated {len(results)} participants over {len(segments)} segment(s)"
    )
    return results


def aggregate_segment(
    participants: Iterable[ParticipantSnapshot],
    scores: Iterable[ScoreSnapshot],
    segment: SegmentSnapshot,
) -> Dict[int, Decimal]:
    """Segment total per participant, restricted to ``segment``."""
    aggregates = aggregate(participants, scores, [segment])
    return {
        participant_id: entry.segment_total(segment.id)
        for participant_id, entry in aggregates.items()
    }

"""
Ranking Report Service

Per-category, per-segment and final leaderboards, ranked separately per
gender. Scores are aggregated with full Decimal precision and rounded only
for the averaged_score column the ranks are computed from.
"""
import logging
from collections import defaultdict
from decimal import Decimal
from typing import Any, Dict, List, Optional

from tabulation.config.settings import settings
from tabulation.data_access.base import TabulationStore
from tabulation.exceptions import NotFoundError
from tabulation.models.snapshots import (
    CategorySnapshot,
    EventSnapshot,
    ParticipantSnapshot,
    SegmentSnapshot,
)
from tabulation.services.dense_ranker import RankingRow, rank_by_gender
from tabulation.services.score_aggregator import (
    aggregate,
    category_average,
    display_names,
    judge_breakdown,
    quantize_score,
)

logger = logging.getLogger(__name__)


class RankingReportService:
    """Builds ranking reports from the store."""

    def __init__(self, store: TabulationStore, decimal_places: Optional[int] = None):
        self.store = store
        self.decimal_places = (
            settings.REPORT_DECIMAL_PLACES if decimal_places is None else decimal_places
        )

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def _load_event(self, event_id: int) -> EventSnapshot:
        event = await self.store.find_event(event_id)
        if not event:
            raise NotFoundError("Event", event_id)
        return event

    @staticmethod
    def _get_segment(event: EventSnapshot, segment_id: int) -> SegmentSnapshot:
        segment = event.get_segment(segment_id)
        if not segment:
            raise NotFoundError("Segment", segment_id)
        return segment

    @staticmethod
    def _get_category(segment: SegmentSnapshot, category_id: int) -> CategorySnapshot:
        category = segment.get_category(category_id)
        if not category:
            raise NotFoundError("Category", category_id)
        return category

    def _round(self, value: Decimal) -> Decimal:
        return quantize_score(value, self.decimal_places)

    def _row(self, participant: ParticipantSnapshot, raw_score: Decimal, **cells) -> RankingRow:
        return RankingRow(
            participant_id=participant.id,
            participant_number=participant.number,
            name=participant.name,
            department=participant.department,
            gender=participant.gender,
            averaged_score=self._round(raw_score),
            raw_averaged_score=raw_score,
            **cells
        )

    @staticmethod
    def _results(rows: List[RankingRow]) -> Dict[str, List[Dict[str, Any]]]:
        return {
            gender: [row.to_dict() for row in ranked]
            for gender, ranked in rank_by_gender(rows).items()
        }

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    async def category_ranking(self, event_id: int, segment_id: int, category_id: int) -> Dict[str, Any]:
        """Leaderboard of one category, with each active judge's score."""
        event = await self._load_event(event_id)
        segment = self._get_segment(event, segment_id)
        category = self._get_category(segment, category_id)

        scores = await self.store.find_scores(event_id, segment_id=segment.id, category_id=category.id)
        by_participant = defaultdict(list)
        for score in scores:
            by_participant[score.participant_id].append(score)

        rows = []
        for participant in event.participants:
            if not participant.competed_in(segment):
                continue
            participant_scores = by_participant.get(participant.id, [])
            rows.append(self._row(
                participant,
                category_average(category, participant_scores),
                judge_scores=judge_breakdown(category, participant_scores),
            ))

        logger.info(
            f"Category ranking: event={event_id} segment={segment_id} "
            f"category={category_id} rows={len(rows)}"
        )
        return {
            "event": event.summary(),
            "segment": segment.summary(),
            "category": {
                "id": category.id,
                "name": category.name,
                "weight": category.weight,
                "active_judges": [judge.name for judge in category.active_judges],
            },
            "results": self._results(rows),
        }

    async def segment_ranking(self, event_id: int, segment_id: int) -> Dict[str, Any]:
        """Leaderboard of one segment by segment total, with each category's average."""
        event = await self._load_event(event_id)
        segment = self._get_segment(event, segment_id)

        participants = [p for p in event.participants if p.competed_in(segment)]
        scores = await self.store.find_scores(event_id, segment_id=segment.id)
        aggregates = aggregate(participants, scores, [segment])

        category_labels = display_names(segment.categories)
        rows = []
        for participant in participants:
            result = aggregates[participant.id].segments[segment.id]
            category_scores = {
                category_labels[category.category_id]: (
                    self._round(category.average) if category.counted else None
                )
                for category in result.categories.values()
            }
            rows.append(self._row(participant, result.total, category_scores=category_scores))

        logger.info(f"Segment ranking: event={event_id} segment={segment_id} rows={len(rows)}")
        return {
            "event": event.summary(),
            "segment": segment.summary(),
            "categories": [
                {
                    "id": category.id,
                    "name": category.name,
                    "label": category_labels[category.id],
                    "weight": category.weight,
                    "active_judge_count": len(category.active_judges),
                }
                for category in segment.categories
            ],
            "results": self._results(rows),
        }

    async def final_ranking(self, event_id: int) -> Dict[str, Any]:
        """Overall leaderboard: every participant, ranked by final score."""
        event = await self._load_event(event_id)
        scores = await self.store.find_scores(event_id)
        aggregates = aggregate(event.participants, scores, event.segments)

        segment_labels = display_names(event.segments)
        rows = []
        for participant in event.participants:
            entry = aggregates[participant.id]
            segment_scores = {
                segment_labels[result.segment_id]: self._round(result.contribution)
                for result in sorted(entry.segments.values(), key=lambda r: r.order)
            }
            rows.append(self._row(participant, entry.final_score, segment_scores=segment_scores))

        logger.info(f"Final ranking: event={event_id} rows={len(rows)}")
        return {
            "event": event.summary(),
            "segments": [segment.summary() for segment in event.segments],
            "results": self._results(rows),
        }

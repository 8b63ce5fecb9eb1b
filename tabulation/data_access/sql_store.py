"""
tabulation/data_access/sql_store.py
SQLAlchemy implementation of TabulationStore.

Each write commits on its own. Status changes that can race use a
conditional UPDATE and report whether the row actually changed.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, update, insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tabulation.exceptions import NotFoundError
from tabulation.models.enums import SegmentStatus, enum_value
from tabulation.models.snapshots import (
    CategorySnapshot,
    EventSnapshot,
    JudgeSnapshot,
    ParticipantSnapshot,
    ScoreSnapshot,
    SegmentSnapshot,
)
from tabulation.orm import (
    Category,
    Event,
    Judge,
    Participant,
    Score,
    Segment,
    event_judges,
)
from tabulation.data_access.base import TabulationStore

logger = logging.getLogger(__name__)


# =============================================================================
# ORM -> snapshot conversion
# =============================================================================

def judge_snapshot(judge: Judge) -> JudgeSnapshot:
    return JudgeSnapshot(id=judge.id, name=judge.name, user_id=judge.user_id)


def category_snapshot(category: Category, with_active_judges: bool = True) -> CategorySnapshot:
    return CategorySnapshot(
        id=category.id,
        name=category.name,
        weight=category.weight,
        segment_id=category.segment_id,
        locked=bool(category.locked),
        active_judges=(
            [judge_snapshot(j) for j in category.active_judges] if with_active_judges else []
        ),
    )


def segment_snapshot(
    segment: Segment,
    with_categories: bool = True,
    with_active_judges: bool = True
) -> SegmentSnapshot:
    categories = []
    if with_categories:
        categories = [category_snapshot(c, with_active_judges) for c in segment.categories]
    return SegmentSnapshot(
        id=segment.id,
        event_id=segment.event_id,
        name=segment.name,
        order=segment.order,
        weight=segment.weight,
        scoring_mode=segment.scoring_mode,
        status=segment.status,
        advancement_type=segment.advancement_type,
        advancement_value=segment.advancement_value,
        categories=categories,
        lock_started_at=segment.lock_started_at,
    )


def participant_snapshot(participant: Participant, segment_orders: dict) -> ParticipantSnapshot:
    eliminated_order = segment_orders.get(participant.eliminated_at_segment_id)
    return ParticipantSnapshot(
        id=participant.id,
        event_id=participant.event_id,
        number=participant.number,
        name=participant.name,
        gender=participant.gender,
        department=participant.department,
        status=participant.status,
        eliminated_at_segment_id=participant.eliminated_at_segment_id,
        eliminated_at_segment_order=eliminated_order,
    )


def score_snapshot(score: Score) -> ScoreSnapshot:
    return ScoreSnapshot(
        id=score.id,
        value=score.value,
        participant_id=score.participant_id,
        category_id=score.category_id,
        judge_id=score.judge_id,
        segment_id=score.segment_id,
        event_id=score.event_id,
    )


class SQLAlchemyStore(TabulationStore):
    """TabulationStore backed by an AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def _segment_orders(self, event_id: int) -> dict:
        """Map segment id to order for an event, read as plain columns."""
        result = await self.db.execute(
            select(Segment.id, Segment.order).where(Segment.event_id == event_id)
        )
        return {segment_id: order for segment_id, order in result.all()}

    async def find_event(
        self,
        event_id: int,
        with_segments: bool = True,
        with_participants: bool = True,
        with_judges: bool = True
    ) -> Optional[EventSnapshot]:
        options = []
        if with_segments:
            options.append(
                selectinload(Event.segments)
                .selectinload(Segment.categories)
                .selectinload(Category.active_judges)
            )
        if with_participants:
            options.append(selectinload(Event.participants))
        if with_judges:
            options.append(selectinload(Event.judges))

        result = await self.db.execute(
            select(Event)
            .where(Event.id == event_id)
            .options(*options)
            .execution_options(populate_existing=True)
        )
        event = result.scalar_one_or_none()
        if not event:
            return None

        segment_orders = {}
        if with_participants:
            segment_orders = await self._segment_orders(event.id)

        return EventSnapshot(
            id=event.id,
            name=event.name,
            status=event.status,
            segments=[segment_snapshot(s) for s in event.segments] if with_segments else [],
            participants=(
                [participant_snapshot(p, segment_orders) for p in event.participants]
                if with_participants else []
            ),
            judges=[judge_snapshot(j) for j in event.judges] if with_judges else [],
        )

    async def find_segment(
        self,
        segment_id: int,
        with_categories: bool = True,
        with_active_judges: bool = True
    ) -> Optional[SegmentSnapshot]:
        query = select(Segment).where(Segment.id == segment_id)
        if with_categories:
            query = query.options(
                selectinload(Segment.categories).selectinload(Category.active_judges)
            )
        result = await self.db.execute(query.execution_options(populate_existing=True))
        segment = result.scalar_one_or_none()
        if not segment:
            return None
        return segment_snapshot(segment, with_categories, with_active_judges)

    async def find_category(
        self,
        category_id: int,
        with_active_judges: bool = True
    ) -> Optional[CategorySnapshot]:
        result = await self.db.execute(
            select(Category)
            .where(Category.id == category_id)
            .options(selectinload(Category.active_judges))
            .execution_options(populate_existing=True)
        )
        category = result.scalar_one_or_none()
        if not category:
            return None
        return category_snapshot(category, with_active_judges)

    async def find_participants(
        self,
        event_id: int,
        status: Optional[str] = None
    ) -> List[ParticipantSnapshot]:
        query = (
            select(Participant)
            .where(Participant.event_id == event_id)
            .order_by(Participant.id)
        )
        if status is not None:
            query = query.where(Participant.status == enum_value(status))
        result = await self.db.execute(query.execution_options(populate_existing=True))
        segment_orders = await self._segment_orders(event_id)
        return [participant_snapshot(p, segment_orders) for p in result.scalars().all()]

    async def find_participant(self, participant_id: int) -> Optional[ParticipantSnapshot]:
        result = await self.db.execute(
            select(Participant)
            .where(Participant.id == participant_id)
            .execution_options(populate_existing=True)
        )
        participant = result.scalar_one_or_none()
        if not participant:
            return None
        return participant_snapshot(participant, await self._segment_orders(participant.event_id))

    async def find_judge(self, judge_id: int) -> Optional[JudgeSnapshot]:
        judge = await self.db.get(Judge, judge_id)
        return judge_snapshot(judge) if judge else None

    async def find_scores(
        self,
        event_id: int,
        segment_id: Optional[int] = None,
        category_id: Optional[int] = None
    ) -> List[ScoreSnapshot]:
        query = select(Score).where(Score.event_id == event_id)
        if segment_id is not None:
            query = query.where(Score.segment_id == segment_id)
        if category_id is not None:
            query = query.where(Score.category_id == category_id)
        result = await self.db.execute(
            query.order_by(Score.id).execution_options(populate_existing=True)
        )
        return [score_snapshot(s) for s in result.scalars().all()]

    async def find_score(self, score_id: int) -> Optional[ScoreSnapshot]:
        result = await self.db.execute(
            select(Score)
            .where(Score.id == score_id)
            .execution_options(populate_existing=True)
        )
        score = result.scalar_one_or_none()
        return score_snapshot(score) if score else None

    async def find_score_by_key(
        self,
        participant_id: int,
        category_id: int,
        judge_id: int,
        segment_id: int
    ) -> Optional[ScoreSnapshot]:
        result = await self.db.execute(
            select(Score)
            .where(
                Score.participant_id == participant_id,
                Score.category_id == category_id,
                Score.judge_id == judge_id,
                Score.segment_id == segment_id,
            )
            .execution_options(populate_existing=True)
        )
        score = result.scalar_one_or_none()
        return score_snapshot(score) if score else None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create_score(
        self,
        value: float,
        participant_id: int,
        category_id: int,
        judge_id: int,
        segment_id: int,
        event_id: int
    ) -> ScoreSnapshot:
        score = Score(
            value=value,
            participant_id=participant_id,
            category_id=category_id,
            judge_id=judge_id,
            segment_id=segment_id,
            event_id=event_id,
        )
        self.db.add(score)
        await self.db.commit()
        await self.db.refresh(score)
        return score_snapshot(score)

    async def update_score_value(self, score_id: int, value: float) -> ScoreSnapshot:
        score = await self.db.get(Score, score_id)
        if not score:
            raise NotFoundError("Score", score_id)
        score.value = value
        score.updated_at = datetime.utcnow()
        await self.db.commit()
        await self.db.refresh(score)
        return score_snapshot(score)

    async def set_participant_status(
        self,
        participant_id: int,
        status: str,
        eliminated_at_segment_id: Optional[int] = None
    ) -> None:
        values = {"status": enum_value(status), "updated_at": datetime.utcnow()}
        if eliminated_at_segment_id is not None:
            values["eliminated_at_segment_id"] = eliminated_at_segment_id

        result = await self.db.execute(
            update(Participant)
            .where(Participant.id == participant_id)
            .values(**values)
        )
        if result.rowcount == 0:
            await self.db.rollback()
            raise NotFoundError("Participant", participant_id)
        await self.db.commit()

    async def set_segment_status(
        self,
        segment_id: int,
        status: str,
        expected_status: Optional[str] = None
    ) -> bool:
        query = update(Segment).where(Segment.id == segment_id)
        if expected_status is not None:
            query = query.where(Segment.status == enum_value(expected_status))

        result = await self.db.execute(
            query.values(status=enum_value(status), updated_at=datetime.utcnow())
        )
        await self.db.commit()

        changed = result.rowcount == 1
        if not changed:
            logger.warning(
                f"[SEGMENT STATUS] No row changed for segment {segment_id} "
                f"(expected={enum_value(expected_status)}, new={enum_value(status)})"
            )
        return changed

    async def set_event_status(self, event_id: int, status: str) -> None:
        result = await self.db.execute(
            update(Event)
            .where(Event.id == event_id)
            .values(status=enum_value(status), updated_at=datetime.utcnow())
        )
        if result.rowcount == 0:
            await self.db.rollback()
            raise NotFoundError("Event", event_id)
        await self.db.commit()

    async def mark_segment_lock_started(self, segment_id: int) -> bool:
        result = await self.db.execute(
            update(Segment)
            .where(
                Segment.id == segment_id,
                Segment.status == SegmentStatus.ACTIVE.value,
                Segment.lock_started_at.is_(None),
            )
            .values(lock_started_at=datetime.utcnow())
        )
        await self.db.commit()
        return result.rowcount == 1

    async def create_judge(self, name: str, user_id: Optional[int] = None) -> JudgeSnapshot:
        judge = Judge(name=name, user_id=user_id)
        self.db.add(judge)
        await self.db.commit()
        await self.db.refresh(judge)
        return judge_snapshot(judge)

    async def link_judge_to_event(self, judge_id: int, event_id: int) -> None:
        existing = await self.db.execute(
            select(event_judges.c.judge_id).where(
                event_judges.c.judge_id == judge_id,
                event_judges.c.event_id == event_id,
            )
        )
        if existing.first() is not None:
            return

        await self.db.execute(
            insert(event_judges).values(event_id=event_id, judge_id=judge_id)
        )
        await self.db.commit()

"""
tabulation/models/snapshots.py
Read-only snapshots handed to the engine by the data-access layer.

The engine never touches ORM rows. Status, mode and policy fields stay plain
strings (comparable with the enums in tabulation.models.enums) so that a bad
stored value reaches the component that knows how to report it.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from tabulation.models.enums import ParticipantStatus


@dataclass
class JudgeSnapshot:
    id: int
    name: str
    user_id: Optional[int] = None


@dataclass
class CategorySnapshot:
    id: int
    name: str
    weight: float
    segment_id: Optional[int] = None
    locked: bool = False
    active_judges: List[JudgeSnapshot] = field(default_factory=list)

    @property
    def active_judge_ids(self) -> set:
        return {judge.id for judge in self.active_judges}


@dataclass
class SegmentSnapshot:
    id: int
    event_id: int
    name: str
    order: int
    weight: float
    scoring_mode: str
    status: str
    advancement_type: str
    advancement_value: Optional[float] = None
    categories: List[CategorySnapshot] = field(default_factory=list)
    lock_started_at: Optional[datetime] = None

    def get_category(self, category_id: int) -> Optional[CategorySnapshot]:
        for category in self.categories:
            if category.id == category_id:
                return category
        return None

    def summary(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "order": self.order,
            "weight": self.weight,
            "scoring_mode": self.scoring_mode,
            "status": self.status,
            "advancement_type": self.advancement_type,
            "advancement_value": self.advancement_value,
        }


@dataclass
class ParticipantSnapshot:
    id: int
    event_id: int
    number: int
    name: str
    gender: str
    department: Optional[str] = None
    status: str = ParticipantStatus.ACTIVE.value
    eliminated_at_segment_id: Optional[int] = None
    eliminated_at_segment_order: Optional[int] = None

    @property
    def is_active(self) -> bool:
        return self.status == ParticipantStatus.ACTIVE

    def competed_in(self, segment: SegmentSnapshot) -> bool:
        """
        True if the participant was still in the running during ``segment``.

        A participant eliminated at a segment competed in it, so the order
        comparison is inclusive: they stay on that segment's leaderboard and
        drop off the later ones.
        """
        if self.is_active:
            return True
        if self.eliminated_at_segment_id == segment.id:
            return True
        if self.eliminated_at_segment_order is None:
            return False
        return self.eliminated_at_segment_order >= segment.order


@dataclass
class ScoreSnapshot:
    id: int
    value: float
    participant_id: int
    category_id: int
    judge_id: int
    segment_id: int
    event_id: Optional[int] = None


@dataclass
class EventSnapshot:
    id: int
    name: str
    status: str
    segments: List[SegmentSnapshot] = field(default_factory=list)
    participants: List[ParticipantSnapshot] = field(default_factory=list)
    judges: List[JudgeSnapshot] = field(default_factory=list)

    def get_segment(self, segment_id: int) -> Optional[SegmentSnapshot]:
        for segment in self.segments:
            if segment.id == segment_id:
                return segment
        return None

    def summary(self) -> dict:
        return {"id": self.id, "name": self.name, "status": self.status}

"""
tabulation/data_access/base.py
Data-access interface the engine depends on.

Every read returns snapshots with the requested relations attached. Every
write is independent: the interface makes no promise that two calls are
applied atomically.
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from tabulation.models.snapshots import (
    CategorySnapshot,
    EventSnapshot,
    JudgeSnapshot,
    ParticipantSnapshot,
    ScoreSnapshot,
    SegmentSnapshot,
)


class TabulationStore(ABC):
    """Storage collaborator of the tabulation engine."""

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @abstractmethod
    async def find_event(
        self,
        event_id: int,
        with_segments: bool = True,
        with_participants: bool = True,
        with_judges: bool = True
    ) -> Optional[EventSnapshot]:
        ...

    @abstractmethod
    async def find_segment(
        self,
        segment_id: int,
        with_categories: bool = True,
        with_active_judges: bool = True
    ) -> Optional[SegmentSnapshot]:
        ...

    @abstractmethod
    async def find_category(
        self,
        category_id: int,
        with_active_judges: bool = True
    ) -> Optional[CategorySnapshot]:
        ...

    @abstractmethod
    async def find_participants(
        self,
        event_id: int,
        status: Optional[str] = None
    ) -> List[ParticipantSnapshot]:
        ...

    @abstractmethod
    async def find_participant(self, participant_id: int) -> Optional[ParticipantSnapshot]:
        ...

    @abstractmethod
    async def find_judge(self, judge_id: int) -> Optional[JudgeSnapshot]:
        ...

    @abstractmethod
    async def find_scores(
        self,
        event_id: int,
        segment_id: Optional[int] = None,
        category_id: Optional[int] = None
    ) -> List[ScoreSnapshot]:
        ...

    @abstractmethod
    async def find_score(self, score_id: int) -> Optional[ScoreSnapshot]:
        ...

    @abstractmethod
    async def find_score_by_key(
        self,
        participant_id: int,
        category_id: int,
        judge_id: int,
        segment_id: int
    ) -> Optional[ScoreSnapshot]:
        ...

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @abstractmethod
    async def create_score(
        self,
        value: float,
        participant_id: int,
        category_id: int,
        judge_id: int,
        segment_id: int,
        event_id: int
    ) -> ScoreSnapshot:
        ...

    @abstractmethod
    async def update_score_value(self, score_id: int, value: float) -> ScoreSnapshot:
        ...

    @abstractmethod
    async def set_participant_status(
        self,
        participant_id: int,
        status: str,
        eliminated_at_segment_id: Optional[int] = None
    ) -> None:
        ...

    @abstractmethod
    async def set_segment_status(
        self,
        segment_id: int,
        status: str,
        expected_status: Optional[str] = None
    ) -> bool:
        """
        Change a segment's status.

        With ``expected_status`` the change only happens if the stored status
        still equals it (compare-and-swap). Returns whether a row changed.
        """
        ...

    @abstractmethod
    async def set_event_status(self, event_id: int, status: str) -> None:
        ...

    @abstractmethod
    async def mark_segment_lock_started(self, segment_id: int) -> bool:
        """
        Persist the in-progress marker of a lock run.

        Only succeeds on an active segment without a marker. Returns whether
        the marker was written by this call.
        """
        ...

    @abstractmethod
    async def create_judge(self, name: str, user_id: Optional[int] = None) -> JudgeSnapshot:
        ...

    @abstractmethod
    async def link_judge_to_event(self, judge_id: int, event_id: int) -> None:
        ...

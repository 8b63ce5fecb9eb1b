"""
Lock Orchestrator

Closes a segment and eliminates the participants who do not advance.

The lock is a short saga over independent store writes:

1. plan (pure): segment totals, advancement split, list of write intents
2. refuse before writing when a human decision is needed (cutoff tie,
   threshold eliminating a whole group)
3. claim the in-progress marker on the segment
4. apply participant eliminations, then close the segment with a
   compare-and-swap on 'active'

Step 4 is not atomic. A failure part way raises PartialLockError listing
what was applied and what was not; nothing is retried or rolled back.
Losing the closing compare-and-swap to another run is a conflict instead,
since the eliminations already written are the ones that run writes too.
Running the lock again on the same segment resumes it: participants already
eliminated at this segment are kept in the computation and skipped on write.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from tabulation.config.feature_flags import feature_flags
from tabulation.data_access.base import TabulationStore
from tabulation.exceptions import (
    ConcurrentModificationError,
    NotFoundError,
    PartialLockError,
    TieConfirmationRequired,
)
from tabulation.models.enums import ParticipantStatus, SegmentStatus, enum_value
from tabulation.models.snapshots import ParticipantSnapshot, ScoreSnapshot, SegmentSnapshot
from tabulation.services.advancement_resolver import (
    AdvancementResult,
    ParticipantStanding,
    resolve_advancement,
)
from tabulation.services.score_aggregator import aggregate_segment
from tabulation.state_machines.lifecycle import LifecycleStateMachine

logger = logging.getLogger(__name__)

NON_ATOMIC_WARNING = (
    "Segment lock is not atomic. Participants listed as applied may already be "
    "eliminated while the segment is still active. Inspect the segment and run "
    "the lock again to resume it."
)


# =============================================================================
# Write intents
# =============================================================================

@dataclass
class ParticipantStatusIntent:
    participant_id: int
    status: str
    eliminated_at_segment_id: Optional[int] = None

    async def apply(self, store: TabulationStore) -> None:
        await store.set_participant_status(
            self.participant_id, self.status, self.eliminated_at_segment_id
        )

    def to_dict(self) -> dict:
        return {
            "type": "participant_status",
            "participant_id": self.participant_id,
            "status": enum_value(self.status),
            "eliminated_at_segment_id": self.eliminated_at_segment_id,
        }


@dataclass
class SegmentStatusIntent:
    segment_id: int
    from_status: str
    to_status: str

    async def apply(self, store: TabulationStore) -> None:
        expected = self.from_status if feature_flags.FEATURE_SEGMENT_STATUS_GUARD else None
        changed = await store.set_segment_status(
            self.segment_id, self.to_status, expected_status=expected
        )
        if expected is not None and not changed:
            raise ConcurrentModificationError(
                f"Segment {self.segment_id} is no longer '{enum_value(self.from_status)}'.",
                details={"segment_id": self.segment_id}
            )

    def to_dict(self) -> dict:
        return {
            "type": "segment_status",
            "segment_id": self.segment_id,
            "from_status": enum_value(self.from_status),
            "to_status": enum_value(self.to_status),
        }


LockIntent = Union[ParticipantStatusIntent, SegmentStatusIntent]


# =============================================================================
# Planning
# =============================================================================

@dataclass
class LockPlan:
    segment: SegmentSnapshot
    standings: List[ParticipantStanding]
    advancement: AdvancementResult
    participant_intents: List[ParticipantStatusIntent] = field(default_factory=list)
    segment_intent: Optional[SegmentStatusIntent] = None

    @property
    def intents(self) -> List[LockIntent]:
        intents: List[LockIntent] = list(self.participant_intents)
        if self.segment_intent is not None:
            intents.append(self.segment_intent)
        return intents


def eliminated_here(participant: ParticipantSnapshot, segment: SegmentSnapshot) -> bool:
    return (
        participant.status == ParticipantStatus.ELIMINATED
        and participant.eliminated_at_segment_id == segment.id
    )


def competing_participants(
    participants: List[ParticipantSnapshot],
    segment: SegmentSnapshot
) -> List[ParticipantSnapshot]:
    """Active participants plus those an earlier run of this lock already eliminated."""
    return [p for p in participants if p.is_active or eliminated_here(p, segment)]


def plan_segment_lock(
    segment: SegmentSnapshot,
    participants: List[ParticipantSnapshot],
    scores: List[ScoreSnapshot],
) -> LockPlan:
    """
    Compute the outcome of locking ``segment`` without writing anything.

    Args:
        segment: Segment with categories and active judges loaded
        participants: Participants of the event (any status)
        scores: Scores of the segment

    Returns:
        LockPlan with the advancement split and the write intents

    Raises:
        ConfigurationError: Advancement policy cannot be applied
        ManualInterventionRequired: Threshold would eliminate a whole group
    """
    competing = competing_participants(participants, segment)
    totals = aggregate_segment(competing, scores, segment)
    standings = [ParticipantStanding(p, totals[p.id]) for p in competing]

    advancement = resolve_advancement(
        standings, segment.advancement_type, segment.advancement_value
    )

    plan = LockPlan(segment=segment, standings=standings, advancement=advancement)
    for standing in advancement.to_eliminate:
        if eliminated_here(standing.participant, segment):
            continue
        plan.participant_intents.append(ParticipantStatusIntent(
            participant_id=standing.participant.id,
            status=ParticipantStatus.ELIMINATED.value,
            eliminated_at_segment_id=segment.id,
        ))

    for standing in advancement.to_advance:
        if eliminated_here(standing.participant, segment):
            logger.warning(
                f"[SEGMENT LOCK] Participant {standing.participant.id} was eliminated by an "
                f"earlier run of segment {segment.id} but now advances; left unchanged"
            )

    plan.segment_intent = SegmentStatusIntent(
        segment_id=segment.id,
        from_status=SegmentStatus.ACTIVE.value,
        to_status=SegmentStatus.CLOSED.value,
    )
    return plan


# =============================================================================
# Execution
# =============================================================================

@dataclass
class LockResult:
    segment: SegmentSnapshot
    advanced: List[ParticipantStanding]
    eliminated: List[ParticipantStanding]
    tie_detected: bool
    intents: List[LockIntent]
    resumed: bool = False

    def to_dict(self) -> Dict:
        return {
            "segment": self.segment.summary(),
            "advanced": [s.to_dict() for s in self.advanced],
            "eliminated": [s.to_dict() for s in self.eliminated],
            "tie_detected": self.tie_detected,
            "applied": [intent.to_dict() for intent in self.intents],
            "resumed": self.resumed,
        }


class LockOrchestrator:
    """Runs the segment lock saga against a TabulationStore."""

    def __init__(self, store: TabulationStore):
        self.store = store

    async def lock_segment(self, segment_id: int, confirm_ties: bool = False) -> LockResult:
        """
        Lock a segment: eliminate non-advancing participants and close it.

        Args:
            segment_id: Segment to lock
            confirm_ties: Accept a top_n cutoff tie that advances more than N

        Raises:
            NotFoundError: Unknown segment
            InvalidStateError: Segment is not active
            TieConfirmationRequired: Cutoff tie and confirm_ties is False
            ManualInterventionRequired: Threshold would eliminate a whole group
            ConcurrentModificationError: Another lock run claimed or closed the segment first
            PartialLockError: A write failed after the lock started writing
        """
        segment = await self.store.find_segment(segment_id)
        if not segment:
            raise NotFoundError("Segment", segment_id)

        LifecycleStateMachine.ensure_lockable(segment)

        participants = await self.store.find_participants(segment.event_id)
        scores = await self.store.find_scores(segment.event_id, segment_id=segment.id)

        plan = plan_segment_lock(segment, participants, scores)
        advancement = plan.advancement

        if advancement.tie_detected and not confirm_ties:
            logger.warning(
                f"[SEGMENT LOCK] Segment {segment_id} tie at cutoff for "
                f"{advancement.tied_genders}; confirmation required"
            )
            raise TieConfirmationRequired(
                "Tie detected at the advancement cutoff. Confirm to advance all tied participants.",
                resolution=advancement,
                details=advancement.to_dict()
            )

        resumed = segment.lock_started_at is not None
        if resumed:
            logger.warning(
                f"[SEGMENT LOCK] Resuming segment {segment_id} "
                f"(started at {segment.lock_started_at.isoformat()})"
            )
        else:
            claimed = await self.store.mark_segment_lock_started(segment.id)
            if not claimed:
                raise ConcurrentModificationError(
                    "Segment lock is already in progress.",
                    details={"segment_id": segment.id}
                )

        logger.info(
            f"[SEGMENT LOCK] Segment {segment_id}: advancing={len(advancement.to_advance)} "
            f"eliminating={len(advancement.to_eliminate)} writes={len(plan.intents)}"
        )

        await self._apply(plan)

        segment = await self.store.find_segment(segment.id)
        logger.info(f"[SEGMENT LOCK] Segment {segment_id} closed")

        return LockResult(
            segment=segment,
            advanced=advancement.to_advance,
            eliminated=advancement.to_eliminate,
            tie_detected=advancement.tie_detected,
            intents=plan.intents,
            resumed=resumed,
        )

    async def _apply(self, plan: LockPlan) -> None:
        intents = plan.intents
        applied: List[LockIntent] = []
        for index, intent in enumerate(intents):
            try:
                await intent.apply(self.store)
            except ConcurrentModificationError as exc:
                if not isinstance(intent, SegmentStatusIntent):
                    raise self._partial_failure(plan, applied, intents[index:], exc) from exc
                # Eliminations written so far match the plan and are safe to repeat.
                logger.warning(
                    f"[SEGMENT LOCK] Segment {plan.segment.id} changed during the lock "
                    f"after {len(applied)} participant writes"
                )
                exc.details = {
                    **(exc.details or {}),
                    "applied": [done.to_dict() for done in applied],
                }
                raise
            except Exception as exc:
                raise self._partial_failure(plan, applied, intents[index:], exc) from exc
            applied.append(intent)

    @staticmethod
    def _partial_failure(
        plan: LockPlan,
        applied: List[LockIntent],
        pending: List[LockIntent],
        exc: Exception
    ) -> PartialLockError:
        logger.error(
            f"[SEGMENT LOCK FAILED] Segment {plan.segment.id}: {exc!r} "
            f"after {len(applied)} of {len(applied) + len(pending)} writes"
        )
        return PartialLockError(
            f"Segment lock failed part way. {NON_ATOMIC_WARNING}",
            applied=applied,
            pending=pending,
        )

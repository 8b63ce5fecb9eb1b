"""
Lifecycle State Machine

Event and segment status transitions. Allowed moves live in the transition
tables below; every guarded change goes through the store so the caller never
writes a status column directly.
"""
import logging
from typing import Dict, List

from tabulation.config.feature_flags import feature_flags
from tabulation.data_access.base import TabulationStore
from tabulation.exceptions import (
    ConcurrentModificationError,
    InvalidStateError,
    NotFoundError,
    WeightValidationError,
)
from tabulation.models.enums import EventStatus, SegmentStatus, enum_value
from tabulation.models.snapshots import EventSnapshot, SegmentSnapshot
from tabulation.services.weight_validator import validate_event_activation

logger = logging.getLogger(__name__)


class LifecycleStateMachine:
    """
    Server-side lifecycle for events and segments.

    Event:   draft -> active
    Segment: draft|inactive -> active -> closed
    """

    # Valid transitions: {current_status: [allowed_next_statuses]}
    EVENT_TRANSITIONS: Dict[str, List[str]] = {
        EventStatus.DRAFT.value: [EventStatus.ACTIVE.value],
        EventStatus.ACTIVE.value: [],
    }

    SEGMENT_TRANSITIONS: Dict[str, List[str]] = {
        SegmentStatus.DRAFT.value: [SegmentStatus.ACTIVE.value],
        SegmentStatus.INACTIVE.value: [SegmentStatus.ACTIVE.value],
        SegmentStatus.ACTIVE.value: [SegmentStatus.CLOSED.value],
        SegmentStatus.CLOSED.value: [],
    }

    def __init__(self, store: TabulationStore):
        self.store = store

    @classmethod
    def can_transition_event(cls, current: str, target: str) -> bool:
        return enum_value(target) in cls.EVENT_TRANSITIONS.get(enum_value(current), [])

    @classmethod
    def can_transition_segment(cls, current: str, target: str) -> bool:
        return enum_value(target) in cls.SEGMENT_TRANSITIONS.get(enum_value(current), [])

    async def activate_event(self, event_id: int) -> EventSnapshot:
        """
        Move an event from draft to active.

        Raises:
            NotFoundError: Unknown event
            InvalidStateError: Event is not in draft
            WeightValidationError: Activation checks failed (first violation is the message)
        """
        event = await self.store.find_event(event_id)
        if not event:
            raise NotFoundError("Event", event_id)

        if not self.can_transition_event(event.status, EventStatus.ACTIVE):
            logger.warning(
                f"[TRANSITION BLOCKED] Event {event_id}: {event.status} -> {EventStatus.ACTIVE.value}"
            )
            raise InvalidStateError(
                f"Event status is already {event.status}",
                details={"current_status": event.status}
            )

        violations = validate_event_activation(event)
        if violations:
            raise WeightValidationError(violations)

        await self.store.set_event_status(event_id, EventStatus.ACTIVE.value)
        event.status = EventStatus.ACTIVE.value

        logger.info(f"[EVENT ACTIVATED] Event {event_id} ({event.name})")
        return event

    async def activate_segment(self, segment_id: int) -> SegmentSnapshot:
        """
        Move a segment from draft or inactive to active.

        The parent event must already be active. With the status guard
        enabled the write only lands if the segment status is unchanged since
        it was read.
        """
        segment = await self.store.find_segment(segment_id, with_categories=False)
        if not segment:
            raise NotFoundError("Segment", segment_id)

        event = await self.store.find_event(
            segment.event_id,
            with_segments=False,
            with_participants=False,
            with_judges=False
        )
        if not event:
            raise NotFoundError("Event", segment.event_id)

        if event.status != EventStatus.ACTIVE:
            raise InvalidStateError(
                "Event must be active before activating a segment.",
                details={"event_status": event.status}
            )

        if segment.status == SegmentStatus.ACTIVE:
            raise InvalidStateError("Segment is already active.")

        if segment.status == SegmentStatus.CLOSED:
            raise InvalidStateError(
                "Segment has already been closed and cannot be reactivated again."
            )

        if not self.can_transition_segment(segment.status, SegmentStatus.ACTIVE):
            logger.warning(
                f"[TRANSITION BLOCKED] Segment {segment_id}: "
                f"{segment.status} -> {SegmentStatus.ACTIVE.value}"
            )
            raise InvalidStateError(
                f"Segment cannot be activated from '{segment.status}' status.",
                details={"current_status": segment.status}
            )

        expected = segment.status if feature_flags.FEATURE_SEGMENT_STATUS_GUARD else None
        changed = await self.store.set_segment_status(
            segment_id, SegmentStatus.ACTIVE.value, expected_status=expected
        )
        if expected is not None and not changed:
            raise ConcurrentModificationError(
                "Segment status changed while it was being activated.",
                details={"expected_status": expected}
            )

        previous = segment.status
        segment.status = SegmentStatus.ACTIVE.value
        logger.info(f"[SEGMENT ACTIVATED] Segment {segment_id}: {previous} -> {segment.status}")
        return segment

    @staticmethod
    def ensure_lockable(segment: SegmentSnapshot) -> None:
        """Only an active segment can be locked."""
        if segment.status != SegmentStatus.ACTIVE:
            logger.warning(
                f"[TRANSITION BLOCKED] Segment {segment.id}: "
                f"{segment.status} -> {SegmentStatus.CLOSED.value}"
            )
            raise InvalidStateError(
                "Segment cannot be locked as it is not in 'active' status.",
                details={"current_status": segment.status}
            )

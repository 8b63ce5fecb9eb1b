"""
Weight Validator

Activation checks for an event (segment/category weight sums, uniqueness,
required members) and the per-write admission check for judge scores.
"""
import math
from decimal import Decimal
import logging
from dataclasses import dataclass
from typing import List, Optional

from tabulation.config.settings import settings
from tabulation.exceptions import ValidationError
from tabulation.models.enums import ScoringMode, SegmentStatus
from tabulation.models.snapshots import CategorySnapshot, EventSnapshot, SegmentSnapshot

logger = logging.getLogger(__name__)

NORMALIZED_MAX_SCORE = 100.0

ACTIVATABLE_SEGMENT_STATUSES = {SegmentStatus.DRAFT.value, SegmentStatus.INACTIVE.value}


class ViolationCode:
    NO_SEGMENTS = "NO_SEGMENTS"
    NO_PARTICIPANTS = "NO_PARTICIPANTS"
    SEGMENT_NOT_DRAFT = "SEGMENT_NOT_DRAFT"
    DUPLICATE_SEGMENT_ORDER = "DUPLICATE_SEGMENT_ORDER"
    DUPLICATE_PARTICIPANT = "DUPLICATE_PARTICIPANT"
    SEGMENT_WEIGHT_SUM = "SEGMENT_WEIGHT_SUM"
    CATEGORY_WEIGHT_SUM = "CATEGORY_WEIGHT_SUM"
    NO_JUDGES = "NO_JUDGES"


@dataclass
class Violation:
    code: str
    message: str
    segment_id: Optional[int] = None

    def to_dict(self) -> dict:
        data = {"code": self.code, "message": self.message}
        if self.segment_id is not None:
            data["segment_id"] = self.segment_id
        return data


def segment_weight_total(segments: List[SegmentSnapshot]) -> float:
    return sum((segment.weight or 0) for segment in segments)


def category_weight_total(segment: SegmentSnapshot) -> float:
    return sum((category.weight or 0) for category in segment.categories)


def segment_weights_valid(segments: List[SegmentSnapshot], tolerance: Optional[float] = None) -> bool:
    """Segment weights must sum to 1.0 within ``tolerance``."""
    if tolerance is None:
        tolerance = settings.SEGMENT_WEIGHT_TOLERANCE
    return abs(segment_weight_total(segments) - 1.0) < tolerance


def category_weights_valid(segment: SegmentSnapshot) -> bool:
    """Category weights must sum to exactly 1.0 (no tolerance)."""
    return category_weight_total(segment) == 1.0


def validate_event_activation(event: EventSnapshot, tolerance: Optional[float] = None) -> List[Violation]:
    """
    Collect every reason the event cannot move from draft to active.

    Violations are returned in check order; callers report the first one.

    Args:
        event: Event with segments (and their categories), participants and judges
        tolerance: Override for the segment weight tolerance

    Returns:
        List of violations, empty when activation may proceed
    """
    violations: List[Violation] = []

    if not event.segments:
        violations.append(Violation(
            ViolationCode.NO_SEGMENTS, "Event must have at least one segment"
        ))

    if not event.participants:
        violations.append(Violation(
            ViolationCode.NO_PARTICIPANTS, "Event must have at least one participant"
        ))

    if any(segment.status not in ACTIVATABLE_SEGMENT_STATUSES for segment in event.segments):
        violations.append(Violation(
            ViolationCode.SEGMENT_NOT_DRAFT,
            "All segments must be draft or inactive before activation"
        ))

    orders = [segment.order for segment in event.segments]
    if len(set(orders)) != len(orders):
        violations.append(Violation(
            ViolationCode.DUPLICATE_SEGMENT_ORDER, "Segment order values must be unique"
        ))

    participant_keys = [(p.number, p.gender) for p in event.participants]
    if len(set(participant_keys)) != len(participant_keys):
        violations.append(Violation(
            ViolationCode.DUPLICATE_PARTICIPANT,
            "Participant number and gender combination must be unique"
        ))

    if event.segments and not segment_weights_valid(event.segments, tolerance):
        violations.append(Violation(
            ViolationCode.SEGMENT_WEIGHT_SUM, "Total segment weight must be 1.0"
        ))

    for segment in event.segments:
        if not category_weights_valid(segment):
            violations.append(Violation(
                ViolationCode.CATEGORY_WEIGHT_SUM,
                f"Total category weight for segment #{segment.order} must be 1.0",
                segment_id=segment.id
            ))

    if not event.judges:
        violations.append(Violation(
            ViolationCode.NO_JUDGES, "At least one judge must be assigned to the event"
        ))

    if violations:
        logger.info(
            f"Event {event.id} activation blocked by {len(violations)} violation(s): "
            f"{[v.code for v in violations]}"
        )
    return violations


def max_score_for(segment: SegmentSnapshot, category: CategorySnapshot) -> float:
    """Upper bound for a single judge score in ``category``."""
    if segment.scoring_mode == ScoringMode.NORMALIZED:
        return NORMALIZED_MAX_SCORE
    if segment.scoring_mode == ScoringMode.RAW_CATEGORY:
        if not isinstance(category.weight, (int, float)):
            raise ValidationError("Category weight is not defined.")
        return float(Decimal(str(category.weight)) * 100)
    raise ValidationError("Invalid segment scoring mode.")


def is_valid_number(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not math.isnan(value)


def check_score_admission(segment: SegmentSnapshot, category_id: int, value) -> CategorySnapshot:
    """
    Validate a score write against its segment and category.

    Args:
        segment: Segment with categories loaded
        category_id: Category the score is for
        value: Submitted score value

    Returns:
        The category the score belongs to

    Raises:
        ValidationError: If the score cannot be admitted
    """
    if not is_valid_number(value):
        raise ValidationError("Score value must be a valid number.")

    category = segment.get_category(category_id)
    if category is None:
        raise ValidationError("Category does not belong to this segment.")

    if category.locked:
        raise ValidationError("Category is already locked for scoring.")

    if not category_weights_valid(segment):
        raise ValidationError(
            f"Total category weight for segment #{segment.order} must be 1.0",
            details={"category_weight_total": category_weight_total(segment)}
        )

    max_score = max_score_for(segment, category)
    if value < 0 or value > max_score:
        raise ValidationError(
            f"Invalid score. Allowed range: 0 to {max_score:g}.",
            details={"min": 0, "max": max_score, "value": value}
        )

    return category

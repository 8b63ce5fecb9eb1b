"""
tabulation/models/enums.py
Status, mode and policy enumerations shared by the ORM, the engine and the API.
"""
from enum import Enum


class EventStatus(str, Enum):
    """Event lifecycle. ACTIVE is terminal for the engine."""
    DRAFT = "draft"
    ACTIVE = "active"


class SegmentStatus(str, Enum):
    """Segment lifecycle. CLOSED is terminal."""
    DRAFT = "draft"
    INACTIVE = "inactive"
    ACTIVE = "active"
    CLOSED = "closed"


class ScoringMode(str, Enum):
    """How category scores are capped and how a segment feeds the final score."""
    NORMALIZED = "normalized"
    RAW_CATEGORY = "raw_category"


class AdvancementType(str, Enum):
    """Rule deciding who survives a segment."""
    ALL = "all"
    TOP_N = "top_n"
    THRESHOLD = "threshold"
    MANUAL = "manual"


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"


class ParticipantStatus(str, Enum):
    ACTIVE = "active"
    ELIMINATED = "eliminated"


def enum_value(value) -> str:
    """Return the raw string for an enum member or a plain string."""
    return getattr(value, "value", value)

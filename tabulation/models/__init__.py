from .enums import (
    EventStatus,
    SegmentStatus,
    ScoringMode,
    AdvancementType,
    Gender,
    ParticipantStatus,
    enum_value,
)
from .snapshots import (
    JudgeSnapshot,
    CategorySnapshot,
    SegmentSnapshot,
    ParticipantSnapshot,
    ScoreSnapshot,
    EventSnapshot,
)

__all__ = [
    "EventStatus",
    "SegmentStatus",
    "ScoringMode",
    "AdvancementType",
    "Gender",
    "ParticipantStatus",
    "enum_value",
    "JudgeSnapshot",
    "CategorySnapshot",
    "SegmentSnapshot",
    "ParticipantSnapshot",
    "ScoreSnapshot",
    "EventSnapshot",
]

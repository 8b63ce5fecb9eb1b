from .base import Base

from .event import Event, event_judges
from .judge import Judge
from .segment import Segment, Category, category_active_judges
from .participant import Participant
from .score import Score

__all__ = [
    "Base",
    "Event",
    "event_judges",
    "Judge",
    "Segment",
    "Category",
    "category_active_judges",
    "Participant",
    "Score",
]

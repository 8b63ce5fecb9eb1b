"""
tabulation/orm/score.py
Score ORM model: one judge's mark for one participant in one category.
"""
from sqlalchemy import Column, Float, Integer, ForeignKey, UniqueConstraint, Index

from tabulation.orm.base import BaseModel


class Score(BaseModel):
    """At most one score per (participant, category, judge, segment)."""
    __tablename__ = "scores"

    value = Column(Float, nullable=False)
    participant_id = Column(
        Integer,
        ForeignKey("participants.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    category_id = Column(
        Integer,
        ForeignKey("categories.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    judge_id = Column(
        Integer,
        ForeignKey("judges.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    segment_id = Column(
        Integer,
        ForeignKey("segments.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    event_id = Column(
        Integer,
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    __table_args__ = (
        UniqueConstraint(
            "participant_id", "category_id", "judge_id", "segment_id",
            name="uq_score_participant_category_judge_segment"
        ),
        Index("idx_score_event_segment", "event_id", "segment_id"),
    )

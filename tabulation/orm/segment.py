"""
tabulation/orm/segment.py
Segment and Category ORM models.

A segment is one scored round of an event; a category is a weighted
dimension scored inside a segment.
"""
from sqlalchemy import (
    Column, String, Integer, Float, Boolean, DateTime, ForeignKey, Table,
    UniqueConstraint, CheckConstraint, Index
)
from sqlalchemy.orm import relationship

from tabulation.models.enums import AdvancementType, ScoringMode, SegmentStatus
from tabulation.orm.base import Base, BaseModel


# Judges whose scores currently count for a category
category_active_judges = Table(
    "category_active_judges",
    Base.metadata,
    Column("category_id", Integer, ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
    Column("judge_id", Integer, ForeignKey("judges.id", ondelete="CASCADE"), primary_key=True),
)


class Segment(BaseModel):
    """
    Scored round of an event.

    Status: draft|inactive -> active -> closed. CLOSED is terminal.
    lock_started_at is set when a lock run begins and stays set afterwards.
    """
    __tablename__ = "segments"

    event_id = Column(
        Integer,
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    name = Column(String(255), nullable=False)
    order = Column("order", Integer, nullable=False)
    weight = Column(Float, nullable=False, default=0.0)
    scoring_mode = Column(String(20), nullable=False, default=ScoringMode.NORMALIZED.value)
    status = Column(String(20), nullable=False, default=SegmentStatus.DRAFT.value)
    advancement_type = Column(String(20), nullable=False, default=AdvancementType.ALL.value)
    advancement_value = Column(Float, nullable=True)
    lock_started_at = Column(DateTime, nullable=True)

    event = relationship("Event", back_populates="segments")
    categories = relationship(
        "Category",
        back_populates="segment",
        order_by="Category.id",
        cascade="all, delete-orphan"
    )

    __table_args__ = (
        UniqueConstraint("event_id", "order", name="uq_segment_event_order"),
        CheckConstraint(
            f"status IN ('{SegmentStatus.DRAFT.value}', '{SegmentStatus.INACTIVE.value}', "
            f"'{SegmentStatus.ACTIVE.value}', '{SegmentStatus.CLOSED.value}')",
            name="ck_segment_status_valid"
        ),
        CheckConstraint("weight >= 0 AND weight <= 1", name="ck_segment_weight_range"),
        Index("idx_segment_event_status", "event_id", "status"),
    )


class Category(BaseModel):
    """Weighted scoring dimension inside a segment."""
    __tablename__ = "categories"

    segment_id = Column(
        Integer,
        ForeignKey("segments.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    name = Column(String(255), nullable=False)
    weight = Column(Float, nullable=False, default=0.0)
    locked = Column(Boolean, nullable=False, default=False)

    segment = relationship("Segment", back_populates="categories")
    active_judges = relationship(
        "Judge",
        secondary=category_active_judges,
        order_by="Judge.id"
    )

    __table_args__ = (
        CheckConstraint("weight >= 0 AND weight <= 1", name="ck_category_weight_range"),
    )

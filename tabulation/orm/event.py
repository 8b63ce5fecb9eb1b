"""
tabulation/orm/event.py
Event ORM model and the event/judge assignment table.
"""
from sqlalchemy import Column, String, Integer, ForeignKey, Table, CheckConstraint
from sqlalchemy.orm import relationship

from tabulation.models.enums import EventStatus
from tabulation.orm.base import Base, BaseModel


event_judges = Table(
    "event_judges",
    Base.metadata,
    Column("event_id", Integer, ForeignKey("events.id", ondelete="CASCADE"), primary_key=True),
    Column("judge_id", Integer, ForeignKey("judges.id", ondelete="CASCADE"), primary_key=True),
)


class Event(BaseModel):
    """
    A scored competition (pageant, talent contest).

    Status moves draft -> active once, after the activation checks pass.
    """
    __tablename__ = "events"

    name = Column(String(255), nullable=False)
    status = Column(String(20), nullable=False, default=EventStatus.DRAFT.value)

    segments = relationship(
        "Segment",
        back_populates="event",
        order_by="Segment.order",
        cascade="all, delete-orphan"
    )
    participants = relationship(
        "Participant",
        back_populates="event",
        order_by="Participant.id",
        cascade="all, delete-orphan"
    )
    judges = relationship(
        "Judge",
        secondary=event_judges,
        back_populates="events",
        order_by="Judge.id"
    )

    __table_args__ = (
        CheckConstraint(
            f"status IN ('{EventStatus.DRAFT.value}', '{EventStatus.ACTIVE.value}')",
            name="ck_event_status_valid"
        ),
    )

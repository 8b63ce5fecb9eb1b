"""
tabulation/orm/participant.py
Participant ORM model.
"""
from sqlalchemy import Column, String, Integer, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship

from tabulation.models.enums import Gender, ParticipantStatus
from tabulation.orm.base import BaseModel


class Participant(BaseModel):
    """
    Contestant of an event.

    eliminated_at_segment_id is written once by the segment lock and never cleared.
    """
    __tablename__ = "participants"

    event_id = Column(
        Integer,
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    number = Column(Integer, nullable=False)
    name = Column(String(255), nullable=False)
    gender = Column(String(10), nullable=False)
    department = Column(String(255), nullable=True)
    status = Column(String(20), nullable=False, default=ParticipantStatus.ACTIVE.value)
    eliminated_at_segment_id = Column(
        Integer,
        ForeignKey("segments.id", ondelete="SET NULL"),
        nullable=True
    )

    event = relationship("Event", back_populates="participants")

    __table_args__ = (
        UniqueConstraint("event_id", "number", "gender", name="uq_participant_number_gender"),
        CheckConstraint(
            f"gender IN ('{Gender.MALE.value}', '{Gender.FEMALE.value}')",
            name="ck_participant_gender_valid"
        ),
        CheckConstraint(
            f"status IN ('{ParticipantStatus.ACTIVE.value}', '{ParticipantStatus.ELIMINATED.value}')",
            name="ck_participant_status_valid"
        ),
    )

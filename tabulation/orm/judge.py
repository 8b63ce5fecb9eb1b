"""
tabulation/orm/judge.py
Judge ORM model.
"""
from sqlalchemy import Column, String, Integer
from sqlalchemy.orm import relationship

from tabulation.orm.base import BaseModel
from tabulation.orm.event import event_judges


class Judge(BaseModel):
    """A judge, optionally linked to the user account that created it."""
    __tablename__ = "judges"

    name = Column(String(255), nullable=False)
    user_id = Column(Integer, nullable=True, unique=True, index=True)

    events = relationship(
        "Event",
        secondary=event_judges,
        back_populates="judges"
    )

"""Blackout model definitions."""

from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint
from coachbook.database import Base


class Blackout(Base):
    """An admin-blocked slot, independent of any booking on it."""
    __tablename__ = "blackouts"
    __table_args__ = (UniqueConstraint("date", "time", name="uq_blackouts_slot"),)

    id = Column(Integer, primary_key=True)
    date = Column(String(10), nullable=False)
    time = Column(String(5), nullable=False)
    created_by = Column(String)
    created_at = Column(DateTime, default=datetime.now)

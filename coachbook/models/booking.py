"""Booking model definitions."""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, String, UniqueConstraint
from coachbook.database import Base


class Booking(Base):
    """A reserved training slot. At most one booking exists per (date, time)."""
    __tablename__ = "bookings"
    __table_args__ = (UniqueConstraint("date", "time", name="uq_bookings_slot"),)

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    program_id = Column(String, nullable=False)
    gym_id = Column(String, nullable=False)
    date = Column(String(10), nullable=False)  # yyyy-MM-dd
    time = Column(String(5), nullable=False)  # HH:MM
    is_paid = Column(Boolean, nullable=False, default=False)
    health_disclosure_accepted = Column(Boolean, nullable=False, default=False)
    health_information = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.now)

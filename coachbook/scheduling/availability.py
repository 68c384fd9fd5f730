from sqlalchemy.orm import Session

from coachbook.models.blackout import Blackout
from coachbook.models.booking import Booking
from coachbook.scheduling.slot_grid import generate_slot_labels, parse_slot_date
from coachbook.schemas import TimeSlot


def get_booked_slot_times(slot_date: str, db: Session) -> set[str]:
    rows = db.query(Booking.time).filter(Booking.date == slot_date).all()
    return {booked_time for (booked_time,) in rows}


def get_blocked_slot_times(slot_date: str, db: Session) -> set[str]:
    rows = db.query(Blackout.time).filter(Blackout.date == slot_date).all()
    return {blocked_time for (blocked_time,) in rows}


def get_available_time_slots(slot_date: str, db: Session) -> list[TimeSlot]:
    """Every grid slot of ``slot_date`` with its booked and blackout flags.

    The result is a snapshot; a slot shown open here can still be lost to a
    concurrent booking, which the ledger rejects at write time.
    """
    parse_slot_date(slot_date)

    booked_times = get_booked_slot_times(slot_date, db)
    blocked_times = get_blocked_slot_times(slot_date, db)

    return [
        TimeSlot(
            date=slot_date,
            time=label,
            is_booked=label in booked_times,
            is_unavailable=label in blocked_times,
        )
        for label in generate_slot_labels()
    ]

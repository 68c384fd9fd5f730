"""Booking ledger: the authoritative store of bookings.

Slot uniqueness is owned by the database. ``create_booking`` checks the slot
inside its transaction for a friendly error, and the UNIQUE ``(date, time)``
constraint rejects whichever writer loses a concurrent race.
"""

import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from coachbook.models.blackout import Blackout
from coachbook.models.booking import Booking
from coachbook.scheduling.errors import (
    DisclosureRequired,
    DuplicateBooking,
    InvalidSlot,
    NotFound,
    SlotAlreadyBooked,
    SlotUnavailable,
)
from coachbook.scheduling.slot_grid import slot_start, validate_slot
from coachbook.schemas import BookingCreate, BookingRead

logger = logging.getLogger(__name__)

BOOKING_WINDOWS = ('current', 'past')


def booking_to_read(booking: Booking) -> BookingRead:
    return BookingRead(
        id=booking.id,
        user=booking.user_id,
        program_id=booking.program_id,
        gym_id=booking.gym_id,
        date=booking.date,
        time=booking.time,
        is_paid=bool(booking.is_paid),
        health_disclosure_accepted=bool(booking.health_disclosure_accepted),
        health_information=booking.health_information or '',
    )


def find_booking_for_slot(slot_date: str, slot_time: str, db: Session) -> Booking | None:
    return db.query(Booking).filter(
        Booking.date == slot_date,
        Booking.time == slot_time,
    ).first()


def is_slot_blacked_out(slot_date: str, slot_time: str, db: Session) -> bool:
    return db.query(Blackout.id).filter(
        Blackout.date == slot_date,
        Blackout.time == slot_time,
    ).first() is not None


def get_booking_or_404(booking_id: str, db: Session) -> Booking:
    booking = db.get(Booking, booking_id)
    if booking is None:
        raise NotFound('Booking not found.')
    return booking


def create_booking(data: BookingCreate, user: str, db: Session) -> BookingRead:
    if not data.health_disclosure_accepted:
        raise DisclosureRequired()

    validate_slot(data.date, data.time)

    if db.get(Booking, data.id) is not None:
        raise DuplicateBooking()

    if find_booking_for_slot(data.date, data.time, db) is not None:
        logger.warning('Rejected booking %s: %s %s is already booked', data.id, data.date, data.time)
        raise SlotAlreadyBooked()

    if is_slot_blacked_out(data.date, data.time, db):
        logger.warning('Rejected booking %s: %s %s is unavailable', data.id, data.date, data.time)
        raise SlotUnavailable()

    booking = Booking(
        id=data.id,
        user_id=user,
        program_id=data.program_id,
        gym_id=data.gym_id,
        date=data.date,
        time=data.time,
        is_paid=False,
        health_disclosure_accepted=True,
        health_information=data.health_information,
    )
    db.add(booking)

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if db.get(Booking, data.id) is not None:
            raise DuplicateBooking() from exc
        logger.warning('Rejected booking %s: lost the race for %s %s', data.id, data.date, data.time)
        raise SlotAlreadyBooked() from exc

    db.refresh(booking)
    logger.info('Created booking %s for %s at %s %s', booking.id, user, booking.date, booking.time)

    return booking_to_read(booking)


def delete_booking(booking_id: str, db: Session) -> None:
    booking = get_booking_or_404(booking_id, db)
    slot_date, slot_time = booking.date, booking.time

    db.delete(booking)
    db.commit()
    logger.info('Deleted booking %s, freeing %s %s', booking_id, slot_date, slot_time)


def set_booking_paid(booking_id: str, is_paid: bool, db: Session) -> BookingRead:
    booking = get_booking_or_404(booking_id, db)

    if bool(booking.is_paid) != is_paid:
        booking.is_paid = is_paid
        db.commit()
        db.refresh(booking)
        logger.info('Marked booking %s as %s', booking_id, 'paid' if is_paid else 'unpaid')

    return booking_to_read(booking)


def mark_booking_as_paid(booking_id: str, db: Session) -> BookingRead:
    return set_booking_paid(booking_id, True, db)


def mark_booking_as_unpaid(booking_id: str, db: Session) -> BookingRead:
    return set_booking_paid(booking_id, False, db)


def is_past_booking(booking: Booking, now: datetime) -> bool:
    return slot_start(booking.date, booking.time) < now


def get_bookings(
    user: str,
    is_admin: bool,
    db: Session,
    when: str | None = None,
    now: datetime | None = None,
) -> list[BookingRead]:
    """Admins see every booking; everyone else sees only their own."""
    if when is not None and when not in BOOKING_WINDOWS:
        raise InvalidSlot("Booking filter must be 'current' or 'past'.")

    query = db.query(Booking)
    if not is_admin:
        query = query.filter(Booking.user_id == user)
    bookings = query.order_by(Booking.date.asc(), Booking.time.asc()).all()

    if when is not None:
        reference = now or datetime.now()
        want_past = when == 'past'
        bookings = [booking for booking in bookings if is_past_booking(booking, reference) == want_past]

    return [booking_to_read(booking) for booking in bookings]


def get_booking(booking_id: str, user: str, is_admin: bool, db: Session) -> BookingRead:
    booking = get_booking_or_404(booking_id, db)

    # Other users' bookings are reported as missing rather than forbidden.
    if not is_admin and booking.user_id != user:
        raise NotFound('Booking not found.')

    return booking_to_read(booking)

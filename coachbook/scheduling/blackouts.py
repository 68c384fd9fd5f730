import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from coachbook.models.blackout import Blackout
from coachbook.scheduling.slot_grid import parse_slot_date, validate_slot
from coachbook.schemas import BlackoutRead

logger = logging.getLogger(__name__)


def find_blackout(slot_date: str, slot_time: str, db: Session) -> Blackout | None:
    return db.query(Blackout).filter(
        Blackout.date == slot_date,
        Blackout.time == slot_time,
    ).first()


def mark_time_slot_unavailable(slot_date: str, slot_time: str, admin: str, db: Session) -> BlackoutRead:
    """Block a slot for new bookings. Marking an already blocked slot is a no-op.

    Existing bookings on the slot are left untouched.
    """
    validate_slot(slot_date, slot_time)

    blackout = find_blackout(slot_date, slot_time, db)
    if blackout is None:
        blackout = Blackout(date=slot_date, time=slot_time, created_by=admin)
        db.add(blackout)
        try:
            db.commit()
        except IntegrityError:
            # A concurrent admin request blocked the same slot first.
            db.rollback()
            blackout = find_blackout(slot_date, slot_time, db)
        else:
            db.refresh(blackout)
            logger.info('%s marked %s %s unavailable', admin, slot_date, slot_time)

    return BlackoutRead(date=blackout.date, time=blackout.time, created_by=blackout.created_by)


def unmark_time_slot_unavailable(slot_date: str, slot_time: str, db: Session) -> None:
    """Reopen a slot. Unmarking a slot that is not blocked is a no-op."""
    validate_slot(slot_date, slot_time)

    deleted = db.query(Blackout).filter(
        Blackout.date == slot_date,
        Blackout.time == slot_time,
    ).delete(synchronize_session=False)
    db.commit()

    if deleted:
        logger.info('Marked %s %s available', slot_date, slot_time)


def list_blackouts(db: Session, slot_date: str | None = None) -> list[BlackoutRead]:
    query = db.query(Blackout)
    if slot_date is not None:
        parse_slot_date(slot_date)
        query = query.filter(Blackout.date == slot_date)

    blackouts = query.order_by(Blackout.date.asc(), Blackout.time.asc()).all()

    return [
        BlackoutRead(date=blackout.date, time=blackout.time, created_by=blackout.created_by)
        for blackout in blackouts
    ]

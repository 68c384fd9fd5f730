from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from coachbook.auth.dependencies import require_admin
from coachbook.core import config
from coachbook.models.user import User
from coachbook.routes.common import database_unavailable, ensure_database_ready, get_db, http_error
from coachbook.scheduling import availability, blackouts
from coachbook.scheduling.errors import BookingError
from coachbook.scheduling.slot_grid import SLOT_LABELS
from coachbook.schemas import BlackoutRead, BlackoutRequest, SlotGridResponse, TimeSlot

router = APIRouter(tags=['availability'])


@router.get('/grid', response_model=SlotGridResponse)
def get_slot_grid():
    return SlotGridResponse(
        open_time=SLOT_LABELS[0],
        last_start_time=SLOT_LABELS[-1],
        increment_minutes=config.SLOT_INCREMENT_MINUTES,
        labels=list(SLOT_LABELS),
    )


@router.get('/slots', response_model=list[TimeSlot])
def get_available_time_slots(
    date: str = Query(..., description='Calendar day in yyyy-MM-dd format.'),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return availability.get_available_time_slots(date.strip(), db)
    except BookingError as exc:
        raise http_error(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.get('/blackouts', response_model=list[BlackoutRead])
def list_blackouts(
    date: str | None = Query(default=None),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    del admin
    ensure_database_ready()

    try:
        return blackouts.list_blackouts(db, slot_date=date.strip() if date else None)
    except BookingError as exc:
        raise http_error(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.post('/blackouts', response_model=BlackoutRead)
def mark_time_slot_unavailable(
    data: BlackoutRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return blackouts.mark_time_slot_unavailable(data.date, data.time, admin.email, db)
    except BookingError as exc:
        raise http_error(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc


@router.delete('/blackouts', status_code=status.HTTP_204_NO_CONTENT)
def unmark_time_slot_unavailable(
    date: str = Query(...),
    time: str = Query(...),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    del admin
    ensure_database_ready()

    try:
        blackouts.unmark_time_slot_unavailable(date.strip(), time.strip(), db)
    except BookingError as exc:
        raise http_error(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from coachbook.auth.dependencies import get_current_user, is_admin, require_admin
from coachbook.models.user import User
from coachbook.routes.common import database_unavailable, ensure_database_ready, get_db, http_error
from coachbook.scheduling import ledger
from coachbook.scheduling.errors import BookingError
from coachbook.schemas import BookingCreate, BookingRead

router = APIRouter(tags=['bookings'])


@router.post('', response_model=BookingRead, status_code=status.HTTP_201_CREATED)
def create_booking(
    data: BookingCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return ledger.create_booking(data, current_user.email, db)
    except BookingError as exc:
        raise http_error(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc


@router.get('', response_model=list[BookingRead])
def get_bookings(
    when: str | None = Query(default=None, description="Optional 'current' or 'past' filter."),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return ledger.get_bookings(current_user.email, is_admin(current_user), db, when=when)
    except BookingError as exc:
        raise http_error(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.get('/{booking_id}', response_model=BookingRead)
def get_booking(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return ledger.get_booking(booking_id, current_user.email, is_admin(current_user), db)
    except BookingError as exc:
        raise http_error(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.delete('/{booking_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_booking(
    booking_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    del admin
    ensure_database_ready()

    try:
        ledger.delete_booking(booking_id, db)
    except BookingError as exc:
        raise http_error(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc


@router.post('/{booking_id}/paid', response_model=BookingRead)
def mark_booking_as_paid(
    booking_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    del admin
    ensure_database_ready()

    try:
        return ledger.mark_booking_as_paid(booking_id, db)
    except BookingError as exc:
        raise http_error(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc


@router.delete('/{booking_id}/paid', response_model=BookingRead)
def mark_booking_as_unpaid(
    booking_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    del admin
    ensure_database_ready()

    try:
        return ledger.mark_booking_as_unpaid(booking_id, db)
    except BookingError as exc:
        raise http_error(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc

import logging

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from coachbook.database import SessionLocal, ensure_booking_schema
from coachbook.scheduling.errors import BookingError

logger = logging.getLogger(__name__)

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'


def ensure_database_ready() -> None:
    try:
        ensure_booking_schema()
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def http_error(exc: BookingError) -> HTTPException:
    return HTTPException(
        status_code=exc.status_code,
        detail=exc.message,
        headers={'X-Error-Code': exc.code},
    )


def database_unavailable(exc: SQLAlchemyError) -> HTTPException:
    logger.exception('Database operation failed: %s', exc)
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=DATABASE_UNAVAILABLE_DETAIL,
        headers={'X-Error-Code': 'backend_unavailable'},
    )

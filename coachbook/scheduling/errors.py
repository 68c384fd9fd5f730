"""Error taxonomy shared by the ledger, the blackout registry, the HTTP layer and the client.

Every error carries a stable ``code`` (sent to clients in the ``X-Error-Code``
header), the HTTP status the API answers with, and a user-facing message.
"""

from fastapi import status


class BookingError(Exception):
    code = 'booking_error'
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'The request could not be completed.'

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class SlotAlreadyBooked(BookingError):
    code = 'slot_already_booked'
    status_code = status.HTTP_409_CONFLICT
    default_message = 'This time slot is already booked. Please select another time.'


class SlotUnavailable(BookingError):
    code = 'slot_unavailable'
    status_code = status.HTTP_409_CONFLICT
    default_message = 'This time slot is unavailable. Please select another day.'


class DuplicateBooking(BookingError):
    code = 'duplicate_booking'
    status_code = status.HTTP_409_CONFLICT
    default_message = 'A booking with this id already exists.'


class DisclosureRequired(BookingError):
    code = 'disclosure_required'
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'You must accept the health disclosure to proceed.'


class InvalidSlot(BookingError):
    code = 'invalid_slot'
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'Invalid date or time.'


class NotFound(BookingError):
    code = 'not_found'
    status_code = status.HTTP_404_NOT_FOUND
    default_message = 'This record no longer exists.'


class Unauthorized(BookingError):
    code = 'unauthorized'
    status_code = status.HTTP_403_FORBIDDEN
    default_message = 'Only admins can perform this action.'


class Unauthenticated(BookingError):
    code = 'unauthenticated'
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = 'Please login to continue.'


class BackendUnavailable(BookingError):
    code = 'backend_unavailable'
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = 'The booking service is unavailable. Please try again later.'


ERRORS_BY_CODE: dict[str, type[BookingError]] = {
    error_class.code: error_class
    for error_class in (
        SlotAlreadyBooked,
        SlotUnavailable,
        DuplicateBooking,
        DisclosureRequired,
        InvalidSlot,
        NotFound,
        Unauthorized,
        Unauthenticated,
        BackendUnavailable,
    )
}

"""Client-side booking workflow.

A booking is assembled as an immutable ``BookingDraft`` that moves through
the steps below. Every transition returns a new draft; the only transition
with a side effect is ``submit``, which makes a single ``create_booking``
call against the backend::

    SELECTING_PROGRAM -> SELECTING_GYM_AND_SLOT -> HEALTH_DISCLOSURE
        -> SUBMITTING -> AWAITING_PAYMENT -> COMPLETED

A rejected submission returns the draft to slot selection (for slot
conflicts) or keeps it at the disclosure step (for everything else), with a
message for the user. Nothing is retried automatically.
"""

import datetime
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable
from uuid import uuid4

from coachbook.client import BookingClient
from coachbook.scheduling.errors import (
    BackendUnavailable,
    BookingError,
    DisclosureRequired,
    InvalidSlot,
    SlotAlreadyBooked,
    SlotUnavailable,
    Unauthenticated,
)
from coachbook.scheduling.slot_grid import parse_slot_date
from coachbook.schemas import BookingCreate, TimeSlot

logger = logging.getLogger(__name__)

FILL_ALL_FIELDS_MESSAGE = 'Please fill in all fields'
SLOT_TAKEN_MESSAGE = 'This time slot is already booked. Please select another time.'
SLOT_BLOCKED_MESSAGE = 'This time slot is unavailable. Please select another day.'
SLOT_NOT_OPEN_MESSAGE = 'This time slot cannot be booked. Please select another time.'
DISCLOSURE_MESSAGE = 'You must accept the health disclosure to proceed'
LOGIN_MESSAGE = 'Please login to book a session'
UNAVAILABLE_MESSAGE = 'The booking service is unavailable. Please try again.'
GENERIC_FAILURE_MESSAGE = 'Failed to create booking'
PAST_DAY_MESSAGE = 'Please select today or a later day.'


class Step(str, Enum):
    SELECTING_PROGRAM = 'selecting_program'
    SELECTING_GYM_AND_SLOT = 'selecting_gym_and_slot'
    HEALTH_DISCLOSURE = 'health_disclosure'
    SUBMITTING = 'submitting'
    AWAITING_PAYMENT = 'awaiting_payment'
    COMPLETED = 'completed'


class WorkflowError(ValueError):
    """A transition was requested from a step that does not allow it."""


@dataclass(frozen=True)
class BookingDraft:
    step: Step = Step.SELECTING_PROGRAM
    program_id: str | None = None
    gym_id: str | None = None
    date: str | None = None
    time: str | None = None
    slots: tuple[TimeSlot, ...] = ()
    health_disclosure_accepted: bool = False
    health_information: str = ''
    booking_id: str | None = None
    payment_method: str | None = None
    error: str | None = None
    error_code: str | None = None

    @property
    def has_all_selections(self) -> bool:
        return all((self.program_id, self.gym_id, self.date, self.time))

    @property
    def open_times(self) -> list[str]:
        return [slot.time for slot in self.slots if slot.is_open]


def _require_step(draft: BookingDraft, *steps: Step) -> None:
    if draft.step not in steps:
        allowed = ', '.join(step.value for step in steps)
        raise WorkflowError(f'Cannot do this while {draft.step.value}; expected one of: {allowed}.')


def new_booking_id() -> str:
    return f'booking-{uuid4().hex}'


class BookingWorkflow:
    """Drives a ``BookingDraft`` through the booking steps using a ``BookingClient``."""

    def __init__(
        self,
        client: BookingClient,
        id_factory: Callable[[], str] = new_booking_id,
        today: Callable[[], datetime.date] = datetime.date.today,
    ):
        self.client = client
        self.id_factory = id_factory
        self.today = today

    def start(self) -> BookingDraft:
        return BookingDraft()

    def abandon(self, draft: BookingDraft) -> BookingDraft:
        _require_step(
            draft,
            Step.SELECTING_PROGRAM,
            Step.SELECTING_GYM_AND_SLOT,
            Step.HEALTH_DISCLOSURE,
        )
        return BookingDraft()

    # -- selection -----------------------------------------------------

    def select_program(self, draft: BookingDraft, program_id: str) -> BookingDraft:
        _require_step(draft, Step.SELECTING_PROGRAM, Step.SELECTING_GYM_AND_SLOT)
        return replace(
            draft,
            step=Step.SELECTING_GYM_AND_SLOT,
            program_id=program_id,
            error=None,
            error_code=None,
        )

    def select_gym(self, draft: BookingDraft, gym_id: str) -> BookingDraft:
        _require_step(draft, Step.SELECTING_GYM_AND_SLOT)
        return replace(draft, gym_id=gym_id, error=None, error_code=None)

    def select_date(self, draft: BookingDraft, date: str) -> BookingDraft:
        """Pick a day and load its slots. A new day always clears the chosen time.

        Days before today are refused here; the backend accepts any calendar day.
        """
        _require_step(draft, Step.SELECTING_GYM_AND_SLOT)
        draft = replace(draft, time=None, slots=(), error=None, error_code=None)

        try:
            picked_day = parse_slot_date(date)
        except InvalidSlot as exc:
            return replace(draft, date=None, error=exc.message, error_code=exc.code)

        if picked_day < self.today():
            return replace(draft, date=None, error=PAST_DAY_MESSAGE, error_code=None)

        return self.refresh_slots(replace(draft, date=date))

    def refresh_slots(self, draft: BookingDraft) -> BookingDraft:
        _require_step(draft, Step.SELECTING_GYM_AND_SLOT)
        if not draft.date:
            return draft

        try:
            slots = self.client.get_available_time_slots(draft.date)
        except BookingError as exc:
            logger.warning('Could not load slots for %s: %s', draft.date, exc.message)
            return replace(draft, slots=(), error=exc.message, error_code=exc.code)

        return replace(draft, slots=tuple(slots))

    def select_time(self, draft: BookingDraft, time: str) -> BookingDraft:
        _require_step(draft, Step.SELECTING_GYM_AND_SLOT)
        if time not in draft.open_times:
            return replace(draft, time=None, error=SLOT_NOT_OPEN_MESSAGE, error_code=None)
        return replace(draft, time=time, error=None, error_code=None)

    # -- disclosure ----------------------------------------------------

    def continue_to_disclosure(self, draft: BookingDraft) -> BookingDraft:
        _require_step(draft, Step.SELECTING_GYM_AND_SLOT)
        if not draft.has_all_selections:
            return replace(draft, error=FILL_ALL_FIELDS_MESSAGE, error_code=None)
        return replace(draft, step=Step.HEALTH_DISCLOSURE, error=None, error_code=None)

    def back_to_selection(self, draft: BookingDraft) -> BookingDraft:
        _require_step(draft, Step.HEALTH_DISCLOSURE)
        return replace(draft, step=Step.SELECTING_GYM_AND_SLOT, error=None, error_code=None)

    def update_disclosure(
        self,
        draft: BookingDraft,
        accepted: bool,
        health_information: str = '',
    ) -> BookingDraft:
        _require_step(draft, Step.HEALTH_DISCLOSURE)
        return replace(
            draft,
            health_disclosure_accepted=accepted,
            health_information=health_information,
            error=None,
            error_code=None,
        )

    # -- submission ----------------------------------------------------

    def begin_submission(self, draft: BookingDraft) -> BookingDraft:
        """Check the local preconditions and move to SUBMITTING.

        Returns the draft unchanged (with a message) when the user is not
        logged in or has not accepted the disclosure.
        """
        _require_step(draft, Step.HEALTH_DISCLOSURE)

        if not self.client.is_authenticated:
            return replace(draft, error=LOGIN_MESSAGE, error_code=Unauthenticated.code)

        if not draft.health_disclosure_accepted:
            return replace(draft, error=DISCLOSURE_MESSAGE, error_code=DisclosureRequired.code)

        if not draft.has_all_selections:
            return replace(draft, step=Step.SELECTING_GYM_AND_SLOT, error=FILL_ALL_FIELDS_MESSAGE, error_code=None)

        return replace(draft, step=Step.SUBMITTING, error=None, error_code=None)

    def submit(self, draft: BookingDraft) -> BookingDraft:
        if draft.step == Step.HEALTH_DISCLOSURE:
            draft = self.begin_submission(draft)
            if draft.step != Step.SUBMITTING:
                return draft
        _require_step(draft, Step.SUBMITTING)

        booking = BookingCreate(
            id=self.id_factory(),
            program_id=draft.program_id,
            gym_id=draft.gym_id,
            date=draft.date,
            time=draft.time,
            is_paid=False,
            health_disclosure_accepted=draft.health_disclosure_accepted,
            health_information=draft.health_information.strip() or None,
        )

        try:
            created = self.client.create_booking(booking)
        except (SlotAlreadyBooked, SlotUnavailable) as exc:
            message = SLOT_TAKEN_MESSAGE if isinstance(exc, SlotAlreadyBooked) else SLOT_BLOCKED_MESSAGE
            rejected = replace(
                draft,
                step=Step.SELECTING_GYM_AND_SLOT,
                time=None,
                error=message,
                error_code=exc.code,
            )
            return self._reload_slots_after_conflict(rejected)
        except DisclosureRequired as exc:
            logger.error('Backend rejected booking %s for a missing disclosure', booking.id)
            return replace(
                draft,
                step=Step.HEALTH_DISCLOSURE,
                health_disclosure_accepted=False,
                error=DISCLOSURE_MESSAGE,
                error_code=exc.code,
            )
        except Unauthenticated as exc:
            return replace(draft, step=Step.HEALTH_DISCLOSURE, error=LOGIN_MESSAGE, error_code=exc.code)
        except BackendUnavailable as exc:
            return replace(draft, step=Step.HEALTH_DISCLOSURE, error=UNAVAILABLE_MESSAGE, error_code=exc.code)
        except BookingError as exc:
            logger.error('Booking %s failed: %s', booking.id, exc.message)
            return replace(draft, step=Step.HEALTH_DISCLOSURE, error=GENERIC_FAILURE_MESSAGE, error_code=exc.code)

        logger.info('Booked %s at %s %s', created.id, created.date, created.time)
        return replace(
            draft,
            step=Step.AWAITING_PAYMENT,
            booking_id=created.id,
            error=None,
            error_code=None,
        )

    def _reload_slots_after_conflict(self, draft: BookingDraft) -> BookingDraft:
        try:
            slots = self.client.get_available_time_slots(draft.date)
        except BookingError as exc:
            logger.warning('Could not reload slots for %s: %s', draft.date, exc.message)
            return draft
        return replace(draft, slots=tuple(slots))

    # -- payment -------------------------------------------------------

    def choose_payment_method(self, draft: BookingDraft, method: str) -> BookingDraft:
        """Record how the user intends to pay. The booking stays unpaid until an admin confirms it."""
        _require_step(draft, Step.AWAITING_PAYMENT)
        if not method.strip():
            return replace(draft, error='Please choose a payment method', error_code=None)
        return replace(draft, step=Step.COMPLETED, payment_method=method.strip(), error=None, error_code=None)

import datetime

import httpx
import pytest

from coachbook.auth.jwt_handler import create_access_token
from coachbook.client import BookingClient
from coachbook.workflow import (
    DISCLOSURE_MESSAGE,
    FILL_ALL_FIELDS_MESSAGE,
    LOGIN_MESSAGE,
    PAST_DAY_MESSAGE,
    SLOT_BLOCKED_MESSAGE,
    SLOT_NOT_OPEN_MESSAGE,
    SLOT_TAKEN_MESSAGE,
    UNAVAILABLE_MESSAGE,
    BookingDraft,
    BookingWorkflow,
    Step,
    WorkflowError,
)

FUTURE_DATE = '2099-08-01'


@pytest.fixture
def athlete_client(api) -> BookingClient:
    return BookingClient(http_client=api, access_token=create_access_token('athlete@example.com'))


@pytest.fixture
def rival_client(api) -> BookingClient:
    return BookingClient(http_client=api, access_token=create_access_token('rival@example.com'))


@pytest.fixture
def coach_client(api) -> BookingClient:
    return BookingClient(http_client=api, access_token=create_access_token('coach@example.com'))


def ids(*values: str):
    remaining = list(values)
    return lambda: remaining.pop(0)


def ready_for_disclosure(workflow: BookingWorkflow, slot_time: str = '10:00') -> BookingDraft:
    draft = workflow.start()
    draft = workflow.select_program(draft, 'strength')
    draft = workflow.select_gym(draft, 'downtown')
    draft = workflow.select_date(draft, FUTURE_DATE)
    draft = workflow.select_time(draft, slot_time)
    return workflow.continue_to_disclosure(draft)


def test_happy_path_reaches_completed(athlete_client, coach_client) -> None:
    workflow = BookingWorkflow(athlete_client, id_factory=ids('booking-1'))

    draft = ready_for_disclosure(workflow)
    assert draft.step == Step.HEALTH_DISCLOSURE

    draft = workflow.update_disclosure(draft, True, '  recovering from a sprained ankle ')
    draft = workflow.submit(draft)

    assert draft.step == Step.AWAITING_PAYMENT
    assert draft.booking_id == 'booking-1'
    assert draft.error is None

    booking = athlete_client.get_booking('booking-1')
    assert booking.health_information == 'recovering from a sprained ankle'
    assert booking.is_paid is False

    draft = workflow.choose_payment_method(draft, 'Bank transfer')
    assert draft.step == Step.COMPLETED
    assert draft.payment_method == 'Bank transfer'
    assert coach_client.get_booking('booking-1').is_paid is False


def test_transitions_return_new_drafts(athlete_client) -> None:
    workflow = BookingWorkflow(athlete_client)
    start = workflow.start()

    selected = workflow.select_program(start, 'strength')

    assert start.step == Step.SELECTING_PROGRAM
    assert start.program_id is None
    assert selected.step == Step.SELECTING_GYM_AND_SLOT
    assert selected.program_id == 'strength'


def test_selecting_a_new_date_clears_time(athlete_client) -> None:
    workflow = BookingWorkflow(athlete_client)
    draft = workflow.select_program(workflow.start(), 'strength')
    draft = workflow.select_date(draft, FUTURE_DATE)
    draft = workflow.select_time(draft, '10:00')

    draft = workflow.select_date(draft, '2099-08-02')

    assert draft.time is None
    assert draft.date == '2099-08-02'
    assert len(draft.slots) == 14


def test_continue_requires_every_selection(athlete_client) -> None:
    workflow = BookingWorkflow(athlete_client)
    draft = workflow.select_program(workflow.start(), 'strength')
    draft = workflow.select_date(draft, FUTURE_DATE)

    draft = workflow.continue_to_disclosure(draft)

    assert draft.step == Step.SELECTING_GYM_AND_SLOT
    assert draft.error == FILL_ALL_FIELDS_MESSAGE


def test_taken_slot_cannot_be_selected_from_snapshot(athlete_client, rival_client) -> None:
    workflow = BookingWorkflow(rival_client, id_factory=ids('booking-rival'))
    workflow.submit(workflow.update_disclosure(ready_for_disclosure(workflow), True))

    athlete_flow = BookingWorkflow(athlete_client)
    draft = athlete_flow.select_program(athlete_flow.start(), 'strength')
    draft = athlete_flow.select_date(draft, FUTURE_DATE)
    draft = athlete_flow.select_time(draft, '10:00')

    assert draft.time is None
    assert draft.error == SLOT_NOT_OPEN_MESSAGE
    assert '10:00' not in draft.open_times


def test_back_keeps_selections(athlete_client) -> None:
    workflow = BookingWorkflow(athlete_client)
    draft = ready_for_disclosure(workflow)

    draft = workflow.back_to_selection(draft)

    assert draft.step == Step.SELECTING_GYM_AND_SLOT
    assert (draft.program_id, draft.gym_id, draft.date, draft.time) == ('strength', 'downtown', FUTURE_DATE, '10:00')


def test_submit_requires_accepted_disclosure(athlete_client) -> None:
    workflow = BookingWorkflow(athlete_client)
    draft = workflow.update_disclosure(ready_for_disclosure(workflow), False, 'asthma')

    draft = workflow.submit(draft)

    assert draft.step == Step.HEALTH_DISCLOSURE
    assert draft.error == DISCLOSURE_MESSAGE
    assert athlete_client.get_bookings() == []


def test_submit_requires_login(api) -> None:
    workflow = BookingWorkflow(BookingClient(http_client=api))
    draft = workflow.update_disclosure(ready_for_disclosure(workflow), True)

    draft = workflow.submit(draft)

    assert draft.step == Step.HEALTH_DISCLOSURE
    assert draft.error == LOGIN_MESSAGE
    assert draft.error_code == 'unauthenticated'


def test_losing_a_race_returns_to_slot_selection(athlete_client, rival_client) -> None:
    athlete_flow = BookingWorkflow(athlete_client, id_factory=ids('booking-slow'))
    draft = athlete_flow.update_disclosure(ready_for_disclosure(athlete_flow), True)

    rival_flow = BookingWorkflow(rival_client, id_factory=ids('booking-fast'))
    rival_flow.submit(rival_flow.update_disclosure(ready_for_disclosure(rival_flow), True))

    draft = athlete_flow.submit(draft)

    assert draft.step == Step.SELECTING_GYM_AND_SLOT
    assert draft.error == SLOT_TAKEN_MESSAGE
    assert draft.error_code == 'slot_already_booked'
    assert draft.time is None
    assert draft.program_id == 'strength'
    assert '10:00' not in draft.open_times
    assert [booking.id for booking in rival_client.get_bookings()] == ['booking-fast']


def test_blackout_after_selection_reports_pick_another_day(athlete_client, coach_client) -> None:
    workflow = BookingWorkflow(athlete_client, id_factory=ids('booking-1'))
    draft = workflow.update_disclosure(ready_for_disclosure(workflow, '14:00'), True)
    coach_client.mark_time_slot_unavailable(FUTURE_DATE, '14:00')

    draft = workflow.submit(draft)

    assert draft.step == Step.SELECTING_GYM_AND_SLOT
    assert draft.error == SLOT_BLOCKED_MESSAGE
    assert draft.error_code == 'slot_unavailable'
    assert draft.error != SLOT_TAKEN_MESSAGE


def test_backend_outage_leaves_draft_unchanged() -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError('connection refused', request=request)

    client = BookingClient(
        access_token=create_access_token('athlete@example.com'),
        http_client=httpx.Client(base_url='http://booking.test', transport=httpx.MockTransport(refuse)),
    )
    workflow = BookingWorkflow(client, id_factory=ids('booking-1'))
    draft = BookingDraft(
        step=Step.HEALTH_DISCLOSURE,
        program_id='strength',
        gym_id='downtown',
        date=FUTURE_DATE,
        time='10:00',
        health_disclosure_accepted=True,
    )

    result = workflow.submit(draft)

    assert result.step == Step.HEALTH_DISCLOSURE
    assert result.error == UNAVAILABLE_MESSAGE
    assert (result.program_id, result.gym_id, result.date, result.time) == (
        draft.program_id, draft.gym_id, draft.date, draft.time,
    )


def test_begin_submission_moves_to_submitting(athlete_client) -> None:
    workflow = BookingWorkflow(athlete_client, id_factory=ids('booking-1'))
    draft = workflow.update_disclosure(ready_for_disclosure(workflow), True)

    submitting = workflow.begin_submission(draft)

    assert submitting.step == Step.SUBMITTING
    with pytest.raises(WorkflowError):
        workflow.abandon(submitting)
    assert workflow.submit(submitting).step == Step.AWAITING_PAYMENT


def test_abandon_before_submission_has_no_side_effects(athlete_client) -> None:
    workflow = BookingWorkflow(athlete_client)
    draft = workflow.update_disclosure(ready_for_disclosure(workflow), True)

    assert workflow.abandon(draft) == BookingDraft()
    assert athlete_client.get_bookings() == []


def test_out_of_order_transitions_are_rejected(athlete_client) -> None:
    workflow = BookingWorkflow(athlete_client)

    with pytest.raises(WorkflowError):
        workflow.select_gym(workflow.start(), 'downtown')
    with pytest.raises(WorkflowError):
        workflow.choose_payment_method(workflow.start(), 'Cash')
    with pytest.raises(WorkflowError):
        workflow.submit(workflow.start())


def test_days_before_today_cannot_be_selected(athlete_client) -> None:
    workflow = BookingWorkflow(athlete_client, today=lambda: datetime.date(2025, 6, 2))
    draft = workflow.select_program(workflow.start(), 'strength')

    draft = workflow.select_date(draft, '2025-06-01')

    assert draft.date is None
    assert draft.slots == ()
    assert draft.error == PAST_DAY_MESSAGE
    assert workflow.continue_to_disclosure(draft).error == FILL_ALL_FIELDS_MESSAGE


def test_today_can_be_selected(athlete_client) -> None:
    workflow = BookingWorkflow(athlete_client, today=lambda: datetime.date(2025, 6, 1))
    draft = workflow.select_program(workflow.start(), 'strength')

    draft = workflow.select_date(draft, '2025-06-01')

    assert draft.date == '2025-06-01'
    assert draft.error is None
    assert len(draft.slots) == 14


def test_malformed_day_is_refused_locally(athlete_client) -> None:
    workflow = BookingWorkflow(athlete_client)
    draft = workflow.select_program(workflow.start(), 'strength')

    draft = workflow.select_date(draft, '2099-02-30')

    assert draft.date is None
    assert draft.error_code == 'invalid_slot'

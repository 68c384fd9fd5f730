"""HTTP client for the booking API.

Each method maps onto one backend operation. Error responses are turned
back into the ``coachbook.scheduling.errors`` classes using the
``X-Error-Code`` header, and transport failures become ``BackendUnavailable``.
Nothing is retried: a rejected booking needs a new choice from the user.
"""

import logging

import httpx

from coachbook.core import config
from coachbook.scheduling.errors import ERRORS_BY_CODE, BackendUnavailable, BookingError
from coachbook.schemas import BlackoutRead, BlackoutRequest, BookingCreate, BookingRead, TimeSlot

logger = logging.getLogger(__name__)


class BookingClient:
    """Synchronous client; pass ``http_client`` to reuse a session (or a test client)."""

    def __init__(
        self,
        base_url: str = config.BACKEND_URL,
        access_token: str | None = None,
        http_client: httpx.Client | None = None,
        timeout: float = config.BACKEND_TIMEOUT_SECONDS,
    ):
        self.base_url = base_url.rstrip("/")
        self.access_token = access_token
        self._http = http_client or httpx.Client(base_url=self.base_url, timeout=timeout)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token)

    def close(self) -> None:
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        headers = kwargs.pop("headers", {})
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"

        try:
            resp = self._http.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("API request failed: %s %s -> %s", method, path, exc)
            raise BackendUnavailable() from exc

        if resp.status_code >= 400:
            raise self._error_from_response(method, path, resp)

        return resp

    @staticmethod
    def _error_from_response(method: str, path: str, resp: httpx.Response) -> BookingError:
        code = resp.headers.get("X-Error-Code", "")
        try:
            body = resp.json()
        except ValueError:
            body = None
        detail = body.get("detail") if isinstance(body, dict) else None
        message = detail if isinstance(detail, str) else None

        logger.warning("API error: %s %s -> %s %s", method, path, resp.status_code, code or "-")

        error_class = ERRORS_BY_CODE.get(code)
        if error_class is None:
            if resp.status_code >= 500:
                return BackendUnavailable()
            error = BookingError(message)
            error.status_code = resp.status_code
            return error

        return error_class(message)

    # ------------------------------------------------------------------
    # Availability
    # ------------------------------------------------------------------

    def get_slot_grid(self) -> list[str]:
        return self._request("GET", "/availability/grid").json()["labels"]

    def get_available_time_slots(self, date: str) -> list[TimeSlot]:
        resp = self._request("GET", "/availability/slots", params={"date": date})
        return [TimeSlot.model_validate(item) for item in resp.json()]

    def mark_time_slot_unavailable(self, date: str, time: str) -> BlackoutRead:
        payload = BlackoutRequest(date=date, time=time).model_dump(by_alias=True)
        resp = self._request("POST", "/availability/blackouts", json=payload)
        return BlackoutRead.model_validate(resp.json())

    def unmark_time_slot_unavailable(self, date: str, time: str) -> None:
        self._request("DELETE", "/availability/blackouts", params={"date": date, "time": time})

    def list_blackouts(self, date: str | None = None) -> list[BlackoutRead]:
        params = {"date": date} if date else None
        resp = self._request("GET", "/availability/blackouts", params=params)
        return [BlackoutRead.model_validate(item) for item in resp.json()]

    # ------------------------------------------------------------------
    # Bookings
    # ------------------------------------------------------------------

    def create_booking(self, booking: BookingCreate) -> BookingRead:
        resp = self._request("POST", "/bookings", json=booking.model_dump(by_alias=True))
        return BookingRead.model_validate(resp.json())

    def get_bookings(self, when: str | None = None) -> list[BookingRead]:
        params = {"when": when} if when else None
        resp = self._request("GET", "/bookings", params=params)
        return [BookingRead.model_validate(item) for item in resp.json()]

    def get_booking(self, booking_id: str) -> BookingRead:
        return BookingRead.model_validate(self._request("GET", f"/bookings/{booking_id}").json())

    def delete_booking(self, booking_id: str) -> None:
        self._request("DELETE", f"/bookings/{booking_id}")

    def mark_booking_as_paid(self, booking_id: str) -> BookingRead:
        return BookingRead.model_validate(self._request("POST", f"/bookings/{booking_id}/paid").json())

    def mark_booking_as_unpaid(self, booking_id: str) -> BookingRead:
        return BookingRead.model_validate(self._request("DELETE", f"/bookings/{booking_id}/paid").json())

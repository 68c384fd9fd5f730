"""Pydantic schemas for the availability and booking API.

Field names are snake_case in Python and camelCase on the wire, matching the
booking calendar's JSON contract (``isBooked``, ``programId``, ...).
"""

from pydantic import BaseModel, field_validator
from pydantic.alias_generators import to_camel

from coachbook.core import config

WIRE_CONFIG = {"alias_generator": to_camel, "populate_by_name": True, "from_attributes": True}


class TimeSlot(BaseModel):
    """One hourly slot of a day as the booking calendar sees it."""
    date: str
    time: str
    is_booked: bool
    is_unavailable: bool

    model_config = WIRE_CONFIG

    @property
    def is_open(self) -> bool:
        return not (self.is_booked or self.is_unavailable)


class BookingCreate(BaseModel):
    id: str
    program_id: str
    gym_id: str
    date: str
    time: str
    user: str | None = None  # stamped from the caller's identity
    is_paid: bool = False  # always stored as False; payment is confirmed by an admin
    health_disclosure_accepted: bool = False
    health_information: str | None = None

    model_config = WIRE_CONFIG

    @field_validator('id', 'program_id', 'gym_id')
    @classmethod
    def validate_required_text(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Value is required.')
        return normalized

    @field_validator('date', 'time')
    @classmethod
    def strip_slot_fields(cls, value: str) -> str:
        return value.strip()

    @field_validator('health_information')
    @classmethod
    def validate_health_information(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > config.MAX_HEALTH_INFORMATION_LENGTH:
            raise ValueError(
                f'Health information must be {config.MAX_HEALTH_INFORMATION_LENGTH} characters or fewer.'
            )

        return normalized


class BookingRead(BaseModel):
    id: str
    user: str
    program_id: str
    gym_id: str
    date: str
    time: str
    is_paid: bool
    health_disclosure_accepted: bool
    health_information: str = ''

    model_config = WIRE_CONFIG


class BlackoutRequest(BaseModel):
    date: str
    time: str

    model_config = WIRE_CONFIG

    @field_validator('date', 'time')
    @classmethod
    def strip_slot_fields(cls, value: str) -> str:
        return value.strip()


class BlackoutRead(BaseModel):
    date: str
    time: str
    created_by: str | None = None

    model_config = WIRE_CONFIG


class SlotGridResponse(BaseModel):
    open_time: str
    last_start_time: str
    increment_minutes: int
    labels: list[str]

    model_config = WIRE_CONFIG

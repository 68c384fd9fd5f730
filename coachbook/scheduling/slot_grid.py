from datetime import date, datetime, time, timedelta

from coachbook.core import config
from coachbook.scheduling.errors import InvalidSlot

DATE_FORMAT = '%Y-%m-%d'
TIME_FORMAT = '%H:%M'


def iterate_slot_starts(
    open_hour: int = config.OPEN_HOUR,
    last_start_hour: int = config.LAST_START_HOUR,
    increment_minutes: int = config.SLOT_INCREMENT_MINUTES,
) -> list[time]:
    current = datetime.combine(date.min, time(open_hour, 0))
    last_start = datetime.combine(date.min, time(last_start_hour, 0))

    slots: list[time] = []
    while current <= last_start:
        slots.append(current.time())
        current += timedelta(minutes=increment_minutes)

    return slots


def generate_slot_labels() -> list[str]:
    """Hourly labels of the operating window, ascending ("08:00" .. "21:00")."""
    return [slot_start.strftime(TIME_FORMAT) for slot_start in iterate_slot_starts()]


SLOT_LABELS = tuple(generate_slot_labels())


def is_slot_label(value: str) -> bool:
    return value in SLOT_LABELS


def parse_slot_date(value: str) -> date:
    """Parse a strict ``yyyy-MM-dd`` string; raises InvalidSlot for anything else."""
    if not isinstance(value, str) or len(value) != 10:
        raise InvalidSlot('Dates must use the yyyy-MM-dd format.')
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError as exc:
        raise InvalidSlot('Dates must be real calendar days in the yyyy-MM-dd format.') from exc


def validate_slot(slot_date: str, slot_time: str) -> date:
    parsed_date = parse_slot_date(slot_date)

    if not is_slot_label(slot_time):
        raise InvalidSlot(
            f'Times must be one of the hourly slots between {SLOT_LABELS[0]} and {SLOT_LABELS[-1]}.'
        )

    return parsed_date


def slot_start(slot_date: str, slot_time: str) -> datetime:
    return datetime.strptime(f'{slot_date} {slot_time}', f'{DATE_FORMAT} {TIME_FORMAT}')

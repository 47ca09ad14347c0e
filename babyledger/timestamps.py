from datetime import date, datetime, timedelta
from typing import Optional, Union

from babyledger.errors import ValidationError

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"
DATE_FORMAT = "%Y-%m-%d"

# Canonical form first; the rest are accepted on input only.
ACCEPTED_TIMESTAMP_FORMATS = (
    TIMESTAMP_FORMAT,
    "%Y-%m-%dT%H:%M",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
)

TimestampLike = Union[str, datetime]
DateLike = Union[str, date]


def parse_timestamp(value: TimestampLike, field: Optional[str] = "timestamp") -> datetime:
    """Return a naive, second-precision datetime.

    Strings must be in one of ACCEPTED_TIMESTAMP_FORMATS; datetime objects
    must not carry a timezone.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            raise ValidationError("timestamps are naive local times, got a zone-aware value", field)
        return value.replace(microsecond=0)
    if not isinstance(value, str):
        raise ValidationError(f"expected a timestamp string, got {type(value).__name__}", field)
    text = value.strip()
    for fmt in ACCEPTED_TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    raise ValidationError(f"invalid timestamp '{value}', use YYYY-MM-DDTHH:MM:SS", field)


def parse_date(value: DateLike, field: Optional[str] = "date") -> date:
    if isinstance(value, datetime):
        raise ValidationError("expected a calendar date, got a date-time", field)
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValidationError(f"expected a date string, got {type(value).__name__}", field)
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT).date()
    except ValueError:
        raise ValidationError(f"invalid date '{value}', use YYYY-MM-DD", field) from None


def is_date_only(value: str) -> bool:
    """True when the string is a bare calendar date rather than a date-time."""
    try:
        datetime.strptime(value.strip(), DATE_FORMAT)
    except ValueError:
        return False
    return True


def format_timestamp(value: datetime) -> str:
    return value.strftime(TIMESTAMP_FORMAT)


def format_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    start = datetime.combine(day, datetime.min.time())
    return start, start + timedelta(days=1)


def iter_days(start: date, end_exclusive: date):
    day = start
    while day < end_exclusive:
        yield day
        day += timedelta(days=1)

import math
from datetime import datetime, timedelta
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, field_serializer, field_validator
from pydantic import ValidationError as PydanticValidationError

from babyledger.errors import DecodeError, ValidationError
from babyledger.models import FeedingType, describe_errors, normalize_feeding_type
from babyledger.timestamps import format_timestamp, parse_timestamp


class ActiveTimer(BaseModel):
    """A feeding that has been started but not yet recorded.

    The ledger has no notion of an in-progress feeding. The caller keeps this
    value and, on stop, hands the ledger a plain start timestamp and
    duration.
    """

    model_config = ConfigDict(frozen=True)

    feeding_type: FeedingType
    started_at: datetime

    @field_validator("feeding_type", mode="before")
    @classmethod
    def normalize_type(cls, v: Any) -> str:
        return normalize_feeding_type(v)

    @field_validator("started_at", mode="before")
    @classmethod
    def coerce_started_at(cls, v: Any) -> datetime:
        return parse_timestamp(v, field=None)

    @field_serializer("started_at")
    def serialize_started_at(self, v: datetime) -> str:
        return format_timestamp(v)

    @classmethod
    def start(cls, feeding_type: str, now: datetime) -> "ActiveTimer":
        try:
            return cls(feeding_type=feeding_type, started_at=now)
        except PydanticValidationError as e:
            raise ValidationError(describe_errors(e)) from None

    def elapsed(self, now: datetime) -> timedelta:
        if now < self.started_at:
            raise ValidationError("clock is earlier than the timer start", "now")
        return now - self.started_at

    def stop(self, now: datetime) -> tuple[datetime, int]:
        """Return (timestamp, duration_minutes) for the finished feeding.

        The feeding is stamped with its start time; the duration is the
        elapsed time rounded half up to whole minutes, never less than one.
        """
        minutes = math.floor(self.elapsed(now).total_seconds() / 60 + 0.5)
        return self.started_at, max(1, minutes)

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls, blob: Union[str, bytes]) -> "ActiveTimer":
        try:
            return cls.model_validate_json(blob)
        except PydanticValidationError as e:
            raise DecodeError(f"invalid timer: {describe_errors(e)}") from None

from datetime import date, datetime
from typing import Annotated, Any, Dict, Literal, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic import ValidationError as PydanticValidationError

from babyledger.errors import ValidationError
from babyledger.timestamps import (
    format_timestamp,
    is_date_only,
    parse_date,
    parse_timestamp,
)

# --- Entry Types ---

FeedingType = Literal["breast-left", "breast-right", "bottle", "solid"]
DejectionType = Literal["urine", "poop"]
EntryKind = Literal["feeding", "dejection", "weight"]

# Enum order; also the order of by_type in summaries.
FEEDING_TYPES = ("breast-left", "breast-right", "bottle", "solid")
DEJECTION_TYPES = ("urine", "poop")
# Timeline tie-break order for entries sharing a timestamp.
ENTRY_KINDS = ("feeding", "dejection", "weight")

FEEDING_TYPE_LABELS = {
    "breast-left": "Breast (Left)",
    "breast-right": "Breast (Right)",
    "bottle": "Bottle",
    "solid": "Solid",
}

_FEEDING_TYPE_ALIASES = {
    "bl": "breast-left",
    "br": "breast-right",
    "b": "bottle",
    "s": "solid",
    "breastleft": "breast-left",
    "breastright": "breast-right",
}


def normalize_feeding_type(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(f"expected a feeding type string, got {type(value).__name__}")
    key = value.strip().lower().replace("_", "-").replace(" ", "-")
    key = _FEEDING_TYPE_ALIASES.get(key, key)
    if key not in FEEDING_TYPES:
        raise ValueError(
            f"unknown feeding type '{value}', use: breast-left (bl), "
            "breast-right (br), bottle (b), solid (s)"
        )
    return key


def normalize_dejection_type(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(f"expected a dejection type string, got {type(value).__name__}")
    key = value.strip().lower()
    if key not in DEJECTION_TYPES:
        raise ValueError(f"unknown dejection type '{value}', use: urine, poop")
    return key


class _Entry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int = Field(ge=1, strict=True)
    baby_name: str = ""
    timestamp: datetime
    notes: Optional[str] = None

    @field_validator("timestamp", mode="before")
    @classmethod
    def coerce_timestamp(cls, v: Any) -> datetime:
        return parse_timestamp(v, field=None)

    @field_serializer("timestamp")
    def serialize_timestamp(self, v: datetime) -> str:
        return format_timestamp(v)


class Feeding(_Entry):
    kind: Literal["feeding"] = "feeding"
    feeding_type: FeedingType
    amount_ml: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False, strict=True)
    duration_minutes: Optional[int] = Field(default=None, ge=0, strict=True)

    @field_validator("feeding_type", mode="before")
    @classmethod
    def normalize_type(cls, v: Any) -> str:
        return normalize_feeding_type(v)


class Dejection(_Entry):
    kind: Literal["dejection"] = "dejection"
    dejection_type: DejectionType

    @field_validator("dejection_type", mode="before")
    @classmethod
    def normalize_type(cls, v: Any) -> str:
        return normalize_dejection_type(v)


class Weight(_Entry):
    kind: Literal["weight"] = "weight"
    weight_kg: float = Field(gt=0, allow_inf_nan=False, strict=True)


Entry = Annotated[Union[Feeding, Dejection, Weight], Field(discriminator="kind")]

EntryT = TypeVar("EntryT", Feeding, Dejection, Weight)


def describe_errors(exc: PydanticValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"])
        if err["type"] == "value_error" and "error" in err.get("ctx", {}):
            msg = str(err["ctx"]["error"])
        else:
            msg = err["msg"]
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts)


def build_entry(model: type[EntryT], **fields: Any) -> EntryT:
    """Construct an entry, translating pydantic failures into ValidationError."""
    try:
        return model(**fields)
    except PydanticValidationError as e:
        raise ValidationError(describe_errors(e)) from None


# --- Query results ---

class TimelineEntry(BaseModel):
    kind: EntryKind
    id: int
    baby_name: str
    timestamp: datetime
    subtype: Optional[str] = None
    amount_ml: Optional[float] = None
    duration_minutes: Optional[int] = None
    weight_kg: Optional[float] = None
    notes: Optional[str] = None

    @field_serializer("timestamp")
    def serialize_timestamp(self, v: datetime) -> str:
        return format_timestamp(v)

    @classmethod
    def from_entry(cls, entry: Union[Feeding, Dejection, Weight]) -> "TimelineEntry":
        common: Dict[str, Any] = {
            "kind": entry.kind,
            "id": entry.id,
            "baby_name": entry.baby_name,
            "timestamp": entry.timestamp,
            "notes": entry.notes,
        }
        if entry.kind == "feeding":
            return cls(
                subtype=entry.feeding_type,
                amount_ml=entry.amount_ml,
                duration_minutes=entry.duration_minutes,
                **common,
            )
        if entry.kind == "dejection":
            return cls(subtype=entry.dejection_type, **common)
        return cls(weight_kg=entry.weight_kg, **common)


class Summary(BaseModel):
    total_feedings: int = 0
    # None means no entry in the period carried the field; 0.0 is a real zero.
    total_ml: Optional[float] = None
    total_minutes: Optional[int] = None
    by_type: list[tuple[FeedingType, int]] = Field(default_factory=list)
    total_urine: int = 0
    total_poop: int = 0
    latest_weight_kg: Optional[float] = None


class DaySummary(Summary):
    date: str
    weight_kg: Optional[float] = None
    breast_left: int = 0
    breast_right: int = 0
    bottle: int = 0
    solid: int = 0


# --- Periods ---

class SingleDay(BaseModel):
    model_config = ConfigDict(frozen=True)

    day: date

    @field_validator("day", mode="before")
    @classmethod
    def coerce_day(cls, v: Any) -> date:
        return parse_date(v, field=None)


class SinceInstant(BaseModel):
    model_config = ConfigDict(frozen=True)

    since: datetime

    @field_validator("since", mode="before")
    @classmethod
    def coerce_since(cls, v: Any) -> datetime:
        return parse_timestamp(v, field=None)


Period = Union[SingleDay, SinceInstant]


def parse_period(value: Union[str, date, datetime, SingleDay, SinceInstant]) -> Period:
    """Resolve a summary period.

    A bare YYYY-MM-DD string (or date) is that single day; a full date-time
    string (or datetime) is an open range starting at that instant.
    """
    if isinstance(value, (SingleDay, SinceInstant)):
        return value
    if isinstance(value, datetime):
        return SinceInstant(since=parse_timestamp(value, field="period"))
    if isinstance(value, date):
        return SingleDay(day=value)
    if isinstance(value, str) and is_date_only(value):
        return SingleDay(day=parse_date(value, field="period"))
    return SinceInstant(since=parse_timestamp(value, field="period"))

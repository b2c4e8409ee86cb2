# app/schemas/appointment.py
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

# Telephone-approach attempts; hidden from summary calendars on request.
TA_MEETING_TYPE = "TA"

DATE_FORMAT = "%Y-%m-%d"

# Lunar months are 29 or 30 days long.
LUNAR_MAX_DAY = 30


class RecurrenceType(str, Enum):
    """
    How an appointment rule repeats.
    """

    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    POSTPONED = "postponed"


def _coerce_interval(value: Any) -> int:
    """
    Clamp missing, non-numeric and non-positive intervals to 1.
    """
    try:
        interval = int(value)
    except (TypeError, ValueError):
        return 1
    return interval if interval >= 1 else 1


def _validate_date_string(value: str | None) -> str | None:
    """
    Require a real calendar date in YYYY-MM-DD form and return it normalized.
    """
    if value is None:
        return None
    try:
        parsed = datetime.strptime(value.strip(), DATE_FORMAT).date()
    except ValueError:
        raise ValueError(f"'{value}' is not a valid YYYY-MM-DD date")
    return parsed.isoformat()


def parse_lunar_anchor(value: str | None) -> tuple[int, int, int] | None:
    """
    Split a lunar "Y-M-D" anchor into integers, or None if it is malformed.

    Lunar months can have 30 days in any month, so 2/30 is a valid anchor
    even though it is not a solar date.
    """
    if not value or not isinstance(value, str) or "-" not in value:
        return None
    parts = value.strip().split("-")
    if len(parts) != 3:
        return None
    try:
        year, month, day = (int(part) for part in parts)
    except ValueError:
        return None
    if not (1 <= year <= 9999 and 1 <= month <= 12 and 1 <= day <= LUNAR_MAX_DAY):
        return None
    return year, month, day


def is_lunar_yearly(recurrence_type: Any, is_lunar: Any) -> bool:
    return recurrence_type == RecurrenceType.YEARLY and bool(is_lunar)


def validate_anchor_date(value: str | None, lunar: bool) -> str | None:
    """
    Validate an anchor date as a lunar month/day when `lunar`, otherwise as
    a solar date. Returns the zero-padded YYYY-MM-DD form.
    """
    if value is None or not lunar:
        return _validate_date_string(value)
    anchor = parse_lunar_anchor(value)
    if anchor is None:
        raise ValueError(
            f"'{value}' is not a valid lunar YYYY-MM-DD date (month 1-12, day 1-{LUNAR_MAX_DAY})"
        )
    return "%04d-%02d-%02d" % anchor


# --------------------------------------------------------------------------
# Shared fields for rules, create and read payloads
# --------------------------------------------------------------------------

class AppointmentFields(BaseModel):
    """
    Descriptive and recurrence fields shared by every appointment payload.

    Accepts both snake_case and the dashboard's camelCase keys; responses are
    serialized in camelCase.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str | None = Field(
        default=None,
        description="Short human-readable title.",
        examples=["Policy review"],
    )
    customer_id: str | None = Field(
        default=None,
        description="Identifier of the customer this appointment is for.",
        examples=["cust-42"],
    )
    customer_name: str | None = Field(default=None, examples=["Kim Minji"])
    time: str | None = Field(
        default=None,
        description="Local time of day (HH:MM). Used for sorting only.",
        examples=["14:30"],
    )
    location: str | None = Field(default=None)
    notes: str | None = Field(default=None)
    meeting_type: str | None = Field(
        default=None,
        description=(
            "Activity category (TA, AP, PC, N, JOINT, RP, Follow Up, S.P, ...). "
            "'TA' occurrences can be excluded from summary views."
        ),
        examples=["AP"],
    )

    recurrence_type: RecurrenceType = Field(
        default=RecurrenceType.NONE,
        description="none | daily | weekly | monthly | yearly.",
    )
    recurrence_interval: int = Field(
        default=1,
        description="Repeat every N days/weeks/months/years. Values below 1 are clamped to 1.",
        examples=[1],
    )
    recurrence_days: list[int] = Field(
        default_factory=list,
        description="Weekdays for weekly rules, 0=Sunday .. 6=Saturday.",
        examples=[[1, 3]],
    )
    recurrence_end_date: str | None = Field(
        default=None,
        description="Inclusive last date (YYYY-MM-DD) of the series.",
        examples=["2024-12-31"],
    )
    is_lunar: bool = Field(
        default=False,
        description=(
            "For yearly rules: interpret the month/day of `date` as a lunar "
            "month/day and convert it to a solar date each year."
        ),
    )
    exceptions: list[str] = Field(
        default_factory=list,
        description="Occurrence dates (YYYY-MM-DD) suppressed from the series.",
        examples=[["2024-01-08"]],
    )

    @field_validator("recurrence_type", mode="before")
    @classmethod
    def _default_recurrence_type(cls, value: Any) -> Any:
        if value is None or value == "":
            return RecurrenceType.NONE
        return value

    @field_validator("recurrence_interval", mode="before")
    @classmethod
    def _clamp_interval(cls, value: Any) -> int:
        return _coerce_interval(value)

    @field_validator("recurrence_days", "exceptions", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value


# --------------------------------------------------------------------------
# Generator input
# --------------------------------------------------------------------------

class AppointmentRule(AppointmentFields):
    """
    A single appointment or a recurring series, as handed to the occurrence
    generator.

    `date` is deliberately a plain string: malformed anchors are skipped by
    the generator instead of failing the whole request. Unknown keys are kept
    and copied into every occurrence.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    id: str = Field(..., description="Stable identifier of the rule.", examples=["a1b2c3"])
    date: str | None = Field(
        default=None,
        description=(
            "Anchor date (YYYY-MM-DD): the single date or first occurrence. "
            "For lunar yearly rules the month and day are lunar values."
        ),
        examples=["2024-01-01"],
    )
    status: str | None = Field(
        default=None,
        description="Lifecycle status, copied through as-is (scheduled, completed, ...).",
        examples=["scheduled"],
    )

    @field_validator("status", mode="before")
    @classmethod
    def _status_as_text(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        return str(value)


# --------------------------------------------------------------------------
# Create schema (POST /appointments)
# --------------------------------------------------------------------------

class AppointmentCreate(AppointmentFields):
    """
    Schema for storing a new appointment rule.

    `id` is generated when omitted.
    """

    id: str | None = Field(default=None, max_length=64)
    date: str = Field(
        ...,
        description="Anchor date (YYYY-MM-DD). Lunar month/day for lunar yearly rules.",
        examples=["2024-01-01"],
    )
    status: AppointmentStatus = Field(
        default=AppointmentStatus.SCHEDULED,
        description="Lifecycle status of the appointment.",
    )

    @field_validator("recurrence_end_date")
    @classmethod
    def _check_end_date(cls, value: str | None) -> str | None:
        return _validate_date_string(value)

    @model_validator(mode="after")
    def _check_anchor_date(self) -> "AppointmentCreate":
        self.date = validate_anchor_date(
            self.date, is_lunar_yearly(self.recurrence_type, self.is_lunar)
        )
        return self


# --------------------------------------------------------------------------
# Update schema (PATCH /appointments/{id})
# --------------------------------------------------------------------------

class AppointmentUpdate(BaseModel):
    """
    Schema for updating an appointment rule.
    All fields are optional; only provided fields are updated.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str | None = None
    customer_id: str | None = None
    customer_name: str | None = None
    date: str | None = None
    time: str | None = None
    location: str | None = None
    notes: str | None = None
    meeting_type: str | None = None
    status: AppointmentStatus | None = None
    recurrence_type: RecurrenceType | None = None
    recurrence_interval: int | None = None
    recurrence_days: list[int] | None = None
    recurrence_end_date: str | None = None
    is_lunar: bool | None = None
    exceptions: list[str] | None = None

    @field_validator("date")
    @classmethod
    def _check_anchor_date(cls, value: str | None) -> str | None:
        # The stored rule decides whether lunar values are allowed; the
        # route re-checks the merged result.
        if value is None:
            return None
        try:
            return _validate_date_string(value)
        except ValueError:
            return validate_anchor_date(value, lunar=True)

    @field_validator("recurrence_end_date")
    @classmethod
    def _check_end_date(cls, value: str | None) -> str | None:
        return _validate_date_string(value)

    @field_validator("recurrence_interval", mode="before")
    @classmethod
    def _clamp_interval(cls, value: Any) -> int | None:
        if value is None:
            return None
        return _coerce_interval(value)


# --------------------------------------------------------------------------
# Read schema (GET /appointments, GET /appointments/{id})
# --------------------------------------------------------------------------

class AppointmentRead(AppointmentRule):
    """
    Response schema for a stored appointment rule.
    Includes the DB-generated timestamps.
    """

    model_config = ConfigDict(from_attributes=True)

    created_at: datetime | None = Field(
        None,
        description="Timestamp when the appointment was created (if available).",
    )
    updated_at: datetime | None = Field(
        None,
        description="Timestamp when the appointment was last updated (if available).",
    )


class AppointmentExceptionCreate(BaseModel):
    """
    Body for suppressing one occurrence of a series.
    """

    date: str = Field(
        ...,
        description="Occurrence date (YYYY-MM-DD) to suppress.",
        examples=["2024-01-08"],
    )

    @field_validator("date")
    @classmethod
    def _check_date(cls, value: str) -> str:
        return _validate_date_string(value)

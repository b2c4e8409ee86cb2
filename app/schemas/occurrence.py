# app/schemas/occurrence.py
from __future__ import annotations

from datetime import date as date_type
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.schemas.appointment import AppointmentRule


class Occurrence(AppointmentRule):
    """
    One concrete calendar instance materialized from an appointment rule.

    Carries a shallow copy of the rule's payload plus the concrete date and an
    id that is unique across the expanded series. Never persisted.
    """

    occurrence_date: str = Field(
        ...,
        description="Concrete date (YYYY-MM-DD) of this instance, local calendar semantics.",
        examples=["2024-01-08"],
    )
    occurrence_id: str = Field(
        ...,
        description=(
            "Rule id for one-off appointments; '<id>_<occurrenceDate>' for "
            "instances of a recurring series."
        ),
        examples=["a1b2c3_2024-01-08"],
    )


class OccurrenceExpandRequest(BaseModel):
    """
    Body of the stateless expansion endpoint: caller-owned rules plus an
    inclusive date window.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    rules: list[AppointmentRule] = Field(
        ...,
        description="Appointment rules to expand.",
    )
    window_start: date_type = Field(
        ...,
        description="First day (inclusive) of the window.",
        examples=["2024-01-01"],
    )
    window_end: date_type = Field(
        ...,
        description="Last day (inclusive) of the window; covers the whole day.",
        examples=["2024-01-31"],
    )
    exclude_ta: bool = Field(
        default=True,
        alias="excludeTA",
        description="Drop rules whose meetingType is 'TA' before expansion.",
    )

    @field_validator("window_start", "window_end", mode="before")
    @classmethod
    def _date_part_only(cls, value: Any) -> Any:
        # Instants such as "2024-01-31T23:59:59.999Z" count for their whole day.
        if isinstance(value, str) and "T" in value:
            return value.split("T", 1)[0]
        return value

# app/schemas/activity_summary.py
from datetime import date

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ActivityTypeCount(BaseModel):
    """
    Planned vs completed counts for one activity (meeting) type.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    meeting_type: str = Field(
        ...,
        description="Activity category, e.g. 'TA', 'AP' or 'PC'.",
        examples=["AP"],
    )
    planned: int = Field(
        ...,
        description="Occurrences in the window that are not cancelled.",
        examples=[4],
    )
    completed: int = Field(
        ...,
        description="Occurrences in the window whose status is completed.",
        examples=[3],
    )


class ActivitySummary(BaseModel):
    """
    Activity summary over an inclusive date window, one entry per summary
    activity type (always present, zero when nothing matched).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    start_date: date = Field(
        ...,
        description="Start date (inclusive) of the window.",
    )
    end_date: date = Field(
        ...,
        description="End date (inclusive) of the window.",
    )
    activities: list[ActivityTypeCount] = Field(
        ...,
        description="Per-type planned and completed counts.",
    )
    total_planned: int = Field(..., description="Sum of planned counts.")
    total_completed: int = Field(..., description="Sum of completed counts.")

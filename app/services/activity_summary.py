# app/services/activity_summary.py
from __future__ import annotations

import calendar
from datetime import date as date_type, timedelta
from typing import Dict, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.schemas.activity_summary import ActivitySummary, ActivityTypeCount
from app.schemas.appointment import AppointmentStatus
from app.services.lunar_calendar import LunarCalendar
from app.services.occurrence_query import list_occurrences

# Activity types shown on the dashboard summary, in display order.
SUMMARY_ACTIVITY_TYPES: Tuple[str, ...] = ("TA", "AP", "PC", "기타", "증권전달")

PERIOD_WEEK = "week"
PERIOD_MONTH = "month"


def resolve_period_window(period: str, reference_date: date_type) -> Tuple[date_type, date_type]:
    """
    Inclusive window for a named period around `reference_date`.

    - week:  Monday..Sunday of the week containing reference_date.
    - month: first..last day of reference_date's month.
    """
    if period == PERIOD_WEEK:
        start = reference_date - timedelta(days=reference_date.weekday())
        return start, start + timedelta(days=6)

    if period == PERIOD_MONTH:
        last_day = calendar.monthrange(reference_date.year, reference_date.month)[1]
        return (
            reference_date.replace(day=1),
            reference_date.replace(day=last_day),
        )

    raise ValueError(f"Unknown period '{period}'; expected 'week' or 'month'")


async def compute_activity_summary(
    db: AsyncSession,
    start_date: date_type,
    end_date: date_type,
    lunar_calendar: Optional[LunarCalendar],
) -> ActivitySummary:
    """
    Count planned and completed activities per summary type over a window.

    Steps
    -----
    1) Expand all stored rules over [start_date, end_date], TA included.
    2) Keep occurrences linked to a customer whose meeting_type is one of
       SUMMARY_ACTIVITY_TYPES.
    3) planned   += 1 unless the occurrence is cancelled.
       completed += 1 when the occurrence is completed.

    Raises
    ------
    ValueError
        If end_date is before start_date.
    """
    occurrences = await list_occurrences(
        db,
        start_date=start_date,
        end_date=end_date,
        lunar_calendar=lunar_calendar,
        exclude_ta=False,
    )

    planned: Dict[str, int] = {t: 0 for t in SUMMARY_ACTIVITY_TYPES}
    completed: Dict[str, int] = {t: 0 for t in SUMMARY_ACTIVITY_TYPES}

    for occ in occurrences:
        if not occ.customer_id or occ.meeting_type not in planned:
            continue
        if occ.status != AppointmentStatus.CANCELLED:
            planned[occ.meeting_type] += 1
        if occ.status == AppointmentStatus.COMPLETED:
            completed[occ.meeting_type] += 1

    activities = [
        ActivityTypeCount(
            meeting_type=t,
            planned=planned[t],
            completed=completed[t],
        )
        for t in SUMMARY_ACTIVITY_TYPES
    ]

    return ActivitySummary(
        start_date=start_date,
        end_date=end_date,
        activities=activities,
        total_planned=sum(planned.values()),
        total_completed=sum(completed.values()),
    )

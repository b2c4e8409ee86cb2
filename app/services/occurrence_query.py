# app/services/occurrence_query.py
from __future__ import annotations

import logging
from datetime import date as date_type
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.appointment import Appointment
from app.schemas.appointment import (
    TA_MEETING_TYPE,
    AppointmentRule,
    AppointmentStatus,
)
from app.schemas.occurrence import Occurrence
from app.services.lunar_calendar import LunarCalendar
from app.services.occurrence_generator import generate_occurrences

logger = logging.getLogger(__name__)


async def load_appointment_rules(db: AsyncSession) -> List[AppointmentRule]:
    """
    Load every stored appointment as a generator-ready rule.
    """
    result = await db.execute(select(Appointment).order_by(Appointment.date, Appointment.id))
    return [
        AppointmentRule.model_validate(appointment, from_attributes=True)
        for appointment in result.scalars().all()
    ]


def sort_by_date_and_time(occurrences: Iterable[Occurrence]) -> List[Occurrence]:
    """
    Calendar order: by date, then time of day (untimed first), then id.
    """
    return sorted(
        occurrences,
        key=lambda occ: (occ.occurrence_date, occ.time or "", occ.occurrence_id),
    )


async def list_occurrences(
    db: AsyncSession,
    start_date: date_type,
    end_date: date_type,
    lunar_calendar: Optional[LunarCalendar],
    exclude_ta: bool = True,
) -> List[Occurrence]:
    """
    Expand all stored appointment rules over the inclusive window
    [start_date, end_date], sorted for calendar display.

    Raises
    ------
    ValueError
        If end_date is before start_date.
    """
    if end_date < start_date:
        raise ValueError("end_date must be greater than or equal to start_date")

    rules = await load_appointment_rules(db)
    occurrences = generate_occurrences(
        rules,
        start_date,
        end_date,
        lunar_calendar,
        exclude_ta=exclude_ta,
    )
    logger.debug(
        "Expanded %d rules into %d occurrences for %s..%s (exclude_ta=%s)",
        len(rules),
        len(occurrences),
        start_date,
        end_date,
        exclude_ta,
    )
    return sort_by_date_and_time(occurrences)


async def list_agenda_for_day(
    db: AsyncSession,
    day: date_type,
    lunar_calendar: Optional[LunarCalendar],
) -> List[Occurrence]:
    """
    Agenda for a single day.

    Rules
    -----
    - TA occurrences are included (exclude_ta=False) ...
    - ... except TA attempts that are already completed.
    - Sorted by time of day.
    """
    rules = await load_appointment_rules(db)
    occurrences = generate_occurrences(rules, day, day, lunar_calendar, exclude_ta=False)

    visible = [
        occ
        for occ in occurrences
        if not (
            occ.meeting_type == TA_MEETING_TYPE
            and occ.status == AppointmentStatus.COMPLETED
        )
    ]
    return sorted(visible, key=lambda occ: (occ.time or "", occ.occurrence_id))

# app/services/occurrence_generator.py
"""
Expansion of appointment rules into concrete calendar occurrences.

Everything here is pure and synchronous: no I/O, no shared state, a fresh
result list per call. Malformed rules are skipped rather than raised, so one
bad record never blanks a whole calendar view.
"""
from __future__ import annotations

import logging
from calendar import monthrange
from datetime import MAXYEAR, date, datetime, timedelta
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

from app.schemas.appointment import (
    DATE_FORMAT,
    TA_MEETING_TYPE,
    AppointmentRule,
    RecurrenceType,
    is_lunar_yearly,
    parse_lunar_anchor,
)
from app.schemas.occurrence import Occurrence
from app.services.lunar_calendar import LunarCalendar

logger = logging.getLogger(__name__)

# Hard iteration bounds. They cap worst-case latency and stop corrupt
# recurrence parameters from looping forever.
YEARLY_SAFETY_CAP = 100
DAILY_SAFETY_CAP = 1095  # ~3 years of day-by-day walking


def parse_rule_date(value: Optional[str]) -> Optional[date]:
    """
    Parse a "YYYY-MM-DD" string into a date, or None if it is missing or
    malformed.
    """
    if not value or not isinstance(value, str) or "-" not in value:
        return None
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT).date()
    except ValueError:
        return None


def _as_date(value: date | datetime) -> date:
    # datetime is a date subclass; check it first.
    if isinstance(value, datetime):
        return value.date()
    return value


def _week_start(day: date) -> date:
    """
    Monday of the week containing `day`. Sunday belongs to the preceding
    Monday's week.
    """
    return day - timedelta(days=day.weekday())


def _sunday_based_weekday(day: date) -> int:
    """
    Weekday index with 0=Sunday .. 6=Saturday, as stored in recurrence_days.
    """
    return (day.weekday() + 1) % 7


def matches_recurrence(
    recurrence_type: RecurrenceType,
    series_start: date,
    day: date,
    interval: int = 1,
    recurrence_days: Sequence[int] = (),
) -> bool:
    """
    Whether `day` is an instance of a daily, weekly or monthly series that
    starts on `series_start`.

    Rules
    -----
    - daily:   day difference is non-negative and divisible by `interval`.
    - weekly:  weekday (0=Sunday) is in `recurrence_days` and the number of
               whole weeks between the Monday-aligned weeks of `series_start`
               and `day` is non-negative and divisible by `interval`.
    - monthly: month difference is non-negative and divisible by `interval`,
               and the day-of-month equals `series_start`'s exactly. Anchors
               on the 29th-31st skip months that are too short.

    Yearly rules are not day-walked and always return False here.
    """
    interval = interval if interval >= 1 else 1

    if recurrence_type == RecurrenceType.DAILY:
        diff_days = (day - series_start).days
        return diff_days >= 0 and diff_days % interval == 0

    if recurrence_type == RecurrenceType.WEEKLY:
        if _sunday_based_weekday(day) not in recurrence_days:
            return False
        diff_weeks = (_week_start(day) - _week_start(series_start)).days // 7
        return diff_weeks >= 0 and diff_weeks % interval == 0

    if recurrence_type == RecurrenceType.MONTHLY:
        diff_months = (day.year - series_start.year) * 12 + (day.month - series_start.month)
        return (
            diff_months >= 0
            and diff_months % interval == 0
            and day.day == series_start.day
        )

    return False


def _yearly_candidate(
    rule: AppointmentRule,
    month: int,
    day: int,
    year: int,
    lunar_calendar: Optional[LunarCalendar],
) -> Optional[date]:
    """
    The solar date of a yearly rule in `year`, or None when that year has none.
    """
    if rule.is_lunar:
        if lunar_calendar is None:
            return None
        # The anchor's month/day are lunar values; the year is the lunar year.
        return lunar_calendar.lunar_to_solar(
            year, month, day, False
        )

    try:
        return date(year, month, day)
    except ValueError:
        # 29 February in a non-leap year: no roll-over to 1 March.
        return None


def _lunar_series_start(anchor: Tuple[int, int, int]) -> date:
    """
    Solar stand-in for a lunar anchor, used only for range comparisons.
    Lunar day 30 in a month with fewer solar days is clamped to month end.
    """
    year, month, day = anchor
    return date(year, month, min(day, monthrange(year, month)[1]))


def _yearly_dates(
    rule: AppointmentRule,
    month: int,
    day: int,
    series_start: date,
    series_end: Optional[date],
    interval: int,
    window_start: date,
    window_end: date,
    lunar_calendar: Optional[LunarCalendar],
) -> Iterator[date]:
    current_year = max(window_start.year, series_start.year)

    for _ in range(YEARLY_SAFETY_CAP):
        if current_year > MAXYEAR:
            break

        candidate = _yearly_candidate(rule, month, day, current_year, lunar_calendar)
        if candidate is None:
            logger.debug(
                "Appointment %s has no yearly occurrence in %d", rule.id, current_year
            )
        else:
            if candidate > window_end:
                break
            if series_end is not None and candidate > series_end:
                break
            if candidate >= series_start and candidate >= window_start:
                yield candidate

        current_year += interval


def _walked_dates(
    rule: AppointmentRule,
    series_start: date,
    series_end: Optional[date],
    interval: int,
    window_start: date,
    window_end: date,
) -> Iterator[date]:
    current = max(series_start, window_start)
    steps = 0

    while current <= window_end and steps < DAILY_SAFETY_CAP:
        steps += 1
        if series_end is not None and current > series_end:
            break

        if matches_recurrence(
            rule.recurrence_type,
            series_start,
            current,
            interval=interval,
            recurrence_days=rule.recurrence_days,
        ):
            yield current

        current += timedelta(days=1)


def _occurrence_template(rule: AppointmentRule) -> Occurrence:
    """
    Validate the rule's payload as an Occurrence once; every date of the
    series is a cheap copy of this template.
    """
    data = rule.model_dump()
    # Stale occurrence keys in an opaque payload must not shadow the new ones.
    for key in ("occurrenceDate", "occurrenceId"):
        data.pop(key, None)
    data.update(occurrence_date="", occurrence_id=rule.id)
    return Occurrence(**data)


def _build_occurrence(
    template: Occurrence, rule_id: str, day: date, recurring: bool
) -> Occurrence:
    occurrence_date = day.isoformat()
    occurrence_id = f"{rule_id}_{occurrence_date}" if recurring else rule_id
    return template.model_copy(
        update={"occurrence_date": occurrence_date, "occurrence_id": occurrence_id}
    )


def generate_occurrences(
    rules: Iterable[AppointmentRule],
    window_start: date | datetime,
    window_end: date | datetime,
    lunar_calendar: Optional[LunarCalendar] = None,
    exclude_ta: bool = True,
) -> List[Occurrence]:
    """
    Expand appointment rules into the concrete occurrences that fall inside
    the inclusive window [window_start, window_end].

    Parameters
    ----------
    rules:
        Appointment rules (one-off or recurring).
    window_start, window_end:
        Inclusive bounds. Datetimes are reduced to their calendar date, so
        `window_end` always covers its whole day.
    lunar_calendar:
        Capability used for lunar yearly rules. When None, lunar rules
        produce no occurrences.
    exclude_ta:
        Drop rules whose meeting_type is "TA" before expansion (summary
        views). Today/detail views pass False.

    Returns
    -------
    list[Occurrence]
        One occurrence per rule per matching date, in no particular order.
    """
    start = _as_date(window_start)
    end = _as_date(window_end)

    occurrences: List[Occurrence] = []

    for rule in rules:
        if exclude_ta and rule.meeting_type == TA_MEETING_TYPE:
            continue

        # Lunar yearly anchors hold lunar month/day values such as 2/30.
        lunar_anchor = None
        if is_lunar_yearly(rule.recurrence_type, rule.is_lunar):
            lunar_anchor = parse_lunar_anchor(rule.date)
            series_start = _lunar_series_start(lunar_anchor) if lunar_anchor else None
        else:
            series_start = parse_rule_date(rule.date)
        if series_start is None:
            logger.debug("Skipping appointment %s: unparseable date %r", rule.id, rule.date)
            continue

        exceptions = set(rule.exceptions)
        template = _occurrence_template(rule)

        if rule.recurrence_type == RecurrenceType.NONE:
            if start <= series_start <= end and series_start.isoformat() not in exceptions:
                occurrences.append(
                    _build_occurrence(template, rule.id, series_start, recurring=False)
                )
            continue

        # An unparseable end date means the series is open-ended.
        series_end = parse_rule_date(rule.recurrence_end_date)
        interval = rule.recurrence_interval or 1

        if rule.recurrence_type == RecurrenceType.YEARLY:
            if lunar_anchor is not None:
                month, day_of_month = lunar_anchor[1], lunar_anchor[2]
            else:
                month, day_of_month = series_start.month, series_start.day
            dates = _yearly_dates(
                rule,
                month,
                day_of_month,
                series_start,
                series_end,
                interval,
                start,
                end,
                lunar_calendar,
            )
        else:
            dates = _walked_dates(rule, series_start, series_end, interval, start, end)

        for day in dates:
            if day.isoformat() in exceptions:
                continue
            occurrences.append(_build_occurrence(template, rule.id, day, recurring=True))

    return occurrences

# app/services/lunar_calendar.py
from __future__ import annotations

import logging
from datetime import date
from functools import lru_cache
from typing import Optional, Protocol

from korean_lunar_calendar import KoreanLunarCalendar

from app.core.config import get_settings

logger = logging.getLogger(__name__)


class LunarCalendar(Protocol):
    """
    Capability for converting a lunar calendar date to its solar (Gregorian)
    counterpart.

    Implementations return None when the lunar date does not exist in the
    given year or lies outside the supported range; they should not raise for
    such inputs.
    """

    def lunar_to_solar(
        self,
        year: int,
        lunar_month: int,
        lunar_day: int,
        leap_month: bool = False,
    ) -> Optional[date]:
        ...


class KoreanLunarCalendarAdapter:
    """
    LunarCalendar backed by the `korean-lunar-calendar` package (KARI tables,
    lunar years 1000-2050).

    The library's converter object is stateful, so a fresh one is created for
    every call; the adapter itself is safe to share between requests.
    """

    def lunar_to_solar(
        self,
        year: int,
        lunar_month: int,
        lunar_day: int,
        leap_month: bool = False,
    ) -> Optional[date]:
        converter = KoreanLunarCalendar()
        if not converter.setLunarDate(year, lunar_month, lunar_day, leap_month):
            logger.debug(
                "Lunar date %04d-%02d-%02d (leap=%s) has no solar equivalent",
                year,
                lunar_month,
                lunar_day,
                leap_month,
            )
            return None

        try:
            return date(converter.solarYear, converter.solarMonth, converter.solarDay)
        except (TypeError, ValueError):
            logger.debug(
                "Lunar conversion of %04d-%02d-%02d produced an invalid solar date",
                year,
                lunar_month,
                lunar_day,
            )
            return None


@lru_cache()
def get_lunar_calendar() -> Optional[LunarCalendar]:
    """
    FastAPI dependency returning the configured lunar calendar capability.

    Returns None when LUNAR_CALENDAR_ENABLED is false; lunar yearly rules then
    produce no occurrences.
    """
    settings = get_settings()
    if not settings.LUNAR_CALENDAR_ENABLED:
        logger.info("Lunar calendar conversion disabled by configuration")
        return None
    return KoreanLunarCalendarAdapter()

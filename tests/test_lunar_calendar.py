# tests/test_lunar_calendar.py
from datetime import date

from app.services import lunar_calendar as lunar_module
from app.services.lunar_calendar import KoreanLunarCalendarAdapter
from app.services.occurrence_generator import generate_occurrences
from app.schemas.appointment import AppointmentRule


def test_adapter_converts_known_dates():
    adapter = KoreanLunarCalendarAdapter()

    # Seollal (lunar new year)
    assert adapter.lunar_to_solar(2024, 1, 1) == date(2024, 2, 10)
    assert adapter.lunar_to_solar(2025, 1, 1) == date(2025, 1, 29)
    assert adapter.lunar_to_solar(1956, 1, 21, False) == date(1956, 3, 3)


def test_adapter_returns_none_for_impossible_dates():
    adapter = KoreanLunarCalendarAdapter()

    assert adapter.lunar_to_solar(2024, 13, 1) is None
    assert adapter.lunar_to_solar(2024, 1, 31) is None


def test_adapter_drives_lunar_yearly_rule():
    """
    A lunar-new-year rule lands on a different solar date every year.
    """
    rule = AppointmentRule(
        id="seollal",
        date="2024-01-01",
        recurrence_type="yearly",
        is_lunar=True,
    )

    occurrences = generate_occurrences(
        [rule],
        date(2024, 1, 1),
        date(2025, 12, 31),
        KoreanLunarCalendarAdapter(),
    )

    assert sorted(occ.occurrence_date for occ in occurrences) == [
        "2024-02-10",
        "2025-01-29",
    ]


def test_get_lunar_calendar_honours_disabled_setting(monkeypatch):
    class _DummySettings:
        LUNAR_CALENDAR_ENABLED = False

    monkeypatch.setattr(lunar_module, "get_settings", lambda: _DummySettings())
    lunar_module.get_lunar_calendar.cache_clear()
    try:
        assert lunar_module.get_lunar_calendar() is None
    finally:
        lunar_module.get_lunar_calendar.cache_clear()


def test_adapter_converts_lunar_day_30():
    adapter = KoreanLunarCalendarAdapter()

    assert adapter.lunar_to_solar(2024, 2, 30) == date(2024, 4, 8)

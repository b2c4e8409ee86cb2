# tests/conftest.py
import os
from datetime import date
from pathlib import Path

# Settings are cached on first import, so the test environment must be in
# place before anything from `app` is imported.
TEST_DB_PATH = Path(__file__).resolve().parent / "agent_crm_test.db"
os.environ["APP_ENV"] = "test"
os.environ["DB_URL"] = f"sqlite+aiosqlite:///{TEST_DB_PATH}"
os.environ["LUNAR_CALENDAR_ENABLED"] = "true"
os.environ.pop("INTERNAL_API_KEY", None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.main import create_app  # noqa: E402
from app.services.lunar_calendar import get_lunar_calendar  # noqa: E402


class StubLunarCalendar:
    """
    Deterministic LunarCalendar for tests.

    `mapping` is keyed by (year, lunar_month, lunar_day); anything else
    converts to None. Every call is recorded.
    """

    def __init__(self, mapping=None):
        self.mapping = dict(mapping or {})
        self.calls = []

    def lunar_to_solar(self, year, lunar_month, lunar_day, leap_month=False):
        self.calls.append((year, lunar_month, lunar_day, leap_month))
        return self.mapping.get((year, lunar_month, lunar_day))


@pytest.fixture(scope="session")
def client() -> TestClient:
    """
    Shared TestClient fixture for all API tests.

    Uses the application factory against a throwaway SQLite file; tables are
    created by the lifespan handler when the client starts.
    """
    if TEST_DB_PATH.exists():
        TEST_DB_PATH.unlink()

    app = create_app()
    with TestClient(app) as test_client:
        yield test_client

    if TEST_DB_PATH.exists():
        TEST_DB_PATH.unlink()


@pytest.fixture
def lunar_stub(client):
    """
    Replace the lunar calendar dependency with a StubLunarCalendar for one test.
    """
    stub = StubLunarCalendar()
    client.app.dependency_overrides[get_lunar_calendar] = lambda: stub
    yield stub
    client.app.dependency_overrides.pop(get_lunar_calendar, None)


@pytest.fixture
def make_stub():
    return StubLunarCalendar


@pytest.fixture
def jan_2024():
    return date(2024, 1, 1), date(2024, 1, 31)

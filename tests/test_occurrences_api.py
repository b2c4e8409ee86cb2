# tests/test_occurrences_api.py
from datetime import date
from http import HTTPStatus
from uuid import uuid4


def _create_appointment(client, **fields) -> str:
    payload = {
        "id": f"occ-{uuid4().hex[:8]}",
        "title": "Occurrence test",
        "customerId": "cust-occ",
        "date": "2024-01-01",
        "meetingType": "AP",
    }
    payload.update(fields)
    response = client.post("/appointments", json=payload)
    assert response.status_code == HTTPStatus.CREATED
    return response.json()["id"]


def _own(occurrences: list[dict], appointment_id: str) -> list[dict]:
    return [occ for occ in occurrences if occ["id"] == appointment_id]


def test_occurrences_expand_weekly_series(client):
    appointment_id = _create_appointment(
        client,
        recurrenceType="weekly",
        recurrenceInterval=2,
        recurrenceDays=[1],
    )

    response = client.get("/occurrences?start_date=2024-01-01&end_date=2024-01-31")
    assert response.status_code == HTTPStatus.OK

    own = _own(response.json(), appointment_id)
    assert [occ["occurrenceDate"] for occ in own] == [
        "2024-01-01",
        "2024-01-15",
        "2024-01-29",
    ]
    assert own[0]["occurrenceId"] == f"{appointment_id}_2024-01-01"
    assert own[0]["title"] == "Occurrence test"


def test_occurrences_single_keeps_rule_id(client):
    appointment_id = _create_appointment(client, date="2024-01-10")

    response = client.get("/occurrences?start_date=2024-01-01&end_date=2024-01-31")
    own = _own(response.json(), appointment_id)

    assert len(own) == 1
    assert own[0]["occurrenceId"] == appointment_id
    assert own[0]["occurrenceDate"] == "2024-01-10"


def test_occurrences_honour_exceptions(client):
    appointment_id = _create_appointment(
        client,
        recurrenceType="weekly",
        recurrenceDays=[1],
    )
    client.post(f"/appointments/{appointment_id}/exceptions", json={"date": "2024-01-08"})

    response = client.get("/occurrences?start_date=2024-01-01&end_date=2024-01-31")
    dates = [occ["occurrenceDate"] for occ in _own(response.json(), appointment_id)]

    assert dates == ["2024-01-01", "2024-01-15", "2024-01-22", "2024-01-29"]


def test_occurrences_exclude_ta_flag(client):
    appointment_id = _create_appointment(client, date="2024-01-12", meetingType="TA")

    default = client.get("/occurrences?start_date=2024-01-12&end_date=2024-01-12")
    assert _own(default.json(), appointment_id) == []

    with_ta = client.get(
        "/occurrences?start_date=2024-01-12&end_date=2024-01-12&exclude_ta=false"
    )
    assert len(_own(with_ta.json(), appointment_id)) == 1


def test_occurrences_sorted_by_date_then_time(client):
    late = _create_appointment(client, date="2024-03-05", time="16:00")
    early = _create_appointment(client, date="2024-03-05", time="09:00")
    before = _create_appointment(client, date="2024-03-04", time="18:00")

    response = client.get("/occurrences?start_date=2024-03-04&end_date=2024-03-05")
    ids = [occ["id"] for occ in response.json() if occ["id"] in {late, early, before}]

    assert ids == [before, early, late]


def test_occurrences_lunar_yearly_uses_injected_calendar(client, lunar_stub):
    lunar_stub.mapping[(2024, 8, 15)] = date(2024, 9, 17)
    lunar_stub.mapping[(2026, 8, 15)] = date(2026, 9, 25)
    appointment_id = _create_appointment(
        client,
        date="2024-08-15",
        recurrenceType="yearly",
        isLunar=True,
    )

    response = client.get("/occurrences?start_date=2024-01-01&end_date=2026-12-31")
    dates = [occ["occurrenceDate"] for occ in _own(response.json(), appointment_id)]

    assert dates == ["2024-09-17", "2026-09-25"]


def test_occurrences_invalid_window_returns_400(client):
    response = client.get("/occurrences?start_date=2024-02-01&end_date=2024-01-01")
    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert "end_date" in response.json()["detail"]


def test_today_agenda_includes_ta_but_not_completed_ta(client):
    day = "2024-04-02"
    open_ta = _create_appointment(client, date=day, meetingType="TA", time="11:00")
    done_ta = _create_appointment(
        client, date=day, meetingType="TA", time="10:00", status="completed"
    )
    meeting = _create_appointment(client, date=day, meetingType="AP", time="09:30")

    response = client.get(f"/occurrences/today?on={day}")
    assert response.status_code == HTTPStatus.OK

    ids = [occ["id"] for occ in response.json() if occ["id"] in {open_ta, done_ta, meeting}]
    assert ids == [meeting, open_ta]


def test_occurrences_lunar_yearly_on_lunar_only_date(client, lunar_stub):
    lunar_stub.mapping[(2024, 2, 30)] = date(2024, 4, 8)
    appointment_id = _create_appointment(
        client,
        date="1990-02-30",
        recurrenceType="yearly",
        isLunar=True,
    )

    response = client.get("/occurrences?start_date=2024-01-01&end_date=2024-12-31")
    dates = [occ["occurrenceDate"] for occ in _own(response.json(), appointment_id)]

    assert dates == ["2024-04-08"]

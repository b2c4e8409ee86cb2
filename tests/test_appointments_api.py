# tests/test_appointments_api.py
from http import HTTPStatus
from uuid import uuid4


def _build_appointment_payload(**overrides) -> dict:
    payload = {
        "id": f"appt-{uuid4().hex[:8]}",
        "title": "Policy review",
        "customerId": "cust-api",
        "customerName": "Kim Minji",
        "date": "2024-01-01",
        "time": "14:30",
        "meetingType": "AP",
        "recurrenceType": "weekly",
        "recurrenceInterval": 1,
        "recurrenceDays": [1],
    }
    payload.update(overrides)
    return payload


def test_create_appointment_success(client):
    """
    Creating an appointment returns 201 with the stored rule in camelCase.
    """
    payload = _build_appointment_payload()

    response = client.post("/appointments", json=payload)
    assert response.status_code == HTTPStatus.CREATED

    data = response.json()
    assert data["id"] == payload["id"]
    assert data["date"] == "2024-01-01"
    assert data["recurrenceType"] == "weekly"
    assert data["recurrenceDays"] == [1]
    assert data["status"] == "scheduled"
    assert data["isLunar"] is False
    assert data["exceptions"] == []
    assert "createdAt" in data


def test_create_appointment_generates_id(client):
    payload = _build_appointment_payload()
    payload.pop("id")

    response = client.post("/appointments", json=payload)
    assert response.status_code == HTTPStatus.CREATED
    assert response.json()["id"]


def test_create_appointment_duplicate_id_rejected(client):
    payload = _build_appointment_payload()

    first = client.post("/appointments", json=payload)
    assert first.status_code == HTTPStatus.CREATED

    second = client.post("/appointments", json=payload)
    assert second.status_code == HTTPStatus.BAD_REQUEST
    assert "already exists" in second.json()["detail"]


def test_create_appointment_rejects_malformed_date(client):
    response = client.post(
        "/appointments",
        json=_build_appointment_payload(date="2024-13-45"),
    )
    assert response.status_code == HTTPStatus.UNPROCESSABLE_ENTITY


def test_create_appointment_clamps_interval(client):
    response = client.post(
        "/appointments",
        json=_build_appointment_payload(recurrenceInterval=0),
    )
    assert response.status_code == HTTPStatus.CREATED
    assert response.json()["recurrenceInterval"] == 1


def test_get_update_and_delete_appointment(client):
    payload = _build_appointment_payload()
    appointment_id = client.post("/appointments", json=payload).json()["id"]

    get_resp = client.get(f"/appointments/{appointment_id}")
    assert get_resp.status_code == HTTPStatus.OK
    assert get_resp.json()["title"] == "Policy review"

    patch_resp = client.patch(
        f"/appointments/{appointment_id}",
        json={"title": "Annual review", "recurrenceInterval": 2, "status": "completed"},
    )
    assert patch_resp.status_code == HTTPStatus.OK
    updated = patch_resp.json()
    assert updated["title"] == "Annual review"
    assert updated["recurrenceInterval"] == 2
    assert updated["status"] == "completed"
    # untouched fields are kept
    assert updated["recurrenceDays"] == [1]

    delete_resp = client.delete(f"/appointments/{appointment_id}")
    assert delete_resp.status_code == HTTPStatus.NO_CONTENT

    missing = client.get(f"/appointments/{appointment_id}")
    assert missing.status_code == HTTPStatus.NOT_FOUND


def test_unknown_appointment_returns_404(client):
    assert client.get("/appointments/does-not-exist").status_code == HTTPStatus.NOT_FOUND
    assert client.patch(
        "/appointments/does-not-exist", json={"title": "x"}
    ).status_code == HTTPStatus.NOT_FOUND
    assert client.delete("/appointments/does-not-exist").status_code == HTTPStatus.NOT_FOUND


def test_list_appointments_filters(client):
    customer = f"cust-{uuid4().hex[:8]}"
    client.post("/appointments", json=_build_appointment_payload(customerId=customer))
    client.post(
        "/appointments",
        json=_build_appointment_payload(customerId=customer, meetingType="TA"),
    )

    by_customer = client.get(f"/appointments?customer_id={customer}")
    assert by_customer.status_code == HTTPStatus.OK
    assert len(by_customer.json()) == 2

    ta_only = client.get(f"/appointments?customer_id={customer}&meeting_type=TA")
    assert ta_only.status_code == HTTPStatus.OK
    data = ta_only.json()
    assert len(data) == 1
    assert data[0]["meetingType"] == "TA"


def test_add_and_remove_exception(client):
    appointment_id = client.post(
        "/appointments", json=_build_appointment_payload()
    ).json()["id"]

    add_resp = client.post(
        f"/appointments/{appointment_id}/exceptions",
        json={"date": "2024-01-08"},
    )
    assert add_resp.status_code == HTTPStatus.OK
    assert add_resp.json()["exceptions"] == ["2024-01-08"]

    # Adding the same date twice is a no-op
    again = client.post(
        f"/appointments/{appointment_id}/exceptions",
        json={"date": "2024-01-08"},
    )
    assert again.json()["exceptions"] == ["2024-01-08"]

    remove_resp = client.delete(f"/appointments/{appointment_id}/exceptions/2024-01-08")
    assert remove_resp.status_code == HTTPStatus.OK
    assert remove_resp.json()["exceptions"] == []

    missing = client.delete(f"/appointments/{appointment_id}/exceptions/2024-01-08")
    assert missing.status_code == HTTPStatus.NOT_FOUND


def test_add_exception_rejects_malformed_date(client):
    appointment_id = client.post(
        "/appointments", json=_build_appointment_payload()
    ).json()["id"]

    response = client.post(
        f"/appointments/{appointment_id}/exceptions",
        json={"date": "next monday"},
    )
    assert response.status_code == HTTPStatus.UNPROCESSABLE_ENTITY


def test_create_lunar_yearly_appointment_on_lunar_only_date(client):
    """
    Lunar 2/30 is accepted for lunar yearly rules and stored as given.
    """
    response = client.post(
        "/appointments",
        json=_build_appointment_payload(
            date="1990-02-30",
            recurrenceType="yearly",
            isLunar=True,
            recurrenceDays=[],
        ),
    )

    assert response.status_code == HTTPStatus.CREATED
    assert response.json()["date"] == "1990-02-30"
    assert response.json()["isLunar"] is True


def test_create_lunar_yearly_appointment_rejects_day_31(client):
    response = client.post(
        "/appointments",
        json=_build_appointment_payload(
            date="1990-02-31", recurrenceType="yearly", isLunar=True
        ),
    )
    assert response.status_code == HTTPStatus.UNPROCESSABLE_ENTITY


def test_create_solar_appointment_rejects_lunar_only_date(client):
    response = client.post(
        "/appointments",
        json=_build_appointment_payload(date="1990-02-30", recurrenceType="yearly"),
    )
    assert response.status_code == HTTPStatus.UNPROCESSABLE_ENTITY


def test_create_appointment_rejects_unknown_status(client):
    response = client.post(
        "/appointments",
        json=_build_appointment_payload(status="pending"),
    )
    assert response.status_code == HTTPStatus.UNPROCESSABLE_ENTITY


def test_update_lunar_anchor_checked_against_resulting_rule(client):
    lunar_payload = _build_appointment_payload(
        date="1990-01-15", recurrenceType="yearly", isLunar=True, recurrenceDays=[]
    )
    lunar_id = client.post("/appointments", json=lunar_payload).json()["id"]

    moved = client.patch(f"/appointments/{lunar_id}", json={"date": "1990-02-30"})
    assert moved.status_code == HTTPStatus.OK
    assert moved.json()["date"] == "1990-02-30"

    # Turning the rule solar would leave an impossible anchor behind.
    solar = client.patch(f"/appointments/{lunar_id}", json={"isLunar": False})
    assert solar.status_code == HTTPStatus.BAD_REQUEST
    assert client.get(f"/appointments/{lunar_id}").json()["isLunar"] is True

    weekly_id = client.post("/appointments", json=_build_appointment_payload()).json()["id"]
    bad = client.patch(f"/appointments/{weekly_id}", json={"date": "2024-02-30"})
    assert bad.status_code == HTTPStatus.BAD_REQUEST
    assert client.get(f"/appointments/{weekly_id}").json()["date"] == "2024-01-01"

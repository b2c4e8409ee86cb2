# app/api/routes/appointments.py
import logging
from http import HTTPStatus
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.models.appointment import Appointment
from app.schemas.appointment import (
    AppointmentCreate,
    AppointmentExceptionCreate,
    AppointmentRead,
    AppointmentUpdate,
    is_lunar_yearly,
    validate_anchor_date,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])

REQUIRED_FIELDS = frozenset(
    {
        "date",
        "status",
        "recurrence_type",
        "recurrence_interval",
        "recurrence_days",
        "is_lunar",
        "exceptions",
    }
)


async def _get_appointment_or_404(db: AsyncSession, appointment_id: str) -> Appointment:
    appointment = await db.get(Appointment, appointment_id)
    if appointment is None:
        raise HTTPException(
            status_code=HTTPStatus.NOT_FOUND,
            detail=f"Appointment with id '{appointment_id}' not found.",
        )
    return appointment


@router.post(
    "",
    response_model=AppointmentRead,
    status_code=HTTPStatus.CREATED,
    summary="Create an appointment or recurring series",
    description=(
        "Store a new appointment rule.\n\n"
        "A rule is either a one-off appointment (`recurrenceType: none`) or the "
        "definition of a recurring series (daily, weekly, monthly or yearly, "
        "optionally lunar for yearly rules). Occurrences are never stored; they "
        "are expanded on every `/occurrences` query.\n\n"
        "If `id` is omitted a random identifier is generated."
    ),
    responses={
        201: {
            "description": "Appointment successfully created.",
            "content": {
                "application/json": {
                    "example": {
                        "id": "a1b2c3",
                        "title": "Policy review",
                        "customerId": "cust-42",
                        "date": "2024-01-01",
                        "time": "14:30",
                        "meetingType": "AP",
                        "status": "scheduled",
                        "recurrenceType": "weekly",
                        "recurrenceInterval": 1,
                        "recurrenceDays": [1],
                        "recurrenceEndDate": None,
                        "isLunar": False,
                        "exceptions": [],
                    }
                }
            },
        },
        400: {
            "description": "An appointment with the same id already exists.",
        },
    },
)
async def create_appointment(
    payload: AppointmentCreate,
    db: AsyncSession = Depends(get_db),
) -> AppointmentRead:
    """
    Create a new appointment rule, enforcing id uniqueness.
    """
    appointment_id = payload.id or uuid4().hex

    if await db.get(Appointment, appointment_id) is not None:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail=f"Appointment with id '{appointment_id}' already exists.",
        )

    data = payload.model_dump(mode="json", exclude={"id"})
    appointment = Appointment(id=appointment_id, **data)
    db.add(appointment)
    await db.commit()
    await db.refresh(appointment)

    logger.info(
        "Created appointment %s (%s, recurrence=%s)",
        appointment.id,
        appointment.date,
        appointment.recurrence_type,
    )
    return AppointmentRead.model_validate(appointment)


@router.get(
    "",
    response_model=list[AppointmentRead],
    summary="List stored appointment rules",
    description=(
        "Return all stored appointment rules (series definitions, not expanded "
        "occurrences).\n\n"
        "Optional filters narrow the list to one customer or one meeting type."
    ),
)
async def list_appointments(
    customer_id: str | None = Query(
        default=None,
        description="Only return appointments for this customer.",
    ),
    meeting_type: str | None = Query(
        default=None,
        description="Only return appointments of this meeting type (e.g. 'TA').",
    ),
    db: AsyncSession = Depends(get_db),
) -> list[AppointmentRead]:
    """
    Fetch appointment rules ordered by anchor date.
    """
    stmt = select(Appointment)
    if customer_id is not None:
        stmt = stmt.where(Appointment.customer_id == customer_id)
    if meeting_type is not None:
        stmt = stmt.where(Appointment.meeting_type == meeting_type)

    result = await db.execute(stmt.order_by(Appointment.date.asc(), Appointment.id.asc()))
    return [AppointmentRead.model_validate(a) for a in result.scalars().all()]


@router.get(
    "/{appointment_id}",
    response_model=AppointmentRead,
    summary="Get an appointment rule by id",
    responses={
        404: {"description": "No appointment exists with the given id."},
    },
)
async def get_appointment(
    appointment_id: str = Path(..., description="Identifier of the appointment."),
    db: AsyncSession = Depends(get_db),
) -> AppointmentRead:
    appointment = await _get_appointment_or_404(db, appointment_id)
    return AppointmentRead.model_validate(appointment)


@router.patch(
    "/{appointment_id}",
    response_model=AppointmentRead,
    summary="Partially update an appointment rule",
    description=(
        "Update fields of a stored rule. Only fields present in the request body "
        "are modified. Changing recurrence fields affects every future query of "
        "the series."
    ),
    responses={
        400: {"description": "The resulting anchor date is invalid for the rule's calendar."},
        404: {"description": "No appointment exists with the given id."},
    },
)
async def update_appointment(
    appointment_id: str = Path(..., description="Identifier of the appointment."),
    payload: AppointmentUpdate | None = None,
    db: AsyncSession = Depends(get_db),
) -> AppointmentRead:
    """
    Apply partial updates to an appointment rule.
    """
    appointment = await _get_appointment_or_404(db, appointment_id)

    if payload is None:
        return AppointmentRead.model_validate(appointment)

    update_data = payload.model_dump(mode="json", exclude_unset=True)

    # Whether the anchor may hold lunar values depends on the rule after the update.
    merged = {}
    for field in ("date", "recurrence_type", "is_lunar"):
        value = update_data.get(field)
        merged[field] = getattr(appointment, field) if value is None else value
    try:
        validate_anchor_date(
            merged["date"],
            is_lunar_yearly(merged["recurrence_type"], merged["is_lunar"]),
        )
    except ValueError as exc:
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail=str(exc))

    for field, value in update_data.items():
        if value is None and field in REQUIRED_FIELDS:
            # Explicit nulls cannot clear NOT NULL columns; keep the stored value.
            continue
        setattr(appointment, field, value)

    await db.commit()
    await db.refresh(appointment)

    return AppointmentRead.model_validate(appointment)


@router.delete(
    "/{appointment_id}",
    status_code=HTTPStatus.NO_CONTENT,
    summary="Delete an appointment rule (whole series)",
    responses={
        404: {"description": "No appointment exists with the given id."},
    },
)
async def delete_appointment(
    appointment_id: str = Path(..., description="Identifier of the appointment."),
    db: AsyncSession = Depends(get_db),
) -> Response:
    appointment = await _get_appointment_or_404(db, appointment_id)
    await db.delete(appointment)
    await db.commit()

    logger.info("Deleted appointment %s", appointment_id)
    return Response(status_code=HTTPStatus.NO_CONTENT)


@router.post(
    "/{appointment_id}/exceptions",
    response_model=AppointmentRead,
    summary="Suppress a single occurrence of a series",
    description=(
        "Add an exception date to the rule so that the occurrence on that date "
        "is no longer produced. The rest of the series is unaffected.\n\n"
        "Adding a date that is already an exception is a no-op."
    ),
    responses={
        404: {"description": "No appointment exists with the given id."},
    },
)
async def add_appointment_exception(
    payload: AppointmentExceptionCreate,
    appointment_id: str = Path(..., description="Identifier of the appointment."),
    db: AsyncSession = Depends(get_db),
) -> AppointmentRead:
    appointment = await _get_appointment_or_404(db, appointment_id)

    exceptions = list(appointment.exceptions or [])
    if payload.date not in exceptions:
        exceptions.append(payload.date)
        appointment.exceptions = sorted(exceptions)
        await db.commit()
        await db.refresh(appointment)

    return AppointmentRead.model_validate(appointment)


@router.delete(
    "/{appointment_id}/exceptions/{exception_date}",
    response_model=AppointmentRead,
    summary="Restore a previously suppressed occurrence",
    responses={
        404: {"description": "No appointment exists, or the date is not an exception."},
    },
)
async def remove_appointment_exception(
    appointment_id: str = Path(..., description="Identifier of the appointment."),
    exception_date: str = Path(..., description="Exception date (YYYY-MM-DD) to remove."),
    db: AsyncSession = Depends(get_db),
) -> AppointmentRead:
    appointment = await _get_appointment_or_404(db, appointment_id)

    exceptions = list(appointment.exceptions or [])
    if exception_date not in exceptions:
        raise HTTPException(
            status_code=HTTPStatus.NOT_FOUND,
            detail=f"'{exception_date}' is not an exception of appointment '{appointment_id}'.",
        )

    appointment.exceptions = [d for d in exceptions if d != exception_date]
    await db.commit()
    await db.refresh(appointment)

    return AppointmentRead.model_validate(appointment)

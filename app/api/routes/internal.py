# app/api/routes/internal.py
from http import HTTPStatus
from typing import Optional

from fastapi import APIRouter, Depends

from app.api.dependencies.internal_auth import verify_internal_api_key
from app.schemas.occurrence import Occurrence, OccurrenceExpandRequest
from app.services.lunar_calendar import LunarCalendar, get_lunar_calendar
from app.services.occurrence_generator import generate_occurrences

router = APIRouter(
    prefix="/internal",
    tags=["Internal"],
    dependencies=[Depends(verify_internal_api_key)],
)


@router.post(
    "/expand-occurrences",
    response_model=list[Occurrence],
    status_code=HTTPStatus.OK,
    summary="Expand caller-supplied appointment rules",
    description=(
        "Stateless occurrence expansion for services that own their own "
        "appointment data. Nothing is read from or written to the database.\n\n"
        "Rules with a missing or malformed `date` are silently skipped; "
        "lunar yearly rules use the server's lunar calendar.\n\n"
        "Protected via the `X-Internal-Api-Key` header when configured."
    ),
    responses={
        401: {
            "description": "Missing or invalid internal API key (if configured).",
        },
    },
)
async def expand_occurrences(
    payload: OccurrenceExpandRequest,
    lunar_calendar: Optional[LunarCalendar] = Depends(get_lunar_calendar),
) -> list[Occurrence]:
    """
    Run the occurrence generator over the request's rules and window.

    Output order is not guaranteed; callers sort as they need.
    """
    return generate_occurrences(
        payload.rules,
        payload.window_start,
        payload.window_end,
        lunar_calendar,
        exclude_ta=payload.exclude_ta,
    )

# app/api/routes/occurrences.py
from datetime import date as date_type
from http import HTTPStatus
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.occurrence import Occurrence
from app.services.lunar_calendar import LunarCalendar, get_lunar_calendar
from app.services.occurrence_query import list_agenda_for_day, list_occurrences

router = APIRouter(
    prefix="/occurrences",
    tags=["Occurrences"],
)


@router.get(
    "",
    response_model=list[Occurrence],
    status_code=HTTPStatus.OK,
    summary="Expand stored appointments over a date window",
    description=(
        "Expand every stored appointment rule into concrete occurrences within "
        "the window. The range is **inclusive** of both `start_date` and "
        "`end_date`.\n\n"
        "- One-off appointments keep their id as `occurrenceId`.\n"
        "- Instances of a series get `<id>_<occurrenceDate>`.\n"
        "- Dates listed in a rule's `exceptions` are skipped.\n"
        "- With `exclude_ta=true` (default), telephone-approach (`TA`) "
        "appointments are left out.\n\n"
        "Results are sorted by date, then time of day."
    ),
    responses={
        200: {
            "description": "Occurrences in the window.",
            "content": {
                "application/json": {
                    "example": [
                        {
                            "id": "a1b2c3",
                            "title": "Policy review",
                            "date": "2024-01-01",
                            "time": "14:30",
                            "meetingType": "AP",
                            "status": "scheduled",
                            "recurrenceType": "weekly",
                            "recurrenceInterval": 1,
                            "recurrenceDays": [1],
                            "isLunar": False,
                            "exceptions": [],
                            "occurrenceDate": "2024-01-08",
                            "occurrenceId": "a1b2c3_2024-01-08",
                        }
                    ]
                }
            },
        },
        400: {
            "description": "end_date is before start_date.",
        },
    },
)
async def get_occurrences(
    start_date: date_type = Query(
        ...,
        description="Start date (inclusive) of the window, YYYY-MM-DD.",
        examples=["2024-01-01"],
    ),
    end_date: date_type = Query(
        ...,
        description="End date (inclusive) of the window, YYYY-MM-DD.",
        examples=["2024-01-31"],
    ),
    exclude_ta: bool = Query(
        default=True,
        description="Leave out appointments whose meeting type is 'TA'.",
    ),
    db: AsyncSession = Depends(get_db),
    lunar_calendar: Optional[LunarCalendar] = Depends(get_lunar_calendar),
) -> list[Occurrence]:
    try:
        return await list_occurrences(
            db,
            start_date=start_date,
            end_date=end_date,
            lunar_calendar=lunar_calendar,
            exclude_ta=exclude_ta,
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail=str(exc),
        )


@router.get(
    "/today",
    response_model=list[Occurrence],
    status_code=HTTPStatus.OK,
    summary="Agenda for a single day",
    description=(
        "Occurrences for one day (defaults to the server's current date), "
        "sorted by time of day.\n\n"
        "Unlike the calendar window, `TA` appointments are included, except "
        "those already completed."
    ),
)
async def get_today_agenda(
    on: date_type | None = Query(
        default=None,
        description="Day to build the agenda for. Defaults to today.",
        examples=["2024-01-08"],
    ),
    db: AsyncSession = Depends(get_db),
    lunar_calendar: Optional[LunarCalendar] = Depends(get_lunar_calendar),
) -> list[Occurrence]:
    day = on or date_type.today()
    return await list_agenda_for_day(db, day=day, lunar_calendar=lunar_calendar)

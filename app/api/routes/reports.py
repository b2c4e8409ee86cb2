# app/api/routes/reports.py
from datetime import date as date_type
from http import HTTPStatus
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.activity_summary import ActivitySummary
from app.services.activity_summary import compute_activity_summary, resolve_period_window
from app.services.lunar_calendar import LunarCalendar, get_lunar_calendar

router = APIRouter(
    prefix="/reports",
    tags=["Reports"],
)


@router.get(
    "/activity-summary",
    response_model=ActivitySummary,
    status_code=HTTPStatus.OK,
    summary="Planned vs completed activity counts per type",
    description=(
        "Count planned and completed customer activities per type "
        "(TA, AP, PC, 기타, 증권전달) over a window.\n\n"
        "The window is either explicit (`start_date` + `end_date`, both "
        "inclusive) or a named `period` (`week` = Monday..Sunday, `month` = "
        "calendar month) around `reference_date` (defaults to today).\n\n"
        "- planned: occurrences that are not cancelled\n"
        "- completed: occurrences whose status is completed\n\n"
        "Recurring appointments count once per occurrence in the window."
    ),
    responses={
        400: {
            "description": (
                "Only one of start_date/end_date given, or end_date before start_date."
            ),
        },
    },
)
async def get_activity_summary(
    start_date: date_type | None = Query(
        default=None,
        description="Start date (inclusive) of an explicit window.",
        examples=["2024-01-01"],
    ),
    end_date: date_type | None = Query(
        default=None,
        description="End date (inclusive) of an explicit window.",
        examples=["2024-01-07"],
    ),
    period: Literal["week", "month"] = Query(
        default="week",
        description="Named period used when no explicit window is given.",
    ),
    reference_date: date_type | None = Query(
        default=None,
        description="Any day inside the named period. Defaults to today.",
    ),
    db: AsyncSession = Depends(get_db),
    lunar_calendar: Optional[LunarCalendar] = Depends(get_lunar_calendar),
) -> ActivitySummary:
    if (start_date is None) != (end_date is None):
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail="start_date and end_date must be provided together.",
        )

    if start_date is None or end_date is None:
        start_date, end_date = resolve_period_window(
            period, reference_date or date_type.today()
        )

    try:
        return await compute_activity_summary(
            db,
            start_date=start_date,
            end_date=end_date,
            lunar_calendar=lunar_calendar,
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail=str(exc),
        )

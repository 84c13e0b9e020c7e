# student_planner/services/routes_holidays.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from starlette.requests import Request

from student_planner.services.holiday_source import HolidaySource, HolidaySourceError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["holidays"])


# ---------- App state accessors ----------
def get_holiday_source(request: Request) -> HolidaySource:
    source: HolidaySource = getattr(request.app.state, "holiday_source", None)
    if source is None:
        raise HTTPException(status_code=500, detail="Holiday source not initialized")
    return source


# ---------- Routes ----------
@router.get("/holidays")
def list_holidays(
    year: Optional[str] = None,
    source: HolidaySource = Depends(get_holiday_source),
):
    if not year:
        raise HTTPException(status_code=400, detail="Year parameter is required")
    try:
        year_num = int(year)
    except ValueError:
        raise HTTPException(status_code=400, detail="Bad year")

    try:
        holidays = source.request_holidays(year_num)
    except HolidaySourceError as e:
        logger.error("Error fetching holidays: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch holidays")
    return {"holidays": [h.to_json() for h in holidays]}


# ---------- Mount helper ----------
def mount_holiday_routes(app, source: HolidaySource) -> None:
    """
    Attach the holiday source to app.state and include this router.
    Call from main.py like:
        mount_holiday_routes(app, HolidaySource())
    """
    app.state.holiday_source = source
    app.include_router(router)


__all__ = ["router", "mount_holiday_routes", "get_holiday_source"]

# barbershop/routers/schedule_routes.py

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from barbershop.auth import get_current_user
from barbershop.db import get_session
from barbershop.deps import require_role
from barbershop.models import UserRole, WeeklySchedule
from barbershop.schemas import DAY_NAMES, WEEKDAY_NAMES, QuickSchedule, WeeklyScheduleEntry, WeeklyScheduleEntryPublic
from barbershop.stores import WeeklyScheduleStore

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["schedule"],
)


def _entry_public(entry: WeeklySchedule) -> dict:
    return {
        "weekday": entry.weekday,
        "day_name": WEEKDAY_NAMES[entry.weekday],
        "is_working_day": entry.is_working_day,
        "open_time": entry.open_time,
        "close_time": entry.close_time,
        "break_start": entry.break_start,
        "break_end": entry.break_end,
    }


def _save_template(session: Session, entries: List[WeeklySchedule]) -> List[dict]:
    try:
        template = WeeklyScheduleStore(session).upsert_template(entries)
    except ValueError as exc:
        session.rollback()
        raise HTTPException(status_code=422, detail=str(exc))
    session.commit()
    logger.info("Weekly schedule updated for weekdays %s", sorted(e.weekday for e in entries))
    return [_entry_public(e) for e in template]


@router.get("/schedule", response_model=List[WeeklyScheduleEntryPublic])
def get_schedule(session: Session = Depends(get_session)):
    return [_entry_public(e) for e in WeeklyScheduleStore(session).get_template()]


@router.put("/schedule", response_model=List[WeeklyScheduleEntryPublic])
def put_schedule(
    entries: List[WeeklyScheduleEntry],
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, UserRole.admin.value)  # only admins can change hours
    if not entries:
        raise HTTPException(status_code=422, detail="At least one weekday entry is required")

    return _save_template(session, [WeeklySchedule(**e.model_dump()) for e in entries])


@router.get("/admin/schedule/quick", response_model=QuickSchedule)
def get_quick_schedule(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, UserRole.admin.value)

    working = [e for e in WeeklyScheduleStore(session).get_template() if e.is_working_day]
    if not working:
        raise HTTPException(status_code=404, detail="Schedule not set")

    # Summarized from the first working day; the full template may vary per day
    return {
        "working_days": [WEEKDAY_NAMES[e.weekday] for e in working],
        "open_time": working[0].open_time,
        "close_time": working[0].close_time,
    }


@router.put("/admin/schedule/quick", response_model=List[WeeklyScheduleEntryPublic])
def put_quick_schedule(
    quick: QuickSchedule,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, UserRole.admin.value)

    if not quick.working_days:
        raise HTTPException(status_code=422, detail="working_days must contain at least one day")
    unknown = [d for d in quick.working_days if d.strip().lower() not in DAY_NAMES]
    if unknown:
        raise HTTPException(status_code=422, detail=f"Unknown day names: {', '.join(unknown)}")

    working = {DAY_NAMES[d.strip().lower()] for d in quick.working_days}
    entries = [
        WeeklySchedule(
            weekday=day,
            is_working_day=day in working,
            open_time=quick.open_time if day in working else None,
            close_time=quick.close_time if day in working else None,
        )
        for day in range(7)
    ]
    return _save_template(session, entries)

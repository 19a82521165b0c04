# barbershop/routers/admin_routes.py

import logging
from datetime import date, datetime, time, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from barbershop.auth import get_current_user
from barbershop.core import local_day_bounds, shop_timezone, utc_now
from barbershop.db import get_session
from barbershop.deps import require_role
from barbershop.models import AppointmentState, User, UserRole
from barbershop.routers.appointments_routes import appointment_public
from barbershop.schemas import AppointmentPublic, CancelledCount, DashboardStats, UserPublic
from barbershop.stores import AppointmentStore, count_active_clients

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
)


def _month_bounds(today: date):
    tz = shop_timezone()
    first = today.replace(day=1)
    following = (first + timedelta(days=32)).replace(day=1)
    return (
        datetime.combine(first, time.min, tzinfo=tz),
        datetime.combine(following, time.min, tzinfo=tz),
    )


@router.get("/stats", response_model=DashboardStats)
def dashboard_stats(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, UserRole.admin.value)

    now = utc_now()
    today = now.astimezone(shop_timezone()).date()
    store = AppointmentStore(session)

    month_start, month_end = _month_bounds(today)
    today_start, today_end = local_day_bounds(today)

    return {
        "total_confirmed": store.count_confirmed(),
        "revenue_this_month": store.confirmed_revenue(month_start, month_end),
        "upcoming_week": store.count_confirmed(now, now + timedelta(days=7)),
        "today": store.count_confirmed(today_start, today_end),
        "total_clients": count_active_clients(session),
    }


@router.get("/appointments", response_model=List[AppointmentPublic])
def list_all_appointments(
    state: Optional[AppointmentState] = None,
    on_date: Optional[date] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    search: Optional[str] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, UserRole.admin.value)

    if on_date is not None:
        date_from = date_to = on_date
    start = local_day_bounds(date_from)[0] if date_from is not None else None
    end = local_day_bounds(date_to)[1] if date_to is not None else None

    appts = AppointmentStore(session).list_by_filter(
        state=state,
        date_from=start,
        date_to=end,
        client_search=search,
        newest_first=True,
    )
    return [appointment_public(session, a) for a in appts]


# Declared before /appointments/{appt_id} so "cancelled" is not read as an id
@router.delete("/appointments/cancelled", response_model=CancelledCount)
def purge_cancelled_appointments(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, UserRole.admin.value)

    deleted = AppointmentStore(session).purge_cancelled()
    session.commit()
    logger.info("Purged %s cancelled appointments", deleted)
    return {"deleted": deleted}


@router.delete("/appointments/{appt_id}", response_model=AppointmentPublic)
def delete_appointment(
    appt_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, UserRole.admin.value)

    store = AppointmentStore(session)
    target = store.get(appt_id)
    if target is None:
        raise HTTPException(status_code=404, detail="Appointment not found")
    if target.state != AppointmentState.cancelled.value:
        raise HTTPException(status_code=409, detail="Only cancelled appointments can be deleted")

    public = appointment_public(session, target)
    store.delete_cancelled(appt_id)
    session.commit()
    return public


@router.get("/users", response_model=List[UserPublic])
def list_users(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, UserRole.admin.value)

    users = session.exec(select(User).order_by(User.created_at.desc())).all()
    return [
        {"id": u.id, "name": u.name, "email": u.email, "role": u.role}
        for u in users
    ]

# barbershop/routers/appointments_routes.py

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from barbershop.auth import get_current_user, get_optional_user
from barbershop.availability import get_availability
from barbershop.booking import cancel_booking, propose_booking
from barbershop.core import local_day_bounds
from barbershop.db import get_session
from barbershop.deps import raise_for_error
from barbershop.errors import BookingError
from barbershop.models import Appointment, AppointmentState, Service, UserRole
from barbershop.schemas import AppointmentCreate, AppointmentPublic, AvailabilityResponse
from barbershop.stores import AppointmentStore

router = APIRouter(
    prefix="/appointments",
    tags=["appointments"],
)


def appointment_public(session: Session, appt: Appointment, service: Optional[Service] = None) -> dict:
    service = service or session.get(Service, appt.service_id)
    summary = None
    if service is not None:
        summary = {
            "name": service.name,
            "duration_minutes": service.duration_minutes,
            "price_amount": service.price_amount,
        }
    return {
        "id": appt.id,
        "service_id": appt.service_id,
        "client_name": appt.client_name,
        "client_email": appt.client_email,
        "starts_at": appt.starts_at,
        "ends_at": appt.ends_at,
        "state": appt.state,
        "service": summary,
    }


def _owns(current_user: dict, appt: Appointment) -> bool:
    if appt.user_id is not None and appt.user_id == current_user["id"]:
        return True
    return bool(appt.client_email) and appt.client_email.lower() == current_user["email"].lower()


@router.get("/availability", response_model=AvailabilityResponse)
def availability(
    date: date,
    service_id: int,
    session: Session = Depends(get_session),
):
    result = get_availability(session, date, service_id)
    if isinstance(result, BookingError):
        raise_for_error(result)

    response = {
        "date": date,
        "service_id": service_id,
        "is_open": result.is_open,
        "slots": [
            {"time": s.time.strftime("%H:%M"), "available": s.available, "reason": s.reason}
            for s in result.slots
        ],
    }
    if result.is_open:
        response["open_time"] = result.open_time.strftime("%H:%M")
        response["close_time"] = result.close_time.strftime("%H:%M")
    if result.break_start is not None and result.break_end is not None:
        response["break"] = {
            "start": result.break_start.strftime("%H:%M"),
            "end": result.break_end.strftime("%H:%M"),
        }
    return response


@router.post("", response_model=AppointmentPublic, status_code=201)
def create_appointment(
    appt: AppointmentCreate,
    session: Session = Depends(get_session),
    current_user: Optional[dict] = Depends(get_optional_user),
):
    client_email = appt.client_email
    user_id = None
    if current_user is not None:
        user_id = current_user["id"]
        # Clients always book under their own account email
        if current_user["role"] == UserRole.client.value:
            client_email = current_user["email"]

    result = propose_booking(
        session,
        service_id=appt.service_id,
        client_name=appt.client_name,
        starts_at=appt.starts_at,
        client_email=client_email,
        user_id=user_id,
    )
    if isinstance(result, BookingError):
        raise_for_error(result)

    return appointment_public(session, result.appointment, result.service)


@router.get("", response_model=List[AppointmentPublic])
def list_appointments(
    state: Optional[AppointmentState] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    start = local_day_bounds(date_from)[0] if date_from is not None else None
    # date_to is inclusive: everything before the following local midnight
    end = local_day_bounds(date_to)[1] if date_to is not None else None
    if start is not None and end is not None and end <= start:
        raise HTTPException(status_code=422, detail="date_to cannot be before date_from")

    client_email = None
    if current_user["role"] != UserRole.admin.value:
        client_email = current_user["email"]

    appts = AppointmentStore(session).list_by_filter(
        state=state,
        date_from=start,
        date_to=end,
        client_email=client_email,
    )
    return [appointment_public(session, a) for a in appts]


@router.get("/{appt_id}", response_model=AppointmentPublic)
def get_appointment(
    appt_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    target = session.get(Appointment, appt_id)
    if target is None:
        raise HTTPException(status_code=404, detail="Appointment not found")
    if current_user["role"] != UserRole.admin.value and not _owns(current_user, target):
        raise HTTPException(status_code=403, detail="Forbidden")
    return appointment_public(session, target)


@router.patch("/{appt_id}/cancel", response_model=AppointmentPublic)
def cancel_appointment(
    appt_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    # Authorization: client who booked OR admin
    target = session.get(Appointment, appt_id)
    if target is not None and current_user["role"] != UserRole.admin.value and not _owns(current_user, target):
        raise HTTPException(status_code=403, detail="Forbidden")

    result = cancel_booking(session, appt_id)
    if isinstance(result, BookingError):
        raise_for_error(result)

    return appointment_public(session, result)

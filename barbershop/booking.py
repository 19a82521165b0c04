# barbershop/booking.py

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Union

from sqlalchemy.exc import DBAPIError
from sqlmodel import Session

from .core import parse_timestamp, shop_timezone, to_local, to_utc, utc_now, weekday_index
from .errors import BookingError, ConflictSummary, ErrorKind
from .models import Appointment, AppointmentState, Service
from .stores import AppointmentStore, ServiceCatalog, WeeklyScheduleStore

logger = logging.getLogger(__name__)

WRITE_CONFLICT_SQLSTATES = ("40001", "23P01")


@dataclass
class BookingConfirmation:
    appointment: Appointment
    service: Service


def _is_write_conflict(exc: DBAPIError) -> bool:
    # PostgreSQL serialization failure or exclusion violation
    return getattr(exc.orig, "pgcode", None) in WRITE_CONFLICT_SQLSTATES


def _conflict_error(existing: Optional[Appointment]) -> BookingError:
    summary = None
    if existing is not None:
        summary = ConflictSummary(existing.client_name, existing.starts_at, existing.ends_at)
    return BookingError(
        ErrorKind.slot_conflict,
        "There is already a confirmed appointment at that time",
        conflict=summary,
    )


def propose_booking(
    session: Session,
    service_id: int,
    client_name: str,
    starts_at: Union[str, datetime],
    client_email: Optional[str] = None,
    user_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Union[BookingConfirmation, BookingError]:
    now = now or utc_now()
    for attempt in range(2):
        try:
            result = _propose(session, service_id, client_name, starts_at, client_email, user_id, now)
            if isinstance(result, BookingError):
                session.rollback()
                logger.info("Booking rejected (%s): %s", result.kind.value, result.message)
                return result
            session.commit()
            break
        except DBAPIError as exc:
            session.rollback()
            if not _is_write_conflict(exc):
                raise
            if attempt == 0:
                logger.info("Concurrent write conflict, re-checking the proposal")
                continue
            logger.info("Booking rejected after repeated write conflicts")
            return _conflict_error(None)
        except Exception:
            session.rollback()
            raise

    logger.info(
        "Appointment %s confirmed for %s - %s",
        result.appointment.id,
        result.appointment.starts_at.isoformat(),
        result.appointment.ends_at.isoformat(),
    )
    return result


def _propose(
    session: Session,
    service_id: int,
    client_name: str,
    starts_at: Union[str, datetime],
    client_email: Optional[str],
    user_id: Optional[int],
    now: datetime,
) -> Union[BookingConfirmation, BookingError]:
    tz = shop_timezone()

    # 1) Service must exist and be active
    service = ServiceCatalog(session).get_active_service(service_id)
    if service is None:
        return BookingError(ErrorKind.service_not_found, "The selected service does not exist or is no longer offered")

    # 2) Start must be a real timestamp
    parsed = parse_timestamp(starts_at)
    if parsed is None:
        return BookingError(
            ErrorKind.invalid_date,
            "Invalid date. Use ISO 8601 format (e.g. 2030-01-07T10:00:00-03:00)",
        )

    # 3) Build the absolute interval
    try:
        start = to_utc(parsed, tz)
        end = start + timedelta(minutes=service.duration_minutes)
        local_start = to_local(start, tz)
        local_end = to_local(end, tz)
    except OverflowError:
        return BookingError(ErrorKind.invalid_date, "The requested date is out of range")

    # 4) No bookings in the past
    if start < now:
        return BookingError(ErrorKind.past_date, "Appointments cannot be booked in the past")

    # 5) Local weekday must be a working day
    entry = WeeklyScheduleStore(session).get_entry(weekday_index(local_start.date()))
    if not entry.is_working_day or entry.open_time is None or entry.close_time is None:
        return BookingError(ErrorKind.non_working_day, "The shop is closed on the selected day")

    # 6) Within opening hours, local wall time
    if (
        local_start.time() < entry.open_time
        or local_end.date() != local_start.date()
        or local_end.time() > entry.close_time
    ):
        return BookingError(
            ErrorKind.outside_business_hours,
            "The appointment must start at or after {} and end by {}".format(
                entry.open_time.strftime("%H:%M"), entry.close_time.strftime("%H:%M")
            ),
        )

    # 7) No overlap with any confirmed appointment
    appointments = AppointmentStore(session)
    conflicts = appointments.find_confirmed_overlapping(start, end)
    if conflicts:
        return _conflict_error(conflicts[0])

    appointment = appointments.insert_confirmed(
        Appointment(
            service_id=service.id,
            user_id=user_id,
            client_name=client_name,
            client_email=client_email or None,
            starts_at=start,
            ends_at=end,
        )
    )
    if appointment is None:
        # Lost a race to a concurrent writer; the constraint caught it
        existing = AppointmentStore(session).find_confirmed_overlapping(start, end)
        return _conflict_error(existing[0] if existing else None)

    return BookingConfirmation(appointment=appointment, service=service)


def cancel_booking(session: Session, appointment_id: int) -> Union[Appointment, BookingError]:
    """Confirmed -> Cancelled; repeating the call is a failure, never a second change."""
    try:
        appointment = AppointmentStore(session).update_state(
            appointment_id, AppointmentState.confirmed, AppointmentState.cancelled
        )
    except Exception:
        session.rollback()
        raise

    if appointment is None:
        session.rollback()
        return BookingError(
            ErrorKind.not_found_or_already_cancelled,
            "Appointment not found or already cancelled",
        )

    session.commit()
    logger.info("Appointment %s cancelled", appointment.id)
    return appointment

# barbershop/availability.py

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Sequence, Union
from zoneinfo import ZoneInfo

from sqlmodel import Session

from .config import shop_settings
from .core import local_day_bounds, local_instant, overlaps, shop_timezone, utc_now, weekday_index
from .errors import BookingError, ErrorKind
from .models import Appointment, WeeklySchedule
from .stores import AppointmentStore, ServiceCatalog, WeeklyScheduleStore

logger = logging.getLogger(__name__)

REASON_PAST = "past"
REASON_AFTER_CLOSE = "after_close"
REASON_BOOKED = "booked"


@dataclass
class Slot:
    time: time
    available: bool
    reason: Optional[str] = None


@dataclass
class DayAvailability:
    date: date
    is_open: bool
    open_time: Optional[time] = None
    close_time: Optional[time] = None
    break_start: Optional[time] = None
    break_end: Optional[time] = None
    slots: List[Slot] = field(default_factory=list)

    @property
    def available_times(self) -> List[time]:
        return [s.time for s in self.slots if s.available]


def _minutes(t: time) -> int:
    return t.hour * 60 + t.minute


def compute_slots(
    day: date,
    duration_minutes: int,
    entry: Optional[WeeklySchedule],
    appointments: Sequence[Appointment],
    now: datetime,
    tz: Optional[ZoneInfo] = None,
    step_minutes: Optional[int] = None,
) -> DayAvailability:
    tz = tz or shop_timezone()
    step = shop_settings["slot_minutes"] if step_minutes is None else step_minutes
    if step <= 0:
        raise ValueError("slot step must be a positive number of minutes")

    if entry is None or not entry.is_working_day:
        return DayAvailability(date=day, is_open=False)
    if entry.open_time is None or entry.close_time is None:
        logger.warning("Weekday %s is marked working but has no hours", entry.weekday)
        return DayAvailability(date=day, is_open=False)

    result = DayAvailability(
        date=day,
        is_open=True,
        open_time=entry.open_time,
        close_time=entry.close_time,
        break_start=entry.break_start,
        break_end=entry.break_end,
    )
    duration = timedelta(minutes=duration_minutes)
    has_break = entry.break_start is not None and entry.break_end is not None

    current = _minutes(entry.open_time)
    close = _minutes(entry.close_time)
    while current < close:
        candidate = time(current // 60, current % 60)
        current += step
        if has_break and entry.break_start <= candidate < entry.break_end:
            continue

        start = local_instant(day, candidate, tz)
        end = start + duration
        end_local = end.astimezone(tz)

        if start < now:
            result.slots.append(Slot(candidate, False, REASON_PAST))
        elif end_local.date() != day or end_local.time() > entry.close_time:
            result.slots.append(Slot(candidate, False, REASON_AFTER_CLOSE))
        elif any(overlaps(start, end, a.starts_at, a.ends_at) for a in appointments):
            result.slots.append(Slot(candidate, False, REASON_BOOKED))
        else:
            result.slots.append(Slot(candidate, True))

    return result


def get_availability(
    session: Session,
    day: date,
    service_id: int,
    now: Optional[datetime] = None,
    step_minutes: Optional[int] = None,
) -> Union[DayAvailability, BookingError]:
    """Load the template entry and the day's bookings, then compute slots."""
    service = ServiceCatalog(session).get_active_service(service_id)
    if service is None:
        return BookingError(ErrorKind.service_not_found, "The selected service does not exist or is no longer offered")

    tz = shop_timezone()
    entry = WeeklyScheduleStore(session).get_entry(weekday_index(day))
    try:
        day_start, day_end = local_day_bounds(day, tz)
    except OverflowError:
        return BookingError(ErrorKind.invalid_date, "The requested date is out of range")
    appointments = AppointmentStore(session).find_confirmed_overlapping(day_start, day_end)

    return compute_slots(
        day,
        service.duration_minutes,
        entry,
        appointments,
        now=now or utc_now(),
        tz=tz,
        step_minutes=step_minutes,
    )

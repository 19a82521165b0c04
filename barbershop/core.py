# barbershop/core.py

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple, Union
from zoneinfo import ZoneInfo

from .config import shop_settings


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """True when ``[a_start, a_end)`` and ``[b_start, b_end)`` share an instant.

    Touching intervals (``a_end == b_start`` or ``a_start == b_end``) do not
    overlap.
    """
    return a_start < b_end and a_end > b_start


def shop_timezone() -> ZoneInfo:
    return ZoneInfo(shop_settings["timezone"])


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(value: datetime, tz: Optional[ZoneInfo] = None) -> datetime:
    """Absolute UTC timestamp; naive values are read as shop-local wall time."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=tz or shop_timezone())
    return value.astimezone(timezone.utc)


def to_local(value: datetime, tz: Optional[ZoneInfo] = None) -> datetime:
    return to_utc(value, tz).astimezone(tz or shop_timezone())


def weekday_index(day: date) -> int:
    # 0 = Sunday ... 6 = Saturday (Python's weekday() is 0 = Monday)
    return (day.weekday() + 1) % 7


def local_day_bounds(day: date, tz: Optional[ZoneInfo] = None) -> Tuple[datetime, datetime]:
    """UTC instants bounding the shop-local calendar ``day``."""
    tz = tz or shop_timezone()
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def local_instant(day: date, at: time, tz: Optional[ZoneInfo] = None) -> datetime:
    """UTC instant of wall-clock ``at`` on shop-local ``day``."""
    return datetime.combine(day, at, tzinfo=tz or shop_timezone()).astimezone(timezone.utc)


def parse_timestamp(value: Union[str, datetime]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp; None when it is not one."""
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return datetime.fromisoformat(value.strip())
    except ValueError:
        return None

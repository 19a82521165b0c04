# barbershop/errors.py

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    service_not_found = "service_not_found"
    invalid_date = "invalid_date"
    past_date = "past_date"
    non_working_day = "non_working_day"
    outside_business_hours = "outside_business_hours"
    slot_conflict = "slot_conflict"
    not_found_or_already_cancelled = "not_found_or_already_cancelled"


# HTTP status per kind, used at the API edge
STATUS_CODES = {
    ErrorKind.service_not_found: 404,
    ErrorKind.invalid_date: 400,
    ErrorKind.past_date: 422,
    ErrorKind.non_working_day: 422,
    ErrorKind.outside_business_hours: 422,
    ErrorKind.slot_conflict: 409,
    ErrorKind.not_found_or_already_cancelled: 404,
}


@dataclass(frozen=True)
class ConflictSummary:
    client_name: str
    starts_at: datetime
    ends_at: datetime


@dataclass(frozen=True)
class BookingError:
    kind: ErrorKind
    message: str
    conflict: Optional[ConflictSummary] = None

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self.kind]

    def to_detail(self) -> dict:
        detail = {"code": self.kind.value, "message": self.message}
        if self.conflict is not None:
            detail["conflict"] = {
                "client_name": self.conflict.client_name,
                "starts_at": self.conflict.starts_at.isoformat(),
                "ends_at": self.conflict.ends_at.isoformat(),
            }
        return detail

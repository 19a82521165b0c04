# barbershop/schemas.py

from datetime import date, datetime, time
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import AppointmentState, UserRole

# Day names are an API-edge concern only; the core works on 0=Sunday..6=Saturday
DAY_NAMES = {
    "sunday": 0, "monday": 1, "tuesday": 2, "wednesday": 3,
    "thursday": 4, "friday": 5, "saturday": 6,
    "domingo": 0, "lunes": 1, "martes": 2, "miercoles": 3,
    "jueves": 4, "viernes": 5, "sabado": 6,
}
WEEKDAY_NAMES = ["sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday"]


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserPublic(BaseModel):
    id: int
    name: str
    email: str
    role: UserRole


class UserCreate(BaseModel):
    name: str = Field(min_length=1)
    email: str
    password: str = Field(min_length=8, max_length=72)


class UserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    password: Optional[str] = Field(default=None, min_length=8, max_length=72)


class ServiceCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    duration_minutes: int = Field(gt=0)
    price_amount: int = Field(gt=0)


class ServiceUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    duration_minutes: Optional[int] = Field(default=None, gt=0)
    price_amount: Optional[int] = Field(default=None, gt=0)
    active: Optional[bool] = None


class ServicePublic(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    duration_minutes: int
    price_amount: int
    active: bool


class ServiceSummary(BaseModel):
    name: str
    duration_minutes: int
    price_amount: int


class WeeklyScheduleEntry(BaseModel):
    weekday: int = Field(ge=0, le=6)  # 0=Sun, 1=Mon....
    is_working_day: bool = True
    open_time: Optional[time] = None
    close_time: Optional[time] = None
    break_start: Optional[time] = None
    break_end: Optional[time] = None


class WeeklyScheduleEntryPublic(WeeklyScheduleEntry):
    day_name: str


class QuickSchedule(BaseModel):
    working_days: List[str]
    open_time: time
    close_time: time


class AppointmentCreate(BaseModel):
    service_id: int
    client_name: str = Field(min_length=1)
    client_email: Optional[str] = None
    # kept as text so an unparseable value is reported as an invalid date
    starts_at: str


class AppointmentPublic(BaseModel):
    id: int
    service_id: int
    client_name: str
    client_email: Optional[str] = None
    starts_at: datetime
    ends_at: datetime
    state: AppointmentState
    service: Optional[ServiceSummary] = None


class CancelledCount(BaseModel):
    deleted: int


class SlotPublic(BaseModel):
    time: str
    available: bool
    reason: Optional[str] = None


class BreakWindow(BaseModel):
    start: str
    end: str


class AvailabilityResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    date: date
    service_id: int
    is_open: bool
    open_time: Optional[str] = None
    close_time: Optional[str] = None
    slots: List[SlotPublic] = []
    break_window: Optional[BreakWindow] = Field(default=None, alias="break")


class DashboardStats(BaseModel):
    total_confirmed: int
    revenue_this_month: int
    upcoming_week: int
    today: int
    total_clients: int

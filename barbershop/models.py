# barbershop/models.py

from datetime import datetime, time, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import DDL, CheckConstraint, Index, event
from sqlalchemy.types import DateTime, TypeDecorator
from sqlmodel import Column, Field, SQLModel


class UTCDateTime(TypeDecorator):
    """Stores absolute timestamps as UTC and reads them back timezone-aware."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError("naive datetime cannot be stored as an absolute timestamp")
        value = value.astimezone(timezone.utc)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def utc_column(**kwargs) -> Column:
    return Column(UTCDateTime(timezone=True), **kwargs)


class AppointmentState(str, Enum):
    confirmed = "confirmed"
    cancelled = "cancelled"


class UserRole(str, Enum):
    admin = "admin"
    client = "client"


class WeeklySchedule(SQLModel, table=True):
    __table_args__ = (
        CheckConstraint("weekday >= 0 AND weekday <= 6", name="ck_weekday_range"),
    )

    weekday: int = Field(primary_key=True, sa_column_kwargs={"autoincrement": False})  # 0=Sunday ... 6=Saturday
    is_working_day: bool = False
    open_time: Optional[time] = None
    close_time: Optional[time] = None
    break_start: Optional[time] = None
    break_end: Optional[time] = None


class Service(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    description: Optional[str] = None
    duration_minutes: int
    price_amount: int  # minor currency unit
    active: bool = Field(default=True, index=True)


class Appointment(SQLModel, table=True):
    __table_args__ = (
        Index("ix_appointment_state_start", "state", "starts_at"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    service_id: int = Field(foreign_key="service.id", index=True)
    user_id: Optional[int] = Field(default=None, foreign_key="user.id")

    client_name: str
    client_email: Optional[str] = Field(default=None, index=True)

    # ends_at is computed once from the service duration at booking time
    starts_at: datetime = Field(sa_column=utc_column(nullable=False))
    ends_at: datetime = Field(sa_column=utc_column(nullable=False))
    state: str = AppointmentState.confirmed.value
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=utc_column(nullable=False),
    )


# Database-level non-overlap for confirmed rows where the dialect supports it
event.listen(
    Appointment.__table__,
    "after_create",
    DDL(
        "ALTER TABLE appointment ADD CONSTRAINT ex_appointment_no_overlap "
        "EXCLUDE USING gist (tstzrange(starts_at, ends_at, '[)') WITH &&) "
        "WHERE (state = 'confirmed')"
    ).execute_if(dialect="postgresql"),
)


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: str = Field(index=True, unique=True)
    password_hash: str
    role: str  # admin or client
    active: bool = True
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=utc_column(nullable=False),
    )

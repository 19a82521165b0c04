# barbershop/stores.py
# Stores flush but never commit; the caller owns the transaction.

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from .core import overlaps
from .models import Appointment, AppointmentState, Service, User, UserRole, WeeklySchedule

logger = logging.getLogger(__name__)

WEEKDAYS = range(7)


def validate_entry(entry: WeeklySchedule) -> Optional[str]:
    """Return a message describing why ``entry`` is not a valid template day."""
    if entry.weekday not in WEEKDAYS:
        return "weekday must be an integer between 0 (Sunday) and 6 (Saturday)"

    has_break_start = entry.break_start is not None
    has_break_end = entry.break_end is not None
    if has_break_start != has_break_end:
        return "break_start and break_end must be given together"

    if not entry.is_working_day:
        return None

    if entry.open_time is None or entry.close_time is None:
        return "open_time and close_time are required on a working day"
    if entry.close_time <= entry.open_time:
        return "close_time must be after open_time"
    if has_break_start:
        if entry.break_end <= entry.break_start:
            return "break_end must be after break_start"
        if entry.break_start < entry.open_time or entry.break_end > entry.close_time:
            return "break must fall within opening hours"
    return None


class WeeklyScheduleStore:
    def __init__(self, session: Session):
        self.session = session

    def get_entry(self, weekday: int) -> WeeklySchedule:
        entry = self.session.get(WeeklySchedule, weekday)
        if entry is None:
            return WeeklySchedule(weekday=weekday, is_working_day=False)
        return entry

    def get_template(self) -> List[WeeklySchedule]:
        """Always seven entries, Sunday first; missing days are non-working."""
        stored = {e.weekday: e for e in self.session.exec(select(WeeklySchedule)).all()}
        return [stored.get(day) or WeeklySchedule(weekday=day, is_working_day=False) for day in WEEKDAYS]

    def upsert_template(self, entries: Iterable[WeeklySchedule]) -> List[WeeklySchedule]:
        entries = list(entries)
        weekdays = [e.weekday for e in entries]
        if len(weekdays) != len(set(weekdays)):
            raise ValueError("weekday entries cannot contain duplicates")
        for entry in entries:
            problem = validate_entry(entry)
            if problem:
                raise ValueError(f"weekday {entry.weekday}: {problem}")

        for entry in entries:
            db_entry = self.session.get(WeeklySchedule, entry.weekday)
            if db_entry is None:
                db_entry = WeeklySchedule(weekday=entry.weekday)
                self.session.add(db_entry)
            db_entry.is_working_day = entry.is_working_day
            # Non-working days carry no hours
            keep = entry.is_working_day
            db_entry.open_time = entry.open_time if keep else None
            db_entry.close_time = entry.close_time if keep else None
            db_entry.break_start = entry.break_start if keep else None
            db_entry.break_end = entry.break_end if keep else None

        self.session.flush()
        return self.get_template()


class ServiceCatalog:
    def __init__(self, session: Session):
        self.session = session

    def get(self, service_id: int) -> Optional[Service]:
        return self.session.get(Service, service_id)

    def get_active_service(self, service_id: int) -> Optional[Service]:
        service = self.session.get(Service, service_id)
        if service is None or not service.active:
            return None
        return service

    def list_active(self) -> List[Service]:
        return self.session.exec(
            select(Service).where(Service.active == True).order_by(Service.name)  # noqa: E712
        ).all()

    def create(self, name: str, duration_minutes: int, price_amount: int, description: Optional[str] = None) -> Service:
        service = Service(
            name=name,
            description=description,
            duration_minutes=duration_minutes,
            price_amount=price_amount,
        )
        self.session.add(service)
        self.session.flush()
        return service

    def update(self, service: Service, changes: dict) -> Service:
        for field, value in changes.items():
            setattr(service, field, value)
        self.session.add(service)
        self.session.flush()
        return service

    def delete(self, service: Service, now: datetime) -> str:
        """Hard delete an unreferenced service; otherwise deactivate it.

        Returns ``"deleted"`` or ``"deactivated"``.
        """
        upcoming = self.session.exec(
            select(func.count())
            .select_from(Appointment)
            .where(Appointment.service_id == service.id)
            .where(Appointment.state == AppointmentState.confirmed.value)
            .where(Appointment.starts_at >= now)
        ).one()
        referenced = self.session.exec(
            select(func.count()).select_from(Appointment).where(Appointment.service_id == service.id)
        ).one()

        if upcoming or referenced:
            service.active = False
            self.session.add(service)
            self.session.flush()
            logger.info("Service %s deactivated (%s upcoming appointments)", service.id, upcoming)
            return "deactivated"

        self.session.delete(service)
        self.session.flush()
        logger.info("Service %s deleted", service.id)
        return "deleted"


class AppointmentStore:
    def __init__(self, session: Session):
        self.session = session

    def get(self, appointment_id: int) -> Optional[Appointment]:
        return self.session.get(Appointment, appointment_id)

    def find_confirmed_overlapping(self, start: datetime, end: datetime) -> List[Appointment]:
        """Confirmed appointments whose ``[starts_at, ends_at)`` overlaps ``[start, end)``."""
        candidates = self.session.exec(
            select(Appointment)
            .where(Appointment.state == AppointmentState.confirmed.value)
            .where(Appointment.starts_at < end)
            .where(Appointment.ends_at > start)
            .order_by(Appointment.starts_at)
        ).all()
        return [a for a in candidates if overlaps(start, end, a.starts_at, a.ends_at)]

    def insert_confirmed(self, appointment: Appointment) -> Optional[Appointment]:
        """Insert as Confirmed; None when a database constraint rejects the interval."""
        appointment.state = AppointmentState.confirmed.value
        self.session.add(appointment)
        try:
            self.session.flush()
        except IntegrityError:
            logger.info("Insert rejected by overlap constraint: %s - %s", appointment.starts_at, appointment.ends_at)
            self.session.rollback()
            return None
        return appointment

    def update_state(self, appointment_id: int, from_state: AppointmentState, to_state: AppointmentState) -> Optional[Appointment]:
        """Conditional transition; None when the row is missing or not in ``from_state``."""
        appointment = self.session.exec(
            select(Appointment)
            .where(Appointment.id == appointment_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).first()
        if appointment is None or appointment.state != from_state.value:
            return None
        appointment.state = to_state.value
        self.session.add(appointment)
        self.session.flush()
        return appointment

    def list_by_filter(
        self,
        state: Optional[AppointmentState] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        client_search: Optional[str] = None,
        client_email: Optional[str] = None,
        newest_first: bool = False,
    ) -> List[Appointment]:
        stmt = select(Appointment)
        if state is not None:
            stmt = stmt.where(Appointment.state == state.value)
        if date_from is not None:
            stmt = stmt.where(Appointment.starts_at >= date_from)
        if date_to is not None:
            stmt = stmt.where(Appointment.starts_at < date_to)
        if client_email is not None:
            stmt = stmt.where(func.lower(Appointment.client_email) == client_email.lower())
        if client_search and client_search.strip():
            pattern = f"%{client_search.strip().lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(Appointment.client_name).like(pattern),
                    func.lower(Appointment.client_email).like(pattern),
                )
            )
        order = Appointment.starts_at.desc() if newest_first else Appointment.starts_at
        return self.session.exec(stmt.order_by(order)).all()

    def delete_cancelled(self, appointment_id: int) -> Optional[Appointment]:
        """Hard delete; only Cancelled appointments may be removed."""
        appointment = self.session.get(Appointment, appointment_id)
        if appointment is None or appointment.state != AppointmentState.cancelled.value:
            return None
        self.session.delete(appointment)
        self.session.flush()
        return appointment

    def purge_cancelled(self) -> int:
        cancelled = self.session.exec(
            select(Appointment).where(Appointment.state == AppointmentState.cancelled.value)
        ).all()
        for appointment in cancelled:
            self.session.delete(appointment)
        self.session.flush()
        return len(cancelled)

    def count_confirmed(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> int:
        stmt = select(func.count()).select_from(Appointment).where(
            Appointment.state == AppointmentState.confirmed.value
        )
        if start is not None:
            stmt = stmt.where(Appointment.starts_at >= start)
        if end is not None:
            stmt = stmt.where(Appointment.starts_at < end)
        return self.session.exec(stmt).one()

    def confirmed_revenue(self, start: datetime, end: datetime) -> int:
        total = self.session.exec(
            select(func.coalesce(func.sum(Service.price_amount), 0))
            .select_from(Appointment)
            .join(Service, Service.id == Appointment.service_id)
            .where(Appointment.state == AppointmentState.confirmed.value)
            .where(Appointment.starts_at >= start)
            .where(Appointment.starts_at < end)
        ).one()
        return int(total)


def count_active_clients(session: Session) -> int:
    return session.exec(
        select(func.count())
        .select_from(User)
        .where(User.role == UserRole.client.value)
        .where(User.active == True)  # noqa: E712
    ).one()

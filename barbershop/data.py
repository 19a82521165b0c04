# barbershop/data.py

import logging
from datetime import time

from sqlalchemy import func
from sqlmodel import Session, select

from . import config
from .auth import hash_password
from .models import Service, User, UserRole, WeeklySchedule
from .stores import ServiceCatalog, WeeklyScheduleStore

logger = logging.getLogger(__name__)

# name, minutes, price (minor unit)
DEFAULT_SERVICES = [
    ("Haircut", 30, 12000),
    ("Beard trim", 30, 8000),
    ("Haircut and beard", 60, 18000),
    ("Fade", 45, 14000),
]

# Monday-Saturday 10:00-19:00; Sunday closed
DEFAULT_OPEN = time(10, 0)
DEFAULT_CLOSE = time(19, 0)
DEFAULT_WORKING_DAYS = {1, 2, 3, 4, 5, 6}


def seed_defaults(session: Session) -> None:
    """Fill an empty catalog and schedule; leaves existing data alone."""
    if session.exec(select(func.count()).select_from(Service)).one() == 0:
        catalog = ServiceCatalog(session)
        for name, minutes, price in DEFAULT_SERVICES:
            catalog.create(name=name, duration_minutes=minutes, price_amount=price)
        logger.info("Seeded %s default services", len(DEFAULT_SERVICES))

    if session.exec(select(func.count()).select_from(WeeklySchedule)).one() == 0:
        WeeklyScheduleStore(session).upsert_template(
            WeeklySchedule(
                weekday=day,
                is_working_day=day in DEFAULT_WORKING_DAYS,
                open_time=DEFAULT_OPEN if day in DEFAULT_WORKING_DAYS else None,
                close_time=DEFAULT_CLOSE if day in DEFAULT_WORKING_DAYS else None,
            )
            for day in range(7)
        )
        logger.info("Seeded default weekly schedule")

    session.commit()


def ensure_admin(session: Session, email: str, password: str) -> User:
    email = email.strip().lower()
    user = session.exec(select(User).where(User.email == email)).first()
    if user is None:
        user = User(name="Administrator", email=email, password_hash=hash_password(password), role=UserRole.admin.value)
        session.add(user)
        session.commit()
        session.refresh(user)
        logger.info("Bootstrap admin %s created", email)
    return user


def bootstrap(session: Session) -> None:
    if config.SEED_DEFAULTS:
        seed_defaults(session)
    if config.ADMIN_EMAIL and config.ADMIN_PASSWORD:
        ensure_admin(session, config.ADMIN_EMAIL, config.ADMIN_PASSWORD)

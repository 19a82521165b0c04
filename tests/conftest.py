import os

# Must be set before barbershop.config is imported
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["SHOP_TIMEZONE"] = "America/Santiago"
os.environ["SLOT_MINUTES"] = "60"
os.environ["SEED_DEFAULTS"] = "false"

from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

import pytest
from fastapi.testclient import TestClient

from barbershop.data import ensure_admin
from barbershop.db import Database
from barbershop.main import create_app
from barbershop.models import WeeklySchedule
from barbershop.stores import ServiceCatalog, WeeklyScheduleStore

TZ = ZoneInfo("America/Santiago")
SUNDAY = date(2030, 1, 6)
MONDAY = date(2030, 1, 7)
SATURDAY = date(2030, 1, 12)
# A fixed "now" well before the test dates
NOW = datetime(2029, 12, 1, 12, 0, tzinfo=timezone.utc)

ADMIN_EMAIL = "admin@barbershop.test"
ADMIN_PASSWORD = "admin-password"


def local(day: date, hour: int, minute: int = 0) -> datetime:
    return datetime.combine(day, time(hour, minute), tzinfo=TZ)


def week_template():
    """Sunday closed, Mon-Fri 10-19, Saturday 10-19 with a 13-14 break."""
    entries = [WeeklySchedule(weekday=0, is_working_day=False)]
    for day in range(1, 6):
        entries.append(WeeklySchedule(weekday=day, is_working_day=True, open_time=time(10), close_time=time(19)))
    entries.append(
        WeeklySchedule(
            weekday=6,
            is_working_day=True,
            open_time=time(10),
            close_time=time(19),
            break_start=time(13),
            break_end=time(14),
        )
    )
    return entries


@pytest.fixture
def database(tmp_path):
    db = Database(url=f"sqlite:///{tmp_path / 'barbershop-test.db'}", timeout=10)
    db.init()
    yield db
    db.dispose()


@pytest.fixture
def session(database):
    with database.session() as session:
        yield session


@pytest.fixture
def template(session):
    WeeklyScheduleStore(session).upsert_template(week_template())
    session.commit()


@pytest.fixture
def haircut(session):
    service = ServiceCatalog(session).create(name="Haircut", duration_minutes=60, price_amount=15000)
    session.commit()
    return service


@pytest.fixture
def beard_trim(session):
    service = ServiceCatalog(session).create(name="Beard trim", duration_minutes=30, price_amount=8000)
    session.commit()
    return service


@pytest.fixture
def client(database, template, haircut):
    app = create_app(database=database, seed=False)
    with TestClient(app) as test_client:
        yield test_client


def login(client, email, password):
    response = client.post("/auth/login", data={"username": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def admin_headers(client, database):
    with database.session() as s:
        ensure_admin(s, ADMIN_EMAIL, ADMIN_PASSWORD)
    return login(client, ADMIN_EMAIL, ADMIN_PASSWORD)


def register(client, name, email, password="client-password"):
    response = client.post("/users", json={"name": name, "email": email, "password": password})
    assert response.status_code == 201, response.text
    return login(client, email, password)

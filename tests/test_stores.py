from datetime import time, timedelta

import pytest

from barbershop.booking import cancel_booking, propose_booking
from barbershop.core import local_day_bounds
from barbershop.data import seed_defaults
from barbershop.models import AppointmentState, WeeklySchedule
from barbershop.stores import AppointmentStore, ServiceCatalog, WeeklyScheduleStore, validate_entry
from conftest import MONDAY, NOW, local


def test_empty_template_is_total(session):
    template = WeeklyScheduleStore(session).get_template()
    assert [e.weekday for e in template] == list(range(7))
    assert not any(e.is_working_day for e in template)


def test_partial_upsert_keeps_seven_entries(session):
    store = WeeklyScheduleStore(session)
    template = store.upsert_template(
        [WeeklySchedule(weekday=1, is_working_day=True, open_time=time(10), close_time=time(19))]
    )
    session.commit()
    assert len(template) == 7
    assert template[1].is_working_day
    assert template[1].close_time == time(19)
    assert not template[2].is_working_day


def test_upsert_replaces_existing_day(session, template):
    store = WeeklyScheduleStore(session)
    store.upsert_template(
        [WeeklySchedule(weekday=1, is_working_day=True, open_time=time(9), close_time=time(13))]
    )
    session.commit()
    monday = store.get_entry(1)
    assert monday.open_time == time(9)
    assert monday.close_time == time(13)


def test_non_working_day_drops_hours(session, template):
    store = WeeklyScheduleStore(session)
    store.upsert_template(
        [WeeklySchedule(weekday=1, is_working_day=False, open_time=time(9), close_time=time(13))]
    )
    session.commit()
    monday = store.get_entry(1)
    assert not monday.is_working_day
    assert monday.open_time is None


@pytest.mark.parametrize(
    "entry, message",
    [
        (WeeklySchedule(weekday=7, is_working_day=False), "between 0"),
        (WeeklySchedule(weekday=1, is_working_day=True), "required"),
        (WeeklySchedule(weekday=1, is_working_day=True, open_time=time(19), close_time=time(10)), "after open_time"),
        (WeeklySchedule(weekday=1, is_working_day=True, open_time=time(10), close_time=time(10)), "after open_time"),
        (
            WeeklySchedule(weekday=1, is_working_day=True, open_time=time(10), close_time=time(19), break_start=time(13)),
            "together",
        ),
        (
            WeeklySchedule(
                weekday=1, is_working_day=True, open_time=time(10), close_time=time(19),
                break_start=time(9), break_end=time(11),
            ),
            "within opening hours",
        ),
        (
            WeeklySchedule(
                weekday=1, is_working_day=True, open_time=time(10), close_time=time(19),
                break_start=time(14), break_end=time(13),
            ),
            "break_end must be after",
        ),
    ],
)
def test_validate_entry(entry, message):
    assert message in validate_entry(entry)


def test_upsert_rejects_invalid_and_duplicate_entries(session):
    store = WeeklyScheduleStore(session)
    with pytest.raises(ValueError):
        store.upsert_template([WeeklySchedule(weekday=1, is_working_day=True)])
    with pytest.raises(ValueError, match="duplicates"):
        store.upsert_template(
            [WeeklySchedule(weekday=2, is_working_day=False), WeeklySchedule(weekday=2, is_working_day=False)]
        )


def test_catalog_lists_only_active(session, haircut, beard_trim):
    catalog = ServiceCatalog(session)
    catalog.update(beard_trim, {"active": False})
    session.commit()
    assert [s.name for s in catalog.list_active()] == ["Haircut"]
    assert catalog.get_active_service(beard_trim.id) is None
    assert catalog.get(beard_trim.id) is not None


def test_unreferenced_service_is_deleted(session, haircut):
    catalog = ServiceCatalog(session)
    assert catalog.delete(haircut, now=NOW) == "deleted"
    session.commit()
    assert catalog.get(haircut.id) is None


def test_service_with_upcoming_appointments_is_deactivated(session, template, haircut):
    propose_booking(session, haircut.id, "Ana", local(MONDAY, 10), now=NOW)
    catalog = ServiceCatalog(session)
    assert catalog.delete(haircut, now=NOW) == "deactivated"
    session.commit()
    assert catalog.get(haircut.id) is not None
    assert catalog.get_active_service(haircut.id) is None


@pytest.fixture
def booked_day(session, template, haircut):
    names = [("Ana Perez", "ana@example.com", 10), ("Beto Soto", "beto@example.com", 12), ("Carla Diaz", None, 14)]
    ids = []
    for name, email, hour in names:
        result = propose_booking(session, haircut.id, name, local(MONDAY, hour), client_email=email, now=NOW)
        ids.append(result.appointment.id)
    cancel_booking(session, ids[1])
    return ids


def test_list_by_filter(session, booked_day):
    store = AppointmentStore(session)
    assert len(store.list_by_filter()) == 3
    confirmed = store.list_by_filter(state=AppointmentState.confirmed)
    assert [a.client_name for a in confirmed] == ["Ana Perez", "Carla Diaz"]
    assert [a.client_name for a in store.list_by_filter(client_search="SOTO")] == ["Beto Soto"]
    assert [a.client_name for a in store.list_by_filter(client_search="ana@")] == ["Ana Perez"]
    assert [a.client_name for a in store.list_by_filter(client_email="ANA@example.com")] == ["Ana Perez"]

    start, end = local_day_bounds(MONDAY)
    assert len(store.list_by_filter(date_from=start, date_to=end)) == 3
    assert store.list_by_filter(date_from=end) == []
    assert len(store.list_by_filter(date_from=local(MONDAY, 11), date_to=local(MONDAY, 13))) == 1

    newest = store.list_by_filter(newest_first=True)
    assert newest[0].client_name == "Carla Diaz"


def test_find_confirmed_overlapping(session, booked_day):
    store = AppointmentStore(session)
    found = store.find_confirmed_overlapping(local(MONDAY, 10, 30), local(MONDAY, 14, 30))
    # Beto (12:00) is cancelled
    assert [a.client_name for a in found] == ["Ana Perez", "Carla Diaz"]
    assert store.find_confirmed_overlapping(local(MONDAY, 11), local(MONDAY, 12)) == []


def test_only_cancelled_appointments_are_deleted(session, booked_day):
    store = AppointmentStore(session)
    assert store.delete_cancelled(booked_day[0]) is None
    assert store.delete_cancelled(booked_day[1]) is not None
    session.commit()
    assert store.get(booked_day[1]) is None


def test_purge_cancelled(session, booked_day):
    store = AppointmentStore(session)
    cancel_booking(session, booked_day[2])
    assert store.purge_cancelled() == 2
    session.commit()
    assert [a.id for a in store.list_by_filter()] == [booked_day[0]]


def test_counts_and_revenue(session, booked_day):
    store = AppointmentStore(session)
    start, end = local_day_bounds(MONDAY)
    assert store.count_confirmed() == 2
    assert store.count_confirmed(start, end) == 2
    assert store.count_confirmed(end, end + timedelta(days=1)) == 0
    assert store.confirmed_revenue(start, end) == 30000


def test_seed_defaults_is_idempotent(session):
    seed_defaults(session)
    seed_defaults(session)
    assert len(ServiceCatalog(session).list_active()) == 4
    template = WeeklyScheduleStore(session).get_template()
    assert not template[0].is_working_day
    assert all(e.is_working_day for e in template[1:])

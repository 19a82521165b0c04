import random
from datetime import datetime, timedelta, timezone

import pytest

from barbershop.core import (
    local_day_bounds,
    overlaps,
    parse_timestamp,
    to_local,
    to_utc,
    weekday_index,
)
from conftest import MONDAY, SATURDAY, SUNDAY, TZ, local


def three_case_overlap(c_start, c_end, e_start, e_end):
    return (
        (c_start >= e_start and c_start < e_end)
        or (c_end > e_start and c_end <= e_end)
        or (c_start <= e_start and c_end >= e_end)
    )


def test_touching_intervals_do_not_overlap():
    a = local(MONDAY, 10)
    b = local(MONDAY, 11)
    c = local(MONDAY, 12)
    assert not overlaps(a, b, b, c)
    assert not overlaps(b, c, a, b)


def test_overlap_cases():
    existing = (local(MONDAY, 10), local(MONDAY, 11))
    # starts inside
    assert overlaps(local(MONDAY, 10, 30), local(MONDAY, 11, 30), *existing)
    # ends inside
    assert overlaps(local(MONDAY, 9, 30), local(MONDAY, 10, 30), *existing)
    # contains
    assert overlaps(local(MONDAY, 9), local(MONDAY, 12), *existing)
    # identical
    assert overlaps(*existing, *existing)
    # inside
    assert overlaps(local(MONDAY, 10, 15), local(MONDAY, 10, 45), *existing)


@pytest.mark.parametrize("seed", range(5))
def test_simplified_form_matches_three_cases(seed):
    rng = random.Random(seed)
    base = local(MONDAY, 10)
    for _ in range(500):
        c_start = base + timedelta(minutes=15 * rng.randint(0, 30))
        c_end = c_start + timedelta(minutes=15 * rng.randint(1, 8))
        e_start = base + timedelta(minutes=15 * rng.randint(0, 30))
        e_end = e_start + timedelta(minutes=15 * rng.randint(1, 8))
        assert overlaps(c_start, c_end, e_start, e_end) == three_case_overlap(c_start, c_end, e_start, e_end)


def test_weekday_index_starts_on_sunday():
    assert weekday_index(SUNDAY) == 0
    assert weekday_index(MONDAY) == 1
    assert weekday_index(SATURDAY) == 6


def test_naive_timestamps_are_shop_local():
    naive = datetime(2030, 1, 7, 10, 0)
    assert to_utc(naive, TZ) == datetime(2030, 1, 7, 10, 0, tzinfo=TZ).astimezone(timezone.utc)
    assert to_utc(naive, TZ).tzinfo == timezone.utc


def test_to_local_keeps_the_instant():
    instant = datetime(2030, 1, 7, 13, 0, tzinfo=timezone.utc)
    converted = to_local(instant, TZ)
    assert converted == instant
    assert converted.tzinfo == TZ


def test_local_day_bounds():
    start, end = local_day_bounds(MONDAY, TZ)
    assert start == local(MONDAY, 0)
    assert end - start == timedelta(hours=24)
    assert start.tzinfo == timezone.utc


@pytest.mark.parametrize("value", ["", "   ", "not-a-date", "2030-13-40T10:00:00", None, 42])
def test_parse_timestamp_rejects_garbage(value):
    assert parse_timestamp(value) is None


def test_parse_timestamp_accepts_iso_8601():
    parsed = parse_timestamp("2030-01-07T10:00:00Z")
    assert parsed == datetime(2030, 1, 7, 10, 0, tzinfo=timezone.utc)
    assert parse_timestamp("2030-01-07T10:00:00").tzinfo is None

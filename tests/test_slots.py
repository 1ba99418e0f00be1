from datetime import date, datetime, time
from types import SimpleNamespace

import pytest

from profislots import slots, store
from profislots.config import BusinessHours
from profislots.errors import InvalidArgument, NotFound, StoreUnavailable

DAY = date(2025, 3, 10)
BEFORE_DAY = datetime(2025, 3, 9, 12, 0)


@pytest.fixture
def known_staff(monkeypatch):
    async def get_owned(db, model, user_id, obj_id, label=None):
        return SimpleNamespace(id=obj_id, user_id=user_id)

    monkeypatch.setattr(store, "get_owned", get_owned)


def appointment(staff_id, at, status="confirmed"):
    return SimpleNamespace(staff_id=staff_id, appointment_time=at, status=status)


def test_default_day_has_twenty_half_hour_slots():
    result = slots.generate_time_slots(8, 18, 30)
    assert len(result) == 20
    assert result[0] == time(8, 0)
    assert result[-1] == time(17, 30)
    assert all(a < b for a, b in zip(result, result[1:]))


def test_slots_stay_inside_business_hours():
    for step in (15, 20, 30, 45, 50, 60, 90):
        for slot in slots.generate_time_slots(9, 17, step):
            assert time(9, 0) <= slot < time(17, 0)


def test_uneven_step_drops_remainder():
    result = slots.generate_time_slots(8, 18, 45)
    assert len(result) == 13
    assert result[-1] == time(17, 0)


@pytest.mark.parametrize("open_hour, close_hour", [(10, 10), (18, 8)])
def test_empty_window_gives_no_slots(open_hour, close_hour):
    assert slots.generate_time_slots(open_hour, close_hour, 30) == []


def test_non_positive_step_is_rejected():
    with pytest.raises(InvalidArgument):
        slots.generate_time_slots(8, 18, 0)


def test_parse_and_format_slot():
    assert slots.parse_slot("09:30") == time(9, 30)
    assert slots.format_slot(time(9, 5)) == "09:05"
    with pytest.raises(InvalidArgument):
        slots.parse_slot("9h30")


def test_parse_day_rejects_bad_dates():
    assert slots.parse_day("2025-03-10") == DAY
    with pytest.raises(InvalidArgument):
        slots.parse_day("2025-13-01")
    with pytest.raises(InvalidArgument):
        slots.parse_day("")


def test_free_future_day_is_fully_available():
    candidates = slots.generate_time_slots()
    assert slots.resolve_available_slots(candidates, [], 2, DAY, BEFORE_DAY) == candidates


def test_confirmed_appointment_occupies_its_slot():
    candidates = slots.generate_time_slots()
    result = slots.resolve_available_slots(
        candidates, [appointment(2, time(10, 0))], 2, DAY, BEFORE_DAY
    )
    assert time(10, 0) not in result
    assert result == [s for s in candidates if s != time(10, 0)]


def test_pending_appointment_occupies_its_slot():
    candidates = slots.generate_time_slots()
    result = slots.resolve_available_slots(
        candidates, [appointment(2, time(11, 30), "pending")], 2, DAY, BEFORE_DAY
    )
    assert time(11, 30) not in result


def test_cancelled_appointment_frees_its_slot():
    candidates = slots.generate_time_slots()
    result = slots.resolve_available_slots(
        candidates, [appointment(2, time(10, 0), "cancelled")], 2, DAY, BEFORE_DAY
    )
    assert time(10, 0) in result
    assert result == candidates


def test_other_staff_does_not_block_slot():
    candidates = slots.generate_time_slots()
    result = slots.resolve_available_slots(
        candidates, [appointment(5, time(10, 0))], 2, DAY, BEFORE_DAY
    )
    assert result == candidates


def test_today_hides_past_slots():
    candidates = slots.generate_time_slots()
    now = datetime(2025, 3, 10, 14, 32)
    result = slots.resolve_available_slots(
        candidates, [appointment(2, time(16, 0))], 2, DAY, now
    )
    assert result[0] == time(15, 0)
    assert all(s > time(14, 32) for s in result)
    assert time(16, 0) not in result
    assert result == [time(15, 0), time(15, 30), time(16, 30), time(17, 0), time(17, 30)]


def test_slot_equal_to_now_is_not_bookable():
    result = slots.resolve_available_slots(
        slots.generate_time_slots(), [], 2, DAY, datetime(2025, 3, 10, 17, 0)
    )
    assert result == [time(17, 30)]


def test_resolver_is_idempotent():
    candidates = slots.generate_time_slots()
    booked = [appointment(2, time(9, 0)), appointment(2, time(13, 0), "cancelled")]
    first = slots.resolve_available_slots(candidates, booked, 2, DAY, BEFORE_DAY)
    second = slots.resolve_available_slots(candidates, booked, 2, DAY, BEFORE_DAY)
    assert first == second


@pytest.mark.asyncio
@pytest.mark.parametrize("staff_id, day", [(None, "2025-03-10"), (0, "2025-03-10"), (2, None), (2, "bad")])
async def test_invalid_arguments_fail_before_query(staff_id, day):
    # db=None: любой запрос к базе упал бы с AttributeError
    with pytest.raises(InvalidArgument):
        await slots.available_slots(None, 1, staff_id, day)


@pytest.mark.asyncio
async def test_store_failure_is_not_reported_as_free_day(monkeypatch, known_staff):
    async def broken_store(db, user_id, day):
        raise StoreUnavailable("Appointments could not be loaded")

    monkeypatch.setattr(store, "appointments_for_date", broken_store)
    with pytest.raises(StoreUnavailable):
        await slots.available_slots(object(), 1, 2, DAY, now=BEFORE_DAY)


@pytest.mark.asyncio
async def test_available_slots_uses_configured_hours(monkeypatch, known_staff):
    async def fake_store(db, user_id, day):
        return [appointment(2, time(9, 0))]

    monkeypatch.setattr(store, "appointments_for_date", fake_store)
    result = await slots.available_slots(
        object(), 1, 2, "2025-03-10", now=BEFORE_DAY, hours=BusinessHours(9, 11, 60)
    )
    assert result == [time(10, 0)]


@pytest.mark.asyncio
async def test_unknown_staff_is_not_reported_as_free_day(monkeypatch):
    async def missing_staff(db, model, user_id, obj_id, label=None):
        raise NotFound(f"{label} not found")

    async def fail_store(db, user_id, day):
        raise AssertionError("appointments must not be loaded for an unknown staff member")

    monkeypatch.setattr(store, "get_owned", missing_staff)
    monkeypatch.setattr(store, "appointments_for_date", fail_store)
    with pytest.raises(NotFound):
        await slots.available_slots(object(), 1, 999, DAY, now=BEFORE_DAY)

"""
Slot availability

Generates the bookable time-of-day slots of a salon day and removes the ones
that are already taken by a staff member or already in the past.
"""

import logging
from datetime import date, datetime, time
from typing import Iterable, List, Optional, Union

from profislots import models, store
from profislots.config import BusinessHours, get_settings
from profislots.errors import InvalidArgument

logger = logging.getLogger(__name__)

SLOT_FORMAT = "%H:%M"


def format_slot(slot: time) -> str:
    return slot.strftime(SLOT_FORMAT)


def parse_slot(value: Union[str, time]) -> time:
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0, tzinfo=None)
    try:
        return datetime.strptime(value.strip(), SLOT_FORMAT).time()
    except (AttributeError, ValueError):
        raise InvalidArgument(f"Invalid time {value!r}, expected HH:MM")


def parse_day(value: Union[str, date, None]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value or not str(value).strip():
        raise InvalidArgument("date is required")
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise InvalidArgument(f"Invalid date {value!r}, expected YYYY-MM-DD")


def generate_time_slots(
    open_hour: int = 8,
    close_hour: int = 18,
    step_minutes: int = 30
) -> List[time]:
    """
    Builds the candidate slots of one business day.

    Returns evenly spaced times covering [open_hour, close_hour). A step that
    does not divide the window drops the remainder; an empty or inverted
    window yields no slots.
    """
    if step_minutes <= 0:
        raise InvalidArgument("step_minutes must be positive")
    if not (0 <= open_hour <= 24 and 0 <= close_hour <= 24):
        raise InvalidArgument("business hours must be within 0..24")

    start = open_hour * 60
    end = close_hour * 60

    slots = []
    current = start
    # Слот должен целиком помещаться до закрытия
    while current + step_minutes <= end:
        slots.append(time(current // 60, current % 60))
        current += step_minutes
    return slots


def occupied_times(appointments: Iterable, staff_id: int) -> set:
    return {
        parse_slot(a.appointment_time)
        for a in appointments
        if a.staff_id == staff_id and a.status != models.STATUS_CANCELLED
    }


def resolve_available_slots(
    candidates: List[time],
    appointments: Iterable,
    staff_id: int,
    day: date,
    now: datetime
) -> List[time]:
    """Removes occupied slots of ``staff_id`` and, for today, slots not after ``now``."""
    taken = occupied_times(appointments, staff_id)
    available = [slot for slot in candidates if slot not in taken]

    if day == now.date():
        current = now.time()
        available = [slot for slot in available if slot > current]

    return available


async def available_slots(
    db,
    user_id: int,
    staff_id: Optional[int],
    day: Union[str, date, None],
    now: Optional[datetime] = None,
    hours: Optional[BusinessHours] = None
) -> List[time]:
    # Проверяем параметры до запроса в базу
    if not isinstance(staff_id, int) or isinstance(staff_id, bool) or staff_id <= 0:
        raise InvalidArgument("staff_id is required")
    day = parse_day(day)

    # Чужой или несуществующий мастер не может быть "свободен весь день"
    await store.get_owned(db, models.Staff, user_id, staff_id, "Staff member")

    hours = hours or get_settings().hours
    now = now or datetime.now()

    candidates = generate_time_slots(hours.open_hour, hours.close_hour, hours.step_minutes)
    appointments = await store.appointments_for_date(db, user_id, day)

    result = resolve_available_slots(candidates, appointments, staff_id, day, now)
    logger.debug(
        "staff=%s date=%s: %s of %s slots free", staff_id, day, len(result), len(candidates)
    )
    return result

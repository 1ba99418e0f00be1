"""
Appointment store

Reads and writes appointment rows for one salon account. Database failures
surface as StoreUnavailable, double bookings as Conflict.
"""

import logging
from datetime import date, time
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from profislots import models, schemas
from profislots.errors import Conflict, NotFound, StoreUnavailable, SLOT_TAKEN_MESSAGE

logger = logging.getLogger(__name__)


async def get_owned(db: AsyncSession, model, user_id: int, obj_id: int, label: Optional[str] = None):
    label = label or model.__name__
    try:
        result = await db.execute(
            select(model).where(model.id == obj_id, model.user_id == user_id)
        )
    except SQLAlchemyError as exc:
        logger.exception("Loading %s %s failed", label, obj_id)
        raise StoreUnavailable(f"{label} could not be loaded") from exc
    obj = result.scalar_one_or_none()
    if obj is None:
        raise NotFound(f"{label} not found")
    return obj


async def appointments_for_date(db: AsyncSession, user_id: int, day: date) -> List[models.Appointment]:
    stmt = (
        select(models.Appointment)
        .where(models.Appointment.user_id == user_id, models.Appointment.appointment_date == day)
        .order_by(models.Appointment.appointment_time)
    )
    try:
        result = await db.execute(stmt)
    except SQLAlchemyError as exc:
        logger.exception("Loading appointments for %s failed", day)
        raise StoreUnavailable("Appointments could not be loaded") from exc
    # Пустой список - нормальный результат
    return list(result.scalars().all())


async def list_appointments(db: AsyncSession, user_id: int) -> List[models.Appointment]:
    stmt = (
        select(models.Appointment)
        .where(models.Appointment.user_id == user_id)
        .order_by(models.Appointment.appointment_date.desc(), models.Appointment.appointment_time.desc())
    )
    try:
        result = await db.execute(stmt)
    except SQLAlchemyError as exc:
        logger.exception("Loading appointments failed")
        raise StoreUnavailable("Appointments could not be loaded") from exc
    return list(result.scalars().all())


async def get_appointment(db: AsyncSession, user_id: int, appointment_id: int) -> models.Appointment:
    stmt = (
        select(models.Appointment)
        .where(models.Appointment.id == appointment_id, models.Appointment.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    try:
        result = await db.execute(stmt)
    except SQLAlchemyError as exc:
        logger.exception("Loading appointment %s failed", appointment_id)
        raise StoreUnavailable("Appointment could not be loaded") from exc
    appointment = result.scalar_one_or_none()
    if appointment is None:
        raise NotFound("Appointment not found")
    return appointment


async def slot_taken(
    db: AsyncSession,
    staff_id: int,
    day: date,
    slot: time,
    exclude_id: Optional[int] = None
) -> bool:
    stmt = select(models.Appointment.id).where(
        models.Appointment.staff_id == staff_id,
        models.Appointment.appointment_date == day,
        models.Appointment.appointment_time == slot,
        models.Appointment.status != models.STATUS_CANCELLED,
    )
    if exclude_id is not None:
        stmt = stmt.where(models.Appointment.id != exclude_id)
    result = await db.execute(stmt.limit(1))
    return result.first() is not None


async def sync_customer_visits(db: AsyncSession, customer_id: int) -> None:
    # Визиты считаем по активным записям: отмена и удаление их уменьшают
    customer = await db.get(models.Customer, customer_id)
    if customer is None:
        return
    result = await db.execute(
        select(func.count(models.Appointment.id), func.max(models.Appointment.appointment_date)).where(
            models.Appointment.customer_id == customer_id,
            models.Appointment.status != models.STATUS_CANCELLED,
        )
    )
    visits, last_visit = result.one()
    customer.total_visits = visits or 0
    customer.last_visit = last_visit


async def book_appointment(
    db: AsyncSession,
    user_id: int,
    booking: schemas.AppointmentCreate
) -> models.Appointment:
    await get_owned(db, models.Customer, user_id, booking.customer_id, "Customer")
    await get_owned(db, models.Staff, user_id, booking.staff_id, "Staff member")
    await get_owned(db, models.Service, user_id, booking.service_id, "Service")

    # Проверка и вставка в одной транзакции; уникальный индекс ловит гонку
    try:
        if await slot_taken(db, booking.staff_id, booking.appointment_date, booking.appointment_time):
            await db.rollback()
            logger.warning(
                "Slot %s %s of staff %s already booked",
                booking.appointment_date, booking.appointment_time, booking.staff_id
            )
            raise Conflict(SLOT_TAKEN_MESSAGE)

        appointment = models.Appointment(user_id=user_id, **booking.model_dump())
        db.add(appointment)
        await db.flush()
        await sync_customer_visits(db, booking.customer_id)

        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        logger.warning("Concurrent booking for staff %s rejected", booking.staff_id)
        raise Conflict(SLOT_TAKEN_MESSAGE) from exc
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Booking could not be stored")
        raise StoreUnavailable("Appointment could not be created") from exc

    logger.info(
        "Booked appointment %s: staff=%s %s %s",
        appointment.id, booking.staff_id, booking.appointment_date, booking.appointment_time
    )
    return await get_appointment(db, user_id, appointment.id)


async def set_status(db: AsyncSession, user_id: int, appointment_id: int, status: str) -> models.Appointment:
    appointment = await get_appointment(db, user_id, appointment_id)
    if appointment.status == status:
        return appointment

    try:
        # Подтверждение отменённой записи снова занимает слот
        if appointment.status == models.STATUS_CANCELLED and await slot_taken(
            db, appointment.staff_id, appointment.appointment_date,
            appointment.appointment_time, exclude_id=appointment.id
        ):
            await db.rollback()
            raise Conflict(SLOT_TAKEN_MESSAGE)

        appointment.status = status
        await db.flush()
        await sync_customer_visits(db, appointment.customer_id)
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise Conflict(SLOT_TAKEN_MESSAGE) from exc
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Status change of appointment %s failed", appointment_id)
        raise StoreUnavailable("Appointment could not be updated") from exc

    logger.info("Appointment %s is now %s", appointment_id, status)
    return await get_appointment(db, user_id, appointment_id)


async def delete_appointment(db: AsyncSession, user_id: int, appointment_id: int) -> None:
    appointment = await get_appointment(db, user_id, appointment_id)
    try:
        customer_id = appointment.customer_id
        await db.delete(appointment)
        await db.flush()
        await sync_customer_visits(db, customer_id)
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Deleting appointment %s failed", appointment_id)
        raise StoreUnavailable("Appointment could not be deleted") from exc

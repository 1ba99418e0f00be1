from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from profislots import database, models, schemas, slots, store
from profislots.security import SessionContext, get_session

router = APIRouter(prefix="/appointments", tags=["appointments"])


@router.get("", response_model=list[schemas.AppointmentResponse])
async def read_appointments(session: SessionContext = Depends(get_session),
                            db: AsyncSession = Depends(database.get_db)):
    return await store.list_appointments(db, session.user_id)


@router.post("", response_model=schemas.AppointmentResponse, status_code=201)
async def create_appointment(booking: schemas.AppointmentCreate,
                             session: SessionContext = Depends(get_session),
                             db: AsyncSession = Depends(database.get_db)):
    return await store.book_appointment(db, session.user_id, booking)


@router.get("/available-slots", response_model=list[str])
async def read_available_slots(staff_id: Optional[int] = Query(None),
                               date: Optional[str] = Query(None),
                               session: SessionContext = Depends(get_session),
                               db: AsyncSession = Depends(database.get_db)):
    free = await slots.available_slots(db, session.user_id, staff_id, date)
    return [slots.format_slot(slot) for slot in free]


@router.get("/date/{day}", response_model=list[schemas.AppointmentResponse])
async def read_appointments_by_date(day: str,
                                    session: SessionContext = Depends(get_session),
                                    db: AsyncSession = Depends(database.get_db)):
    return await store.appointments_for_date(db, session.user_id, slots.parse_day(day))


@router.put("/{appointment_id}/cancel", response_model=schemas.AppointmentResponse)
async def cancel_appointment(appointment_id: int,
                             session: SessionContext = Depends(get_session),
                             db: AsyncSession = Depends(database.get_db)):
    return await store.set_status(db, session.user_id, appointment_id, models.STATUS_CANCELLED)


@router.put("/{appointment_id}/confirm", response_model=schemas.AppointmentResponse)
async def confirm_appointment(appointment_id: int,
                              session: SessionContext = Depends(get_session),
                              db: AsyncSession = Depends(database.get_db)):
    return await store.set_status(db, session.user_id, appointment_id, models.STATUS_CONFIRMED)


@router.delete("/{appointment_id}")
async def delete_appointment(appointment_id: int,
                             session: SessionContext = Depends(get_session),
                             db: AsyncSession = Depends(database.get_db)):
    await store.delete_appointment(db, session.user_id, appointment_id)
    return {"status": "deleted"}

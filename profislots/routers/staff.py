from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from profislots import database, models, schemas, store
from profislots.security import SessionContext, get_session

router = APIRouter(prefix="/staff", tags=["staff"])


@router.get("", response_model=list[schemas.StaffResponse])
async def read_staff(session: SessionContext = Depends(get_session),
                     db: AsyncSession = Depends(database.get_db)):
    result = await db.execute(
        select(models.Staff)
        .where(models.Staff.user_id == session.user_id)
        .order_by(models.Staff.created_at, models.Staff.id)
    )
    return result.scalars().all()


@router.post("", response_model=schemas.StaffResponse, status_code=201)
async def create_staff(staff: schemas.StaffCreate,
                       session: SessionContext = Depends(get_session),
                       db: AsyncSession = Depends(database.get_db)):
    db_staff = models.Staff(user_id=session.user_id, **staff.model_dump())
    db.add(db_staff)
    await db.commit()
    await db.refresh(db_staff)
    return db_staff


@router.put("/{staff_id}", response_model=schemas.StaffResponse)
async def update_staff(staff_id: int, new_data: schemas.StaffUpdate,
                       session: SessionContext = Depends(get_session),
                       db: AsyncSession = Depends(database.get_db)):
    db_staff = await store.get_owned(db, models.Staff, session.user_id, staff_id, "Staff member")
    for field, value in new_data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(db_staff, field, value)
    await db.commit()
    await db.refresh(db_staff)
    return db_staff


@router.delete("/{staff_id}")
async def delete_staff(staff_id: int,
                       session: SessionContext = Depends(get_session),
                       db: AsyncSession = Depends(database.get_db)):
    db_staff = await store.get_owned(db, models.Staff, session.user_id, staff_id, "Staff member")
    await db.delete(db_staff)
    await db.commit()
    return {"status": "deleted"}

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from profislots import database, models, schemas, store
from profislots.security import SessionContext, get_session

router = APIRouter(prefix="/services", tags=["services"])


@router.get("", response_model=list[schemas.ServiceResponse])
async def read_services(session: SessionContext = Depends(get_session),
                        db: AsyncSession = Depends(database.get_db)):
    result = await db.execute(
        select(models.Service)
        .where(models.Service.user_id == session.user_id)
        .order_by(models.Service.created_at, models.Service.id)
    )
    return result.scalars().all()


@router.post("", response_model=schemas.ServiceResponse, status_code=201)
async def create_service(service: schemas.ServiceCreate,
                         session: SessionContext = Depends(get_session),
                         db: AsyncSession = Depends(database.get_db)):
    db_service = models.Service(user_id=session.user_id, **service.model_dump())
    db.add(db_service)
    await db.commit()
    await db.refresh(db_service)
    return db_service


@router.put("/{service_id}", response_model=schemas.ServiceResponse)
async def update_service(service_id: int, new_data: schemas.ServiceUpdate,
                         session: SessionContext = Depends(get_session),
                         db: AsyncSession = Depends(database.get_db)):
    db_service = await store.get_owned(db, models.Service, session.user_id, service_id, "Service")
    for field, value in new_data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(db_service, field, value)
    await db.commit()
    await db.refresh(db_service)
    return db_service


@router.delete("/{service_id}")
async def delete_service(service_id: int,
                         session: SessionContext = Depends(get_session),
                         db: AsyncSession = Depends(database.get_db)):
    db_service = await store.get_owned(db, models.Service, session.user_id, service_id, "Service")
    await db.delete(db_service)
    await db.commit()
    return {"status": "deleted"}

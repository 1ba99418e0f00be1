from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from profislots import database, models, schemas, store
from profislots.security import SessionContext, get_session

router = APIRouter(prefix="/customers", tags=["customers"])

MIN_SEARCH_LENGTH = 2


@router.get("", response_model=list[schemas.CustomerResponse])
async def read_customers(session: SessionContext = Depends(get_session),
                         db: AsyncSession = Depends(database.get_db)):
    result = await db.execute(
        select(models.Customer)
        .where(models.Customer.user_id == session.user_id)
        .order_by(models.Customer.created_at.desc(), models.Customer.id.desc())
    )
    return result.scalars().all()


@router.get("/search", response_model=list[schemas.CustomerResponse])
async def search_customers(q: str = Query(""),
                           session: SessionContext = Depends(get_session),
                           db: AsyncSession = Depends(database.get_db)):
    term = q.strip()
    # Слишком короткий запрос - пустой результат, а не ошибка
    if len(term) < MIN_SEARCH_LENGTH:
        return []
    result = await db.execute(
        select(models.Customer)
        .where(
            models.Customer.user_id == session.user_id,
            or_(models.Customer.name.ilike(f"%{term}%"), models.Customer.phone.contains(term)),
        )
        .order_by(models.Customer.name)
    )
    return result.scalars().all()


@router.post("", response_model=schemas.CustomerResponse, status_code=201)
async def create_customer(customer: schemas.CustomerCreate,
                          session: SessionContext = Depends(get_session),
                          db: AsyncSession = Depends(database.get_db)):
    db_customer = models.Customer(user_id=session.user_id, total_visits=0, **customer.model_dump())
    db.add(db_customer)
    await db.commit()
    await db.refresh(db_customer)
    return db_customer


@router.put("/{customer_id}", response_model=schemas.CustomerResponse)
async def update_customer(customer_id: int, new_data: schemas.CustomerUpdate,
                          session: SessionContext = Depends(get_session),
                          db: AsyncSession = Depends(database.get_db)):
    db_customer = await store.get_owned(db, models.Customer, session.user_id, customer_id, "Customer")
    for field, value in new_data.model_dump(exclude_unset=True).items():
        # email можно стереть, имя и телефон - нет
        if value is not None or field == "email":
            setattr(db_customer, field, value)
    await db.commit()
    await db.refresh(db_customer)
    return db_customer


@router.delete("/{customer_id}")
async def delete_customer(customer_id: int,
                          session: SessionContext = Depends(get_session),
                          db: AsyncSession = Depends(database.get_db)):
    db_customer = await store.get_owned(db, models.Customer, session.user_id, customer_id, "Customer")
    await db.delete(db_customer)
    await db.commit()
    return {"status": "deleted"}

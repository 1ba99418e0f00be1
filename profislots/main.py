import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from decimal import Decimal
from pathlib import Path

from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy import select, func, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from profislots import database, models, schemas, views
from profislots.config import get_settings
from profislots.errors import (
    AuthenticationError, Conflict, StoreUnavailable, register_error_handlers
)
from profislots.icons import ServiceIcon
from profislots.routers import appointments, customers, services, staff
from profislots.security import (
    SessionContext, create_access_token, get_session, hash_password, verify_password
)

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))

VERSION = "1.0.0"

# Стартовый набор для нового салона
DEFAULT_SERVICES = [
    {"name": "Haarschnitt", "duration": 60, "price": Decimal("45.00"), "icon": ServiceIcon.SCISSORS},
    {"name": "Färbung", "duration": 120, "price": Decimal("80.00"), "icon": ServiceIcon.SCISSORS},
    {"name": "Massage", "duration": 60, "price": Decimal("65.00"), "icon": ServiceIcon.HEART},
    {"name": "Beratung", "duration": 30, "price": Decimal("35.00"), "icon": ServiceIcon.MESSAGE_SQUARE},
]
DEFAULT_STAFF = {"name": "Standard Mitarbeiter", "specialty": "Allgemein", "email": "", "phone": ""}


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Создаём таблицы при старте
    async with database.engine.begin() as conn:
        await conn.run_sync(models.Base.metadata.create_all)
    logger.info("ProfiSlots API started")
    yield
    await database.engine.dispose()


app = FastAPI(title="ProfiSlots", version=VERSION, lifespan=lifespan)
register_error_handlers(app)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"detail": jsonable_encoder(exc.errors()), "kind": "invalid_argument"},
    )


app.include_router(services.router)
app.include_router(staff.router)
app.include_router(customers.router)
app.include_router(appointments.router)


# --- System ---

@app.get("/")
async def root():
    return {
        "message": "ProfiSlots appointment booking API",
        "status": "online",
        "version": VERSION,
        "endpoints": {
            "system": ["GET /health"],
            "auth": ["POST /register", "POST /login"],
            "protected": [
                "GET /dashboard", "GET /services", "GET /staff",
                "GET /customers", "GET /appointments",
                "GET /appointments/available-slots",
            ],
        },
    }


@app.get("/health")
async def health(db: AsyncSession = Depends(database.get_db)):
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.exception("Health check failed")
        raise StoreUnavailable("Database connection failed") from exc
    return {"status": "ok", "database": "connected"}


# --- Auth ---

@app.post("/register", response_model=schemas.UserResponse, status_code=201)
async def register(data: schemas.RegisterRequest, db: AsyncSession = Depends(database.get_db)):
    email = data.email.lower()
    result = await db.execute(select(models.User.id).where(models.User.email == email))
    if result.first() is not None:
        raise Conflict("This email is already registered")

    user = models.User(email=email, password=hash_password(data.password), salon_name=data.salon_name)
    db.add(user)
    try:
        await db.flush()
        for service in DEFAULT_SERVICES:
            db.add(models.Service(user_id=user.id, **{**service, "icon": service["icon"].value}))
        db.add(models.Staff(user_id=user.id, **DEFAULT_STAFF))
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise Conflict("This email is already registered") from exc

    await db.refresh(user)
    logger.info("Registered salon %r (user %s)", user.salon_name, user.id)
    return user


@app.post("/login", response_model=schemas.TokenResponse)
async def login(data: schemas.LoginRequest, db: AsyncSession = Depends(database.get_db)):
    result = await db.execute(select(models.User).where(models.User.email == data.email.lower()))
    user = result.scalar_one_or_none()

    if user is None or not verify_password(data.password, user.password):
        logger.warning("Failed login for %s", data.email)
        raise AuthenticationError("Email or password is incorrect")

    token, expires_at = create_access_token(user.id, user.email)
    logger.info("User %s logged in", user.id)
    return schemas.TokenResponse(
        token=token, expires_at=expires_at, user=schemas.UserResponse.model_validate(user)
    )


# --- Dashboard ---

async def dashboard_stats(db: AsyncSession, user_id: int, today) -> schemas.DashboardStats:
    appointments_count = await db.scalar(
        select(func.count(models.Appointment.id)).where(
            models.Appointment.user_id == user_id,
            models.Appointment.appointment_date == today,
            models.Appointment.status != models.STATUS_CANCELLED,
        )
    )
    customers_count = await db.scalar(
        select(func.count(models.Customer.id)).where(models.Customer.user_id == user_id)
    )
    services_count = await db.scalar(
        select(func.count(models.Service.id)).where(models.Service.user_id == user_id)
    )
    return schemas.DashboardStats(
        today_appointments=appointments_count or 0,
        total_customers=customers_count or 0,
        total_services=services_count or 0,
    )


@app.get("/dashboard", response_model=schemas.DashboardStats)
async def read_dashboard(session: SessionContext = Depends(get_session),
                         db: AsyncSession = Depends(database.get_db)):
    return await dashboard_stats(db, session.user_id, datetime.now().date())


@app.get("/dashboard/view", response_class=HTMLResponse)
async def read_dashboard_view(request: Request,
                              session: SessionContext = Depends(get_session),
                              db: AsyncSession = Depends(database.get_db)):
    now = datetime.now()
    today = now.date()
    stats = await dashboard_stats(db, session.user_id, today)

    result = await db.execute(
        select(models.Appointment).where(
            models.Appointment.user_id == session.user_id,
            models.Appointment.appointment_date >= today - timedelta(days=views.CHART_DAYS - 1),
            models.Appointment.appointment_date <= today,
        )
    )
    user = await db.get(models.User, session.user_id)
    salon_name = user.salon_name if user else session.email

    context = views.dashboard_context(salon_name, stats, result.scalars().all(), now)
    return templates.TemplateResponse(request, "index.html", context)


if __name__ == "__main__":
    import uvicorn

    logger.info("ProfiSlots: http://127.0.0.1:8000")
    uvicorn.run(app, host="0.0.0.0", port=8000)

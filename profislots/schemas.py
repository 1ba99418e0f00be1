from datetime import date, datetime, time
from decimal import Decimal
from typing import Literal, Optional

from pydantic import (
    AliasChoices, BaseModel, ConfigDict, EmailStr, Field, field_serializer, field_validator
)

from profislots.icons import ServiceIcon, resolve_icon


# --- Auth ---

class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6, title="Пароль")
    salon_name: str = Field(
        ..., min_length=2, validation_alias=AliasChoices("salon_name", "salonName")
    )


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    id: int
    email: str
    salon_name: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TokenResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    expires_at: datetime
    user: UserResponse


class DashboardStats(BaseModel):
    today_appointments: int
    total_customers: int
    total_services: int


# --- Services ---

class ServiceBase(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    name: str = Field(..., min_length=2, title="Название услуги")
    duration: int = Field(..., gt=0, title="Длительность, мин")
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    icon: ServiceIcon = ServiceIcon.SCISSORS

    @field_validator("icon", mode="before")
    @classmethod
    def normalize_icon(cls, v):
        return resolve_icon(v)


class ServiceCreate(ServiceBase):
    pass


class ServiceUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    name: Optional[str] = Field(None, min_length=2)
    duration: Optional[int] = Field(None, gt=0)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    icon: Optional[ServiceIcon] = None

    @field_validator("icon", mode="before")
    @classmethod
    def normalize_icon(cls, v):
        return None if v is None else resolve_icon(v)


class ServiceResponse(ServiceBase):
    id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# --- Staff ---

class StaffBase(BaseModel):
    name: str = Field(..., min_length=2, title="Имя мастера")
    specialty: str = ""
    email: str = ""
    phone: str = ""


class StaffCreate(StaffBase):
    pass


class StaffUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2)
    specialty: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class StaffResponse(StaffBase):
    id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# --- Customers ---

class CustomerBase(BaseModel):
    name: str = Field(..., min_length=2, title="Имя клиента")
    phone: str = ""
    email: Optional[str] = None


class CustomerCreate(CustomerBase):
    pass


class CustomerUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2)
    phone: Optional[str] = None
    email: Optional[str] = None


class CustomerResponse(CustomerBase):
    id: int
    total_visits: int
    last_visit: Optional[date] = None
    loyalty_tier: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# --- Appointments ---

class AppointmentCreate(BaseModel):
    customer_id: int = Field(..., gt=0)
    staff_id: int = Field(..., gt=0)
    service_id: int = Field(..., gt=0)
    appointment_date: date
    appointment_time: time
    status: Literal["confirmed", "pending"] = "confirmed"
    notes: str = ""

    @field_validator("appointment_time")
    @classmethod
    def strip_seconds(cls, v: time) -> time:
        # Слоты - локальное время салона, без часового пояса
        if v.tzinfo is not None:
            raise ValueError("appointment_time must not carry a timezone")
        # Слоты идут с точностью до минуты
        return v.replace(second=0, microsecond=0)


class AppointmentResponse(BaseModel):
    id: int
    customer_id: int
    staff_id: int
    service_id: int
    appointment_date: date
    appointment_time: time
    status: str
    notes: str = ""
    created_at: datetime
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    staff_name: Optional[str] = None
    service_name: Optional[str] = None
    service_duration: Optional[int] = None
    service_price: Optional[Decimal] = None

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("appointment_time")
    def serialize_time(self, v: time) -> str:
        return v.strftime("%H:%M")

from datetime import datetime

from sqlalchemy import (
    Column, Integer, String, DateTime, Date, Time, Text, Numeric, ForeignKey, Index, text
)
from sqlalchemy.orm import relationship

from profislots.database import Base
from profislots.icons import DEFAULT_ICON

STATUS_CONFIRMED = "confirmed"
STATUS_PENDING = "pending"
STATUS_CANCELLED = "cancelled"
APPOINTMENT_STATUSES = (STATUS_CONFIRMED, STATUS_PENDING, STATUS_CANCELLED)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, nullable=False, unique=True, index=True)
    password = Column(String, nullable=False)  # хеш, не сам пароль
    salon_name = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.now)


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    duration = Column(Integer, nullable=False)  # минуты
    price = Column(Numeric(10, 2), nullable=False, default=0)
    icon = Column(String, nullable=False, default=DEFAULT_ICON.value)
    created_at = Column(DateTime, default=datetime.now)


class Staff(Base):
    __tablename__ = "staff"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    specialty = Column(String, nullable=False, default="")
    email = Column(String, nullable=False, default="")
    phone = Column(String, nullable=False, default="")
    created_at = Column(DateTime, default=datetime.now)


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    phone = Column(String, nullable=False, default="")
    email = Column(String, nullable=True)
    total_visits = Column(Integer, nullable=False, default=0)
    last_visit = Column(Date, nullable=True)
    created_at = Column(DateTime, default=datetime.now)

    @property
    def loyalty_tier(self) -> str:
        visits = self.total_visits or 0
        if visits >= 10:
            return "vip"
        if visits >= 5:
            return "regular"
        return "new"


class Appointment(Base):
    __tablename__ = "appointments"
    # Один мастер не может иметь две активные записи на одно и то же время
    __table_args__ = (
        Index(
            "uq_appointments_active_slot",
            "staff_id", "appointment_date", "appointment_time",
            unique=True,
            postgresql_where=text("status != 'cancelled'"),
            sqlite_where=text("status != 'cancelled'"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False)
    staff_id = Column(Integer, ForeignKey("staff.id", ondelete="CASCADE"), nullable=False)
    service_id = Column(Integer, ForeignKey("services.id", ondelete="CASCADE"), nullable=False)
    appointment_date = Column(Date, nullable=False, index=True)
    appointment_time = Column(Time, nullable=False)
    status = Column(String(20), nullable=False, default=STATUS_CONFIRMED)
    notes = Column(Text, nullable=False, default="")
    created_at = Column(DateTime, default=datetime.now)

    customer = relationship("Customer", lazy="joined")
    staff = relationship("Staff", lazy="joined")
    service = relationship("Service", lazy="joined")

    # Плоские поля для ответа API (как JOIN в списке записей)
    @property
    def customer_name(self):
        return self.customer.name if self.customer else None

    @property
    def customer_phone(self):
        return self.customer.phone if self.customer else None

    @property
    def staff_name(self):
        return self.staff.name if self.staff else None

    @property
    def service_name(self):
        return self.service.name if self.service else None

    @property
    def service_duration(self):
        return self.service.duration if self.service else None

    @property
    def service_price(self):
        return self.service.price if self.service else None

    @property
    def is_active(self) -> bool:
        return self.status != STATUS_CANCELLED

    def __repr__(self):
        return f"<Appointment {self.appointment_date} {self.appointment_time} (Status: {self.status})>"

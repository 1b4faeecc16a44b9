import uuid
from dataclasses import dataclass
from datetime import timedelta
from typing import Union

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .config import DEFAULT_CURRENCY, DEFAULT_TIMEZONE
from .constants import BusinessStatus, PaymentMethod, ReservationSource, ReservationStatus
from .database import Base


def generate_public_id():
    """Generate a unique public ID for secure public access"""
    return str(uuid.uuid4())


def default_operating_hours() -> dict:
    """Operating hours a new business starts with"""
    weekday = {"is_open": True, "open_time": "09:00", "close_time": "18:00", "breaks": []}
    return {
        "monday": dict(weekday),
        "tuesday": dict(weekday),
        "wednesday": dict(weekday),
        "thursday": dict(weekday),
        "friday": dict(weekday),
        "saturday": {"is_open": True, "open_time": "09:00", "close_time": "16:00", "breaks": []},
        "sunday": {"is_open": False, "open_time": None, "close_time": None, "breaks": []},
    }


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)
    role = Column(String(20), default="client", nullable=False)  # owner, client, admin
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    businesses = relationship("Business", back_populates="owner")


class Business(Base):
    __tablename__ = "businesses"

    id = Column(Integer, primary_key=True, index=True)
    public_id = Column(String(36), unique=True, index=True, default=generate_public_id)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    slug = Column(String(120), unique=True, index=True, nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(50), nullable=False, index=True)
    status = Column(String(20), default=BusinessStatus.DRAFT.value, nullable=False, index=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)
    # IANA timezone name; weekday and time-of-day of a reservation are resolved in this zone
    timezone = Column(String(64), default=DEFAULT_TIMEZONE, nullable=False)
    currency = Column(String(3), default=DEFAULT_CURRENCY, nullable=False)
    # {weekday: {is_open, open_time, close_time, breaks: [{start, end}]}}
    operating_hours = Column(JSON, default=default_operating_hours, nullable=False)
    # Stats
    total_reservations = Column(Integer, default=0, nullable=False)
    total_services = Column(Integer, default=0, nullable=False)
    last_activity_at = Column(DateTime, nullable=True)
    published_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    owner = relationship("User", back_populates="businesses")
    services = relationship("Service", back_populates="business", cascade="all, delete-orphan")
    reservations = relationship(
        "Reservation", back_populates="business", cascade="all, delete-orphan"
    )


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False, index=True)
    name = Column(String(80), nullable=False)
    description = Column(String(500), nullable=True)
    category = Column(String(50), nullable=False)
    duration = Column(Integer, nullable=False)  # minutes, multiple of 15
    price = Column(Float, default=0, nullable=False)
    currency = Column(String(3), default=DEFAULT_CURRENCY, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    is_public = Column(Boolean, default=True, nullable=False)
    total_bookings = Column(Integer, default=0, nullable=False)
    last_booking_at = Column(DateTime, nullable=True)
    deleted_at = Column(DateTime, nullable=True)  # set on soft delete
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    business = relationship("Business", back_populates="services")
    reservations = relationship("Reservation", back_populates="service")


@dataclass(frozen=True)
class RegisteredClient:
    user_id: int


@dataclass(frozen=True)
class GuestClient:
    name: str
    email: str
    phone: str


ClientIdentity = Union[RegisteredClient, GuestClient]


class Reservation(Base):
    __tablename__ = "reservations"
    __table_args__ = (
        # Exactly one of registered client / guest snapshot
        CheckConstraint(
            "(client_id IS NULL) <> (guest_email IS NULL)", name="ck_reservation_one_client"
        ),
        CheckConstraint("duration >= 15 AND duration <= 480", name="ck_reservation_duration"),
        CheckConstraint("payment_amount >= 0", name="ck_reservation_payment_amount"),
        Index("ix_reservations_business_start", "business_id", "date_time"),
        Index("ix_reservations_business_status", "business_id", "status"),
        Index("ix_reservations_client_start", "client_id", "date_time"),
    )

    id = Column(Integer, primary_key=True, index=True)
    public_id = Column(String(36), unique=True, index=True, default=generate_public_id)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)

    # Registered client reference, or the inline guest snapshot
    client_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    guest_name = Column(String(100), nullable=True)
    guest_email = Column(String(255), nullable=True, index=True)
    guest_phone = Column(String(20), nullable=True)

    # Stored as naive UTC
    date_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    duration = Column(Integer, nullable=False)  # minutes

    status = Column(String(20), default=ReservationStatus.PENDING.value, nullable=False, index=True)

    # Payment
    payment_method = Column(String(20), default=PaymentMethod.CASH.value, nullable=False)
    payment_amount = Column(Float, default=0, nullable=False)
    payment_currency = Column(String(3), default=DEFAULT_CURRENCY, nullable=False)
    is_paid = Column(Boolean, default=False, nullable=False)
    paid_at = Column(DateTime, nullable=True)
    transaction_id = Column(String(255), nullable=True)

    notes = Column(String(500), nullable=True)
    source = Column(String(20), default=ReservationSource.WEB.value, nullable=False)

    # Audit trail
    confirmed_at = Column(DateTime, nullable=True)
    confirmed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    cancelled_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    cancellation_reason = Column(String(200), nullable=True)
    completed_at = Column(DateTime, nullable=True)
    actual_duration = Column(Integer, nullable=True)

    reminder_sent = Column(Boolean, default=False, nullable=False)
    reminder_sent_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    business = relationship("Business", back_populates="reservations")
    service = relationship("Service", back_populates="reservations")
    client = relationship("User", foreign_keys=[client_id])
    notifications = relationship(
        "ReservationNotification",
        back_populates="reservation",
        order_by="ReservationNotification.id",
        cascade="all, delete-orphan",
    )

    @property
    def client_identity(self) -> ClientIdentity:
        if self.client_id is not None:
            return RegisteredClient(user_id=self.client_id)
        return GuestClient(name=self.guest_name, email=self.guest_email, phone=self.guest_phone)

    def set_client(self, identity: ClientIdentity) -> None:
        if isinstance(identity, RegisteredClient):
            self.client_id = identity.user_id
            self.guest_name = self.guest_email = self.guest_phone = None
        elif isinstance(identity, GuestClient):
            self.client_id = None
            self.guest_name = identity.name
            self.guest_email = identity.email
            self.guest_phone = identity.phone
        else:
            raise TypeError(f"Unsupported client identity: {identity!r}")

    def set_window(self, start, duration: int) -> None:
        self.date_time = start
        self.duration = duration
        self.end_time = start + timedelta(minutes=duration)

    @property
    def contact_email(self):
        if self.client_id is not None:
            return self.client.email if self.client else None
        return self.guest_email


class ReservationNotification(Base):
    """Append-only notification log entry of a reservation"""

    __tablename__ = "reservation_notifications"

    id = Column(Integer, primary_key=True, index=True)
    reservation_id = Column(Integer, ForeignKey("reservations.id"), nullable=False, index=True)
    type = Column(String(50), nullable=False)
    channel = Column(String(20), nullable=False)
    status = Column(String(20), default="sent", nullable=False)
    content = Column(String(500), nullable=True)
    sent_at = Column(DateTime, server_default=func.now())

    reservation = relationship("Reservation", back_populates="notifications")

"""Reservation domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from ...constants import PaymentMethod, ReservationSource, ReservationStatus
from ...models import GuestClient, RegisteredClient, Reservation
from ...shared.validators import validate_email, validate_phone


class RegisteredClientRef(BaseModel):
    """Reservation made for a registered user account"""

    kind: Literal["registered"] = "registered"
    user_id: int


class GuestClientData(BaseModel):
    """Customer captured inline, without an account"""

    kind: Literal["guest"] = "guest"
    name: str = Field(..., min_length=1, max_length=100)
    email: str
    phone: str

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Guest name is required")
        return v

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)

    def to_identity(self) -> GuestClient:
        return GuestClient(name=self.name, email=self.email, phone=self.phone)


ClientRef = Annotated[Union[RegisteredClientRef, GuestClientData], Field(discriminator="kind")]


class ReservationCreate(BaseModel):
    """Schema for booking a service"""

    business_id: int
    service_id: int
    date_time: datetime
    client: Optional[ClientRef] = None
    notes: Optional[str] = Field(None, max_length=500)
    source: ReservationSource = ReservationSource.WEB
    payment_method: PaymentMethod = PaymentMethod.CASH


class ReservationStatusUpdate(BaseModel):
    status: ReservationStatus
    reason: Optional[str] = Field(None, max_length=200)
    actual_duration: Optional[int] = Field(None, ge=1, le=1440)


class ReservationCancel(BaseModel):
    reason: Optional[str] = Field(None, max_length=200)


class ReservationReschedule(BaseModel):
    date_time: datetime


class PaymentRecord(BaseModel):
    transaction_id: Optional[str] = Field(None, max_length=255)
    method: Optional[PaymentMethod] = None


class ClientResponse(BaseModel):
    kind: Literal["registered", "guest"]
    user_id: Optional[int] = None
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class PaymentResponse(BaseModel):
    method: str
    amount: float
    currency: str
    is_paid: bool
    paid_at: Optional[datetime] = None
    transaction_id: Optional[str] = None


class NotificationResponse(BaseModel):
    type: str
    channel: str
    status: str
    content: Optional[str] = None
    sent_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ReservationResponse(BaseModel):
    """Schema for reservation response"""

    id: int
    public_id: Optional[str] = None
    business_id: int
    service_id: int
    client: ClientResponse
    date_time: datetime
    end_time: datetime
    duration: int
    status: str
    payment: PaymentResponse
    notes: Optional[str] = None
    source: str
    confirmed_at: Optional[datetime] = None
    confirmed_by: Optional[int] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[int] = None
    cancellation_reason: Optional[str] = None
    completed_at: Optional[datetime] = None
    actual_duration: Optional[int] = None
    notifications: list[NotificationResponse] = []
    created_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, reservation: Reservation) -> "ReservationResponse":
        identity = reservation.client_identity
        if isinstance(identity, RegisteredClient):
            client = ClientResponse(kind="registered", user_id=identity.user_id)
        else:
            client = ClientResponse(
                kind="guest", name=identity.name, email=identity.email, phone=identity.phone
            )

        return cls(
            id=reservation.id,
            public_id=reservation.public_id,
            business_id=reservation.business_id,
            service_id=reservation.service_id,
            client=client,
            date_time=reservation.date_time,
            end_time=reservation.end_time,
            duration=reservation.duration,
            status=reservation.status,
            payment=PaymentResponse(
                method=reservation.payment_method,
                amount=reservation.payment_amount,
                currency=reservation.payment_currency,
                is_paid=reservation.is_paid,
                paid_at=reservation.paid_at,
                transaction_id=reservation.transaction_id,
            ),
            notes=reservation.notes,
            source=reservation.source,
            confirmed_at=reservation.confirmed_at,
            confirmed_by=reservation.confirmed_by,
            cancelled_at=reservation.cancelled_at,
            cancelled_by=reservation.cancelled_by,
            cancellation_reason=reservation.cancellation_reason,
            completed_at=reservation.completed_at,
            actual_duration=reservation.actual_duration,
            notifications=[NotificationResponse.model_validate(n) for n in reservation.notifications],
            created_at=reservation.created_at,
        )


class StatusStats(BaseModel):
    count: int
    total_revenue: float
    avg_duration: int


class ReservationStatsResponse(BaseModel):
    business_id: int
    by_status: dict[str, StatusStats]

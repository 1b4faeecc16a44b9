"""Business domain schemas - Pydantic models for businesses and their services"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...config import (
    DEFAULT_TIMEZONE,
    MAX_SERVICE_DURATION,
    MAX_SERVICE_PRICE,
    MIN_SERVICE_DURATION,
    SERVICE_DURATION_STEP,
)
from ...constants import BusinessCategory, BusinessStatus, Currency
from ...shared.datetime_utils import validate_timezone
from ...shared.validators import validate_email, validate_phone
from ..scheduling.hours import OperatingHours


def _check_duration(v: Optional[int]) -> Optional[int]:
    if v is None:
        return v
    if v < MIN_SERVICE_DURATION or v > MAX_SERVICE_DURATION:
        raise ValueError(f"Duration must be between {MIN_SERVICE_DURATION} and {MAX_SERVICE_DURATION} minutes")
    if v % SERVICE_DURATION_STEP != 0:
        raise ValueError(f"Duration must be a multiple of {SERVICE_DURATION_STEP} minutes")
    return v


class BusinessCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    category: BusinessCategory
    description: Optional[str] = Field(None, max_length=1000)
    email: Optional[str] = None
    phone: Optional[str] = None
    timezone: str = DEFAULT_TIMEZONE
    currency: Currency = Currency.CRC
    operating_hours: Optional[OperatingHours] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Business name must be at least 2 characters")
        return v

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, v):
        return validate_timezone(v)


class BusinessUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    category: Optional[BusinessCategory] = None
    description: Optional[str] = Field(None, max_length=1000)
    email: Optional[str] = None
    phone: Optional[str] = None
    timezone: Optional[str] = None
    currency: Optional[Currency] = None
    status: Optional[BusinessStatus] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, v):
        return validate_timezone(v) if v is not None else v


class BusinessResponse(BaseModel):
    id: int
    public_id: Optional[str] = None
    owner_id: int
    name: str
    slug: str
    description: Optional[str] = None
    category: str
    status: str
    email: Optional[str] = None
    phone: Optional[str] = None
    timezone: str
    currency: str
    operating_hours: OperatingHours
    total_reservations: int
    total_services: int
    last_activity_at: Optional[datetime] = None
    published_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ServiceCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=80)
    description: Optional[str] = Field(None, max_length=500)
    category: str = Field(..., min_length=1, max_length=50)
    duration: int
    price: float = Field(0, ge=0, le=MAX_SERVICE_PRICE)
    currency: Optional[Currency] = None
    is_public: bool = True

    @field_validator("duration")
    @classmethod
    def check_duration(cls, v):
        return _check_duration(v)


class ServiceUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=80)
    description: Optional[str] = Field(None, max_length=500)
    category: Optional[str] = Field(None, min_length=1, max_length=50)
    duration: Optional[int] = None
    price: Optional[float] = Field(None, ge=0, le=MAX_SERVICE_PRICE)
    is_active: Optional[bool] = None
    is_public: Optional[bool] = None

    @field_validator("duration")
    @classmethod
    def check_duration(cls, v):
        return _check_duration(v)


class ServiceResponse(BaseModel):
    id: int
    business_id: int
    name: str
    description: Optional[str] = None
    category: str
    duration: int
    price: float
    currency: str
    is_active: bool
    is_public: bool
    total_bookings: int
    last_booking_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ServiceDeleteResponse(BaseModel):
    message: str
    soft_deleted: bool

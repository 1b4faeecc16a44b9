"""Enumerations shared by models, schemas and services"""

from enum import Enum


class UserRole(str, Enum):
    OWNER = "owner"
    CLIENT = "client"
    ADMIN = "admin"


class ReservationStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no_show"


# Statuses that occupy a slot on the business calendar
ACTIVE_RESERVATION_STATUSES = (ReservationStatus.PENDING.value, ReservationStatus.CONFIRMED.value)


class BusinessStatus(str, Enum):
    DRAFT = "draft"  # Not published yet
    ACTIVE = "active"  # Visible and bookable
    INACTIVE = "inactive"
    SUSPENDED = "suspended"  # Suspended by an admin
    DELETED = "deleted"


class BusinessCategory(str, Enum):
    BARBERIA = "barberia"
    SALON = "salon_belleza"
    SPA = "spa"


class PaymentMethod(str, Enum):
    CASH = "cash"
    SINPE = "sinpe"


class Currency(str, Enum):
    CRC = "CRC"
    USD = "USD"


class ReservationSource(str, Enum):
    WEB = "web"
    MOBILE = "mobile"
    PHONE = "phone"
    WALK_IN = "walk_in"
    ADMIN = "admin"


class NotificationType(str, Enum):
    RESERVATION_CREATED = "reservation_created"
    RESERVATION_CONFIRMED = "reservation_confirmed"
    RESERVATION_CANCELLED = "reservation_cancelled"
    RESERVATION_COMPLETED = "reservation_completed"
    RESERVATION_NO_SHOW = "reservation_no_show"
    RESERVATION_REMINDER = "reservation_reminder"
    PAYMENT_RECEIVED = "payment_received"


class NotificationChannel(str, Enum):
    EMAIL = "email"
    SMS = "sms"
    PUSH = "push"
    WHATSAPP = "whatsapp"


class NotificationStatus(str, Enum):
    SENT = "sent"
    DELIVERED = "delivered"
    FAILED = "failed"


# Calendar day index (0 = Sunday ... 6 = Saturday) to the weekday key used in operating hours
WEEKDAYS = ("sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday")

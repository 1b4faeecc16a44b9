import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# SQLite is accepted for local development; production runs on PostgreSQL
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./booking.db")

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

# Reservation rules
MIN_CANCELLATION_HOURS = float(os.getenv("MIN_CANCELLATION_HOURS", "2"))
MIN_SERVICE_DURATION = 15  # minutes
MAX_SERVICE_DURATION = 480  # 8 hours
SERVICE_DURATION_STEP = 15
MAX_SERVICE_PRICE = 1_000_000
DEFAULT_TIMEZONE = os.getenv("DEFAULT_TIMEZONE", "America/Costa_Rica")
DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "CRC")

# Reminder window (hours before the reservation starts)
REMINDER_WINDOW_MIN_HOURS = float(os.getenv("REMINDER_WINDOW_MIN_HOURS", "2"))
REMINDER_WINDOW_MAX_HOURS = float(os.getenv("REMINDER_WINDOW_MAX_HOURS", "24"))

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "Reservas <noreply@reservas.app>")


"""
Pytest configuration and shared fixtures.

Every test gets its own SQLite file database, a controllable clock and a
notification dispatcher that records emails instead of sending them.
"""

import os
from datetime import datetime, timedelta

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.pop("RESEND_API_KEY", None)
os.environ["DB_LOG_SLOW_QUERIES"] = "false"

import pytest  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from booking_api.auth import Actor, create_access_token  # noqa: E402
from booking_api.constants import BusinessStatus, UserRole  # noqa: E402
from booking_api.database import Base, build_engine  # noqa: E402
from booking_api.domain.reservations.service import ReservationService  # noqa: E402
from booking_api.models import Business, Service, User  # noqa: E402
from booking_api.services.notification_service import NotificationDispatcher  # noqa: E402

# 2030-01-07 is a Monday
MONDAY = datetime(2030, 1, 7)


def closed_day() -> dict:
    return {"is_open": False, "open_time": None, "close_time": None, "breaks": []}


def monday_hours() -> dict:
    """Open Monday 09:00-17:00 with a lunch break 12:00-13:00, closed otherwise"""
    hours = {
        day: closed_day()
        for day in ("tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
    }
    hours["monday"] = {
        "is_open": True,
        "open_time": "09:00",
        "close_time": "17:00",
        "breaks": [{"start": "12:00", "end": "13:00"}],
    }
    return hours


def at(hour: int, minute: int = 0, day: datetime = MONDAY) -> datetime:
    return day + timedelta(hours=hour, minutes=minute)


class FixedClock:
    """Callable clock whose time tests move explicitly"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class RecordingEmailSender:
    def __init__(self):
        self.sent = []
        self.fail = False

    def __call__(self, to: str, subject: str, text: str) -> dict:
        if self.fail:
            raise RuntimeError("SMTP relay unavailable")
        self.sent.append({"to": to, "subject": subject, "text": text})
        return {"id": f"email-{len(self.sent)}"}


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def clock():
    # Sunday noon before the test Monday
    return FixedClock(datetime(2030, 1, 6, 12, 0))


@pytest.fixture
def email_sender():
    return RecordingEmailSender()


@pytest.fixture
def dispatcher(email_sender, clock):
    return NotificationDispatcher(email_sender=email_sender, clock=clock)


@pytest.fixture
def reservation_service(db, dispatcher, clock):
    return ReservationService(db, dispatcher=dispatcher, clock=clock)


def make_user(db, email: str, role: UserRole = UserRole.CLIENT, full_name: str = "Test User") -> User:
    user = User(email=email, full_name=full_name, phone="8888-0000", role=role.value)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_business(db, owner: User, name: str = "Barberia Central", timezone: str = "UTC", **kwargs) -> Business:
    business = Business(
        owner_id=owner.id,
        name=name,
        slug=kwargs.pop("slug", name.lower().replace(" ", "-")),
        category=kwargs.pop("category", "barberia"),
        status=kwargs.pop("status", BusinessStatus.ACTIVE.value),
        timezone=timezone,
        currency="CRC",
        operating_hours=kwargs.pop("operating_hours", monday_hours()),
        **kwargs,
    )
    db.add(business)
    db.commit()
    db.refresh(business)
    return business


def make_service(db, business: Business, duration: int = 60, price: float = 5000, **kwargs) -> Service:
    service = Service(
        business_id=business.id,
        name=kwargs.pop("name", "Corte clasico"),
        category=kwargs.pop("category", "corte"),
        duration=duration,
        price=price,
        currency=business.currency,
        **kwargs,
    )
    db.add(service)
    db.commit()
    db.refresh(service)
    return service


@pytest.fixture
def owner(db):
    return make_user(db, "owner@example.com", UserRole.OWNER, "Owner")


@pytest.fixture
def client_user(db):
    return make_user(db, "client@example.com", UserRole.CLIENT, "Client")


@pytest.fixture
def admin_user(db):
    return make_user(db, "admin@example.com", UserRole.ADMIN, "Admin")


@pytest.fixture
def business(db, owner):
    return make_business(db, owner)


@pytest.fixture
def service(db, business):
    return make_service(db, business)


@pytest.fixture
def owner_actor(owner):
    return Actor(user_id=owner.id, role=UserRole.OWNER)


@pytest.fixture
def client_actor(client_user):
    return Actor(user_id=client_user.id, role=UserRole.CLIENT)


@pytest.fixture
def admin_actor(admin_user):
    return Actor(user_id=admin_user.id, role=UserRole.ADMIN)


def guest(email: str = "ana@example.com") -> dict:
    return {"kind": "guest", "name": "Ana Mora", "email": email, "phone": "8888-1234"}


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}

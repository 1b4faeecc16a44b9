"""Concurrent writers racing for the same slot of one business"""

import threading

from booking_api.auth import Actor
from booking_api.constants import ACTIVE_RESERVATION_STATUSES, UserRole
from booking_api.domain.reservations.schemas import ReservationCreate
from booking_api.domain.reservations.service import ReservationService
from booking_api.errors import BusinessRuleError, ConflictError
from booking_api.models import Business, Reservation, ReservationNotification, Service
from booking_api.services.notification_service import NotificationDispatcher

from conftest import RecordingEmailSender, at, guest

WRITERS = 6


def test_exactly_one_of_many_concurrent_bookings_wins(session_factory, business, service, clock):
    business_id, service_id = business.id, service.id
    barrier = threading.Barrier(WRITERS)
    outcomes = []
    lock = threading.Lock()

    def attempt(index: int):
        db = session_factory()
        try:
            booking = ReservationService(
                db,
                dispatcher=NotificationDispatcher(email_sender=RecordingEmailSender(), clock=clock),
                clock=clock,
            )
            data = ReservationCreate(
                business_id=business_id,
                service_id=service_id,
                # Staggered starts that all overlap 10:00-11:00
                date_time=at(10, 15 * (index % 3)),
                client=guest(f"guest{index}@example.com"),
            )
            barrier.wait()
            try:
                booking.create_reservation(data, None)
                result = "ok"
            except ConflictError as e:
                result = e.code
        finally:
            db.close()
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=attempt, args=(i,)) for i in range(WRITERS)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    assert sorted(outcomes) == ["SLOT_CONFLICT"] * (WRITERS - 1) + ["ok"]

    db = session_factory()
    try:
        active = (
            db.query(Reservation)
            .filter(
                Reservation.business_id == business_id,
                Reservation.status.in_(ACTIVE_RESERVATION_STATUSES),
            )
            .all()
        )
        assert len(active) == 1
        assert db.get(Business, business_id).total_reservations == 1
        assert db.get(Service, service_id).total_bookings == 1
    finally:
        db.close()


def test_concurrent_cancels_of_one_reservation_notify_once(
    session_factory, reservation_service, business, service, owner, clock
):
    reservation = reservation_service.create_reservation(
        ReservationCreate(business_id=business.id, service_id=service.id, date_time=at(10), client=guest()),
        None,
    )
    reservation_id, owner_id = reservation.id, owner.id
    barrier = threading.Barrier(WRITERS)
    outcomes = []
    lock = threading.Lock()

    def attempt():
        db = session_factory()
        try:
            booking = ReservationService(
                db,
                dispatcher=NotificationDispatcher(email_sender=RecordingEmailSender(), clock=clock),
                clock=clock,
            )
            barrier.wait()
            try:
                booking.cancel(reservation_id, Actor(owner_id, UserRole.OWNER), reason="double click")
                result = "ok"
            except BusinessRuleError as e:
                result = e.code
        finally:
            db.close()
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=attempt) for _ in range(WRITERS)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    assert sorted(outcomes) == ["INVALID_TRANSITION"] * (WRITERS - 1) + ["ok"]

    db = session_factory()
    try:
        cancelled = (
            db.query(ReservationNotification)
            .filter(
                ReservationNotification.reservation_id == reservation_id,
                ReservationNotification.type == "reservation_cancelled",
            )
            .count()
        )
        assert cancelled == 1
    finally:
        db.close()

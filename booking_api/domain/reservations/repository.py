"""Reservation repository - Database operations for reservations"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func, update
from sqlalchemy.orm import Session, joinedload

from ...constants import ACTIVE_RESERVATION_STATUSES
from ...models import Business, Reservation, Service, User


class ReservationRepository:
    """Repository for reservation database operations"""

    @staticmethod
    def get_reservation_by_id(db: Session, reservation_id: int) -> Optional[Reservation]:
        return (
            db.query(Reservation)
            .options(joinedload(Reservation.business), joinedload(Reservation.service))
            .filter(Reservation.id == reservation_id)
            .first()
        )

    @staticmethod
    def get_business_by_id(db: Session, business_id: int) -> Optional[Business]:
        return db.query(Business).filter(Business.id == business_id).first()

    @staticmethod
    def get_service_by_id(db: Session, service_id: int) -> Optional[Service]:
        return db.query(Service).filter(Service.id == service_id).first()

    @staticmethod
    def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def find_overlapping(
        db: Session,
        business_id: int,
        start: datetime,
        end: datetime,
        exclude_id: Optional[int] = None,
    ) -> list[Reservation]:
        """Active reservations of a business whose [date_time, end_time) intersects [start, end)"""
        query = db.query(Reservation).filter(
            Reservation.business_id == business_id,
            Reservation.status.in_(ACTIVE_RESERVATION_STATUSES),
            Reservation.date_time < end,
            Reservation.end_time > start,
        )
        if exclude_id is not None:
            query = query.filter(Reservation.id != exclude_id)
        return query.all()

    @staticmethod
    def lock_business_for_booking(db: Session, business_id: int, now: datetime) -> None:
        """
        Count a new reservation on the business row.

        The UPDATE holds a write lock on the business until the transaction
        ends, which serializes concurrent bookings of the same business.
        """
        db.execute(
            update(Business)
            .where(Business.id == business_id)
            .values(
                total_reservations=Business.total_reservations + 1,
                last_activity_at=now,
            )
        )

    @staticmethod
    def touch_business(db: Session, business_id: int, now: datetime) -> None:
        """Take the booking lock without counting a reservation (reschedules)"""
        db.execute(update(Business).where(Business.id == business_id).values(last_activity_at=now))

    @staticmethod
    def lock_reservation(db: Session, reservation: Reservation, now: datetime) -> Reservation:
        """
        Take a write lock on the reservation row and reload it.

        A concurrent status change either committed before the lock, and its
        result is what gets reloaded, or waits for this transaction to end.
        """
        db.execute(update(Reservation).where(Reservation.id == reservation.id).values(updated_at=now))
        db.refresh(reservation)
        return reservation

    @staticmethod
    def increment_service_bookings(db: Session, service_id: int, now: datetime) -> None:
        db.execute(
            update(Service)
            .where(Service.id == service_id)
            .values(total_bookings=Service.total_bookings + 1, last_booking_at=now)
        )

    @staticmethod
    def add_reservation(db: Session, reservation: Reservation) -> Reservation:
        db.add(reservation)
        db.flush()
        return reservation

    @staticmethod
    def list_by_business(
        db: Session,
        business_id: int,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        status: Optional[str] = None,
    ) -> list[Reservation]:
        query = db.query(Reservation).filter(Reservation.business_id == business_id)
        if date_from is not None:
            query = query.filter(Reservation.date_time >= date_from)
        if date_to is not None:
            query = query.filter(Reservation.date_time <= date_to)
        if status:
            query = query.filter(Reservation.status == status)
        return query.order_by(Reservation.date_time.asc(), Reservation.id.asc()).all()

    @staticmethod
    def list_by_client(db: Session, client_id: int, status: Optional[str] = None) -> list[Reservation]:
        query = db.query(Reservation).filter(Reservation.client_id == client_id)
        if status:
            query = query.filter(Reservation.status == status)
        return query.order_by(Reservation.date_time.desc(), Reservation.id.desc()).all()

    @staticmethod
    def list_by_guest_email(db: Session, email: str) -> list[Reservation]:
        return (
            db.query(Reservation)
            .filter(func.lower(Reservation.guest_email) == email.strip().lower())
            .order_by(Reservation.date_time.desc(), Reservation.id.desc())
            .all()
        )

    @staticmethod
    def stats_by_status(
        db: Session,
        business_id: int,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> list[tuple]:
        query = db.query(
            Reservation.status,
            func.count(Reservation.id),
            func.coalesce(func.sum(Reservation.payment_amount), 0),
            func.avg(Reservation.duration),
        ).filter(Reservation.business_id == business_id)
        if date_from is not None:
            query = query.filter(Reservation.date_time >= date_from)
        if date_to is not None:
            query = query.filter(Reservation.date_time <= date_to)
        return query.group_by(Reservation.status).all()

    @staticmethod
    def find_due_for_reminder(db: Session, window_start: datetime, window_end: datetime) -> list[Reservation]:
        return (
            db.query(Reservation)
            .filter(
                Reservation.status.in_(ACTIVE_RESERVATION_STATUSES),
                Reservation.reminder_sent.is_(False),
                Reservation.date_time >= window_start,
                Reservation.date_time <= window_end,
            )
            .order_by(Reservation.date_time.asc())
            .all()
        )


"""Business repository - Database operations for businesses and services"""

from datetime import datetime
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from ...constants import ACTIVE_RESERVATION_STATUSES
from ...models import Business, Reservation, Service


class BusinessRepository:
    """Repository for business and service database operations"""

    @staticmethod
    def get_business_by_id(db: Session, business_id: int) -> Optional[Business]:
        return db.query(Business).filter(Business.id == business_id).first()

    @staticmethod
    def slug_exists(db: Session, slug: str) -> bool:
        return db.query(Business.id).filter(Business.slug == slug).first() is not None

    @staticmethod
    def create_business(db: Session, **business_data) -> Business:
        business = Business(**business_data)
        db.add(business)
        db.commit()
        db.refresh(business)
        return business

    @staticmethod
    def update_business(db: Session, business: Business, **updates) -> Business:
        """Update a business with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(business, key):
                setattr(business, key, value)

        db.commit()
        db.refresh(business)
        return business

    @staticmethod
    def get_service_by_id(db: Session, service_id: int) -> Optional[Service]:
        return db.query(Service).filter(Service.id == service_id).first()

    @staticmethod
    def list_services(db: Session, business_id: int, include_inactive: bool = False) -> list[Service]:
        query = db.query(Service).filter(Service.business_id == business_id)
        if not include_inactive:
            query = query.filter(Service.is_active.is_(True))
        return query.order_by(Service.name.asc()).all()

    @staticmethod
    def add_service(db: Session, service: Service) -> Service:
        db.add(service)
        db.flush()
        return service

    @staticmethod
    def adjust_total_services(db: Session, business_id: int, delta: int) -> None:
        db.execute(
            update(Business)
            .where(Business.id == business_id)
            .values(total_services=Business.total_services + delta)
        )

    @staticmethod
    def count_active_reservations_for_service(db: Session, service_id: int) -> int:
        return (
            db.query(Reservation)
            .filter(
                Reservation.service_id == service_id,
                Reservation.status.in_(ACTIVE_RESERVATION_STATUSES),
            )
            .count()
        )

    @staticmethod
    def count_reservations_for_service(db: Session, service_id: int) -> int:
        return db.query(Reservation).filter(Reservation.service_id == service_id).count()

    @staticmethod
    def list_upcoming_active_reservations(db: Session, business_id: int, now: datetime) -> list[Reservation]:
        return (
            db.query(Reservation)
            .filter(
                Reservation.business_id == business_id,
                Reservation.status.in_(ACTIVE_RESERVATION_STATUSES),
                Reservation.date_time >= now,
            )
            .order_by(Reservation.date_time.asc())
            .all()
        )

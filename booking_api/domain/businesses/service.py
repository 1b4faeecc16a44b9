"""Business service - Business logic for business profiles and their services"""

import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ...auth import Actor
from ...constants import BusinessStatus
from ...errors import AuthorizationError, NotFoundError
from ...models import Business, Reservation, Service, User, default_operating_hours
from ...shared.datetime_utils import utc_now
from ...shared.validators import slugify
from ..scheduling.availability import evaluate_business_hours
from ..scheduling.hours import HoursCheck, OperatingHours
from .repository import BusinessRepository
from .schemas import BusinessCreate, BusinessUpdate, ServiceCreate, ServiceUpdate

logger = logging.getLogger(__name__)

# Statuses only an admin may set or leave
ADMIN_ONLY_STATUSES = (BusinessStatus.SUSPENDED.value,)


class BusinessService:
    """Service layer for business and service-catalog logic"""

    def __init__(self, db: Session, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.repo = BusinessRepository()
        self.clock = clock

    def _unique_slug(self, name: str, owner_id: int) -> str:
        base = slugify(name)
        slug = base
        suffix = 1
        while self.repo.slug_exists(self.db, slug):
            slug = f"{base}-{owner_id}" if suffix == 1 else f"{base}-{owner_id}-{suffix}"
            suffix += 1
        return slug

    def _require_manager(self, business: Business, actor: Actor) -> None:
        if actor.is_admin or (actor.is_owner and business.owner_id == actor.user_id):
            return
        raise AuthorizationError("You do not have access to this business")

    # ------------------------------------------------------------------
    # Businesses
    # ------------------------------------------------------------------

    def get_business(self, business_id: int) -> Business:
        business = self.repo.get_business_by_id(self.db, business_id)
        if not business or business.status == BusinessStatus.DELETED.value:
            raise NotFoundError("Business not found")
        return business

    def get_business_for_manager(self, business_id: int, actor: Actor) -> Business:
        business = self.get_business(business_id)
        self._require_manager(business, actor)
        return business

    def create_business(self, data: BusinessCreate, actor: Actor) -> Business:
        if not (actor.is_owner or actor.is_admin):
            raise AuthorizationError("Only business owners can create businesses")
        owner = self.db.query(User).filter(User.id == actor.user_id).first()
        if not owner:
            raise NotFoundError("User not found")

        operating_hours = (
            data.operating_hours.model_dump() if data.operating_hours else default_operating_hours()
        )
        business = self.repo.create_business(
            self.db,
            owner_id=owner.id,
            name=data.name,
            slug=self._unique_slug(data.name, owner.id),
            description=data.description,
            category=data.category.value,
            status=BusinessStatus.DRAFT.value,
            email=data.email or owner.email,
            phone=data.phone or owner.phone,
            timezone=data.timezone,
            currency=data.currency.value,
            operating_hours=operating_hours,
        )

        logger.info(f"🏪 Business {business.id} ({business.slug}) created by user {owner.id}")
        return business

    def update_business(self, business_id: int, data: BusinessUpdate, actor: Actor) -> Business:
        business = self.get_business_for_manager(business_id, actor)

        updates = data.model_dump(exclude_unset=True, exclude={"status"})
        for key in ("category", "currency"):
            if updates.get(key) is not None:
                updates[key] = updates[key].value
        if updates.get("name"):
            updates["name"] = updates["name"].strip()

        if data.status is not None:
            self._apply_status(business, data.status, actor)

        business = self.repo.update_business(self.db, business, **updates)
        logger.info(f"Business {business.id} updated by user {actor.user_id}: {sorted(updates)}")
        return business

    def _apply_status(self, business: Business, status: BusinessStatus, actor: Actor) -> None:
        new_status = BusinessStatus(status).value
        if not actor.is_admin and (new_status in ADMIN_ONLY_STATUSES or business.status in ADMIN_ONLY_STATUSES):
            raise AuthorizationError("Only an administrator can change a suspended status")
        if new_status == BusinessStatus.ACTIVE.value and business.published_at is None:
            business.published_at = self.clock()
        business.status = new_status

    def set_operating_hours(self, business_id: int, hours: OperatingHours, actor: Actor) -> Business:
        """
        Replace the weekly opening hours.

        Existing reservations are kept as booked; upcoming ones that no longer
        fit the new hours are logged so the business can reach the clients.
        """
        business = self.get_business_for_manager(business_id, actor)
        business.operating_hours = hours.model_dump()
        self.db.commit()
        self.db.refresh(business)
        logger.info(f"Operating hours of business {business.id} updated by user {actor.user_id}")

        stranded = self.find_reservations_outside_hours(business)
        if stranded:
            logger.warning(
                f"⚠️ Business {business.id}: {len(stranded)} upcoming reservation(s) fall outside the new hours: "
                f"{[r.id for r in stranded]}"
            )
        return business

    def find_reservations_outside_hours(self, business: Business) -> list[Reservation]:
        """Upcoming pending or confirmed reservations that the current hours no longer allow"""
        upcoming = self.repo.list_upcoming_active_reservations(self.db, business.id, self.clock())
        return [
            r
            for r in upcoming
            if evaluate_business_hours(business, r.date_time, r.duration)[0] != HoursCheck.OK
        ]

    # ------------------------------------------------------------------
    # Services
    # ------------------------------------------------------------------

    def _get_service(self, service_id: int) -> Service:
        service = self.repo.get_service_by_id(self.db, service_id)
        if not service:
            raise NotFoundError("Service not found")
        return service

    def list_services(self, business_id: int, actor: Optional[Actor] = None) -> list[Service]:
        """Active services of a business; managers also see inactive ones"""
        business = self.get_business(business_id)
        is_manager = actor is not None and (
            actor.is_admin or (actor.is_owner and business.owner_id == actor.user_id)
        )
        services = self.repo.list_services(self.db, business.id, include_inactive=is_manager)
        if is_manager:
            return services
        return [s for s in services if s.is_public]

    def create_service(self, business_id: int, data: ServiceCreate, actor: Actor) -> Service:
        business = self.get_business_for_manager(business_id, actor)

        service = Service(
            business_id=business.id,
            name=data.name.strip(),
            description=data.description,
            category=data.category,
            duration=data.duration,
            price=data.price,
            currency=data.currency.value if data.currency else business.currency,
            is_active=True,
            is_public=data.is_public,
        )
        try:
            self.repo.add_service(self.db, service)
            self.repo.adjust_total_services(self.db, business.id, 1)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(service)
        logger.info(f"Service {service.id} '{service.name}' created for business {business.id}")
        return service

    def update_service(self, service_id: int, data: ServiceUpdate, actor: Actor) -> Service:
        service = self._get_service(service_id)
        self._require_manager(service.business, actor)

        updates = data.model_dump(exclude_unset=True)
        if "name" in updates and updates["name"]:
            updates["name"] = updates["name"].strip()

        was_active = service.is_active
        for key, value in updates.items():
            if value is not None:
                setattr(service, key, value)

        if was_active != service.is_active:
            self.repo.adjust_total_services(self.db, service.business_id, 1 if service.is_active else -1)
            if service.is_active:
                service.deleted_at = None

        self.db.commit()
        self.db.refresh(service)
        return service

    def delete_service(self, service_id: int, actor: Actor) -> dict:
        """
        Remove a service from the catalog.

        A service still referenced by reservations is deactivated instead of
        deleted so the reservations keep pointing at it.
        """
        service = self._get_service(service_id)
        self._require_manager(service.business, actor)

        active_reservations = self.repo.count_active_reservations_for_service(self.db, service.id)
        referenced = active_reservations > 0 or self.repo.count_reservations_for_service(self.db, service.id) > 0

        try:
            if service.is_active:
                self.repo.adjust_total_services(self.db, service.business_id, -1)
            if referenced:
                service.is_active = False
                service.deleted_at = self.clock()
            else:
                self.db.delete(service)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        if referenced:
            logger.warning(
                f"Service {service_id} deactivated instead of deleted "
                f"({active_reservations} active reservation(s))"
            )
            return {"message": "Service deactivated because reservations reference it", "soft_deleted": True}

        logger.info(f"Service {service_id} deleted permanently by user {actor.user_id}")
        return {"message": "Service deleted", "soft_deleted": False}


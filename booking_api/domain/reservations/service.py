"""Reservation service - Business logic for reservation operations"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...auth import Actor
from ...config import REMINDER_WINDOW_MAX_HOURS, REMINDER_WINDOW_MIN_HOURS
from ...constants import (
    ACTIVE_RESERVATION_STATUSES,
    BusinessStatus,
    NotificationType,
    ReservationStatus,
)
from ...errors import (
    INVALID_TRANSITION,
    SLOT_CONFLICT,
    AppError,
    AuthenticationError,
    AuthorizationError,
    BusinessRuleError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from ...models import Business, ClientIdentity, RegisteredClient, Reservation
from ...services.notification_service import NotificationDispatcher
from ...shared.datetime_utils import to_local, to_utc_naive, utc_now
from ..scheduling.availability import AvailabilityValidator
from ..scheduling.transitions import apply_transition
from .repository import ReservationRepository
from .schemas import (
    GuestClientData,
    RegisteredClientRef,
    ReservationCreate,
    ReservationStatsResponse,
    StatusStats,
)

logger = logging.getLogger(__name__)

# Name of the optional PostgreSQL exclusion constraint on overlapping reservations
OVERLAP_CONSTRAINT = "reservations_no_overlap"

STATUS_NOTIFICATIONS = {
    ReservationStatus.CONFIRMED: NotificationType.RESERVATION_CONFIRMED,
    ReservationStatus.CANCELLED: NotificationType.RESERVATION_CANCELLED,
    ReservationStatus.COMPLETED: NotificationType.RESERVATION_COMPLETED,
    ReservationStatus.NO_SHOW: NotificationType.RESERVATION_NO_SHOW,
}


class ReservationService:
    """Service layer for reservation business logic"""

    def __init__(
        self,
        db: Session,
        dispatcher: Optional[NotificationDispatcher] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.repo = ReservationRepository()
        self.availability = AvailabilityValidator(db)
        self.dispatcher = dispatcher or NotificationDispatcher(clock=clock)
        self.clock = clock

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_reservation(self, reservation_id: int) -> Reservation:
        reservation = self.repo.get_reservation_by_id(self.db, reservation_id)
        if not reservation:
            raise NotFoundError("Reservation not found")
        return reservation

    def _get_bookable_business(self, business_id: int) -> Business:
        business = self.repo.get_business_by_id(self.db, business_id)
        if not business or business.status != BusinessStatus.ACTIVE.value:
            raise NotFoundError("Business not found")
        return business

    def _require_business_access(self, business: Business, actor: Actor) -> None:
        if actor.is_admin:
            return
        if actor.is_owner and business.owner_id == actor.user_id:
            return
        raise AuthorizationError("You do not have access to this business")

    def _is_manager(self, reservation: Reservation, actor: Optional[Actor]) -> bool:
        """Admins and the owner of the reservation's business"""
        if actor is None:
            return False
        if actor.is_admin:
            return True
        return actor.is_owner and reservation.business.owner_id == actor.user_id

    def _is_own_reservation(self, reservation: Reservation, actor: Optional[Actor]) -> bool:
        return actor is not None and reservation.client_id is not None and reservation.client_id == actor.user_id

    def _resolve_client(self, client, actor: Optional[Actor]) -> ClientIdentity:
        """Turn the requested client reference into a client identity for ``actor``"""
        if actor is None:
            if isinstance(client, GuestClientData):
                return client.to_identity()
            if isinstance(client, RegisteredClientRef):
                raise AuthenticationError("Sign in to book under a registered account")
            raise ValidationError("Guest name, email and phone are required")

        if actor.is_client:
            if client is None:
                return RegisteredClient(user_id=actor.user_id)
            if isinstance(client, RegisteredClientRef):
                if client.user_id != actor.user_id:
                    raise AuthorizationError("Clients can only book for themselves")
                return RegisteredClient(user_id=actor.user_id)
            raise ValidationError("Signed-in clients book under their own account")

        # Owners and admins book on behalf of someone else
        if client is None:
            raise ValidationError("A registered client or guest details are required")
        if isinstance(client, GuestClientData):
            return client.to_identity()
        if not self.repo.get_user_by_id(self.db, client.user_id):
            raise NotFoundError("Client not found")
        return RegisteredClient(user_id=client.user_id)

    def _ensure_future(self, start: datetime, now: datetime) -> None:
        if start <= now:
            raise ValidationError("Reservations must start in the future")

    def _format_start(self, reservation: Reservation) -> str:
        local = to_local(reservation.date_time, reservation.business.timezone)
        return local.strftime("%Y-%m-%d %H:%M")

    def _notify(self, reservation: Reservation, notification_type: NotificationType, content: str) -> None:
        self.dispatcher.dispatch(self.db, reservation, notification_type, content)

    def _handle_integrity_error(self, e: IntegrityError) -> None:
        self.db.rollback()
        if OVERLAP_CONSTRAINT in str(e.orig):
            logger.warning(f"Overlap constraint rejected reservation: {e.orig}")
            raise ConflictError("The requested time slot is already booked", code=SLOT_CONFLICT) from e
        logger.error(f"Integrity error while saving reservation: {e}")
        raise ValidationError("Reservation violates a data constraint") from e

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_reservation(self, data: ReservationCreate, actor: Optional[Actor]) -> Reservation:
        """Validate and persist a new reservation, updating the booking counters in the same transaction"""
        now = self.clock()
        start = to_utc_naive(data.date_time)
        self._ensure_future(start, now)

        business = self._get_bookable_business(data.business_id)
        service = self.repo.get_service_by_id(self.db, data.service_id)
        if not service or service.business_id != business.id or not service.is_active:
            raise NotFoundError("Service not found")

        if actor is not None and actor.is_owner and business.owner_id != actor.user_id:
            raise AuthorizationError("Owners can only book on their own businesses")

        identity = self._resolve_client(data.client, actor)
        self.availability.check_hours(business, start, service.duration)

        try:
            # Serializes bookings of this business until commit
            self.repo.lock_business_for_booking(self.db, business.id, now)
            self.availability.ensure_no_conflict(business, start, service.duration)

            reservation = Reservation(
                business_id=business.id,
                service_id=service.id,
                status=ReservationStatus.PENDING.value,
                payment_method=data.payment_method.value,
                payment_amount=service.price,
                payment_currency=service.currency,
                notes=data.notes,
                source=data.source.value,
            )
            reservation.set_client(identity)
            reservation.set_window(start, service.duration)
            self.repo.add_reservation(self.db, reservation)
            self.repo.increment_service_bookings(self.db, service.id, now)
            self.db.commit()
        except IntegrityError as e:
            self._handle_integrity_error(e)
        except AppError:
            self.db.rollback()
            raise
        except Exception:
            self.db.rollback()
            logger.exception(f"Failed to create reservation for business {business.id}")
            raise

        self.db.refresh(reservation)
        logger.info(
            f"✅ Reservation {reservation.id} created for business {business.id} "
            f"at {start.isoformat()} ({service.duration} min)"
        )
        self._notify(
            reservation,
            NotificationType.RESERVATION_CREATED,
            f"Your reservation for {service.name} at {business.name} on "
            f"{self._format_start(reservation)} has been received.",
        )
        return reservation

    # ------------------------------------------------------------------
    # Status changes
    # ------------------------------------------------------------------

    def change_status(
        self,
        reservation_id: int,
        requested: ReservationStatus,
        actor: Actor,
        reason: Optional[str] = None,
        actual_duration: Optional[int] = None,
    ) -> Reservation:
        reservation = self._get_reservation(reservation_id)
        requested = ReservationStatus(requested)

        if not self._is_manager(reservation, actor):
            own_cancel = requested == ReservationStatus.CANCELLED and self._is_own_reservation(reservation, actor)
            if not own_cancel:
                raise AuthorizationError("You cannot change the status of this reservation")

        now = self.clock()
        try:
            self.repo.lock_reservation(self.db, reservation, now)
            previous = reservation.status
            apply_transition(
                reservation,
                requested,
                now=now,
                actor_id=actor.user_id,
                reason=reason,
                actual_duration=actual_duration,
                enforce_cancellation_window=not actor.is_admin,
            )
            self.db.commit()
        except AppError:
            self.db.rollback()
            raise
        except Exception:
            self.db.rollback()
            logger.exception(f"Failed to update status of reservation {reservation_id}")
            raise

        self.db.refresh(reservation)
        logger.info(f"Reservation {reservation.id}: {previous} -> {reservation.status} by user {actor.user_id}")

        content = f"Your reservation at {reservation.business.name} on {self._format_start(reservation)} is now {reservation.status}."
        if requested == ReservationStatus.CANCELLED and reason:
            content += f" Reason: {reason}"
        self._notify(reservation, STATUS_NOTIFICATIONS[requested], content)
        return reservation

    def cancel(self, reservation_id: int, actor: Actor, reason: Optional[str] = None) -> Reservation:
        return self.change_status(reservation_id, ReservationStatus.CANCELLED, actor, reason=reason)

    def reschedule(self, reservation_id: int, new_start: datetime, actor: Actor) -> Reservation:
        """Move a pending or confirmed reservation, re-validating hours and overlap against the others"""
        reservation = self._get_reservation(reservation_id)
        if not (self._is_manager(reservation, actor) or self._is_own_reservation(reservation, actor)):
            raise AuthorizationError("You cannot reschedule this reservation")
        if reservation.status not in ACTIVE_RESERVATION_STATUSES:
            raise BusinessRuleError(
                f"A {reservation.status} reservation cannot be rescheduled",
                code=INVALID_TRANSITION,
            )

        now = self.clock()
        start = to_utc_naive(new_start)
        self._ensure_future(start, now)

        business = reservation.business
        self.availability.check_hours(business, start, reservation.duration)

        previous_start = reservation.date_time
        try:
            self.repo.touch_business(self.db, business.id, now)
            self.availability.ensure_no_conflict(business, start, reservation.duration, exclude_id=reservation.id)
            reservation.set_window(start, reservation.duration)
            reservation.reminder_sent = False
            reservation.reminder_sent_at = None
            self.db.commit()
        except IntegrityError as e:
            self._handle_integrity_error(e)
        except AppError:
            self.db.rollback()
            raise
        except Exception:
            self.db.rollback()
            logger.exception(f"Failed to reschedule reservation {reservation_id}")
            raise

        self.db.refresh(reservation)
        logger.info(
            f"Reservation {reservation.id} rescheduled from {previous_start.isoformat()} to {start.isoformat()}"
        )
        return reservation

    # ------------------------------------------------------------------
    # Payment
    # ------------------------------------------------------------------

    def record_payment(
        self,
        reservation_id: int,
        actor: Actor,
        transaction_id: Optional[str] = None,
        method=None,
    ) -> Reservation:
        reservation = self._get_reservation(reservation_id)
        if not self._is_manager(reservation, actor):
            raise AuthorizationError("Only the business can record payments")

        now = self.clock()
        try:
            self.repo.lock_reservation(self.db, reservation, now)
            if reservation.is_paid:
                raise ConflictError("Payment already recorded for this reservation")
            if reservation.status in (ReservationStatus.CANCELLED.value, ReservationStatus.NO_SHOW.value):
                raise BusinessRuleError(f"Cannot record payment for a {reservation.status} reservation")

            reservation.is_paid = True
            reservation.paid_at = now
            if transaction_id:
                reservation.transaction_id = transaction_id
            if method is not None:
                reservation.payment_method = method.value if hasattr(method, "value") else method
            self.db.commit()
        except AppError:
            self.db.rollback()
            raise
        except Exception:
            self.db.rollback()
            logger.exception(f"Failed to record payment for reservation {reservation_id}")
            raise

        self.db.refresh(reservation)

        logger.info(f"💰 Payment recorded for reservation {reservation.id}")
        self._notify(
            reservation,
            NotificationType.PAYMENT_RECEIVED,
            f"We received your payment of {reservation.payment_amount:,.2f} {reservation.payment_currency}.",
        )
        return reservation

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_reservation(self, reservation_id: int, actor: Actor) -> Reservation:
        reservation = self._get_reservation(reservation_id)
        if not (self._is_manager(reservation, actor) or self._is_own_reservation(reservation, actor)):
            raise AuthorizationError("You do not have access to this reservation")
        return reservation

    def list_by_business(
        self,
        business_id: int,
        actor: Actor,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        status: Optional[str] = None,
    ) -> list[Reservation]:
        business = self.repo.get_business_by_id(self.db, business_id)
        if not business:
            raise NotFoundError("Business not found")
        self._require_business_access(business, actor)
        return self.repo.list_by_business(
            self.db, business.id, to_utc_naive(date_from), to_utc_naive(date_to), status
        )

    def list_by_client(self, actor: Actor, status: Optional[str] = None) -> list[Reservation]:
        return self.repo.list_by_client(self.db, actor.user_id, status)

    def list_by_guest_email(self, email: str, actor: Actor) -> list[Reservation]:
        """
        Guest reservations booked under ``email``.

        Admins see all of them, owners only those of their own businesses and
        clients only when the address is the one on their account.
        """
        reservations = self.repo.list_by_guest_email(self.db, email)
        if actor.is_admin:
            return reservations
        if actor.is_owner:
            return [r for r in reservations if r.business.owner_id == actor.user_id]

        user = self.repo.get_user_by_id(self.db, actor.user_id)
        if not user or user.email.lower() != email.strip().lower():
            raise AuthorizationError("You can only look up reservations made with your own email")
        return reservations

    def get_stats(
        self,
        business_id: int,
        actor: Actor,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> ReservationStatsResponse:
        business = self.repo.get_business_by_id(self.db, business_id)
        if not business:
            raise NotFoundError("Business not found")
        self._require_business_access(business, actor)

        rows = self.repo.stats_by_status(self.db, business.id, to_utc_naive(date_from), to_utc_naive(date_to))
        by_status = {
            status: StatusStats(
                count=count,
                total_revenue=float(revenue or 0),
                avg_duration=round(avg_duration or 0),
            )
            for status, count, revenue, avg_duration in rows
        }
        return ReservationStatsResponse(business_id=business.id, by_status=by_status)

    # ------------------------------------------------------------------
    # Reminders
    # ------------------------------------------------------------------

    def send_due_reminders(self) -> int:
        """Remind clients of reservations starting in the reminder window; each one is reminded once"""
        now = self.clock()
        window_start = now + timedelta(hours=REMINDER_WINDOW_MIN_HOURS)
        window_end = now + timedelta(hours=REMINDER_WINDOW_MAX_HOURS)
        due = self.repo.find_due_for_reminder(self.db, window_start, window_end)

        sent = 0
        for reservation in due:
            reservation.reminder_sent = True
            reservation.reminder_sent_at = now
            self.db.commit()
            self._notify(
                reservation,
                NotificationType.RESERVATION_REMINDER,
                f"Reminder: {reservation.service.name} at {reservation.business.name} "
                f"on {self._format_start(reservation)}.",
            )
            sent += 1

        if sent:
            logger.info(f"📧 Sent {sent} reservation reminder(s)")
        return sent

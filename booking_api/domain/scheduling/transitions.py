"""
Reservation status state machine.

pending   -> confirmed | cancelled
confirmed -> completed | cancelled | no_show
cancelled, completed, no_show are terminal.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from ...config import MIN_CANCELLATION_HOURS
from ...constants import ReservationStatus
from ...errors import CANCELLATION_WINDOW_EXPIRED, INVALID_TRANSITION, BusinessRuleError

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[ReservationStatus, frozenset] = {
    ReservationStatus.PENDING: frozenset({ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED}),
    ReservationStatus.CONFIRMED: frozenset(
        {ReservationStatus.COMPLETED, ReservationStatus.CANCELLED, ReservationStatus.NO_SHOW}
    ),
    ReservationStatus.CANCELLED: frozenset(),
    ReservationStatus.COMPLETED: frozenset(),
    ReservationStatus.NO_SHOW: frozenset(),
}

TERMINAL_STATUSES = frozenset(status for status, targets in ALLOWED_TRANSITIONS.items() if not targets)


def is_terminal(status) -> bool:
    return ReservationStatus(status) in TERMINAL_STATUSES


def transition(current, requested) -> ReservationStatus:
    """Return the requested status if the move is allowed, raise INVALID_TRANSITION otherwise"""
    current, requested = ReservationStatus(current), ReservationStatus(requested)
    if requested not in ALLOWED_TRANSITIONS[current]:
        raise BusinessRuleError(
            f"Cannot change reservation status from {current.value} to {requested.value}",
            code=INVALID_TRANSITION,
        )
    return requested


def check_cancellation_window(
    starts_at: datetime,
    now: datetime,
    min_hours: float = MIN_CANCELLATION_HOURS,
) -> None:
    """Cancellation is allowed while at least ``min_hours`` remain before the start (boundary inclusive)"""
    if starts_at - now < timedelta(hours=min_hours):
        raise BusinessRuleError(
            f"Reservations can only be cancelled at least {min_hours:g} hours in advance",
            code=CANCELLATION_WINDOW_EXPIRED,
        )


def apply_transition(
    reservation,
    requested,
    now: datetime,
    actor_id: Optional[int] = None,
    reason: Optional[str] = None,
    actual_duration: Optional[int] = None,
    enforce_cancellation_window: bool = True,
):
    """
    Move ``reservation`` to ``requested`` and stamp the audit fields of the
    new state. Nothing is modified when the transition is rejected.
    """
    previous = ReservationStatus(reservation.status)
    target = transition(previous, requested)

    if target == ReservationStatus.CANCELLED and enforce_cancellation_window:
        check_cancellation_window(reservation.date_time, now)

    reservation.status = target.value
    if target == ReservationStatus.CONFIRMED:
        reservation.confirmed_at = now
        reservation.confirmed_by = actor_id
    elif target == ReservationStatus.CANCELLED:
        reservation.cancelled_at = now
        reservation.cancelled_by = actor_id
        if reason:
            reservation.cancellation_reason = reason
    elif target == ReservationStatus.COMPLETED:
        reservation.completed_at = now
        if actual_duration is not None:
            reservation.actual_duration = actual_duration

    logger.debug(f"Reservation {reservation.id}: {previous.value} -> {target.value}")
    return reservation

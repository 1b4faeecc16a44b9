"""Reservation router - FastAPI endpoints for reservation operations"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ...auth import Actor, get_current_actor, get_optional_actor
from ...constants import ReservationStatus
from ...database import get_db
from .schemas import (
    PaymentRecord,
    ReservationCancel,
    ReservationCreate,
    ReservationReschedule,
    ReservationResponse,
    ReservationStatsResponse,
    ReservationStatusUpdate,
)
from .service import ReservationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reservations", tags=["Reservations"])

# Business-scoped listings live under /businesses/{business_id}
business_router = APIRouter(prefix="/businesses", tags=["Reservations"])


def get_reservation_service(db: Session = Depends(get_db)) -> ReservationService:
    """Dependency injection for ReservationService"""
    return ReservationService(db)


# ============================================================================
# BOOKING
# ============================================================================


@router.post("", response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
async def create_reservation(
    data: ReservationCreate,
    actor: Optional[Actor] = Depends(get_optional_actor),
    service: ReservationService = Depends(get_reservation_service),
):
    """Book a service; anonymous callers book as guests"""
    reservation = service.create_reservation(data, actor)
    return ReservationResponse.from_model(reservation)


# ============================================================================
# LOOKUPS
# ============================================================================


@router.get("/mine", response_model=list[ReservationResponse])
async def list_my_reservations(
    status_filter: Optional[ReservationStatus] = Query(None, alias="status"),
    actor: Actor = Depends(get_current_actor),
    service: ReservationService = Depends(get_reservation_service),
):
    """Reservations of the signed-in client, most recent first"""
    reservations = service.list_by_client(actor, status_filter.value if status_filter else None)
    return [ReservationResponse.from_model(r) for r in reservations]


@router.get("/guest", response_model=list[ReservationResponse])
async def list_guest_reservations(
    email: str = Query(..., min_length=3, max_length=255),
    actor: Actor = Depends(get_current_actor),
    service: ReservationService = Depends(get_reservation_service),
):
    """Guest reservations booked under an email address, most recent first"""
    reservations = service.list_by_guest_email(email, actor)
    return [ReservationResponse.from_model(r) for r in reservations]


@router.get("/{reservation_id}", response_model=ReservationResponse)
async def get_reservation(
    reservation_id: int,
    actor: Actor = Depends(get_current_actor),
    service: ReservationService = Depends(get_reservation_service),
):
    reservation = service.get_reservation(reservation_id, actor)
    return ReservationResponse.from_model(reservation)


# ============================================================================
# STATUS, SCHEDULE & PAYMENT
# ============================================================================


@router.patch("/{reservation_id}/status", response_model=ReservationResponse)
async def change_reservation_status(
    reservation_id: int,
    data: ReservationStatusUpdate,
    actor: Actor = Depends(get_current_actor),
    service: ReservationService = Depends(get_reservation_service),
):
    """Confirm, complete, cancel or mark a reservation as no-show"""
    reservation = service.change_status(
        reservation_id,
        data.status,
        actor,
        reason=data.reason,
        actual_duration=data.actual_duration,
    )
    return ReservationResponse.from_model(reservation)


@router.post("/{reservation_id}/cancel", response_model=ReservationResponse)
async def cancel_reservation(
    reservation_id: int,
    data: Optional[ReservationCancel] = None,
    actor: Actor = Depends(get_current_actor),
    service: ReservationService = Depends(get_reservation_service),
):
    reservation = service.cancel(reservation_id, actor, reason=data.reason if data else None)
    return ReservationResponse.from_model(reservation)


@router.patch("/{reservation_id}/reschedule", response_model=ReservationResponse)
async def reschedule_reservation(
    reservation_id: int,
    data: ReservationReschedule,
    actor: Actor = Depends(get_current_actor),
    service: ReservationService = Depends(get_reservation_service),
):
    """Move a pending or confirmed reservation to a new start time"""
    reservation = service.reschedule(reservation_id, data.date_time, actor)
    return ReservationResponse.from_model(reservation)


@router.post("/{reservation_id}/payment", response_model=ReservationResponse)
async def record_payment(
    reservation_id: int,
    data: PaymentRecord,
    actor: Actor = Depends(get_current_actor),
    service: ReservationService = Depends(get_reservation_service),
):
    reservation = service.record_payment(
        reservation_id, actor, transaction_id=data.transaction_id, method=data.method
    )
    return ReservationResponse.from_model(reservation)


# ============================================================================
# BUSINESS CALENDAR
# ============================================================================


@business_router.get("/{business_id}/reservations", response_model=list[ReservationResponse])
async def list_business_reservations(
    business_id: int,
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    status_filter: Optional[ReservationStatus] = Query(None, alias="status"),
    actor: Actor = Depends(get_current_actor),
    service: ReservationService = Depends(get_reservation_service),
):
    """Reservations of a business in start order"""
    reservations = service.list_by_business(
        business_id,
        actor,
        date_from=date_from,
        date_to=date_to,
        status=status_filter.value if status_filter else None,
    )
    return [ReservationResponse.from_model(r) for r in reservations]


@business_router.get("/{business_id}/reservations/stats", response_model=ReservationStatsResponse)
async def get_business_reservation_stats(
    business_id: int,
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    actor: Actor = Depends(get_current_actor),
    service: ReservationService = Depends(get_reservation_service),
):
    """Per-status count, revenue and average duration"""
    return service.get_stats(business_id, actor, date_from=date_from, date_to=date_to)

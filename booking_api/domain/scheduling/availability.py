"""
Availability validation for reservations.

A candidate window [start, start + duration) is bookable when it falls
inside the business's opening hours (evaluated in the business's own
timezone) and does not overlap another pending or confirmed reservation of
the same business.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from ...errors import OUT_OF_HOURS, SLOT_CONFLICT, BusinessRuleError, ConflictError
from ...models import Business
from ..reservations.repository import ReservationRepository
from .hours import MINUTES_PER_DAY, HoursCheck, OperatingHours, check_interval, python_weekday_name

logger = logging.getLogger(__name__)

HOURS_MESSAGES = {
    HoursCheck.CLOSED: "The business is closed on {weekday}",
    HoursCheck.OUTSIDE_HOURS: "The reservation falls outside business hours on {weekday}",
    HoursCheck.OVERLAPS_BREAK: "The reservation overlaps a break on {weekday}",
}


def local_window(start: datetime, duration: int, tz_name: str) -> tuple[str, int, int]:
    """
    Resolve a naive UTC start instant and a duration to (weekday, start, end)
    on the business's local calendar, times in minutes since local midnight.

    The local end comes from the absolute end instant, so a window spanning a
    DST change ends at the wall-clock time the client will actually see.

    Opening hours are whole minutes, so the start is floored and the end is
    rounded up: a window ending at 17:00:30 is checked as ending at 17:01.
    """
    zone = ZoneInfo(tz_name)
    start_utc = start.replace(tzinfo=timezone.utc)
    local_start = start_utc.astimezone(zone)
    local_end = (start_utc + timedelta(minutes=duration)).astimezone(zone)

    start_minute = local_start.hour * 60 + local_start.minute
    day_offset = (local_end.date() - local_start.date()).days
    end_minute = day_offset * MINUTES_PER_DAY + local_end.hour * 60 + local_end.minute
    if local_end.second or local_end.microsecond:
        end_minute += 1
    return python_weekday_name(local_start.weekday()), start_minute, end_minute


def evaluate_business_hours(business: Business, start: datetime, duration: int) -> tuple[HoursCheck, str, int, int]:
    """Check a window against the business's current hours without raising"""
    hours = OperatingHours.model_validate(business.operating_hours or {})
    weekday, start_minute, end_minute = local_window(start, duration, business.timezone)
    return check_interval(hours, weekday, start_minute, end_minute), weekday, start_minute, end_minute


def check_business_hours(business: Business, start: datetime, duration: int) -> None:
    """Raise OUT_OF_HOURS unless the window lies within opening hours and outside breaks"""
    result, weekday, start_minute, end_minute = evaluate_business_hours(business, start, duration)
    if result != HoursCheck.OK:
        logger.info(
            f"Business {business.id}: {weekday} {start_minute}-{end_minute} rejected ({result.value})"
        )
        raise BusinessRuleError(
            HOURS_MESSAGES[result].format(weekday=weekday),
            code=OUT_OF_HOURS,
            details={"reason": result.value, "weekday": weekday},
        )


class AvailabilityValidator:
    """Decides whether a new or modified reservation window may be persisted"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ReservationRepository()

    def check_hours(self, business: Business, start: datetime, duration: int) -> None:
        check_business_hours(business, start, duration)

    def ensure_no_conflict(
        self,
        business: Business,
        start: datetime,
        duration: int,
        exclude_id: Optional[int] = None,
    ) -> None:
        end = start + timedelta(minutes=duration)
        conflicts = self.repo.find_overlapping(self.db, business.id, start, end, exclude_id)
        if conflicts:
            logger.warning(
                f"Slot conflict for business {business.id} at {start.isoformat()} "
                f"with reservation(s) {[r.id for r in conflicts]}"
            )
            raise ConflictError("The requested time slot is already booked", code=SLOT_CONFLICT)

    def validate(
        self,
        business: Business,
        start: datetime,
        duration: int,
        exclude_id: Optional[int] = None,
    ) -> None:
        """Hours check followed by the overlap check; ``exclude_id`` skips the reservation being moved"""
        self.check_hours(business, start, duration)
        self.ensure_no_conflict(business, start, duration, exclude_id)

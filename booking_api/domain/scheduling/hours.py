"""
Business operating hours.

Weekly opening schedule of a business and the pure check of a candidate
time-of-day interval against it. Times are HH:MM strings on the wire and
minutes since midnight internally; intervals are half-open [start, end).
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...constants import WEEKDAYS
from ...shared.validators import hhmm_to_minutes, validate_hhmm

MINUTES_PER_DAY = 24 * 60


class HoursCheck(str, Enum):
    OK = "OK"
    CLOSED = "CLOSED"
    OUTSIDE_HOURS = "OUTSIDE_HOURS"
    OVERLAPS_BREAK = "OVERLAPS_BREAK"


class BreakWindow(BaseModel):
    start: str
    end: str

    @field_validator("start", "end")
    @classmethod
    def validate_time(cls, v):
        return validate_hhmm(v)

    @model_validator(mode="after")
    def check_order(self):
        if hhmm_to_minutes(self.start) >= hhmm_to_minutes(self.end):
            raise ValueError(f"Break start {self.start} must be before its end {self.end}")
        return self

    def minutes(self) -> tuple[int, int]:
        return hhmm_to_minutes(self.start), hhmm_to_minutes(self.end)


class DayHours(BaseModel):
    is_open: bool = False
    open_time: Optional[str] = None
    close_time: Optional[str] = None
    breaks: list[BreakWindow] = []

    @field_validator("open_time", "close_time")
    @classmethod
    def validate_time(cls, v):
        return validate_hhmm(v)

    @model_validator(mode="after")
    def check_window(self):
        if not self.is_open:
            return self
        if not self.open_time or not self.close_time:
            raise ValueError("open_time and close_time are required when the day is open")
        open_minute, close_minute = hhmm_to_minutes(self.open_time), hhmm_to_minutes(self.close_time)
        if open_minute >= close_minute:
            raise ValueError(f"open_time {self.open_time} must be before close_time {self.close_time}")
        for window in self.breaks:
            start, end = window.minutes()
            if start < open_minute or end > close_minute:
                raise ValueError(
                    f"Break {window.start}-{window.end} must lie within {self.open_time}-{self.close_time}"
                )
        return self


class OperatingHours(BaseModel):
    monday: DayHours = Field(default_factory=DayHours)
    tuesday: DayHours = Field(default_factory=DayHours)
    wednesday: DayHours = Field(default_factory=DayHours)
    thursday: DayHours = Field(default_factory=DayHours)
    friday: DayHours = Field(default_factory=DayHours)
    saturday: DayHours = Field(default_factory=DayHours)
    sunday: DayHours = Field(default_factory=DayHours)

    def for_day(self, weekday: str) -> DayHours:
        return getattr(self, weekday)


def weekday_name(day_index: int) -> str:
    """Map a calendar day (0 = Sunday ... 6 = Saturday) to its weekday key"""
    return WEEKDAYS[day_index % 7]


def python_weekday_name(weekday: int) -> str:
    """Map ``date.weekday()`` (0 = Monday) to its weekday key"""
    return weekday_name((weekday + 1) % 7)


def intervals_overlap(a_start, a_end, b_start, b_end) -> bool:
    """Half-open interval intersection test"""
    return a_start < b_end and b_start < a_end


def check_interval(hours: OperatingHours, weekday: str, start: int, end: int) -> HoursCheck:
    """
    Check a [start, end) interval, in minutes since local midnight, against
    the opening hours of ``weekday``.

    ``end`` may exceed a day's length when the interval runs past midnight;
    such an interval is always outside hours.
    """
    day = hours.for_day(weekday)
    if not day.is_open:
        return HoursCheck.CLOSED

    open_minute, close_minute = hhmm_to_minutes(day.open_time), hhmm_to_minutes(day.close_time)
    if start < open_minute or end > close_minute:
        return HoursCheck.OUTSIDE_HOURS

    for window in day.breaks:
        break_start, break_end = window.minutes()
        if intervals_overlap(break_start, break_end, start, end):
            return HoursCheck.OVERLAPS_BREAK

    return HoursCheck.OK

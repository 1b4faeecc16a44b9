import pytest
from pydantic import ValidationError

from booking_api.domain.scheduling.hours import (
    DayHours,
    HoursCheck,
    OperatingHours,
    check_interval,
    intervals_overlap,
    python_weekday_name,
    weekday_name,
)
from booking_api.models import default_operating_hours

from conftest import monday_hours


@pytest.fixture
def hours():
    return OperatingHours.model_validate(monday_hours())


def minutes(hhmm: str) -> int:
    h, m = hhmm.split(":")
    return int(h) * 60 + int(m)


@pytest.mark.parametrize(
    "start,end",
    [
        ("09:00", "10:00"),
        ("10:00", "12:00"),  # ends exactly when the break starts
        ("13:00", "17:00"),  # starts when the break ends, ends at closing
        ("16:45", "17:00"),
    ],
)
def test_interval_inside_hours_and_outside_breaks_is_ok(hours, start, end):
    assert check_interval(hours, "monday", minutes(start), minutes(end)) == HoursCheck.OK


@pytest.mark.parametrize(
    "start,end",
    [
        ("08:45", "09:45"),  # before opening
        ("16:30", "17:30"),  # crosses closing
        ("17:00", "18:00"),  # after closing
    ],
)
def test_interval_crossing_open_or_close_is_outside_hours(hours, start, end):
    assert check_interval(hours, "monday", minutes(start), minutes(end)) == HoursCheck.OUTSIDE_HOURS


@pytest.mark.parametrize(
    "start,end",
    [
        ("11:30", "12:30"),
        ("12:15", "12:45"),
        ("12:30", "13:30"),
        ("11:00", "14:00"),  # swallows the whole break
    ],
)
def test_interval_intersecting_a_break_is_rejected(hours, start, end):
    assert check_interval(hours, "monday", minutes(start), minutes(end)) == HoursCheck.OVERLAPS_BREAK


def test_closed_day(hours):
    assert check_interval(hours, "sunday", minutes("10:00"), minutes("11:00")) == HoursCheck.CLOSED


def test_interval_past_midnight_is_outside_hours():
    late = OperatingHours.model_validate(
        {"friday": {"is_open": True, "open_time": "18:00", "close_time": "23:59", "breaks": []}}
    )
    assert check_interval(late, "friday", minutes("23:30"), 24 * 60 + 30) == HoursCheck.OUTSIDE_HOURS


def test_weekday_index_starts_on_sunday():
    assert weekday_name(0) == "sunday"
    assert weekday_name(1) == "monday"
    assert weekday_name(6) == "saturday"
    # date.weekday(): Monday == 0
    assert python_weekday_name(0) == "monday"
    assert python_weekday_name(6) == "sunday"


def test_intervals_overlap_is_half_open():
    assert intervals_overlap(0, 60, 30, 90)
    assert not intervals_overlap(0, 60, 60, 120)
    assert not intervals_overlap(60, 120, 0, 60)


def test_open_day_requires_open_before_close():
    with pytest.raises(ValidationError):
        DayHours(is_open=True, open_time="18:00", close_time="09:00")
    with pytest.raises(ValidationError):
        DayHours(is_open=True, open_time="09:00")


def test_break_must_lie_within_the_day():
    with pytest.raises(ValidationError):
        DayHours(
            is_open=True,
            open_time="09:00",
            close_time="17:00",
            breaks=[{"start": "16:30", "end": "17:30"}],
        )
    with pytest.raises(ValidationError):
        DayHours(is_open=True, open_time="09:00", close_time="17:00", breaks=[{"start": "13:00", "end": "12:00"}])


def test_break_may_end_at_closing_time():
    day = DayHours(
        is_open=True, open_time="09:00", close_time="17:00", breaks=[{"start": "16:00", "end": "17:00"}]
    )
    assert day.breaks[0].end == "17:00"


def test_times_are_zero_padded():
    day = DayHours(is_open=True, open_time="9:00", close_time="17:00")
    assert day.open_time == "09:00"


def test_default_operating_hours_are_valid():
    hours = OperatingHours.model_validate(default_operating_hours())
    assert hours.monday.open_time == "09:00" and hours.monday.close_time == "18:00"
    assert hours.saturday.close_time == "16:00"
    assert not hours.sunday.is_open

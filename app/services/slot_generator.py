"""
Open-slot computation for interview and trial booking.

generate_slots is a pure function: for the same inputs (including the
`now` reference) it always returns the same ordered list. Schedules are
expressed in local wall-clock time of the booking timezone; every datetime
going in or out is naive UTC.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Dict, Iterable, List, Sequence, Tuple

import pytz

from app.core.exceptions import ValidationError
from app.core.timeutils import to_naive_utc

# Durations at or above this are trial shifts and are not packed onto the grid
LONG_SLOT_MINUTES = 240
GRID_STEP_MINUTES = 30

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

BookedInterval = Tuple[datetime, datetime]


@dataclass(frozen=True)
class TimeSlot:
    start: datetime  # naive UTC
    end: datetime  # naive UTC
    time: str  # local "HH:MM" label
    available: bool


def _parse_hhmm(value: str) -> int:
    """'09:30' -> 570 minutes after midnight."""
    try:
        hours, minutes = value.split(":")
        total = int(hours) * 60 + int(minutes)
    except (AttributeError, ValueError):
        raise ValidationError(f"Invalid time of day: {value!r}")
    if not 0 <= total <= 24 * 60:
        raise ValidationError(f"Invalid time of day: {value!r}")
    return total


def _windows_for(day: date, weekly_schedule: Dict[str, dict]) -> List[Tuple[int, int]]:
    config = weekly_schedule.get(WEEKDAYS[day.weekday()]) or {}
    if not config.get("enabled"):
        return []
    return [(_parse_hhmm(w["start"]), _parse_hhmm(w["end"])) for w in config.get("slots") or []]


def _overlaps(start: datetime, end: datetime, bookings: Sequence[BookedInterval]) -> bool:
    # Half-open: touching boundaries are not a conflict
    return any(start < b_end and end > b_start for b_start, b_end in bookings)


def generate_slots(
    day: date,
    weekly_schedule: Dict[str, dict],
    slot_duration_minutes: int,
    buffer_minutes: int,
    min_notice_hours: float,
    existing_bookings: Iterable[BookedInterval],
    now: datetime,
    timezone: str = "Europe/London",
) -> List[TimeSlot]:
    """
    Compute the slot grid for one day.

    Short slots start every 30 minutes plus buffer; slots of four hours or
    more step by their own duration plus buffer. Unavailable slots are kept
    in the output with available=False so the grid layout stays stable.

    Args:
        day: Local calendar date to generate for
        weekly_schedule: {"monday": {"enabled": bool, "slots": [{"start": "09:00", "end": "17:00"}]}, ...}
        slot_duration_minutes: Length of each slot
        buffer_minutes: Gap inserted after each step
        min_notice_hours: A slot must start strictly later than now + this
        existing_bookings: (start, end) pairs of booked intervals
        now: Reference time, naive UTC or aware
        timezone: IANA name the schedule is expressed in

    Returns:
        Chronological list of TimeSlot

    Raises:
        ValidationError: Non-positive duration, negative buffer or bad window times
    """
    if slot_duration_minutes <= 0:
        raise ValidationError("Slot duration must be positive")
    if buffer_minutes < 0:
        raise ValidationError("Buffer cannot be negative")

    windows = _windows_for(day, weekly_schedule)
    if not windows:
        return []

    tz = pytz.timezone(timezone)
    step = slot_duration_minutes if slot_duration_minutes >= LONG_SLOT_MINUTES else GRID_STEP_MINUTES
    notice_cutoff = to_naive_utc(now) + timedelta(hours=min_notice_hours)
    bookings = [(to_naive_utc(s), to_naive_utc(e)) for s, e in existing_bookings]
    midnight = datetime.combine(day, time.min)

    slots: List[TimeSlot] = []
    for window_start, window_end in windows:
        current = window_start
        while current + slot_duration_minutes <= window_end:
            local_start = tz.localize(midnight + timedelta(minutes=current))
            start = to_naive_utc(local_start)
            end = start + timedelta(minutes=slot_duration_minutes)

            available = start > notice_cutoff and not _overlaps(start, end, bookings)
            slots.append(TimeSlot(
                start=start,
                end=end,
                time=local_start.strftime("%H:%M"),
                available=available,
            ))
            current += step + buffer_minutes

    return slots

"""
Bookable start times for single-appointment services.

Pure domain logic without any external dependencies (no API calls, no
database, no I/O).
"""

import logging
from typing import Any, List, Sequence

import pendulum
from pendulum import Date, DateTime

from .models import MINUTES_PER_DAY, Booking, OperatingHours, TimeRange, TimeSlot, to_date

logger = logging.getLogger(__name__)


class BookingSlotResolver:
    """
    Calculates the open time slots of a service on a single day.

    Algorithm:
    1. Look up the opening window for the weekday
    2. Generate candidate starts every ``step_minutes`` from opening time
       while the appointment still ends by closing time
    3. Drop candidates overlapping a non-cancelled booking
    4. Return the remaining slots in chronological order
    """

    def __init__(self, step_minutes: int = 60, timezone: str = "UTC"):
        if step_minutes <= 0:
            raise ValueError(f"step_minutes must be greater than zero, got {step_minutes}")

        self.step_minutes = step_minutes
        self.timezone = timezone

    def available_slots(
        self,
        operating_hours: OperatingHours,
        duration_minutes: int,
        date: Any,
        bookings: Sequence[Booking],
    ) -> List[TimeSlot]:
        """
        Find all bookable slots for a service on a date.

        Args:
            operating_hours: Weekly opening hours of the service
            duration_minutes: Length of one appointment
            date: Calendar day to resolve; past days are resolved as well
            bookings: Existing bookings of the resource on that day

        Returns:
            List of TimeSlot objects in ascending order, empty for closed
            days and invalid input
        """
        day = to_date(date)
        if day is None or duration_minutes <= 0:
            return []

        candidates = self._candidate_ranges(operating_hours, duration_minutes, day)
        if not candidates:
            return []

        busy_ranges = self._busy_ranges(bookings, duration_minutes)

        return [
            TimeSlot(time_range=candidate)
            for candidate in candidates
            if not any(candidate.overlaps(busy) for busy in busy_ranges)
        ]

    def _candidate_ranges(
        self,
        operating_hours: OperatingHours,
        duration_minutes: int,
        day: Date,
    ) -> List[TimeRange]:
        """
        Generate every appointment window that fits into the opening hours.

        Example (step 60, duration 60):
        Open: 09:00 - 12:00
        Result: [09:00-10:00, 10:00-11:00, 11:00-12:00]
        """
        hours = operating_hours.hours_for(day)
        if hours is None:
            return []

        ranges: List[TimeRange] = []
        minute = hours.open_minute

        while minute + duration_minutes <= hours.close_minute:
            start = self._wall_clock(day, minute)
            end = self._wall_clock(day, minute + duration_minutes)
            # Empty when the window falls into a skipped DST hour
            if start < end:
                ranges.append(TimeRange(start=start, end=end))
            minute += self.step_minutes

        return ranges

    def _busy_ranges(
        self,
        bookings: Sequence[Booking],
        default_duration_minutes: int,
    ) -> List[TimeRange]:
        """Occupied intervals of all bookings that still hold their slot."""
        busy: List[TimeRange] = []

        for booking in bookings:
            if booking.is_cancelled:
                continue

            occupied = booking.time_range(default_duration_minutes)
            if occupied is None:
                logger.debug("Skipping booking %s without a start time", booking.id)
                continue

            busy.append(occupied)

        return sorted(busy, key=lambda r: r.start)

    def _wall_clock(self, day: Date, minute: int) -> DateTime:
        """
        Local time ``minute`` minutes after midnight on the clock face.

        Minute 1440 is midnight of the next day.
        """
        days, minute = divmod(minute, MINUTES_PER_DAY)
        target = day.add(days=days)
        return pendulum.datetime(
            target.year, target.month, target.day, minute // 60, minute % 60, tz=self.timezone
        )

"""
Application service for single-appointment service bookings.
"""

from __future__ import annotations

from typing import Any, List

from ..domain.models import OperatingHours, TimeSlot
from ..domain.slot_resolver import BookingSlotResolver
from .rental_service import ReservationStoreProtocol


class BookingService:
    """
    Fetches a resource's bookings for a day and resolves its open slots.
    """

    def __init__(
        self,
        store: ReservationStoreProtocol,
        slot_resolver: BookingSlotResolver,
    ) -> None:
        self._store = store
        self._slot_resolver = slot_resolver

    def open_slots(
        self,
        *,
        resource_id: str,
        date: Any,
        duration_minutes: int,
        operating_hours: OperatingHours,
    ) -> List[TimeSlot]:
        """Return the bookable start times of a resource on a day."""
        bookings = self._store.get_bookings(resource_id, date)
        return self._slot_resolver.available_slots(
            operating_hours,
            duration_minutes,
            date,
            bookings,
        )

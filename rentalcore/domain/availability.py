"""
Equipment availability over calendar date ranges.

This is an advisory check: it tells a renter early that dates are taken.
The storage layer still has to reject overlapping inserts, two renters can
pass this check at the same time.
"""

import logging
from typing import Any, Iterable, List, Optional, Sequence

from .models import (
    AvailabilityResult,
    DateRange,
    Reservation,
    ReservationStatus,
    to_date,
)

logger = logging.getLogger(__name__)


DEFAULT_BLOCKING_STATUSES = (
    ReservationStatus.PENDING.value,
    ReservationStatus.ACTIVE.value,
)


class AvailabilityChecker:
    """
    Decides whether a resource is free for a requested date range.

    Only reservations in a blocking status count; completed, cancelled and
    rejected ones never block.
    """

    def __init__(self, blocking_statuses: Iterable[str] = DEFAULT_BLOCKING_STATUSES) -> None:
        self.blocking_statuses = frozenset(status.lower() for status in blocking_statuses)

    def is_available(
        self,
        resource_id: Any,
        start_date: Any,
        end_date: Any,
        reservations: Sequence[Reservation],
        exclude_reservation_id: Optional[str] = None,
    ) -> bool:
        """
        Check if no blocking reservation overlaps the requested range.

        Args:
            resource_id: Equipment being requested
            start_date: First requested day
            end_date: Last requested day
            reservations: Reservations already held, any resource
            exclude_reservation_id: Reservation being edited, ignored so it
                cannot conflict with itself

        Returns:
            True if the range is free. False on any overlap, and for a
            missing or inverted requested range.
        """
        return self.check(
            resource_id,
            start_date,
            end_date,
            reservations,
            exclude_reservation_id=exclude_reservation_id,
        ).available

    def check(
        self,
        resource_id: Any,
        start_date: Any,
        end_date: Any,
        reservations: Sequence[Reservation],
        exclude_reservation_id: Optional[str] = None,
    ) -> AvailabilityResult:
        """Same as is_available, also returning the conflicting reservations."""
        requested = self._requested_range(start_date, end_date)
        if requested is None:
            return AvailabilityResult(available=False)

        conflicts = self._conflicts_with(
            resource_id, requested, reservations, exclude_reservation_id
        )
        return AvailabilityResult(available=not conflicts, conflicts=tuple(conflicts))

    def find_conflicts(
        self,
        resource_id: Any,
        start_date: Any,
        end_date: Any,
        reservations: Sequence[Reservation],
        exclude_reservation_id: Optional[str] = None,
    ) -> List[Reservation]:
        """Return the blocking reservations overlapping the requested range."""
        requested = self._requested_range(start_date, end_date)
        if requested is None:
            return []

        return self._conflicts_with(
            resource_id, requested, reservations, exclude_reservation_id
        )

    def is_blocking(self, reservation: Reservation) -> bool:
        """Check if a reservation's status holds the resource."""
        return (reservation.status or "").lower() in self.blocking_statuses

    @staticmethod
    def _requested_range(start_date: Any, end_date: Any) -> DateRange | None:
        start = to_date(start_date)
        end = to_date(end_date)

        if start is None or end is None or start > end:
            return None

        return DateRange(start=start, end=end)

    def _conflicts_with(
        self,
        resource_id: Any,
        requested: DateRange,
        reservations: Sequence[Reservation],
        exclude_reservation_id: Optional[str],
    ) -> List[Reservation]:
        resource_key = str(resource_id)
        excluded = str(exclude_reservation_id) if exclude_reservation_id is not None else None
        conflicts: List[Reservation] = []

        for reservation in reservations:
            if reservation.resource_id != resource_key:
                continue

            if excluded is not None and reservation.id == excluded:
                continue

            if not self.is_blocking(reservation):
                continue

            occupied = reservation.date_range
            if occupied is None:
                logger.debug("Skipping reservation %s without a valid date range", reservation.id)
                continue

            if requested.overlaps(occupied):
                conflicts.append(reservation)

        return conflicts

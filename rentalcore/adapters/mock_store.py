"""
In-memory reservation store for testing without the hosted backend.
"""

import json
import logging
import uuid
from pathlib import Path
from typing import Any, Dict, List, Mapping

from ..domain.availability import AvailabilityChecker
from ..domain.exceptions import NotFoundError, ReservationConflictError
from ..domain.models import Booking, Equipment, Reservation, to_date

logger = logging.getLogger(__name__)


DEFAULT_DATA_FILE = Path(__file__).parent / "mock_reservation_data.json"


class MockReservationStore:
    """
    Store that serves equipment, rentals and bookings from a JSON file.

    Inserts stay in memory and are checked against active rentals the way
    the database exclusion constraint would check them, so the conflict path
    can be exercised without a backend.
    """

    def __init__(
        self,
        data: Mapping[str, Any] | None = None,
        data_file: Path | None = None,
        timezone: str = "UTC",
    ):
        """
        Initialize the mock store.

        Args:
            data: Tables as loaded from JSON; takes precedence over data_file
            data_file: JSON file to load, defaults to the bundled sample data
            timezone: Timezone for naive booking timestamps
        """
        self.timezone = timezone
        self._conflict_checker = AvailabilityChecker()

        if data is None:
            data = self._load_data(data_file or DEFAULT_DATA_FILE)

        self.equipment_rows: List[Dict[str, Any]] = list(data.get("equipment", []))
        self.rental_rows: List[Dict[str, Any]] = list(data.get("equipment_rentals", []))
        self.booking_rows: List[Dict[str, Any]] = list(data.get("service_bookings", []))

    @staticmethod
    def _load_data(data_file: Path) -> Dict[str, Any]:
        """Load mock tables from a JSON file, empty tables if it is missing."""
        if not data_file.exists():
            logger.warning("Mock data file %s not found, starting empty", data_file)
            return {}

        with open(data_file, "r", encoding="utf-8") as f:
            return json.load(f)

    def get_equipment(self, equipment_id: str) -> Equipment:
        for row in self.equipment_rows:
            if str(row.get("id")) == str(equipment_id):
                return Equipment.from_row(row)
        raise NotFoundError(f"Equipment not found: {equipment_id}")

    def get_reservations(self, equipment_id: str) -> List[Reservation]:
        return [
            Reservation.from_row(row)
            for row in self.rental_rows
            if str(row.get("equipment_id")) == str(equipment_id)
        ]

    def get_bookings(self, resource_id: str, date: Any) -> List[Booking]:
        day = to_date(date)
        if day is None:
            return []

        bookings: List[Booking] = []
        for row in self.booking_rows:
            booking = Booking.from_row(row, tz=self.timezone)

            if booking.resource_id != str(resource_id) or booking.is_cancelled:
                continue

            # Keep malformed rows, the resolver skips them
            if booking.start is not None and to_date(booking.start.in_timezone(self.timezone)) != day:
                continue

            bookings.append(booking)

        return bookings

    def create_reservation(self, payload: Mapping[str, Any]) -> Reservation:
        """
        Insert a rental unless it overlaps an active rental of the equipment.

        Raises:
            ReservationConflictError: If the dates overlap an active rental
        """
        row = dict(payload)
        row.setdefault("id", str(uuid.uuid4()))
        row.setdefault("status", "pending")

        self._ensure_no_overlap(row, exclude_reservation_id=None)
        self.rental_rows.append(row)

        return Reservation.from_row(row)

    def update_reservation(self, reservation_id: str, changes: Mapping[str, Any]) -> Reservation:
        """
        Apply changes to a rental, checked against every other active rental.

        Raises:
            NotFoundError: If no rental has this id
            ReservationConflictError: If the new dates overlap an active rental
        """
        for index, existing in enumerate(self.rental_rows):
            if str(existing.get("id")) != str(reservation_id):
                continue

            row = {**existing, **changes}
            self._ensure_no_overlap(row, exclude_reservation_id=str(reservation_id))
            self.rental_rows[index] = row
            return Reservation.from_row(row)

        raise NotFoundError(f"Rental not found: {reservation_id}")

    def _ensure_no_overlap(self, row: Mapping[str, Any], exclude_reservation_id: str | None) -> None:
        candidate = Reservation.from_row(row)
        if not self._conflict_checker.is_blocking(candidate):
            return

        conflicts = self._conflict_checker.find_conflicts(
            candidate.resource_id,
            candidate.start_date,
            candidate.end_date,
            self.get_reservations(candidate.resource_id or ""),
            exclude_reservation_id=exclude_reservation_id,
        )
        if conflicts:
            raise ReservationConflictError(
                "Equipment is no longer available for the selected dates"
            )

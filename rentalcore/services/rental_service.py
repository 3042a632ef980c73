"""
Application services for equipment rentals.

The service fetches equipment and reservations through a store adapter and
delegates pricing and availability decisions to the pure domain classes.
Availability is checked before writing to give early feedback; the store's
insert is what actually prevents double bookings.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Protocol

from ..domain.availability import AvailabilityChecker
from ..domain.exceptions import ReservationConflictError
from ..domain.models import (
    AvailabilityResult,
    Booking,
    Equipment,
    RentalQuote,
    Reservation,
    ReservationStatus,
    to_date,
)
from ..domain.pricing import RentalPricingEngine

logger = logging.getLogger(__name__)


class ReservationStoreProtocol(Protocol):
    """Protocol describing the storage behaviour needed by the services."""

    def get_equipment(self, equipment_id: str) -> Equipment:
        """Return the equipment item with its owner's tier."""

    def get_reservations(self, equipment_id: str) -> List[Reservation]:
        """Return all rentals of an equipment item."""

    def get_bookings(self, resource_id: str, date: Any) -> List[Booking]:
        """Return the non-cancelled bookings of a resource on a day."""

    def create_reservation(self, payload: Mapping[str, Any]) -> Reservation:
        """Insert a rental, raising ReservationConflictError on overlap."""

    def update_reservation(self, reservation_id: str, changes: Mapping[str, Any]) -> Reservation:
        """Update a rental, raising ReservationConflictError on overlap."""


class RentalService:
    """
    Orchestrates equipment lookups, quoting, availability and rental writes.
    """

    def __init__(
        self,
        store: ReservationStoreProtocol,
        pricing_engine: RentalPricingEngine,
        availability_checker: AvailabilityChecker,
    ) -> None:
        self._store = store
        self._pricing_engine = pricing_engine
        self._availability_checker = availability_checker

    def quote_rental(self, equipment_id: str, start_date: Any, end_date: Any) -> RentalQuote | None:
        """Quote a rental of an equipment item at its owner's tier."""
        equipment = self._store.get_equipment(equipment_id)
        return self._quote(equipment, start_date, end_date)

    def check_availability(
        self,
        equipment_id: str,
        start_date: Any,
        end_date: Any,
        exclude_reservation_id: Optional[str] = None,
    ) -> AvailabilityResult:
        """
        Check if an equipment item is free for a date range.

        Pass ``exclude_reservation_id`` when the renter edits an existing
        rental, otherwise the rental conflicts with itself.
        """
        reservations = self._store.get_reservations(equipment_id)
        return self._availability_checker.check(
            equipment_id,
            start_date,
            end_date,
            reservations,
            exclude_reservation_id=exclude_reservation_id,
        )

    def request_rental(
        self,
        *,
        equipment_id: str,
        renter_id: str,
        start_date: Any,
        end_date: Any,
        notes: str | None = None,
    ) -> Reservation:
        """
        Quote, check and submit a new rental request.

        Raises:
            ValueError: If the dates cannot be quoted
            ReservationConflictError: If the dates are taken, found either by
                the advisory check or by the store on insert
        """
        equipment = self._store.get_equipment(equipment_id)
        quote = self._require_quote(equipment, start_date, end_date)

        self._ensure_available(equipment_id, start_date, end_date, exclude_reservation_id=None)

        payload: Dict[str, Any] = {
            "equipment_id": equipment.id,
            "organization_id": equipment.organization_id,
            "renter_id": renter_id,
            "status": ReservationStatus.PENDING.value,
            **self._rental_columns(start_date, end_date, quote),
        }
        if notes:
            payload["notes"] = notes

        reservation = self._store.create_reservation(payload)
        logger.info("Created rental %s for equipment %s", reservation.id, equipment_id)
        return reservation

    def reschedule_rental(
        self,
        *,
        reservation_id: str,
        equipment_id: str,
        start_date: Any,
        end_date: Any,
    ) -> Reservation:
        """
        Move an existing rental to new dates and re-price it.

        The rental being edited is excluded from the conflict check.

        Raises:
            ValueError: If the dates cannot be quoted
            ReservationConflictError: If the new dates are taken
        """
        equipment = self._store.get_equipment(equipment_id)
        quote = self._require_quote(equipment, start_date, end_date)

        self._ensure_available(
            equipment_id, start_date, end_date, exclude_reservation_id=reservation_id
        )

        reservation = self._store.update_reservation(
            reservation_id, self._rental_columns(start_date, end_date, quote)
        )
        logger.info("Rescheduled rental %s to %s - %s", reservation_id, start_date, end_date)
        return reservation

    def _quote(self, equipment: Equipment, start_date: Any, end_date: Any) -> RentalQuote | None:
        return self._pricing_engine.quote(
            equipment.daily_rate,
            start_date,
            end_date,
            deposit_amount=equipment.deposit_amount,
            tier=equipment.tier,
        )

    def _require_quote(self, equipment: Equipment, start_date: Any, end_date: Any) -> RentalQuote:
        quote = self._quote(equipment, start_date, end_date)
        if quote is None:
            raise ValueError("Select a start date before the end date.")
        return quote

    def _ensure_available(
        self,
        equipment_id: str,
        start_date: Any,
        end_date: Any,
        exclude_reservation_id: Optional[str],
    ) -> None:
        result = self.check_availability(
            equipment_id, start_date, end_date, exclude_reservation_id=exclude_reservation_id
        )
        if not result.available:
            logger.info(
                "Equipment %s unavailable, conflicts: %s", equipment_id, result.conflict_ids
            )
            raise ReservationConflictError("Equipment is not available for the selected dates")

    @staticmethod
    def _rental_columns(start_date: Any, end_date: Any, quote: RentalQuote) -> Dict[str, Any]:
        return {
            "start_date": to_date(start_date).to_date_string(),
            "end_date": to_date(end_date).to_date_string(),
            "total_days": quote.total_days,
            "total_price": quote.subtotal,
            "platform_fee": quote.platform_fee,
            "deposit_amount": quote.deposit_amount,
        }

"""
Tests for the rental and booking service layer.
"""

from typing import Any, Mapping

import pytest

from rentalcore.adapters.mock_store import MockReservationStore
from rentalcore.domain.availability import AvailabilityChecker
from rentalcore.domain.exceptions import NotFoundError, ReservationConflictError
from rentalcore.domain.models import DayHours, OperatingHours, Reservation
from rentalcore.domain.pricing import RentalPricingEngine
from rentalcore.domain.slot_resolver import BookingSlotResolver
from rentalcore.services import BookingService, RentalService


SEAT = "eq-convertible-01"


class RacingStore(MockReservationStore):
    """Store whose reads miss a rental that another renter inserted first."""

    def __init__(self):
        super().__init__()
        self.stale_reads = True

    def get_reservations(self, equipment_id: str):
        if self.stale_reads:
            return []
        return super().get_reservations(equipment_id)

    def create_reservation(self, payload: Mapping[str, Any]) -> Reservation:
        self.stale_reads = False
        return super().create_reservation(payload)


def _rental_service(store=None) -> RentalService:
    return RentalService(
        store=store or MockReservationStore(),
        pricing_engine=RentalPricingEngine(),
        availability_checker=AvailabilityChecker(),
    )


def _weekday_hours() -> OperatingHours:
    hours = DayHours.from_clock("09:00", "17:00")
    return OperatingHours(days={weekday: hours for weekday in range(5)})


def test_quote_rental_uses_equipment_rate_and_tier():
    """The quote should use the equipment's rate, deposit and owner tier."""
    quote = _rental_service().quote_rental(SEAT, "2024-03-13", "2024-03-16")

    assert quote.total_days == 4
    assert quote.subtotal == 60
    assert quote.platform_fee == 1.50  # Professional
    assert quote.deposit_amount == 50
    assert quote.total_due == 110


def test_quote_unknown_equipment():
    with pytest.raises(NotFoundError):
        _rental_service().quote_rental("eq-missing", "2024-03-13", "2024-03-16")


def test_check_availability_reports_conflicts():
    result = _rental_service().check_availability(SEAT, "2024-03-08", "2024-03-10")

    assert not result.available
    assert result.conflict_ids == ["rent-1001"]


def test_cancelled_rental_frees_dates():
    result = _rental_service().check_availability(SEAT, "2024-03-10", "2024-03-12")

    assert result.available


def test_request_rental_stores_quoted_columns():
    store = MockReservationStore()
    service = _rental_service(store)

    reservation = service.request_rental(
        equipment_id=SEAT,
        renter_id="parent-99",
        start_date="2024-03-13",
        end_date="2024-03-16",
        notes="Rear-facing please",
    )

    assert reservation.status == "pending"
    row = store.rental_rows[-1]
    assert row["organization_id"] == "org-safe-rides"
    assert row["start_date"] == "2024-03-13"
    assert row["end_date"] == "2024-03-16"
    assert row["total_days"] == 4
    assert row["total_price"] == 60
    assert row["platform_fee"] == 1.50
    assert row["deposit_amount"] == 50
    assert row["notes"] == "Rear-facing please"

    # The new pending rental now blocks its dates
    assert not service.check_availability(SEAT, "2024-03-16", "2024-03-18").available


def test_request_rental_rejects_taken_dates():
    store = MockReservationStore()
    service = _rental_service(store)

    with pytest.raises(ReservationConflictError):
        service.request_rental(
            equipment_id=SEAT,
            renter_id="parent-99",
            start_date="2024-03-08",
            end_date="2024-03-10",
        )

    assert len(store.rental_rows) == 5


def test_request_rental_requires_valid_dates():
    with pytest.raises(ValueError, match="start date before the end date"):
        _rental_service().request_rental(
            equipment_id=SEAT,
            renter_id="parent-99",
            start_date="2024-03-13",
            end_date="2024-03-13",
        )


def test_store_rejects_race_lost_after_check():
    """A conflict found by the store on insert should reach the caller."""
    store = RacingStore()
    service = _rental_service(store)

    with pytest.raises(ReservationConflictError):
        service.request_rental(
            equipment_id=SEAT,
            renter_id="parent-99",
            start_date="2024-03-06",
            end_date="2024-03-07",
        )


def test_reschedule_excludes_own_rental():
    """Moving a rental over its own dates should not conflict with itself."""
    store = MockReservationStore()
    service = _rental_service(store)

    reservation = service.reschedule_rental(
        reservation_id="rent-1001",
        equipment_id=SEAT,
        start_date="2024-03-06",
        end_date="2024-03-09",
    )

    assert reservation.id == "rent-1001"
    assert reservation.status == "active"
    assert reservation.start_date.day == 6
    assert reservation.end_date.day == 9
    assert store.rental_rows[0]["total_price"] == 60


def test_reschedule_into_other_rental_conflicts():
    with pytest.raises(ReservationConflictError):
        _rental_service().reschedule_rental(
            reservation_id="rent-1001",
            equipment_id=SEAT,
            start_date="2024-03-18",
            end_date="2024-03-20",
        )


def test_reschedule_unknown_rental():
    with pytest.raises(NotFoundError):
        _rental_service().reschedule_rental(
            reservation_id="rent-9999",
            equipment_id=SEAT,
            start_date="2024-05-01",
            end_date="2024-05-03",
        )


def test_open_slots_skip_booked_times():
    """Cancelled bookings free their slot; bookings without duration use the requested one."""
    service = BookingService(store=MockReservationStore(), slot_resolver=BookingSlotResolver())

    slots = service.open_slots(
        resource_id="org-safe-rides",
        date="2024-03-04",
        duration_minutes=60,
        operating_hours=_weekday_hours(),
    )

    assert [slot.label for slot in slots] == ["09:00", "11:00", "12:00", "14:00", "15:00", "16:00"]


def test_open_slots_next_day():
    service = BookingService(store=MockReservationStore(), slot_resolver=BookingSlotResolver())

    slots = service.open_slots(
        resource_id="org-safe-rides",
        date="2024-03-05",
        duration_minutes=60,
        operating_hours=_weekday_hours(),
    )

    assert slots[0].label == "11:00"
    assert len(slots) == 6


def test_open_slots_other_resource():
    service = BookingService(store=MockReservationStore(), slot_resolver=BookingSlotResolver())

    slots = service.open_slots(
        resource_id="org-little-travelers",
        date="2024-03-04",
        duration_minutes=60,
        operating_hours=_weekday_hours(),
    )

    assert len(slots) == 8


def test_org_booking_with_null_service_id_blocks_slot():
    """A booking stored with service_id null should still take its slot."""
    store = MockReservationStore(data={"service_bookings": [{
        "id": "book-9",
        "org_id": "org-1",
        "service_id": None,
        "booking_date": "2024-03-04T10:00:00+00:00",
        "duration_minutes": 60,
        "status": "confirmed",
    }]})
    service = BookingService(store=store, slot_resolver=BookingSlotResolver())

    assert len(store.get_bookings("org-1", "2024-03-04")) == 1

    slots = service.open_slots(
        resource_id="org-1",
        date="2024-03-04",
        duration_minutes=60,
        operating_hours=_weekday_hours(),
    )

    assert "10:00" not in [slot.label for slot in slots]
    assert len(slots) == 7

"""
Tests for equipment availability.
"""

import pendulum
import pytest

from rentalcore.domain.availability import AvailabilityChecker
from rentalcore.domain.models import Reservation


def _reservation(
    reservation_id: str,
    start: str,
    end: str | None,
    status: str = "active",
    resource_id: str = "seat-1",
) -> Reservation:
    return Reservation(
        id=reservation_id,
        resource_id=resource_id,
        start_date=pendulum.parse(start).date() if start else None,
        end_date=pendulum.parse(end).date() if end else None,
        status=status,
    )


@pytest.fixture
def checker() -> AvailabilityChecker:
    return AvailabilityChecker()


class TestIsAvailable:
    """Tests for AvailabilityChecker.is_available."""

    def test_overlap_with_active_reservation(self, checker):
        """Test that Jan 5-10 collides with an active Jan 8-12 rental."""
        existing = [_reservation("r1", "2024-01-08", "2024-01-12", status="active")]

        assert not checker.is_available("seat-1", "2024-01-05", "2024-01-10", existing)

    def test_cancelled_reservation_does_not_block(self, checker):
        """Test that the same rental no longer blocks once cancelled."""
        existing = [_reservation("r1", "2024-01-08", "2024-01-12", status="cancelled")]

        assert checker.is_available("seat-1", "2024-01-05", "2024-01-10", existing)

    @pytest.mark.parametrize("status", ["completed", "cancelled", "rejected"])
    def test_finished_statuses_never_block(self, checker, status):
        existing = [_reservation("r1", "2024-01-08", "2024-01-12", status=status)]

        assert checker.is_available("seat-1", "2024-01-05", "2024-01-10", existing)

    @pytest.mark.parametrize("status", ["pending", "active", "Active", "PENDING"])
    def test_open_statuses_block(self, checker, status):
        existing = [_reservation("r1", "2024-01-08", "2024-01-12", status=status)]

        assert not checker.is_available("seat-1", "2024-01-05", "2024-01-10", existing)

    def test_back_to_back_rentals_conflict(self, checker):
        """Test that starting on the day another rental ends is a conflict."""
        existing = [_reservation("r1", "2024-01-01", "2024-01-05")]

        assert not checker.is_available("seat-1", "2024-01-05", "2024-01-08", existing)
        assert not checker.is_available("seat-1", "2023-12-28", "2024-01-01", existing)

    def test_day_after_is_free(self, checker):
        """Test that the day after a rental ends is available."""
        existing = [_reservation("r1", "2024-01-01", "2024-01-05")]

        assert checker.is_available("seat-1", "2024-01-06", "2024-01-08", existing)

    def test_contained_range_conflicts(self, checker):
        """Test a request entirely inside an existing rental."""
        existing = [_reservation("r1", "2024-01-01", "2024-01-31")]

        assert not checker.is_available("seat-1", "2024-01-10", "2024-01-11", existing)

    def test_single_day_request(self, checker):
        """Test a one-day request on an occupied day."""
        existing = [_reservation("r1", "2024-01-01", "2024-01-05")]

        assert not checker.is_available("seat-1", "2024-01-03", "2024-01-03", existing)

    def test_other_resources_are_ignored(self, checker):
        """Test that rentals of other equipment never block."""
        existing = [_reservation("r1", "2024-01-08", "2024-01-12", resource_id="seat-2")]

        assert checker.is_available("seat-1", "2024-01-05", "2024-01-10", existing)

    def test_no_reservations(self, checker):
        assert checker.is_available("seat-1", "2024-01-05", "2024-01-10", [])


class TestSelfExclusion:
    """Tests for editing an existing rental."""

    def test_own_reservation_is_excluded(self, checker):
        """Test that a renter can keep their own unchanged dates."""
        existing = [_reservation("r1", "2024-01-08", "2024-01-12")]

        assert checker.is_available(
            "seat-1", "2024-01-08", "2024-01-12", existing, exclude_reservation_id="r1"
        )

    def test_other_reservations_still_block(self, checker):
        """Test that only the edited reservation is excluded."""
        existing = [
            _reservation("r1", "2024-01-08", "2024-01-12"),
            _reservation("r2", "2024-01-13", "2024-01-15"),
        ]

        assert not checker.is_available(
            "seat-1", "2024-01-10", "2024-01-14", existing, exclude_reservation_id="r1"
        )

    def test_unknown_excluded_id(self, checker):
        """Test that excluding an unrelated id changes nothing."""
        existing = [_reservation("r1", "2024-01-08", "2024-01-12")]

        assert not checker.is_available(
            "seat-1", "2024-01-08", "2024-01-12", existing, exclude_reservation_id="r9"
        )

    def test_numeric_ids_match_stored_rows(self, checker):
        """Test that integer ids from storage rows are excluded by value."""
        existing = [
            Reservation.from_row(
                {"id": 7, "equipment_id": 3, "start_date": "2024-01-08",
                 "end_date": "2024-01-12", "status": "active"}
            )
        ]

        assert checker.is_available(3, "2024-01-08", "2024-01-12", existing, exclude_reservation_id=7)
        assert not checker.is_available(3, "2024-01-08", "2024-01-12", existing)


class TestMalformedInput:
    """Tests for incomplete requests and records."""

    def test_reservation_without_end_is_skipped(self, checker):
        """Test that a record with a missing date never blocks."""
        existing = [_reservation("bad", "2024-01-08", None)]

        assert checker.is_available("seat-1", "2024-01-05", "2024-01-10", existing)

    def test_inverted_reservation_is_skipped(self, checker):
        """Test that a stored record with end before start never blocks."""
        existing = [
            Reservation(
                id="bad",
                resource_id="seat-1",
                start_date=pendulum.date(2024, 1, 12),
                end_date=pendulum.date(2024, 1, 8),
                status="active",
            )
        ]

        assert checker.is_available("seat-1", "2024-01-05", "2024-01-10", existing)

    def test_bad_record_does_not_hide_good_ones(self, checker):
        existing = [
            _reservation("bad", "2024-01-08", None),
            _reservation("good", "2024-01-09", "2024-01-09"),
        ]

        assert not checker.is_available("seat-1", "2024-01-05", "2024-01-10", existing)

    @pytest.mark.parametrize(
        "start, end",
        [(None, "2024-01-10"), ("2024-01-05", None), ("2024-01-10", "2024-01-05"), ("soon", "later")],
    )
    def test_invalid_request_is_unavailable(self, checker, start, end):
        """Test that a request without a valid range is never available."""
        assert not checker.is_available("seat-1", start, end, [])


class TestCheck:
    """Tests for conflict reporting."""

    def test_reports_conflicts(self, checker):
        existing = [
            _reservation("r1", "2024-01-01", "2024-01-04"),
            _reservation("r2", "2024-01-06", "2024-01-09", status="pending"),
            _reservation("r3", "2024-01-06", "2024-01-09", status="cancelled"),
        ]

        result = checker.check("seat-1", "2024-01-04", "2024-01-06", existing)

        assert not result.available
        assert result.conflict_ids == ["r1", "r2"]

    def test_available_result_has_no_conflicts(self, checker):
        result = checker.check("seat-1", "2024-01-04", "2024-01-06", [])

        assert result.available
        assert result.conflicts == ()

    def test_find_conflicts_for_invalid_request(self, checker):
        existing = [_reservation("r1", "2024-01-01", "2024-01-04")]

        assert checker.find_conflicts("seat-1", "2024-01-04", None, existing) == []

    def test_custom_blocking_statuses(self):
        """Test a checker that only counts confirmed rentals."""
        checker = AvailabilityChecker(blocking_statuses=["Confirmed"])
        existing = [
            _reservation("r1", "2024-01-08", "2024-01-12", status="pending"),
            _reservation("r2", "2024-01-20", "2024-01-22", status="confirmed"),
        ]

        assert checker.is_available("seat-1", "2024-01-05", "2024-01-10", existing)
        assert not checker.is_available("seat-1", "2024-01-21", "2024-01-21", existing)

"""
Reservation store backed by the hosted Postgres REST API (Supabase).
"""

import logging
from typing import Any, Dict, List, Mapping, Sequence, Tuple

import pendulum
import requests

from ..domain.exceptions import NotFoundError, ReservationConflictError, StorageAPIError
from ..domain.models import Booking, Equipment, Reservation, to_date

logger = logging.getLogger(__name__)


class SupabaseStore:
    """
    Client for the equipment, rental and booking tables.

    Reads feed the pure availability and slot calculations. Inserts rely on
    the database's exclusion constraint on active rentals; a violation comes
    back as HTTP 409 and is raised as ReservationConflictError.
    """

    REST_PATH = "/rest/v1"
    RENTAL_COLUMNS = "id,equipment_id,start_date,end_date,status"
    BOOKING_COLUMNS = "id,org_id,service_id,booking_date,duration_minutes,status"

    def __init__(self, url: str, api_key: str, timeout: float = 10.0, timezone: str = "UTC"):
        """
        Initialize the store client.

        Args:
            url: Project URL, e.g. https://xyz.supabase.co
            api_key: Anon or service role key
            timeout: Request timeout in seconds
            timezone: Timezone used for day boundaries and naive timestamps
        """
        self.base_url = f"{url.rstrip('/')}{self.REST_PATH}"
        self.timeout = timeout
        self.timezone = timezone
        self.headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    def get_equipment(self, equipment_id: str) -> Equipment:
        """
        Fetch an equipment item with its organization's subscription tier.

        Raises:
            NotFoundError: If no equipment has this id
            StorageAPIError: If the request fails
        """
        rows = self._request(
            "GET",
            "equipment",
            params=[
                ("id", f"eq.{equipment_id}"),
                ("select", "*,organizations(subscription_tier)"),
            ],
        )

        if not rows:
            raise NotFoundError(f"Equipment not found: {equipment_id}")

        return Equipment.from_row(rows[0])

    def get_reservations(self, equipment_id: str) -> List[Reservation]:
        """Fetch all rentals of an equipment item, whatever their status."""
        rows = self._request(
            "GET",
            "equipment_rentals",
            params=[
                ("equipment_id", f"eq.{equipment_id}"),
                ("select", self.RENTAL_COLUMNS),
            ],
        )
        return [Reservation.from_row(row) for row in rows]

    def get_bookings(self, resource_id: str, date: Any) -> List[Booking]:
        """
        Fetch the non-cancelled bookings of a resource on a calendar day.
        """
        day = to_date(date)
        if day is None:
            return []

        start_of_day = pendulum.datetime(day.year, day.month, day.day, tz=self.timezone)
        end_of_day = start_of_day.end_of("day")

        rows = self._request(
            "GET",
            "service_bookings",
            params=[
                ("org_id", f"eq.{resource_id}"),
                ("booking_date", f"gte.{start_of_day.to_iso8601_string()}"),
                ("booking_date", f"lte.{end_of_day.to_iso8601_string()}"),
                ("status", "neq.cancelled"),
                ("select", self.BOOKING_COLUMNS),
            ],
        )
        return [Booking.from_row(row, tz=self.timezone) for row in rows]

    def create_reservation(self, payload: Mapping[str, Any]) -> Reservation:
        """
        Insert a rental row.

        Raises:
            ReservationConflictError: If the dates were taken in the meantime
            StorageAPIError: If the insert fails for another reason
        """
        rows = self._request(
            "POST",
            "equipment_rentals",
            json=dict(payload),
            headers={"Prefer": "return=representation"},
        )

        if not rows:
            raise StorageAPIError("Insert into equipment_rentals returned no row")

        return Reservation.from_row(rows[0])

    def update_reservation(self, reservation_id: str, changes: Mapping[str, Any]) -> Reservation:
        """
        Update a rental row, e.g. when the renter edits the dates.

        Raises:
            NotFoundError: If no rental has this id
            ReservationConflictError: If the new dates overlap another rental
            StorageAPIError: If the update fails for another reason
        """
        rows = self._request(
            "PATCH",
            "equipment_rentals",
            params=[("id", f"eq.{reservation_id}")],
            json=dict(changes),
            headers={"Prefer": "return=representation"},
        )

        if not rows:
            raise NotFoundError(f"Rental not found: {reservation_id}")

        return Reservation.from_row(rows[0])

    def _request(
        self,
        method: str,
        table: str,
        params: Sequence[Tuple[str, str]] | None = None,
        json: Dict[str, Any] | None = None,
        headers: Dict[str, str] | None = None,
    ) -> List[Dict[str, Any]]:
        url = f"{self.base_url}/{table}"

        try:
            response = requests.request(
                method,
                url,
                headers={**self.headers, **(headers or {})},
                params=params,
                json=json,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.warning("%s %s failed: %s", method, table, e)
            raise StorageAPIError(f"Failed to reach reservation store: {e}") from e

        if response.status_code == 409:
            logger.warning("%s %s rejected as conflict: %s", method, table, response.text)
            raise ReservationConflictError(
                "Equipment is no longer available for the selected dates"
            )

        try:
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.HTTPError as e:
            logger.warning("%s %s returned %s", method, table, response.status_code)
            raise StorageAPIError(f"Reservation store request failed: {e}") from e
        except ValueError as e:
            raise StorageAPIError(f"Invalid JSON from reservation store: {e}") from e

        if isinstance(data, dict):
            return [data]
        return list(data or [])

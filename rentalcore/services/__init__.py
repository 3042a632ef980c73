"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .booking_service import BookingService
from .rental_service import RentalService, ReservationStoreProtocol

__all__ = ["BookingService", "RentalService", "ReservationStoreProtocol"]

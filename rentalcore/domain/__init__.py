"""
Domain layer - Pure business logic without external dependencies.
"""

from .availability import AvailabilityChecker
from .fees import DEFAULT_TIER_RATES, FeeCalculator, calculate_net_payout, calculate_platform_fee
from .models import (
    Booking,
    DateRange,
    DayCountConvention,
    DayHours,
    Equipment,
    OperatingHours,
    RentalQuote,
    Reservation,
    SubscriptionTier,
    TimeRange,
    TimeSlot,
)
from .pricing import RentalPricingEngine
from .slot_resolver import BookingSlotResolver

__all__ = [
    "AvailabilityChecker",
    "Booking",
    "BookingSlotResolver",
    "DEFAULT_TIER_RATES",
    "DateRange",
    "DayCountConvention",
    "DayHours",
    "Equipment",
    "FeeCalculator",
    "OperatingHours",
    "RentalPricingEngine",
    "RentalQuote",
    "Reservation",
    "SubscriptionTier",
    "TimeRange",
    "TimeSlot",
    "calculate_net_payout",
    "calculate_platform_fee",
]

"""
Rental pricing: daily rate, duration, platform fee and deposit.
"""

import logging
from typing import Any, Optional

from .fees import FeeCalculator
from .models import (
    DateRange,
    DayCountConvention,
    RentalQuote,
    ServiceBookingQuote,
    to_date,
)
from .money import round_currency, to_amount

logger = logging.getLogger(__name__)


class RentalPricingEngine:
    """
    Produces rental quotes from a daily rate and a requested date range.

    Quotes are pure functions of their inputs, so callers can recompute them
    on every date change without caching. One day-count convention is used
    for every quote an engine produces.
    """

    def __init__(
        self,
        fee_calculator: Optional[FeeCalculator] = None,
        convention: DayCountConvention = DayCountConvention.INCLUSIVE,
    ) -> None:
        self.fee_calculator = fee_calculator or FeeCalculator()
        self.convention = DayCountConvention(convention)

    def count_days(self, start_date: Any, end_date: Any) -> int | None:
        """
        Return the billable days between two dates.

        Returns None when a date is missing or the range is not forward.
        """
        start = to_date(start_date)
        end = to_date(end_date)

        if start is None or end is None or start >= end:
            return None

        return DateRange(start=start, end=end).day_count(self.convention)

    def quote(
        self,
        daily_rate: Any,
        start_date: Any,
        end_date: Any,
        deposit_amount: Any = 0,
        tier: Any = None,
    ) -> RentalQuote | None:
        """
        Price a rental request.

        Args:
            daily_rate: Price per rental day
            start_date: First rental day
            end_date: Last rental day
            deposit_amount: Refundable security deposit, defaults to 0
            tier: Subscription tier of the equipment owner

        Returns:
            RentalQuote, or None when the input is not complete enough to
            show a total (missing or inverted dates, negative amounts)
        """
        total_days = self.count_days(start_date, end_date)
        if total_days is None:
            return None

        rate = to_amount(daily_rate)
        deposit = 0.0 if deposit_amount is None else to_amount(deposit_amount)

        if rate is None or rate < 0 or deposit is None or deposit < 0:
            logger.debug(
                "Cannot quote rate=%r deposit=%r", daily_rate, deposit_amount
            )
            return None

        subtotal = round_currency(rate * total_days)
        platform_fee = self.fee_calculator.calculate_platform_fee(subtotal, tier)

        return RentalQuote(
            daily_rate=rate,
            total_days=total_days,
            subtotal=subtotal,
            platform_fee=platform_fee,
            deposit_amount=round_currency(deposit),
            total_due=round_currency(subtotal + deposit),
        )

    def quote_service(self, price: Any, tier: Any = None) -> ServiceBookingQuote | None:
        """
        Price a single-appointment service booking.

        The customer pays the listed price; the fee comes out of it.
        """
        amount = to_amount(price)
        if amount is None or amount < 0:
            return None

        amount = round_currency(amount)
        return ServiceBookingQuote(
            price=amount,
            platform_fee=self.fee_calculator.calculate_platform_fee(amount, tier),
            net_payout=self.fee_calculator.calculate_net_payout(amount, tier),
            total_due=amount,
        )

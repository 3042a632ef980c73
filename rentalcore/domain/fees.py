"""
Platform fee and net payout calculations based on subscription tiers.

The platform keeps a share of every transaction; the share depends on the
subscription tier of the organization that provides the service or the
equipment. Amounts are rounded to cents because payment processors only
accept two-decimal values.
"""

import logging
from types import MappingProxyType
from typing import Any, Mapping, Optional

from .models import PayoutBreakdown, SubscriptionTier
from .money import round_currency, to_amount

logger = logging.getLogger(__name__)


DEFAULT_TIER_RATES: Mapping[str, float] = MappingProxyType({
    SubscriptionTier.FREE.value: 0.03,           # 3%
    SubscriptionTier.PROFESSIONAL.value: 0.025,  # 2.5%
    SubscriptionTier.TEAMS.value: 0.0225,        # 2.25%
})


def _tier_key(tier: Any) -> Optional[str]:
    if isinstance(tier, SubscriptionTier):
        return tier.value
    if isinstance(tier, str):
        return tier
    return None


class FeeCalculator:
    """
    Maps (amount, tier) to platform fee and net payout.

    The rate table is injected so deployments and tests can swap it without
    touching shared state. Tiers missing from the table fall back to the
    rate of ``default_tier``.
    """

    def __init__(
        self,
        rates: Mapping[str, float] = DEFAULT_TIER_RATES,
        default_tier: str = SubscriptionTier.FREE.value,
    ) -> None:
        if default_tier not in rates:
            raise ValueError(f"Default tier '{default_tier}' has no rate configured")

        self._rates = MappingProxyType(dict(rates))
        self._default_tier = default_tier

    @property
    def rates(self) -> Mapping[str, float]:
        return self._rates

    @property
    def default_tier(self) -> str:
        return self._default_tier

    def resolve_tier(self, tier: Any) -> str:
        """Return the tier name used for rating, the default for unknown tiers."""
        key = _tier_key(tier)
        if key is not None and key in self._rates:
            return key
        return self._default_tier

    def rate_for(self, tier: Any = None) -> float:
        """Return the fee rate of a tier."""
        return self._rates[self.resolve_tier(tier)]

    def calculate_platform_fee(self, amount: Any, tier: Any = None) -> float:
        """
        Calculate the platform fee for an amount.

        Non-positive or malformed amounts (None, NaN, non-numeric) yield a
        zero fee. Never raises.
        """
        value = to_amount(amount)
        if value is None or value <= 0:
            return 0.0

        return round_currency(value * self.rate_for(tier))

    def calculate_net_payout(self, amount: Any, tier: Any = None) -> float:
        """Calculate what remains for the provider after the platform fee."""
        value = to_amount(amount)
        if value is None:
            return 0.0

        fee = self.calculate_platform_fee(value, tier)
        return round_currency(value - fee)

    def payout_breakdown(self, amount: Any, tier: Any = None) -> PayoutBreakdown:
        """Split a payout request into gross, fee and net amounts."""
        value = to_amount(amount)
        gross = round_currency(value) if value is not None and value > 0 else 0.0
        fee = self.calculate_platform_fee(gross, tier)

        breakdown = PayoutBreakdown(
            gross_amount=gross,
            platform_fee=fee,
            net_amount=round_currency(gross - fee),
            tier=self.resolve_tier(tier),
        )
        logger.debug("Payout breakdown %s", breakdown)
        return breakdown


_default_calculator = FeeCalculator()


def _calculator_for(rates: Optional[Mapping[str, float]]) -> FeeCalculator:
    if rates is None:
        return _default_calculator
    return FeeCalculator(rates=rates)


def calculate_platform_fee(
    amount: Any,
    tier: Any = SubscriptionTier.FREE.value,
    rates: Optional[Mapping[str, float]] = None,
) -> float:
    """Platform fee for ``amount`` using ``rates`` or the default tier table."""
    return _calculator_for(rates).calculate_platform_fee(amount, tier)


def calculate_net_payout(
    amount: Any,
    tier: Any = SubscriptionTier.FREE.value,
    rates: Optional[Mapping[str, float]] = None,
) -> float:
    """Net payout for ``amount`` using ``rates`` or the default tier table."""
    return _calculator_for(rates).calculate_net_payout(amount, tier)

"""
Currency helpers shared by the fee and pricing calculations.
"""

import math
import sys
from typing import Any


CENT_EPSILON = sys.float_info.epsilon


def to_amount(value: Any) -> float | None:
    """
    Coerce a raw amount to a finite float.

    Returns None for None, booleans, NaN, infinities and anything that
    float() rejects.
    """
    if value is None or isinstance(value, bool):
        return None

    try:
        amount = float(value)
    except (TypeError, ValueError):
        return None

    if not math.isfinite(amount):
        return None

    return amount


def round_currency(value: float) -> float:
    """
    Round to cents, halves away from zero on the positive side.

    The epsilon nudge keeps products such as 59.99 * 0.03 = 1.7997 or
    exact halves like 2.25 from being truncated by binary representation.
    """
    return math.floor((value + CENT_EPSILON) * 100 + 0.5) / 100

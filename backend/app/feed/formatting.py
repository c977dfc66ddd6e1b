"""Adaptive-precision price formatting for display surfaces."""

from __future__ import annotations

import math

SIGNIFICANT_DIGITS = 4


def format_price(value: float | None) -> str:
    """Render a price with more decimals the smaller it is.

    >= 1      -> 2 decimals   (150.12)
    >= 0.01   -> 4 decimals   (0.0213)
    below     -> 4 significant digits (0.00002345)
    """
    if value is None:
        return "N/A"
    if value >= 1:
        return f"{value:,.2f}"
    if value >= 0.01:
        return f"{value:.4f}"
    if value <= 0:
        return f"{value:.2f}"
    decimals = -math.floor(math.log10(value)) + SIGNIFICANT_DIGITS - 1
    return f"{value:.{decimals}f}"

"""Flat per-night pricing in fixed-point decimal arithmetic."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation


CENT = Decimal("0.01")


class PricingConfigurationError(Exception):
    """Raised when stored price data cannot produce a valid total."""


def to_decimal(value: Decimal | str | int) -> Decimal:
    """Convert a stored price to Decimal without passing through float."""
    if isinstance(value, float):
        raise TypeError("monetary values must not be floats")
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(value)
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise PricingConfigurationError(f"invalid price value {value!r}") from exc


def compute_total(base_price_per_night: Decimal | str | int, nights: int) -> Decimal:
    """Return ``base_price_per_night * nights`` rounded half away from zero to cents."""
    if isinstance(nights, bool) or not isinstance(nights, int) or nights <= 0:
        raise ValueError("nights must be a positive integer")

    base_price = to_decimal(base_price_per_night)
    if not base_price.is_finite() or base_price < 0:
        raise PricingConfigurationError(f"base price {base_price} is not a valid nightly rate")

    try:
        total = (base_price * nights).quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise PricingConfigurationError("computed total exceeds decimal precision") from exc
    if not total.is_finite() or total < 0:
        raise PricingConfigurationError(f"computed total {total} is invalid")
    return total

"""
Unit and rounding helpers.

Weights are stored in pounds (the base unit).  Rounding is half away from
zero in decimal arithmetic, so a rounded value always re-rounds to itself.
"""

import math
from decimal import ROUND_HALF_UP, Decimal

from .config import BASE_ROUNDING_INCREMENT, LBS_PER_KG, METRIC_ROUNDING_INCREMENT


def round_to_increment(value: float, increment: float) -> float:
    """
    Round a weight to the nearest multiple of ``increment``.

    Ties round away from zero: 172.5 -> 175 at increment 5.

    Args:
        value: Weight to round (finite)
        increment: Positive rounding step

    Returns:
        Rounded weight

    Raises:
        ValueError: If value is not finite or increment is not positive
    """
    if not math.isfinite(value):
        raise ValueError(f"Cannot round non-finite weight: {value}")
    if not math.isfinite(increment) or increment <= 0:
        raise ValueError(f"Rounding increment must be positive, got {increment}")

    step = Decimal(str(increment))
    units = (Decimal(str(value)) / step).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    return float(units * step)


def rounding_increment(use_metric: bool = False, override: float | None = None) -> float:
    """Return the active rounding step: an explicit override wins, then the unit default."""
    if override is not None:
        return override
    return METRIC_ROUNDING_INCREMENT if use_metric else BASE_ROUNDING_INCREMENT


def round5(value: float, use_metric: bool = False) -> float:
    """Round to the nearest 5 lbs, or 2.5 when metric display is active."""
    return round_to_increment(value, rounding_increment(use_metric))


def to_kg(lbs: float) -> float:
    return lbs / LBS_PER_KG


def display_weight(lbs: float, use_metric: bool = False) -> str:
    """Format a stored weight for display, e.g. '185.0 lbs' or '83.9 kg'."""
    if use_metric:
        return f"{to_kg(lbs):.1f} kg"
    return f"{lbs:.1f} lbs"

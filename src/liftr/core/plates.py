"""
Barbell plate calculator.

Greedy per-side loading: as many 45s as fit, then the remaining plates
heaviest first.  Plates above 45 (55s, 100s) are only used when asked for
or when the target is above 505.  Inventory counts are totals for both
sides of the bar.
"""

from dataclasses import dataclass

from .config import (
    DEFAULT_BAR_WEIGHT,
    DEFAULT_PLATES,
    LARGE_PLATE_AUTO_THRESHOLD,
    PLATE_EPSILON,
    STANDARD_PLATE,
)


@dataclass(frozen=True)
class PlateLoad:
    plate_weight: float
    per_side: int


@dataclass(frozen=True)
class PlateResult:
    """Plate configuration for one target weight."""

    target_weight: float
    actual_weight: float  # bar + plates + collars
    bar_weight: float
    collar_weight: float
    plates: tuple[PlateLoad, ...]
    weight_per_side: float
    is_exact: bool

    @property
    def total_plates(self) -> int:
        return sum(p.per_side * 2 for p in self.plates)


def _fill(per_side: float, inventory: dict[float, int], use_large: bool) -> tuple[list[PlateLoad], float]:
    """Greedy fill of one side; returns the loads and the weight left over."""
    remaining = per_side
    per_side_stock = {w: n // 2 for w, n in inventory.items()}
    loads: list[PlateLoad] = []

    order = [STANDARD_PLATE] if per_side_stock.get(STANDARD_PLATE) else []
    order += sorted(
        (w for w in per_side_stock if w != STANDARD_PLATE and (use_large or w < STANDARD_PLATE)),
        reverse=True,
    )
    for weight in order:
        if remaining < PLATE_EPSILON:
            break
        count = min(int((remaining + PLATE_EPSILON) // weight), per_side_stock[weight])
        if count > 0:
            loads.append(PlateLoad(weight, count))
            remaining -= weight * count

    loads.sort(key=lambda p: p.plate_weight, reverse=True)
    return loads, remaining


def calculate_plates(
    target: float,
    bar_weight: float = DEFAULT_BAR_WEIGHT,
    collar_weight: float = 0.0,
    plates: dict[float, int] | None = None,
    use_large_plates: bool = False,
) -> PlateResult | None:
    """
    Work out which plates to load for a target weight.

    Collars are added on top of the target, not subtracted from it.  When
    the inventory cannot hit the target exactly the result is rounded down
    to the nearest loadable weight.  If no plate fits at all (e.g. 47 with
    2.5 as the smallest plate, or an empty inventory) the result is the
    bare bar with ``is_exact`` False rather than None.

    Example (target 225, 45 bar):
        per side = (225 - 45) / 2 = 90 -> two 45s, exact

    Returns:
        PlateResult, or None if the target is below the bar weight
    """
    inventory = DEFAULT_PLATES if plates is None else plates
    from_plates = target - bar_weight
    if from_plates < 0:
        return None

    use_large = use_large_plates or target > LARGE_PLATE_AUTO_THRESHOLD
    loads, remaining = _fill(from_plates / 2.0, inventory, use_large)
    loaded = sum(p.plate_weight * p.per_side for p in loads)

    return PlateResult(
        target_weight=target,
        actual_weight=bar_weight + loaded * 2 + collar_weight,
        bar_weight=bar_weight,
        collar_weight=collar_weight,
        plates=tuple(loads),
        weight_per_side=loaded,
        is_exact=remaining < PLATE_EPSILON,
    )

"""
Configuration constants for the progression engine.

All fixed tuning parameters are centralized here.  User-adjustable rule
parameters (thresholds, increments, deload cadence) live in the settings
snapshot instead; see settings.py and the bundled settings.yaml.
"""

from typing import Final

# =============================================================================
# UNITS AND ROUNDING
# =============================================================================

LBS_PER_KG: Final[float] = 2.20462
BASE_ROUNDING_INCREMENT: Final[float] = 5.0  # Nearest 5 lbs
METRIC_ROUNDING_INCREMENT: Final[float] = 2.5  # Used when metric display is on
LOADABLE_MINIMUM: Final[float] = 45.0  # Empty barbell, base unit

# =============================================================================
# PROGRESSION GENERATION
# =============================================================================

STARTING_WEIGHT_FRACTION: Final[float] = 0.85  # Start at 85% of current max
DEFAULT_TOTAL_WEEKS: Final[int] = 12
DEFAULT_SETS: Final[int] = 3
DEFAULT_REPS: Final[int] = 5
DEFAULT_SESSIONS_PER_WEEK: Final[int] = 1
MAX_SESSIONS_PER_WEEK: Final[int] = 7
DAYS_PER_WEEK: Final[int] = 7

# Periodization: 3-week waves (light, medium, heavy)
PERIODIZATION_CYCLE_WEEKS: Final[int] = 3
PERIODIZATION_WAVE: Final[tuple[float, ...]] = (0.90, 0.95, 1.00)

# =============================================================================
# PROGRAM SET SCHEMES (Madcow 5x5)
# =============================================================================

RAMP_PERCENTAGES: Final[tuple[float, ...]] = (0.60, 0.69, 0.82, 0.91, 1.00)
INTENSITY_RAMP_PERCENTAGES: Final[tuple[float, ...]] = (0.69, 0.82, 0.91, 1.00)
INTENSITY_RAMP_REPS: Final[int] = 5
TRIPLE_PERCENTAGE: Final[float] = 1.05
TRIPLE_REPS: Final[int] = 3
BACKOFF_PERCENTAGE: Final[float] = 0.80
BACKOFF_REPS: Final[int] = 8

# =============================================================================
# SET LOGGING
# =============================================================================

RPE_MIN: Final[int] = 1
RPE_MAX: Final[int] = 10

# =============================================================================
# PLATE CALCULATOR
# =============================================================================

DEFAULT_BAR_WEIGHT: Final[float] = 45.0
STANDARD_PLATE: Final[float] = 45.0
LARGE_PLATE_AUTO_THRESHOLD: Final[float] = 505.0  # Above this, 55s/100s allowed
# Plate weight -> total count owned (both sides)
DEFAULT_PLATES: Final[dict[float, int]] = {
    100.0: 2,
    55.0: 2,
    45.0: 16,
    35.0: 2,
    25.0: 4,
    10.0: 4,
    5.0: 4,
    2.5: 4,
}
PLATE_EPSILON: Final[float] = 0.01

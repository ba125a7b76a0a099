"""
Progression settings snapshot.

A Settings object is an immutable snapshot of the user's adjustment rules,
passed explicitly to every engine entry point.  Per-exercise overrides
replace individual global values only when ``use_custom_rules`` is set;
absent fields fall back to the global value.

Use ``settings.rules_for(exercise_name)`` to get the effective Rules for
one exercise.
"""

from dataclasses import dataclass, field, fields, replace
from typing import Any, Literal

from .errors import Constraint, ValidationError
from .units import rounding_increment

AdjustmentMode = Literal["prompt", "auto_adjust", "never"]
BodyRegion = Literal["lower", "upper"]

ADJUSTMENT_MODES: tuple[str, ...] = ("prompt", "auto_adjust", "never")


def _invalid(message: str) -> ValidationError:
    return ValidationError(message, Constraint.INVALID_SETTING)


def _check_thresholds(excellent: float, good: float, adjustment: float) -> None:
    for name, value in (("excellent", excellent), ("good", good), ("adjustment", adjustment)):
        if not 0 <= value <= 100:
            raise _invalid(f"{name}_threshold must be within 0-100, got {value}")
    if not excellent >= good >= adjustment:
        raise _invalid(
            "Thresholds must descend: excellent >= good >= adjustment "
            f"(got {excellent}, {good}, {adjustment})"
        )


def _check_percent(name: str, value: float) -> None:
    if not 0 <= value < 100:
        raise _invalid(f"{name} must be within [0, 100), got {value}")


@dataclass(frozen=True)
class ExerciseOverrides:
    """Per-exercise rule overrides.  ``None`` means 'use the global value'."""

    exercise_name: str
    use_custom_rules: bool = False
    excellent_threshold: int | None = None
    good_threshold: int | None = None
    adjustment_threshold: int | None = None
    reduction_percent: float | None = None
    deload_percent: float | None = None
    weight_increment: float | None = None
    auto_deload_frequency: int | None = None

    def __post_init__(self) -> None:
        if self.weight_increment is not None and self.weight_increment <= 0:
            raise _invalid(f"weight_increment for {self.exercise_name!r} must be positive")
        if self.auto_deload_frequency is not None and self.auto_deload_frequency < 1:
            raise _invalid(f"auto_deload_frequency for {self.exercise_name!r} must be >= 1")
        for name in ("reduction_percent", "deload_percent"):
            value = getattr(self, name)
            if value is not None:
                _check_percent(name, value)


@dataclass(frozen=True)
class Rules:
    """Effective adjustment rules for one exercise (global merged with overrides)."""

    exercise_name: str
    adjustment_mode: AdjustmentMode
    excellent_threshold: int
    good_threshold: int
    adjustment_threshold: int
    reduction_percent: float
    deload_percent: float
    lower_body_increment: float
    upper_body_increment: float
    use_metric: bool
    auto_deload_enabled: bool
    auto_deload_frequency: int
    weight_increment: float | None = None

    @property
    def rounding_increment(self) -> float:
        """Rounding step for planned weights of this exercise."""
        return rounding_increment(self.use_metric, self.weight_increment)

    def progression_increment(self, body: BodyRegion, multiplier: float = 1.0) -> float:
        """
        Weight added per progression step for a program lift.

        An explicit per-exercise increment wins; otherwise the global
        lower/upper body increment scaled by the template multiplier.
        """
        if self.weight_increment is not None:
            return self.weight_increment
        base = self.lower_body_increment if body == "lower" else self.upper_body_increment
        return base * multiplier


@dataclass(frozen=True)
class Settings:
    """Global progression settings plus per-exercise overrides."""

    adjustment_mode: AdjustmentMode = "prompt"
    excellent_threshold: int = 90
    good_threshold: int = 75
    adjustment_threshold: int = 50
    reduction_percent: float = 5.0
    deload_percent: float = 10.0
    lower_body_increment: float = 5.0
    upper_body_increment: float = 2.5
    use_metric: bool = False
    auto_deload_enabled: bool = False
    auto_deload_frequency: int = 8
    upcoming_workouts_days: int = 7
    exercises: dict[str, ExerciseOverrides] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.adjustment_mode not in ADJUSTMENT_MODES:
            raise _invalid(
                f"Invalid adjustment_mode: {self.adjustment_mode!r}. "
                f"Must be one of {ADJUSTMENT_MODES}"
            )
        _check_thresholds(self.excellent_threshold, self.good_threshold, self.adjustment_threshold)
        _check_percent("reduction_percent", self.reduction_percent)
        _check_percent("deload_percent", self.deload_percent)
        if self.lower_body_increment <= 0 or self.upper_body_increment <= 0:
            raise _invalid("Body increments must be positive")
        if self.auto_deload_frequency < 1:
            raise _invalid("auto_deload_frequency must be >= 1")
        if self.upcoming_workouts_days < 0:
            raise _invalid("upcoming_workouts_days must be non-negative")

    def overrides_for(self, exercise_name: str) -> ExerciseOverrides | None:
        """Return active overrides for an exercise (case-insensitive), or None."""
        key = exercise_name.strip().casefold()
        for name, overrides in self.exercises.items():
            if name.strip().casefold() == key and overrides.use_custom_rules:
                return overrides
        return None

    def rules_for(self, exercise_name: str) -> Rules:
        """
        Resolve the effective rules for an exercise.

        Every override field that is set replaces the global value; the
        merged thresholds must still descend.
        """
        o = self.overrides_for(exercise_name)

        def pick(name: str) -> Any:
            value = getattr(o, name) if o is not None else None
            return getattr(self, name) if value is None else value

        rules = Rules(
            exercise_name=exercise_name,
            adjustment_mode=self.adjustment_mode,
            excellent_threshold=pick("excellent_threshold"),
            good_threshold=pick("good_threshold"),
            adjustment_threshold=pick("adjustment_threshold"),
            reduction_percent=pick("reduction_percent"),
            deload_percent=pick("deload_percent"),
            lower_body_increment=self.lower_body_increment,
            upper_body_increment=self.upper_body_increment,
            use_metric=self.use_metric,
            auto_deload_enabled=self.auto_deload_enabled,
            auto_deload_frequency=pick("auto_deload_frequency"),
            weight_increment=o.weight_increment if o is not None else None,
        )
        _check_thresholds(rules.excellent_threshold, rules.good_threshold, rules.adjustment_threshold)
        return rules


# =============================================================================
# PRESETS
# =============================================================================

PRESETS: dict[str, dict[str, Any]] = {
    # Higher thresholds, smaller jumps (beginners, injury recovery)
    "conservative": {
        "excellent_threshold": 95,
        "good_threshold": 85,
        "adjustment_threshold": 70,
        "reduction_percent": 3.0,
        "deload_percent": 8.0,
        "lower_body_increment": 2.5,
        "upper_body_increment": 2.5,
    },
    "moderate": {},
    # Push harder, bigger jumps (experienced lifters)
    "aggressive": {
        "excellent_threshold": 85,
        "good_threshold": 70,
        "adjustment_threshold": 50,
        "reduction_percent": 7.0,
        "deload_percent": 12.0,
        "lower_body_increment": 10.0,
        "upper_body_increment": 5.0,
    },
}


def apply_preset(settings: Settings, preset: str) -> Settings:
    """Return a copy of ``settings`` with a named preset's rule values applied."""
    if preset not in PRESETS:
        raise _invalid(f"Unknown preset {preset!r}. Valid presets: {', '.join(PRESETS)}")
    return replace(settings, **PRESETS[preset])


# =============================================================================
# DICT CONVERSION (YAML)
# =============================================================================

_GLOBAL_FIELDS = frozenset(f.name for f in fields(Settings)) - {"exercises"}
_OVERRIDE_FIELDS = frozenset(f.name for f in fields(ExerciseOverrides)) - {"exercise_name"}


def settings_from_dict(data: dict[str, Any]) -> Settings:
    """
    Build a Settings snapshot from a config dict.

    Expected shape::

        progression:
          preset: moderate          # optional base preset
          adjustment_mode: prompt
          excellent_threshold: 90
          ...
        exercises:
          Squat:
            use_custom_rules: true
            reduction_percent: 3.0

    Unknown keys are rejected so typos do not silently fall back to defaults.

    Raises:
        ValidationError: On unknown keys or invalid values
    """
    progression = dict(data.get("progression") or {})
    preset = progression.pop("preset", None)
    unknown = set(progression) - _GLOBAL_FIELDS
    if unknown:
        raise _invalid(f"Unknown progression settings: {sorted(unknown)}")

    exercises: dict[str, ExerciseOverrides] = {}
    for name, raw in (data.get("exercises") or {}).items():
        raw = dict(raw or {})
        unknown = set(raw) - _OVERRIDE_FIELDS
        if unknown:
            raise _invalid(f"Unknown settings for exercise {name!r}: {sorted(unknown)}")
        exercises[str(name)] = ExerciseOverrides(exercise_name=str(name), **raw)

    # A preset is the base; explicit keys override it.
    base = apply_preset(Settings(), preset) if preset else Settings()
    return replace(base, **progression, exercises=exercises)


def settings_to_dict(settings: Settings) -> dict[str, Any]:
    """Inverse of settings_from_dict (only overrides with set fields are emitted)."""
    progression = {name: getattr(settings, name) for name in sorted(_GLOBAL_FIELDS)}
    exercises: dict[str, dict[str, Any]] = {}
    for name, o in settings.exercises.items():
        exercises[name] = {
            k: getattr(o, k)
            for k in sorted(_OVERRIDE_FIELDS)
            if getattr(o, k) is not None
        }
    return {"progression": progression, "exercises": exercises}

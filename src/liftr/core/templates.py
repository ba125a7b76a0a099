"""
Template registry.

Every supported template kind is described by a TemplateSpec.  Program
templates (Starting Strength, Texas Method, Madcow 5x5) also carry their
training days; the generator walks those days slot by slot.  The other
kinds only supply defaults for single-exercise progressions.

Use get_template() to look up a TemplateSpec by its kind string.
"""

from dataclasses import dataclass
from typing import Literal

from .errors import Constraint, ValidationError
from .settings import BodyRegion

ProgressBasis = Literal["occurrence", "week"]
SetScheme = Literal["straight", "ramp", "intensity"]
DayRotation = Literal["alternate", "fixed"]


@dataclass(frozen=True)
class LiftSpec:
    """One exercise slot within a template day."""

    lift: str                 # Key into the user's lift weights, e.g. "squat"
    exercise_name: str        # Display name, e.g. "Squat"
    sets: int
    reps: int
    body: BodyRegion          # Picks lower_body_increment / upper_body_increment
    increment_multiplier: float = 1.0
    load_factor: float = 1.0  # Fraction of the progressed weight used on this day
    progress_basis: ProgressBasis = "occurrence"  # Step per occurrence or per week
    set_scheme: SetScheme = "straight"


@dataclass(frozen=True)
class DaySpec:
    name: str
    lifts: tuple[LiftSpec, ...]


@dataclass(frozen=True)
class TemplateSpec:
    """
    Full description of one template kind.

    ``slot_offsets`` are the day offsets of the workouts within each week;
    ``day_rotation`` says whether slots alternate through the days
    (A/B/A, B/A/B) or map one-to-one onto them.
    """

    kind: str
    display_name: str
    description: str
    default_weeks: int
    sessions_per_week: int
    default_sets: int
    default_reps: int
    progression_label: str
    start_fraction: float = 1.0
    slot_offsets: tuple[int, ...] = ()
    day_rotation: DayRotation = "fixed"
    days: tuple[DaySpec, ...] = ()

    @property
    def is_program(self) -> bool:
        return bool(self.days)

    @property
    def required_lifts(self) -> tuple[str, ...]:
        """Lift keys the caller must supply weights for, in first-use order."""
        seen: list[str] = []
        for day in self.days:
            for lift in day.lifts:
                if lift.lift not in seen:
                    seen.append(lift.lift)
        return tuple(seen)


_MON_WED_FRI = (0, 2, 4)

STARTING_STRENGTH = TemplateSpec(
    kind="starting_strength",
    display_name="Starting Strength",
    description="Linear progression for beginners",
    default_weeks=12,
    sessions_per_week=3,
    default_sets=3,
    default_reps=5,
    progression_label="Add weight every session",
    start_fraction=0.85,
    slot_offsets=_MON_WED_FRI,
    day_rotation="alternate",
    days=(
        DaySpec("Workout A", (
            LiftSpec("squat", "Squat", 3, 5, "lower"),
            LiftSpec("bench", "Bench Press", 3, 5, "upper"),
            LiftSpec("deadlift", "Deadlift", 1, 5, "lower", increment_multiplier=2.0),
        )),
        DaySpec("Workout B", (
            LiftSpec("squat", "Squat", 3, 5, "lower"),
            LiftSpec("press", "Overhead Press", 3, 5, "upper"),
            LiftSpec("deadlift", "Deadlift", 1, 5, "lower", increment_multiplier=2.0),
        )),
    ),
)

TEXAS_METHOD = TemplateSpec(
    kind="texas_method",
    display_name="Texas Method",
    description="Intermediate weekly progression",
    default_weeks=12,
    sessions_per_week=3,
    default_sets=5,
    default_reps=5,
    progression_label="Add weight every week",
    start_fraction=1.0,  # Takes a current 5-rep max
    slot_offsets=_MON_WED_FRI,
    days=(
        DaySpec("Volume Day", (
            LiftSpec("squat", "Squat", 5, 5, "lower", load_factor=0.90, progress_basis="week"),
            LiftSpec("bench", "Bench Press", 5, 5, "upper", load_factor=0.90, progress_basis="week"),
            LiftSpec("deadlift", "Deadlift", 1, 5, "lower", load_factor=0.90, progress_basis="week"),
        )),
        DaySpec("Recovery Day", (
            LiftSpec("squat", "Squat", 2, 5, "lower", load_factor=0.72, progress_basis="week"),
            LiftSpec("press", "Overhead Press", 3, 5, "upper", load_factor=0.90, progress_basis="week"),
        )),
        DaySpec("Intensity Day", (
            LiftSpec("squat", "Squat", 1, 5, "lower", progress_basis="week"),
            LiftSpec("bench", "Bench Press", 1, 5, "upper", progress_basis="week"),
            LiftSpec("deadlift", "Deadlift", 1, 5, "lower", progress_basis="week"),
        )),
    ),
)

MADCOW = TemplateSpec(
    kind="madcow",
    display_name="Madcow 5x5",
    description="Intermediate ramping 5x5 with weekly records",
    default_weeks=12,
    sessions_per_week=3,
    default_sets=5,
    default_reps=5,
    progression_label="New top set every week",
    start_fraction=0.85,
    slot_offsets=_MON_WED_FRI,
    days=(
        DaySpec("Volume Day", (
            LiftSpec("squat", "Squat", 5, 5, "lower", progress_basis="week", set_scheme="ramp"),
            LiftSpec("bench", "Bench Press", 5, 5, "upper", progress_basis="week", set_scheme="ramp"),
            LiftSpec("row", "Barbell Row", 5, 5, "upper", progress_basis="week", set_scheme="ramp"),
        )),
        DaySpec("Light Day", (
            LiftSpec("squat", "Squat", 4, 5, "lower", load_factor=0.75, progress_basis="week"),
            LiftSpec("press", "Overhead Press", 4, 5, "upper", progress_basis="week", set_scheme="ramp"),
            LiftSpec("deadlift", "Deadlift", 4, 5, "lower", progress_basis="week", set_scheme="ramp"),
        )),
        DaySpec("Intensity Day", (
            LiftSpec("squat", "Squat", 6, 5, "lower", progress_basis="week", set_scheme="intensity"),
            LiftSpec("bench", "Bench Press", 6, 5, "upper", progress_basis="week", set_scheme="intensity"),
            LiftSpec("row", "Barbell Row", 6, 5, "upper", progress_basis="week", set_scheme="intensity"),
        )),
    ),
)

FIVE_THREE_ONE = TemplateSpec(
    kind="five_three_one",
    display_name="5/3/1",
    description="Wave periodization with deloads",
    default_weeks=16,
    sessions_per_week=1,
    default_sets=3,
    default_reps=5,
    progression_label="Monthly training-max increase",
)

SMOLOV = TemplateSpec(
    kind="smolov",
    display_name="Smolov",
    description="Intense squat specialization program",
    default_weeks=13,
    sessions_per_week=4,
    default_sets=4,
    default_reps=9,
    progression_label="Fixed percentage waves",
)

CUSTOM = TemplateSpec(
    kind="custom",
    display_name="Custom",
    description="Create your own progression",
    default_weeks=12,
    sessions_per_week=1,
    default_sets=3,
    default_reps=5,
    progression_label="User defined",
)

TEMPLATES: dict[str, TemplateSpec] = {
    t.kind: t
    for t in (STARTING_STRENGTH, TEXAS_METHOD, MADCOW, FIVE_THREE_ONE, SMOLOV, CUSTOM)
}


def get_template(kind: str) -> TemplateSpec:
    """
    Return the TemplateSpec for a template kind.

    Raises:
        ValidationError: If ``kind`` is not a registered template
    """
    if kind not in TEMPLATES:
        valid = ", ".join(TEMPLATES)
        raise ValidationError(
            f"Unknown template '{kind}'. Valid templates: {valid}", Constraint.UNKNOWN_TEMPLATE
        )
    return TEMPLATES[kind]


def program_templates() -> list[TemplateSpec]:
    return [t for t in TEMPLATES.values() if t.is_program]

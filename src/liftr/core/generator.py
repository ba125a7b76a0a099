"""
Schedule generation for liftr.

Builds complete Progression and Program trees in memory.  Nothing is
persisted here: the caller inserts the returned root into a store and
commits it as one unit.  All input validation happens before the first
entity is constructed, so a failed request leaves no partial tree.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from .config import (
    BACKOFF_PERCENTAGE,
    BACKOFF_REPS,
    DAYS_PER_WEEK,
    DEFAULT_REPS,
    DEFAULT_SESSIONS_PER_WEEK,
    DEFAULT_SETS,
    DEFAULT_TOTAL_WEEKS,
    INTENSITY_RAMP_PERCENTAGES,
    INTENSITY_RAMP_REPS,
    LOADABLE_MINIMUM,
    MAX_SESSIONS_PER_WEEK,
    PERIODIZATION_CYCLE_WEEKS,
    PERIODIZATION_WAVE,
    RAMP_PERCENTAGES,
    STARTING_WEIGHT_FRACTION,
    TRIPLE_PERCENTAGE,
    TRIPLE_REPS,
)
from .errors import Constraint, InvariantViolation, ValidationError
from .models import (
    PROGRESSION_STYLES,
    ExerciseSession,
    Program,
    ProgramExercise,
    Progression,
    TrainingDay,
    WorkoutSession,
    WorkoutSet,
    today_iso,
    validate_iso_date,
)
from .settings import Settings
from .templates import LiftSpec, TemplateSpec, get_template
from .units import round_to_increment


@dataclass(frozen=True)
class GenerationRequest:
    """Inputs for a single-exercise progression."""

    exercise_name: str
    current_max: float | str
    target_max: float | str
    template_kind: str = "custom"
    progression_style: str = "linear"
    total_weeks: int = DEFAULT_TOTAL_WEEKS
    sessions_per_week: int = DEFAULT_SESSIONS_PER_WEEK
    sets: int = DEFAULT_SETS
    reps: int = DEFAULT_REPS
    start_date: str | None = None  # ISO date; today when omitted
    notes: str | None = None


@dataclass(frozen=True)
class ProgramRequest:
    """Inputs for a whole-program template.  ``lift_weights`` maps lift keys to weights."""

    name: str
    template_kind: str
    lift_weights: dict[str, float | str] = field(default_factory=dict)
    total_weeks: int | None = None  # template default when omitted
    start_date: str | None = None
    notes: str | None = None


# =============================================================================
# INPUT VALIDATION
# =============================================================================


def parse_weight(value: float | str, name: str = "weight") -> float:
    """
    Parse a weight given as a number or numeric string.

    Raises:
        ValidationError: If the value is not a finite positive number
    """
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be a number, got {value!r}", Constraint.INVALID_WEIGHT)
    try:
        weight = float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError):
        raise ValidationError(
            f"{name} must be a number, got {value!r}", Constraint.INVALID_WEIGHT
        ) from None
    if not math.isfinite(weight) or weight <= 0:
        raise ValidationError(f"{name} must be a positive number, got {value!r}", Constraint.INVALID_WEIGHT)
    return weight


def _check_count(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValidationError(f"{name} must be a positive integer, got {value!r}", Constraint.NON_POSITIVE_COUNT)


def _check_name(name: str, what: str) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError(f"{what} must not be empty", Constraint.EMPTY_NAME)
    return name


def _start_date(start_date: str | None) -> datetime:
    date_str = start_date or today_iso()
    try:
        validate_iso_date(date_str)
    except ValueError as e:
        raise ValidationError(str(e), Constraint.INVALID_DATE) from None
    return datetime.strptime(date_str, "%Y-%m-%d")


def _iso(d: datetime) -> str:
    return d.strftime("%Y-%m-%d")


# =============================================================================
# PROGRESSIONS
# =============================================================================


def week_weight(
    week: int,
    starting_weight: float,
    weekly_increase: float,
    style: str,
    increment: float,
) -> float:
    """
    Planned weight for a week of a progression (rounded).

    linear / rpe / percentage:
        start + weekly * (week - 1)
    periodization (3-week waves at 90 / 95 / 100 %):
        cycle_base = start + weekly * 3 * cycle_index
        weight     = cycle_base * wave[cycle_week]

    Args:
        week: 1-based week number
        starting_weight: Rounded week-1 weight
        weekly_increase: Rounded per-week increase
        style: Progression style
        increment: Rounding step

    Returns:
        Rounded planned weight
    """
    if style == "periodization":
        cycle_index, cycle_week = divmod(week - 1, PERIODIZATION_CYCLE_WEEKS)
        cycle_base = starting_weight + weekly_increase * PERIODIZATION_CYCLE_WEEKS * cycle_index
        return round_to_increment(cycle_base * PERIODIZATION_WAVE[cycle_week], increment)
    return round_to_increment(starting_weight + weekly_increase * (week - 1), increment)


def _days_between(sessions_per_week: int) -> int:
    return DAYS_PER_WEEK // sessions_per_week if sessions_per_week > 1 else DAYS_PER_WEEK


def _straight_sets(count: int, reps: int, weight: float) -> list[WorkoutSet]:
    return [WorkoutSet(set_number=i, target_reps=reps, target_weight=weight) for i in range(1, count + 1)]


def generate_progression(request: GenerationRequest, settings: Settings) -> Progression:
    """
    Generate a single-exercise progression with every session and set planned.

    Example (linear, current 200, target 250, 10 weeks, step 5):
        starting = round(200 * 0.85) = 170
        weekly   = round(50 / 10)    = 5
        week 6   = 170 + 5 * 5       = 195

    Raises:
        ValidationError: If any input violates its constraint
    """
    name = _check_name(request.exercise_name, "Exercise name")
    template = get_template(request.template_kind)
    if request.progression_style not in PROGRESSION_STYLES:
        raise ValidationError(
            f"Unknown progression style '{request.progression_style}'. "
            f"Valid styles: {', '.join(PROGRESSION_STYLES)}",
            Constraint.UNKNOWN_STYLE,
        )
    for count_name in ("total_weeks", "sessions_per_week", "sets", "reps"):
        _check_count(count_name, getattr(request, count_name))
    if request.sessions_per_week > MAX_SESSIONS_PER_WEEK:
        raise ValidationError(
            f"sessions_per_week must be at most {MAX_SESSIONS_PER_WEEK}, got {request.sessions_per_week}",
            Constraint.TOO_MANY_SESSIONS,
        )
    current_max = parse_weight(request.current_max, "current_max")
    target_max = parse_weight(request.target_max, "target_max")
    if target_max <= current_max:
        raise ValidationError(
            f"Target max ({target_max:g}) must be greater than current max ({current_max:g})",
            Constraint.TARGET_NOT_ABOVE_CURRENT,
        )
    start = _start_date(request.start_date)

    increment = settings.rules_for(name).rounding_increment
    starting_weight = round_to_increment(current_max * STARTING_WEIGHT_FRACTION, increment)
    weekly_increase = round_to_increment((target_max - current_max) / request.total_weeks, increment)

    progression = Progression(
        exercise_name=name,
        template_kind=template.kind,
        progression_style=request.progression_style,
        current_max=current_max,
        target_max=target_max,
        starting_weight=starting_weight,
        total_weeks=request.total_weeks,
        start_date=_iso(start),
        notes=request.notes,
    )

    days_between = _days_between(request.sessions_per_week)
    for week in range(1, request.total_weeks + 1):
        weight = week_weight(week, starting_weight, weekly_increase, request.progression_style, increment)
        for day in range(1, request.sessions_per_week + 1):
            date = start + timedelta(days=DAYS_PER_WEEK * (week - 1) + days_between * (day - 1))
            session = WorkoutSession(
                date=_iso(date),
                week_number=week,
                day_number=day,
                planned_weight=weight,
                planned_sets=request.sets,
                planned_reps=request.reps,
                progression_id=progression.id,
            )
            session.sets = _straight_sets(request.sets, request.reps, weight)
            for s in session.sets:
                s.session_id = session.id
            progression.sessions.append(session)

    return progression


def recalculate_progression(
    progression: Progression,
    settings: Settings,
    current_max: float | str | None = None,
    target_max: float | str | None = None,
) -> int:
    """
    Re-plan the rest of a progression from (optionally updated) maxes.

    Every not-completed session from ``current_week`` onward is re-planned
    over the remaining weeks with the progression's own style curve;
    completed sessions and logged sets are left alone.

    Returns:
        Number of sessions re-planned

    Raises:
        InvariantViolation: If the progression is completed
        ValidationError: If the new target is not above the new current max
    """
    if progression.status == "completed":
        raise InvariantViolation(f"Progression {progression.id} is completed and cannot be recalculated")
    new_current = progression.current_max if current_max is None else parse_weight(current_max, "current_max")
    new_target = progression.target_max if target_max is None else parse_weight(target_max, "target_max")
    if new_target <= new_current:
        raise ValidationError(
            f"Target max ({new_target:g}) must be greater than current max ({new_current:g})",
            Constraint.TARGET_NOT_ABOVE_CURRENT,
        )

    increment = settings.rules_for(progression.exercise_name).rounding_increment
    remaining = progression.total_weeks - progression.current_week + 1
    starting_weight = round_to_increment(new_current * STARTING_WEIGHT_FRACTION, increment)
    weekly_increase = round_to_increment((new_target - new_current) / remaining, increment)

    replanned = 0
    for session in progression.all_sessions():
        if session.completed or session.week_number < progression.current_week:
            continue
        local_week = session.week_number - progression.current_week + 1
        weight = week_weight(
            local_week, starting_weight, weekly_increase, progression.progression_style, increment
        )
        session.set_planned_weight(weight)
        for s in session.sets:
            if not s.completed:
                s.retarget(weight)
        replanned += 1

    progression.current_max = new_current
    progression.target_max = new_target
    return replanned


# =============================================================================
# PROGRAMS
# =============================================================================


def _lift_weights(template: TemplateSpec, raw: dict[str, float | str]) -> dict[str, float]:
    weights: dict[str, float] = {}
    for lift in template.required_lifts:
        if raw.get(lift) is None:
            raise ValidationError(
                f"{template.display_name} needs a weight for '{lift}' "
                f"(required: {', '.join(template.required_lifts)})",
                Constraint.MISSING_LIFT,
            )
        weight = parse_weight(raw[lift], lift)
        if weight < LOADABLE_MINIMUM:
            raise ValidationError(
                f"{lift} weight {weight:g} is below the empty bar ({LOADABLE_MINIMUM:g})",
                Constraint.BELOW_LOADABLE_MINIMUM,
            )
        weights[lift] = weight
    return weights


def _program_weight(value: float, step: float) -> float:
    return max(LOADABLE_MINIMUM, round_to_increment(value, step))


def build_sets(lift: LiftSpec, weight: float, step: float) -> list[WorkoutSet]:
    """
    Build the set list for one program exercise session.

    straight:  every set at the planned weight
    ramp:      the last ``sets`` steps of 60/69/82/91/100 %
    intensity: 69/82/91/100 % x5, 105 % x3, 80 % x8
    """
    if lift.set_scheme == "ramp":
        pcts = RAMP_PERCENTAGES[-lift.sets:]
        pcts = (RAMP_PERCENTAGES[0],) * (lift.sets - len(pcts)) + pcts
        scheme = [(pct, lift.reps) for pct in pcts]
    elif lift.set_scheme == "intensity":
        scheme = [(pct, INTENSITY_RAMP_REPS) for pct in INTENSITY_RAMP_PERCENTAGES]
        scheme += [(TRIPLE_PERCENTAGE, TRIPLE_REPS), (BACKOFF_PERCENTAGE, BACKOFF_REPS)]
        scheme = scheme[: lift.sets]
    else:
        return _straight_sets(lift.sets, lift.reps, weight)

    return [
        WorkoutSet(set_number=i, target_reps=reps, target_weight=_program_weight(weight * pct, step))
        for i, (pct, reps) in enumerate(scheme, start=1)
    ]


def generate_program(request: ProgramRequest, settings: Settings) -> Program:
    """
    Generate a whole-program template with every workout instance planned.

    Each calendar slot gets the next program-global session number, shared
    by every exercise scheduled in it.  Per exercise:

        base   = round(lift * start_fraction)
        weight = round((base + increment * (n - 1)) * load_factor)

    where ``n`` counts the exercise's occurrences (Starting Strength) or
    the week number (Texas Method, Madcow).

    Raises:
        ValidationError: If any input violates its constraint
    """
    name = _check_name(request.name, "Program name")
    template = get_template(request.template_kind)
    if not template.is_program:
        raise ValidationError(
            f"{template.display_name} is not a whole-program template",
            Constraint.NOT_A_PROGRAM_TEMPLATE,
        )
    total_weeks = request.total_weeks if request.total_weeks is not None else template.default_weeks
    _check_count("total_weeks", total_weeks)
    weights = _lift_weights(template, request.lift_weights)
    start = _start_date(request.start_date)

    program = Program(
        name=name,
        template_kind=template.kind,
        total_weeks=total_weeks,
        start_date=_iso(start),
        notes=request.notes,
    )

    # (day, ProgramExercise, LiftSpec, rounding step) per template day
    layout: list[list[tuple[TrainingDay, ProgramExercise, LiftSpec, float]]] = []
    for day_index, day_spec in enumerate(template.days):
        day = TrainingDay(name=day_spec.name, day_number=day_index + 1, program_id=program.id)
        entries = []
        for order, lift in enumerate(day_spec.lifts):
            rules = settings.rules_for(lift.exercise_name)
            increment = rules.progression_increment(lift.body, lift.increment_multiplier)
            step = min(rules.rounding_increment, increment)
            exercise = ProgramExercise(
                exercise_name=lift.exercise_name,
                order_index=order,
                starting_weight=_program_weight(weights[lift.lift] * template.start_fraction, step),
                target_sets=lift.sets,
                target_reps=lift.reps,
                increment=increment,
                load_factor=lift.load_factor,
                training_day_id=day.id,
            )
            day.exercises.append(exercise)
            entries.append((day, exercise, lift, step))
        program.training_days.append(day)
        layout.append(entries)

    occurrences: dict[str, int] = {}
    session_number = 1
    slots_per_week = len(template.slot_offsets)
    for week in range(1, total_weeks + 1):
        for slot, offset in enumerate(template.slot_offsets):
            global_slot = (week - 1) * slots_per_week + slot
            if template.day_rotation == "alternate":
                day_index = global_slot % len(layout)
            else:
                day_index = slot % len(layout)
            date = _iso(start + timedelta(days=DAYS_PER_WEEK * (week - 1) + offset))

            for day, exercise, lift, step in layout[day_index]:
                occurrences[exercise.exercise_name] = occurrences.get(exercise.exercise_name, 0) + 1
                n = occurrences[exercise.exercise_name] if lift.progress_basis == "occurrence" else week
                weight = _program_weight(
                    (exercise.starting_weight + exercise.increment * (n - 1)) * exercise.load_factor, step
                )
                session = ExerciseSession(
                    date=date,
                    week_number=week,
                    session_number=session_number,
                    planned_weight=weight,
                    planned_sets=lift.sets,
                    planned_reps=lift.reps,
                    exercise_id=exercise.id,
                    training_day_id=day.id,
                )
                session.sets = build_sets(lift, weight, step)
                for s in session.sets:
                    s.session_id = session.id
                day.sessions.append(session)
            session_number += 1

    return program

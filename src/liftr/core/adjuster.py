"""
Schedule adjustment.

Applies an accepted adjustment to the not-completed sessions scheduled
after the evaluated one.  For programs only sessions of the same exercise
(by name, across training days) are touched.  Adjustments work on the
current planned values, so repeated reductions compound.

Completed sessions and sets are never modified.
"""

from .config import LOADABLE_MINIMUM
from .evaluator import Adjustment, ContinueAsPlanned, Deload, ReduceBy, RepeatWeight
from .models import ExerciseSession, Owner, Program, WorkoutSession
from .settings import Rules
from .units import round_to_increment


def downstream_sessions(
    owner: Owner, evaluated: WorkoutSession | ExerciseSession
) -> list[WorkoutSession | ExerciseSession]:
    """Not-completed sessions scheduled after ``evaluated`` that an adjustment may change."""
    if isinstance(owner, Program):
        name = owner.exercise_name_for(evaluated)
        return [
            s
            for s in owner.all_sessions()
            if not s.completed
            and s.session_number > evaluated.session_number
            and owner.exercise_name_for(s) == name
        ]

    key = (evaluated.week_number, evaluated.day_number, evaluated.date)
    return [
        s
        for s in owner.all_sessions()
        if not s.completed and (s.week_number, s.day_number, s.date) > key
    ]


def _retarget(session: WorkoutSession | ExerciseSession, new_planned: float, step: float, floor: float) -> None:
    """Move a session to a new planned weight, keeping each open set's ratio to the plan."""
    old_planned = session.planned_weight
    session.set_planned_weight(new_planned)
    for s in session.sets:
        if s.completed:
            continue
        ratio = s.target_weight / old_planned if old_planned > 0 else 1.0
        s.retarget(max(floor, round_to_increment(new_planned * ratio, step)))


def apply_adjustment(
    owner: Owner,
    evaluated: WorkoutSession | ExerciseSession,
    adjustment: Adjustment,
    rules: Rules,
) -> int:
    """
    Apply an adjustment to the remaining schedule.

    ContinueAsPlanned   no change
    RepeatWeight        freeze future weights at the evaluated planned weight
                        (program days keep their own load factor)
    ReduceBy / Deload   multiply future weights by (1 - p/100), re-rounded

    Example (ReduceBy(10), future session planned at 200, step 5):
        200 * 0.90 = 180

    Returns:
        Number of sessions changed
    """
    if isinstance(adjustment, ContinueAsPlanned):
        return 0

    sessions = downstream_sessions(owner, evaluated)
    is_program = isinstance(owner, Program)
    floor = LOADABLE_MINIMUM if is_program else 0.0

    def step_for(session: WorkoutSession | ExerciseSession) -> float:
        if is_program:
            exercise = owner.exercise_for(session)
            if exercise is not None:
                return min(rules.rounding_increment, exercise.increment)
        return rules.rounding_increment

    if isinstance(adjustment, RepeatWeight):
        base_factor = 1.0
        if is_program:
            evaluated_exercise = owner.exercise_for(evaluated)
            base_factor = evaluated_exercise.load_factor if evaluated_exercise is not None else 1.0
        for session in sessions:
            factor = 1.0
            if is_program:
                exercise = owner.exercise_for(session)
                factor = exercise.load_factor / base_factor if exercise is not None else 1.0
            step = step_for(session)
            new_planned = max(floor, round_to_increment(evaluated.planned_weight * factor, step))
            _retarget(session, new_planned, step, floor)
        return len(sessions)

    if isinstance(adjustment, (ReduceBy, Deload)):
        multiplier = 1.0 - adjustment.percent / 100.0
        for session in sessions:
            step = step_for(session)
            new_planned = max(floor, round_to_increment(session.planned_weight * multiplier, step))
            _retarget(session, new_planned, step, floor)
        return len(sessions)

    raise TypeError(f"Unknown adjustment: {adjustment!r}")

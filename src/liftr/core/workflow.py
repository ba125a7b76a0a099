"""
Workout workflow: set logging and session completion.

A completion is one unit of work: mark complete, evaluate, optionally
adjust the rest of the schedule, advance the week, then commit once.  If
any step fails every stored object, including the ones the caller holds,
is restored in place to its state just before the attempt (logged sets
included) and the error is re-raised, so the same call can be retried.
"""

from dataclasses import dataclass, field
from typing import Callable

from ..io.store import ScheduleStore
from .advancement import advance_week
from .adjuster import apply_adjustment
from .config import RPE_MAX, RPE_MIN
from .errors import Constraint, InvariantViolation, LiftrError, ValidationError
from .evaluator import Evaluation, evaluate_session, is_deload_checkpoint
from .models import (
    STATUSES,
    ExerciseSession,
    Owner,
    Program,
    Progression,
    WorkoutSession,
    WorkoutSet,
    today_iso,
    validate_iso_date,
)
from .settings import Rules, Settings

# (exercise name, evaluation) -> apply the recommendation?
DecisionFn = Callable[[str, Evaluation], bool]


@dataclass
class ExerciseOutcome:
    """Evaluation and adjustment result for one completed session."""

    exercise_name: str
    session_id: str
    evaluation: Evaluation
    applied: bool = False
    sessions_adjusted: int = 0


@dataclass
class CompletionResult:
    outcomes: list[ExerciseOutcome] = field(default_factory=list)
    advanced: bool = False
    current_week: int = 1

    @property
    def sessions_adjusted(self) -> int:
        return sum(o.sessions_adjusted for o in self.outcomes)


# =============================================================================
# SET LOGGING
# =============================================================================


def log_set(
    session: WorkoutSession | ExerciseSession,
    set_number: int,
    actual_reps: int,
    actual_weight: float | None = None,
    rpe: int | None = None,
    notes: str | None = None,
) -> WorkoutSet:
    """
    Record the performed reps/weight/RPE for one set.

    ``actual_weight`` defaults to the set's target weight.  Re-logging a
    set overwrites the previous entry.

    Raises:
        ValidationError: On an unknown set or out-of-range values
        InvariantViolation: If the session is already completed
    """
    if session.completed:
        raise InvariantViolation(f"Session {session.id} is completed; sets can no longer be logged")
    workout_set = next((s for s in session.sets if s.set_number == set_number), None)
    if workout_set is None:
        raise ValidationError(
            f"Session has no set {set_number} (sets 1-{len(session.sets)})", Constraint.UNKNOWN_ENTITY
        )
    if isinstance(actual_reps, bool) or not isinstance(actual_reps, int) or actual_reps < 0:
        raise ValidationError(f"Reps must be a non-negative integer, got {actual_reps!r}", Constraint.INVALID_SET_LOG)
    if actual_weight is not None and actual_weight < 0:
        raise ValidationError(f"Weight must be non-negative, got {actual_weight}", Constraint.INVALID_SET_LOG)
    if rpe is not None and not RPE_MIN <= rpe <= RPE_MAX:
        raise ValidationError(f"RPE must be within {RPE_MIN}-{RPE_MAX}, got {rpe}", Constraint.INVALID_SET_LOG)

    workout_set.actual_reps = actual_reps
    workout_set.actual_weight = workout_set.target_weight if actual_weight is None else actual_weight
    workout_set.rpe = rpe
    workout_set.notes = notes
    workout_set.completed = True
    if isinstance(session, WorkoutSession):
        session.paused = False
    return workout_set


def pause_session(session: WorkoutSession) -> None:
    """Flag an in-progress session as paused; logged sets are kept."""
    if session.completed:
        raise InvariantViolation(f"Session {session.id} is completed and cannot be paused")
    session.paused = True


def set_status(owner: Owner, status: str) -> None:
    """
    Change an owner's lifecycle status.

    Raises:
        ValidationError: If ``status`` is not a known status
        InvariantViolation: If the transition is not allowed
    """
    if status not in STATUSES:
        raise ValidationError(
            f"Unknown status '{status}'. Valid statuses: {', '.join(STATUSES)}", Constraint.UNKNOWN_STATUS
        )
    owner.set_status(status)


# =============================================================================
# COMPLETION
# =============================================================================


def _completion_date(today: str | None) -> str:
    date = today or today_iso()
    try:
        validate_iso_date(date)
    except ValueError as e:
        raise ValidationError(str(e), Constraint.INVALID_DATE) from None
    return date


def _check_writable(owner: Owner) -> None:
    if owner.status == "completed":
        raise InvariantViolation(f"{type(owner).__name__} '{owner.name}' is completed")


def _should_apply(rules: Rules, exercise_name: str, evaluation: Evaluation, decide: DecisionFn | None) -> bool:
    if not evaluation.needs_decision or rules.adjustment_mode == "never":
        return False
    if rules.adjustment_mode == "auto_adjust":
        return True
    return decide is not None and bool(decide(exercise_name, evaluation))


def _evaluate_and_adjust(
    owner: Owner,
    session: WorkoutSession | ExerciseSession,
    exercise_name: str,
    settings: Settings,
    decide: DecisionFn | None,
) -> ExerciseOutcome:
    rules = settings.rules_for(exercise_name)
    evaluation = evaluate_session(session, rules, is_deload_checkpoint(owner.current_week, rules))
    outcome = ExerciseOutcome(exercise_name, session.id, evaluation)
    if _should_apply(rules, exercise_name, evaluation, decide):
        outcome.sessions_adjusted = apply_adjustment(owner, session, evaluation.adjustment, rules)
        outcome.applied = True
    return outcome


def complete_progression_session(
    store: ScheduleStore,
    progression: Progression,
    session: WorkoutSession,
    settings: Settings,
    decide: DecisionFn | None = None,
    today: str | None = None,
) -> CompletionResult:
    """
    Complete one progression session as a single committed unit.

    Raises:
        InvariantViolation: If the progression or session is already completed
        PersistenceError: If the commit fails (objects are restored for a retry)
    """
    _check_writable(progression)
    date = _completion_date(today)
    savepoint = store.savepoint(progression)
    try:
        session.mark_completed(date)
        outcome = _evaluate_and_adjust(progression, session, progression.exercise_name, settings, decide)
        advanced = advance_week(progression, session.week_number)
        store.commit()
    except LiftrError:
        store.rollback(savepoint)
        raise
    return CompletionResult([outcome], advanced, progression.current_week)


def complete_program_workout(
    store: ScheduleStore,
    program: Program,
    session_number: int,
    settings: Settings,
    decide: DecisionFn | None = None,
    today: str | None = None,
) -> CompletionResult:
    """
    Complete every exercise session of one workout instance as a single unit.

    Each exercise's current weight moves to the weight it was just
    completed at.

    Raises:
        ValidationError: If the program has no such workout
        InvariantViolation: If the program or workout is already completed
        PersistenceError: If the commit fails (objects are restored for a retry)
    """
    _check_writable(program)
    date = _completion_date(today)
    sessions = program.workout(session_number)
    if not sessions:
        raise ValidationError(f"Program has no workout #{session_number}", Constraint.UNKNOWN_ENTITY)
    if all(s.completed for s in sessions):
        raise InvariantViolation(f"Workout #{session_number} is already completed")

    result = CompletionResult()
    savepoint = store.savepoint(program)
    try:
        for session in sessions:
            if session.completed:
                continue
            session.mark_completed(date)
            exercise = program.exercise_for(session)
            if exercise is not None:
                exercise.current_weight = session.planned_weight
            result.outcomes.append(
                _evaluate_and_adjust(program, session, program.exercise_name_for(session), settings, decide)
            )
        result.advanced = advance_week(program, sessions[0].week_number)
        result.current_week = program.current_week
        store.commit()
    except LiftrError:
        store.rollback(savepoint)
        raise
    return result

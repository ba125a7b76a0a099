"""
JSON serialization for the schedule entity graph.

Handles conversion between dataclasses and JSON-compatible dicts.  Child
lists are nested inside their owners; back-references are stored as ids.
"""

from typing import Any, Callable, TypeVar

from ..core.errors import Constraint, ValidationError
from ..core.models import (
    ExerciseSession,
    Program,
    ProgramExercise,
    Progression,
    TrainingDay,
    WorkoutSession,
    WorkoutSet,
)

FORMAT_VERSION = 1

T = TypeVar("T")


def _build(kind: str, data: dict[str, Any], factory: Callable[[], T]) -> T:
    """Run a constructor, converting bad records into ValidationError."""
    if not isinstance(data, dict):
        raise ValidationError(f"Invalid {kind} record: expected an object, got {type(data).__name__}")
    try:
        return factory()
    except KeyError as e:
        raise ValidationError(f"Invalid {kind} record: missing field {e}") from e
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid {kind} record: {e}", Constraint.MALFORMED_RECORD) from e


def _opt_float(value: Any) -> float | None:
    return float(value) if value is not None else None


def _opt_int(value: Any) -> int | None:
    return int(value) if value is not None else None


# =============================================================================
# SETS
# =============================================================================


def workout_set_to_dict(workout_set: WorkoutSet) -> dict[str, Any]:
    return {
        "id": workout_set.id,
        "session_id": workout_set.session_id,
        "set_number": workout_set.set_number,
        "target_reps": workout_set.target_reps,
        "target_weight": workout_set.target_weight,
        "actual_reps": workout_set.actual_reps,
        "actual_weight": workout_set.actual_weight,
        "rpe": workout_set.rpe,
        "completed": workout_set.completed,
        "notes": workout_set.notes,
    }


def dict_to_workout_set(data: dict[str, Any]) -> WorkoutSet:
    """
    Convert dict to WorkoutSet.

    Raises:
        ValidationError: If data is invalid
    """
    return _build("set", data, lambda: WorkoutSet(
        id=str(data["id"]),
        session_id=data.get("session_id"),
        set_number=int(data["set_number"]),
        target_reps=int(data["target_reps"]),
        target_weight=float(data["target_weight"]),
        actual_reps=_opt_int(data.get("actual_reps")),
        actual_weight=_opt_float(data.get("actual_weight")),
        rpe=_opt_int(data.get("rpe")),
        completed=bool(data.get("completed", False)),
        notes=data.get("notes"),
    ))


# =============================================================================
# PROGRESSIONS
# =============================================================================


def workout_session_to_dict(session: WorkoutSession) -> dict[str, Any]:
    return {
        "id": session.id,
        "progression_id": session.progression_id,
        "date": session.date,
        "week_number": session.week_number,
        "day_number": session.day_number,
        "planned_weight": session.planned_weight,
        "planned_sets": session.planned_sets,
        "planned_reps": session.planned_reps,
        "completed": session.completed,
        "completed_date": session.completed_date,
        "paused": session.paused,
        "notes": session.notes,
        "sets": [workout_set_to_dict(s) for s in session.sets],
    }


def dict_to_workout_session(data: dict[str, Any]) -> WorkoutSession:
    return _build("session", data, lambda: WorkoutSession(
        id=str(data["id"]),
        progression_id=data.get("progression_id"),
        date=data["date"],
        week_number=int(data["week_number"]),
        day_number=int(data["day_number"]),
        planned_weight=float(data["planned_weight"]),
        planned_sets=int(data["planned_sets"]),
        planned_reps=int(data["planned_reps"]),
        completed=bool(data.get("completed", False)),
        completed_date=data.get("completed_date"),
        paused=bool(data.get("paused", False)),
        notes=data.get("notes"),
        sets=[dict_to_workout_set(s) for s in data.get("sets", [])],
    ))


def progression_to_dict(progression: Progression) -> dict[str, Any]:
    return {
        "id": progression.id,
        "exercise_name": progression.exercise_name,
        "template_kind": progression.template_kind,
        "progression_style": progression.progression_style,
        "status": progression.status,
        "current_max": progression.current_max,
        "target_max": progression.target_max,
        "starting_weight": progression.starting_weight,
        "total_weeks": progression.total_weeks,
        "current_week": progression.current_week,
        "start_date": progression.start_date,
        "notes": progression.notes,
        "sessions": [workout_session_to_dict(s) for s in progression.sessions],
    }


def dict_to_progression(data: dict[str, Any]) -> Progression:
    """
    Convert dict to Progression, including its whole session subtree.

    Raises:
        ValidationError: If any record in the subtree is invalid
    """
    return _build("progression", data, lambda: Progression(
        id=str(data["id"]),
        exercise_name=data["exercise_name"],
        template_kind=data["template_kind"],
        progression_style=data["progression_style"],
        status=data.get("status", "active"),
        current_max=float(data["current_max"]),
        target_max=float(data["target_max"]),
        starting_weight=float(data["starting_weight"]),
        total_weeks=int(data["total_weeks"]),
        current_week=int(data.get("current_week", 1)),
        start_date=data["start_date"],
        notes=data.get("notes"),
        sessions=[dict_to_workout_session(s) for s in data.get("sessions", [])],
    ))


# =============================================================================
# PROGRAMS
# =============================================================================


def program_exercise_to_dict(exercise: ProgramExercise) -> dict[str, Any]:
    return {
        "id": exercise.id,
        "training_day_id": exercise.training_day_id,
        "exercise_name": exercise.exercise_name,
        "order_index": exercise.order_index,
        "starting_weight": exercise.starting_weight,
        "current_weight": exercise.current_weight,
        "target_sets": exercise.target_sets,
        "target_reps": exercise.target_reps,
        "increment": exercise.increment,
        "load_factor": exercise.load_factor,
        "notes": exercise.notes,
    }


def dict_to_program_exercise(data: dict[str, Any]) -> ProgramExercise:
    return _build("exercise", data, lambda: ProgramExercise(
        id=str(data["id"]),
        training_day_id=data.get("training_day_id"),
        exercise_name=data["exercise_name"],
        order_index=int(data["order_index"]),
        starting_weight=float(data["starting_weight"]),
        current_weight=_opt_float(data.get("current_weight")),
        target_sets=int(data["target_sets"]),
        target_reps=int(data["target_reps"]),
        increment=float(data.get("increment", 5.0)),
        load_factor=float(data.get("load_factor", 1.0)),
        notes=data.get("notes"),
    ))


def exercise_session_to_dict(session: ExerciseSession) -> dict[str, Any]:
    return {
        "id": session.id,
        "exercise_id": session.exercise_id,
        "training_day_id": session.training_day_id,
        "date": session.date,
        "week_number": session.week_number,
        "session_number": session.session_number,
        "planned_weight": session.planned_weight,
        "planned_sets": session.planned_sets,
        "planned_reps": session.planned_reps,
        "completed": session.completed,
        "completed_date": session.completed_date,
        "notes": session.notes,
        "sets": [workout_set_to_dict(s) for s in session.sets],
    }


def dict_to_exercise_session(data: dict[str, Any]) -> ExerciseSession:
    return _build("session", data, lambda: ExerciseSession(
        id=str(data["id"]),
        exercise_id=data.get("exercise_id"),
        training_day_id=data.get("training_day_id"),
        date=data["date"],
        week_number=int(data["week_number"]),
        session_number=int(data["session_number"]),
        planned_weight=float(data["planned_weight"]),
        planned_sets=int(data["planned_sets"]),
        planned_reps=int(data["planned_reps"]),
        completed=bool(data.get("completed", False)),
        completed_date=data.get("completed_date"),
        notes=data.get("notes"),
        sets=[dict_to_workout_set(s) for s in data.get("sets", [])],
    ))


def training_day_to_dict(day: TrainingDay) -> dict[str, Any]:
    return {
        "id": day.id,
        "program_id": day.program_id,
        "name": day.name,
        "day_number": day.day_number,
        "exercises": [program_exercise_to_dict(e) for e in day.exercises],
        "sessions": [exercise_session_to_dict(s) for s in day.sessions],
    }


def dict_to_training_day(data: dict[str, Any]) -> TrainingDay:
    return _build("training day", data, lambda: TrainingDay(
        id=str(data["id"]),
        program_id=data.get("program_id"),
        name=data["name"],
        day_number=int(data["day_number"]),
        exercises=[dict_to_program_exercise(e) for e in data.get("exercises", [])],
        sessions=[dict_to_exercise_session(s) for s in data.get("sessions", [])],
    ))


def program_to_dict(program: Program) -> dict[str, Any]:
    return {
        "id": program.id,
        "name": program.name,
        "template_kind": program.template_kind,
        "status": program.status,
        "total_weeks": program.total_weeks,
        "current_week": program.current_week,
        "start_date": program.start_date,
        "notes": program.notes,
        "training_days": [training_day_to_dict(d) for d in program.training_days],
    }


def dict_to_program(data: dict[str, Any]) -> Program:
    """
    Convert dict to Program, including its whole training-day subtree.

    Raises:
        ValidationError: If any record in the subtree is invalid
    """
    return _build("program", data, lambda: Program(
        id=str(data["id"]),
        name=data["name"],
        template_kind=data["template_kind"],
        status=data.get("status", "active"),
        total_weeks=int(data["total_weeks"]),
        current_week=int(data.get("current_week", 1)),
        start_date=data["start_date"],
        notes=data.get("notes"),
        training_days=[dict_to_training_day(d) for d in data.get("training_days", [])],
    ))


# =============================================================================
# DOCUMENT
# =============================================================================


def document_to_dict(progressions: list[Progression], programs: list[Program]) -> dict[str, Any]:
    """Whole-store document."""
    return {
        "version": FORMAT_VERSION,
        "progressions": [progression_to_dict(p) for p in progressions],
        "programs": [program_to_dict(p) for p in programs],
    }


def dict_to_document(data: dict[str, Any]) -> tuple[list[Progression], list[Program]]:
    """
    Parse a whole-store document.

    Raises:
        ValidationError: If the document or any record is invalid
    """
    if not isinstance(data, dict):
        raise ValidationError("Invalid store document: expected an object")
    version = data.get("version", FORMAT_VERSION)
    if version != FORMAT_VERSION:
        raise ValidationError(f"Unsupported store format version: {version}")
    progressions = [dict_to_progression(p) for p in data.get("progressions", [])]
    programs = [dict_to_program(p) for p in data.get("programs", [])]
    return progressions, programs

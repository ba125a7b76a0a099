"""Workout commands: log-set, pause, complete, complete-workout, upcoming."""

import json
from dataclasses import asdict
from datetime import datetime
from typing import Annotated, Optional

import typer

from ...core.analytics import upcoming_sessions
from ...core.errors import InvariantViolation, LiftrError, ValidationError
from ...core.evaluator import Evaluation
from ...core.models import ExerciseSession, Program, Progression, WorkoutSession
from ...core.units import display_weight
from ...core.workflow import (
    CompletionResult,
    complete_program_workout,
    complete_progression_session,
    log_set,
    pause_session,
)
from .. import views
from ..app import (
    JsonOption,
    StoreOption,
    app,
    commit_store,
    find_owner,
    find_program_session,
    get_settings,
    get_store,
    next_session,
    next_workout_number,
)

AcceptOption = Annotated[
    Optional[bool],
    typer.Option(
        "--accept/--decline",
        help="Answer adjustment prompts without asking (prompt mode only)",
    ),
]


def _decider(accept: bool | None):
    """Build the adjustment decision callback for prompt mode."""

    def decide(exercise_name: str, evaluation: Evaluation) -> bool:
        if accept is not None:
            return accept
        views.console.print(f"[bold]{exercise_name}[/bold]: {evaluation.percentage:.0f}% of planned reps")
        return views.confirm_action(evaluation.message)

    return decide


def _completion_json(result: CompletionResult) -> str:
    return json.dumps({
        "outcomes": [
            {
                "exercise_name": o.exercise_name,
                "session_id": o.session_id,
                "percentage": round(o.evaluation.percentage, 2),
                "tier": o.evaluation.tier,
                "adjustment": type(o.evaluation.adjustment).__name__,
                "message": o.evaluation.message,
                "applied": o.applied,
                "sessions_adjusted": o.sessions_adjusted,
            }
            for o in result.outcomes
        ],
        "advanced": result.advanced,
        "current_week": result.current_week,
    }, indent=2)


def _resolve_session(
    owner: Progression | Program,
    store,
    session_id: str | None,
    workout: int | None,
    exercise: str | None,
) -> WorkoutSession | ExerciseSession:
    """Pick the session a set belongs to; defaults to the next open one."""
    if session_id is not None:
        session = store.get(session_id)
        if not isinstance(session, (WorkoutSession, ExerciseSession)) or store.owner_of(session) is not owner:
            views.print_error(f"No session '{session_id}' in {owner.name}")
            raise typer.Exit(1)
        return session

    if isinstance(owner, Progression):
        session = next_session(owner)
        if session is None:
            views.print_error(f"{owner.name} has no open sessions")
            raise typer.Exit(1)
        return session

    if exercise is None:
        views.print_error("Programs need --exercise (or --session) to pick the session")
        raise typer.Exit(1)
    number = workout if workout is not None else next_workout_number(owner)
    session = find_program_session(owner, number, exercise) if number is not None else None
    if session is None:
        views.print_error(f"No '{exercise}' session in workout #{number}")
        raise typer.Exit(1)
    return session


@app.command("log-set")
def log_set_cmd(
    ref: Annotated[str, typer.Argument(help="Progression/program id, id prefix, or name")],
    set_number: Annotated[int, typer.Argument(help="Set number (1-based)")],
    reps: Annotated[int, typer.Argument(help="Reps performed")],
    weight: Annotated[Optional[float], typer.Option("--weight", "-w", help="Weight used (target)")] = None,
    rpe: Annotated[Optional[int], typer.Option("--rpe", help="Rate of perceived exertion 1-10")] = None,
    session_id: Annotated[Optional[str], typer.Option("--session", "-s", help="Session id")] = None,
    workout: Annotated[Optional[int], typer.Option("--workout", help="Program workout number (next)")] = None,
    exercise: Annotated[Optional[str], typer.Option("--exercise", "-e", help="Program exercise name")] = None,
    notes: Annotated[Optional[str], typer.Option("--notes", help="Set notes")] = None,
    store_path: StoreOption = None,
) -> None:
    """
    Log the reps (and optionally weight and RPE) performed for one set.
    """
    settings = get_settings()
    store = get_store(store_path)
    owner = find_owner(store, ref)
    session = _resolve_session(owner, store, session_id, workout, exercise)

    try:
        logged = log_set(session, set_number, reps, weight, rpe, notes)
    except (ValidationError, InvariantViolation) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    commit_store(store)
    views.print_success(
        f"Set {logged.set_number}: {logged.actual_reps}/{logged.target_reps} reps "
        f"@ {display_weight(logged.actual_weight, settings.use_metric)}"
    )


@app.command()
def pause(
    ref: Annotated[str, typer.Argument(help="Progression id, id prefix, or exercise name")],
    session_id: Annotated[Optional[str], typer.Option("--session", "-s", help="Session id (next)")] = None,
    store_path: StoreOption = None,
) -> None:
    """
    Pause the current progression session, keeping logged sets.
    """
    store = get_store(store_path)
    owner = find_owner(store, ref)
    if not isinstance(owner, Progression):
        views.print_error("Only progression sessions can be paused")
        raise typer.Exit(1)
    session = _resolve_session(owner, store, session_id, None, None)

    try:
        pause_session(session)
    except InvariantViolation as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    commit_store(store)
    views.print_info(f"Paused week {session.week_number} day {session.day_number}.")


@app.command()
def complete(
    ref: Annotated[str, typer.Argument(help="Progression id, id prefix, or exercise name")],
    session_id: Annotated[Optional[str], typer.Option("--session", "-s", help="Session id (next)")] = None,
    date: Annotated[Optional[str], typer.Option("--date", "-d", help="Completion date YYYY-MM-DD (today)")] = None,
    accept: AcceptOption = None,
    store_path: StoreOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Complete a progression session: evaluate it, adjust, and advance the week.
    """
    settings = get_settings()
    store = get_store(store_path)
    owner = find_owner(store, ref)
    if not isinstance(owner, Progression):
        views.print_error("Use 'complete-workout' for programs")
        raise typer.Exit(1)
    session = _resolve_session(owner, store, session_id, None, None)

    try:
        result = complete_progression_session(store, owner, session, settings, _decider(accept), date)
    except LiftrError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(_completion_json(result))
        return
    views.print_completion(result)


@app.command("complete-workout")
def complete_workout(
    ref: Annotated[str, typer.Argument(help="Program id, id prefix, or name")],
    workout: Annotated[Optional[int], typer.Option("--workout", help="Workout number (next)")] = None,
    date: Annotated[Optional[str], typer.Option("--date", "-d", help="Completion date YYYY-MM-DD (today)")] = None,
    accept: AcceptOption = None,
    store_path: StoreOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Complete every exercise of a program workout in one go.
    """
    settings = get_settings()
    store = get_store(store_path)
    owner = find_owner(store, ref)
    if not isinstance(owner, Program):
        views.print_error("Use 'complete' for progressions")
        raise typer.Exit(1)

    number = workout if workout is not None else next_workout_number(owner)
    if number is None:
        views.print_error(f"{owner.name} has no open workouts")
        raise typer.Exit(1)

    try:
        result = complete_program_workout(store, owner, number, settings, _decider(accept), date)
    except LiftrError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(_completion_json(result))
        return
    views.print_completion(result)


@app.command()
def upcoming(
    days: Annotated[Optional[int], typer.Option("--days", help="Days ahead (settings default)")] = None,
    today: Annotated[Optional[str], typer.Option("--today", help="Reference date YYYY-MM-DD")] = None,
    store_path: StoreOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    List workouts coming up in the next few days.
    """
    settings = get_settings()
    store = get_store(store_path)
    horizon = days if days is not None else settings.upcoming_workouts_days
    ref_date = today or datetime.now().strftime("%Y-%m-%d")

    try:
        items = upcoming_sessions(store.progressions(), store.programs(), ref_date, horizon)
    except ValueError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps([asdict(u) for u in items], indent=2))
        return
    views.print_upcoming(items, horizon, settings.use_metric)

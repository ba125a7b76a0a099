"""Shared Typer app object, shared option types, and store/settings utilities."""

from pathlib import Path
from typing import Annotated, Optional

import typer

from ..core.engine.config_loader import load_settings
from ..core.errors import PersistenceError, ValidationError
from ..core.models import ExerciseSession, Program, Progression, WorkoutSession
from ..core.settings import Settings
from ..io.store import ScheduleStore, get_default_store_path
from . import views

# Shared --store-path option type used across all commands
StoreOption = Annotated[
    Optional[Path],
    typer.Option("--store-path", "-p", help="Path to schedule JSON file"),
]

JsonOption = Annotated[
    bool,
    typer.Option("--json", "-j", help="Output as JSON for machine processing"),
]

app = typer.Typer(
    name="liftr",
    help="Strength progression and program scheduler.",
    no_args_is_help=False,
    invoke_without_command=True,
)


def get_store(store_path: Path | None) -> ScheduleStore:
    """Load the schedule store from path or default location; exit on unreadable data."""
    store = ScheduleStore(store_path if store_path is not None else get_default_store_path())
    try:
        return store.load()
    except (ValidationError, PersistenceError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)


def get_settings() -> Settings:
    """Load effective settings; exit on invalid values."""
    try:
        return load_settings()
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)


def find_owner(store: ScheduleStore, ref: str) -> Progression | Program:
    """
    Resolve a progression or program by id, id prefix, or name (case-insensitive).

    Exits with an error when nothing (or more than one thing) matches.
    """
    entity = store.get(ref)
    if isinstance(entity, (Progression, Program)):
        return entity

    key = ref.strip().casefold()
    matches = [p for p in store.progressions() if p.exercise_name.casefold() == key]
    matches += [p for p in store.programs() if p.name.casefold() == key]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        views.print_error(f"No progression or program matches '{ref}'")
    else:
        views.print_error(f"'{ref}' is ambiguous; use the id instead")
        views.print_info(", ".join(f"{m.id[:8]} ({m.name})" for m in matches))
    raise typer.Exit(1)


def next_session(progression: Progression) -> WorkoutSession | None:
    return next((s for s in progression.all_sessions() if not s.completed), None)


def next_workout_number(program: Program) -> int | None:
    return next((s.session_number for s in program.all_sessions() if not s.completed), None)


def find_program_session(program: Program, session_number: int, exercise: str) -> ExerciseSession | None:
    key = exercise.strip().casefold()
    return next(
        (s for s in program.workout(session_number) if program.exercise_name_for(s).casefold() == key),
        None,
    )


def commit_store(store: ScheduleStore) -> None:
    """Commit pending changes; on failure roll back and exit."""
    try:
        store.commit()
    except PersistenceError as e:
        store.rollback()
        views.print_error(str(e))
        raise typer.Exit(1)

"""Schedule commands: create-progression, create-program, list, show, recalculate, status, delete, templates."""

import json
from typing import Annotated, Optional

import typer

from ...core.config import DEFAULT_REPS, DEFAULT_SETS
from ...core.errors import InvariantViolation, ValidationError
from ...core.generator import (
    GenerationRequest,
    ProgramRequest,
    generate_program,
    generate_progression,
    recalculate_progression,
)
from ...core.models import STATUSES, Program, Progression
from ...core.templates import TEMPLATES, get_template
from ...core.workflow import set_status
from ...io.serializers import program_to_dict, progression_to_dict
from .. import views
from ..app import JsonOption, StoreOption, app, commit_store, find_owner, get_settings, get_store


def _owner_to_dict(owner: Progression | Program) -> dict:
    return progression_to_dict(owner) if isinstance(owner, Progression) else program_to_dict(owner)


@app.command("create-progression")
def create_progression(
    exercise: Annotated[str, typer.Argument(help="Exercise name, e.g. Squat")],
    current_max: Annotated[str, typer.Option("--current-max", "-c", help="Current max (lbs)")],
    target_max: Annotated[str, typer.Option("--target-max", "-t", help="Target max (lbs)")],
    template: Annotated[
        str,
        typer.Option("--template", help=f"Template kind: {', '.join(TEMPLATES)}"),
    ] = "custom",
    style: Annotated[
        str,
        typer.Option("--style", "-s", help="linear, periodization, rpe, percentage"),
    ] = "linear",
    weeks: Annotated[Optional[int], typer.Option("--weeks", "-w", help="Total weeks (template default)")] = None,
    per_week: Annotated[
        Optional[int],
        typer.Option("--per-week", help="Sessions per week (template default)"),
    ] = None,
    sets: Annotated[int, typer.Option("--sets", help="Sets per session")] = DEFAULT_SETS,
    reps: Annotated[int, typer.Option("--reps", help="Reps per set")] = DEFAULT_REPS,
    start: Annotated[Optional[str], typer.Option("--start", help="Start date YYYY-MM-DD (today)")] = None,
    notes: Annotated[Optional[str], typer.Option("--notes", help="Free-form notes")] = None,
    store_path: StoreOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Create a single-exercise progression from current and target max.
    """
    settings = get_settings()
    store = get_store(store_path)

    try:
        spec = get_template(template)
        request = GenerationRequest(
            exercise_name=exercise,
            current_max=current_max,
            target_max=target_max,
            template_kind=template,
            progression_style=style,
            total_weeks=weeks if weeks is not None else spec.default_weeks,
            sessions_per_week=per_week if per_week is not None else spec.sessions_per_week,
            sets=sets,
            reps=reps,
            start_date=start,
            notes=notes,
        )
        progression = generate_progression(request, settings)
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    store.insert(progression)
    commit_store(store)

    if json_out:
        print(json.dumps(progression_to_dict(progression), indent=2))
        return

    views.print_success(
        f"Created {progression.exercise_name} progression: {len(progression.sessions)} sessions "
        f"over {progression.total_weeks} weeks (id {progression.id[:8]})"
    )
    views.print_progression(progression, settings.use_metric, week=1)


@app.command("create-program")
def create_program(
    template: Annotated[str, typer.Argument(help="starting_strength, texas_method or madcow")],
    name: Annotated[Optional[str], typer.Option("--name", "-n", help="Program name (template name)")] = None,
    squat: Annotated[Optional[str], typer.Option("--squat", help="Squat weight (lbs)")] = None,
    bench: Annotated[Optional[str], typer.Option("--bench", help="Bench press weight (lbs)")] = None,
    deadlift: Annotated[Optional[str], typer.Option("--deadlift", help="Deadlift weight (lbs)")] = None,
    press: Annotated[Optional[str], typer.Option("--press", help="Overhead press weight (lbs)")] = None,
    row: Annotated[Optional[str], typer.Option("--row", help="Barbell row weight (lbs)")] = None,
    weeks: Annotated[Optional[int], typer.Option("--weeks", "-w", help="Total weeks (template default)")] = None,
    start: Annotated[Optional[str], typer.Option("--start", help="Start date YYYY-MM-DD (today)")] = None,
    store_path: StoreOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Create a whole program (e.g. Starting Strength) from your working weights.
    """
    settings = get_settings()
    store = get_store(store_path)

    lifts = {"squat": squat, "bench": bench, "deadlift": deadlift, "press": press, "row": row}
    try:
        spec = get_template(template)
        request = ProgramRequest(
            name=name or spec.display_name,
            template_kind=template,
            lift_weights={k: v for k, v in lifts.items() if v is not None},
            total_weeks=weeks,
            start_date=start,
        )
        program = generate_program(request, settings)
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    store.insert(program)
    commit_store(store)

    if json_out:
        print(json.dumps(program_to_dict(program), indent=2))
        return

    workouts = len({s.session_number for s in program.all_sessions()})
    views.print_success(
        f"Created {program.name}: {workouts} workouts over {program.total_weeks} weeks (id {program.id[:8]})"
    )
    views.print_program(program, settings.use_metric, week=1)


@app.command("list")
def list_schedules(
    store_path: StoreOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    List all progressions and programs.
    """
    store = get_store(store_path)

    if json_out:
        rows = [
            {
                "id": p.id,
                "kind": "progression" if isinstance(p, Progression) else "program",
                "name": p.name,
                "template_kind": p.template_kind,
                "status": p.status,
                "current_week": p.current_week,
                "total_weeks": p.total_weeks,
            }
            for p in (*store.progressions(), *store.programs())
        ]
        print(json.dumps(rows, indent=2))
        return

    views.print_owner_list(store.progressions(), store.programs())


@app.command()
def show(
    ref: Annotated[str, typer.Argument(help="Progression/program id, id prefix, or name")],
    week: Annotated[Optional[int], typer.Option("--week", "-w", help="Only show this week")] = None,
    store_path: StoreOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show a progression or program with its planned sessions.
    """
    settings = get_settings()
    store = get_store(store_path)
    owner = find_owner(store, ref)

    if json_out:
        print(json.dumps(_owner_to_dict(owner), indent=2))
        return

    if isinstance(owner, Progression):
        views.print_progression(owner, settings.use_metric, week)
    else:
        views.print_program(owner, settings.use_metric, week)


@app.command()
def recalculate(
    ref: Annotated[str, typer.Argument(help="Progression id, id prefix, or exercise name")],
    current_max: Annotated[Optional[str], typer.Option("--current-max", "-c", help="New current max (lbs)")] = None,
    target_max: Annotated[Optional[str], typer.Option("--target-max", "-t", help="New target max (lbs)")] = None,
    store_path: StoreOption = None,
) -> None:
    """
    Re-plan the remaining weeks of a progression from updated maxes.
    """
    settings = get_settings()
    store = get_store(store_path)
    owner = find_owner(store, ref)
    if not isinstance(owner, Progression):
        views.print_error("Only progressions can be recalculated")
        raise typer.Exit(1)

    try:
        count = recalculate_progression(owner, settings, current_max, target_max)
    except (ValidationError, InvariantViolation) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    commit_store(store)
    views.print_success(f"Re-planned {count} session(s) from week {owner.current_week}.")


@app.command()
def status(
    ref: Annotated[str, typer.Argument(help="Progression/program id, id prefix, or name")],
    new_status: Annotated[str, typer.Argument(help=f"New status: {', '.join(STATUSES)}")],
    store_path: StoreOption = None,
) -> None:
    """
    Pause, resume or complete a progression or program.
    """
    store = get_store(store_path)
    owner = find_owner(store, ref)

    try:
        set_status(owner, new_status)
    except (ValidationError, InvariantViolation) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    commit_store(store)
    views.print_success(f"{owner.name} is now {owner.status}.")


@app.command()
def delete(
    ref: Annotated[str, typer.Argument(help="Progression/program id, id prefix, or name")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
    store_path: StoreOption = None,
) -> None:
    """
    Delete a progression or program with all its sessions and sets.
    """
    store = get_store(store_path)
    owner = find_owner(store, ref)

    if not yes and not views.confirm_action(f"Delete {owner.name} and all its sessions?"):
        views.print_info("Cancelled.")
        return

    store.delete(owner)
    commit_store(store)
    views.print_success(f"Deleted {owner.name}.")


@app.command()
def templates(
    json_out: JsonOption = False,
) -> None:
    """
    List available templates.
    """
    specs = list(TEMPLATES.values())
    if json_out:
        print(json.dumps([
            {
                "kind": t.kind,
                "name": t.display_name,
                "description": t.description,
                "default_weeks": t.default_weeks,
                "sessions_per_week": t.sessions_per_week,
                "is_program": t.is_program,
                "required_lifts": list(t.required_lifts),
            }
            for t in specs
        ], indent=2))
        return

    views.print_templates(specs)

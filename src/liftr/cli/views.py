"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of schedules, completions and
analytics.  Weights are stored in lbs and formatted per the metric setting.
"""

from rich.console import Console
from rich.table import Table

from ..core.analytics import ExerciseStat, UpcomingWorkout
from ..core.models import Program, Progression
from ..core.plates import PlateResult
from ..core.settings import Settings
from ..core.templates import TemplateSpec
from ..core.units import display_weight
from ..core.workflow import CompletionResult

console = Console()

_STATUS_STYLE = {"active": "green", "paused": "yellow", "completed": "dim"}


def _fmt_status(status: str) -> str:
    style = _STATUS_STYLE.get(status, "white")
    return f"[{style}]{status}[/{style}]"


def _fmt_sets(sets, use_metric: bool) -> str:
    """Compact set prescription, e.g. '3x5 @ 185.0 lbs' or '135/155/185 x5'."""
    if not sets:
        return "-"
    weights = {s.target_weight for s in sets}
    reps = {s.target_reps for s in sets}
    if len(weights) == 1 and len(reps) == 1:
        return f"{len(sets)}x{sets[0].target_reps} @ {display_weight(sets[0].target_weight, use_metric)}"
    return ", ".join(f"{display_weight(s.target_weight, use_metric)}x{s.target_reps}" for s in sets)


def _fmt_logged(session) -> str:
    """Logged reps with a set count, e.g. '5 5 3 (3/3)'."""
    logged = [s for s in session.sets if s.actual_reps is not None]
    if not logged:
        return "-"
    reps = " ".join(str(s.actual_reps) for s in logged)
    return f"{reps} ({session.completed_sets_count}/{len(session.sets)})"


def format_owner_table(progressions: list[Progression], programs: list[Program]) -> Table:
    """
    Create a Rich table listing every stored progression and program.

    Args:
        progressions: Stored progressions
        programs: Stored programs

    Returns:
        Rich Table object
    """
    table = Table(title="Schedules")

    table.add_column("ID", style="dim")
    table.add_column("Kind", style="magenta")
    table.add_column("Name", style="cyan")
    table.add_column("Template")
    table.add_column("Week", justify="right")
    table.add_column("Progress", justify="right")
    table.add_column("Status")

    for p in progressions:
        table.add_row(
            p.id[:8],
            "progression",
            p.exercise_name,
            f"{p.template_kind} / {p.progression_style}",
            f"{p.current_week}/{p.total_weeks}",
            f"{p.progress_percentage:.0f}%",
            _fmt_status(p.status),
        )
    for p in programs:
        table.add_row(
            p.id[:8],
            "program",
            p.name,
            p.template_kind,
            f"{p.current_week}/{p.total_weeks}",
            f"{p.progress_percentage:.0f}%",
            _fmt_status(p.status),
        )

    return table


def print_owner_list(progressions: list[Progression], programs: list[Program]) -> None:
    if not progressions and not programs:
        console.print("[yellow]No progressions or programs yet.[/yellow]")
        return
    console.print(format_owner_table(progressions, programs))


def print_progression(progression: Progression, use_metric: bool = False, week: int | None = None) -> None:
    """
    Print a progression header and its session table.

    Args:
        progression: Progression to display
        use_metric: Format weights in kg
        week: Only show this week (all weeks when None)
    """
    console.print()
    console.print(
        f"[bold cyan]{progression.exercise_name}[/bold cyan]  "
        f"{progression.template_kind} / {progression.progression_style}  {_fmt_status(progression.status)}"
    )
    console.print(
        f"Max {display_weight(progression.current_max, use_metric)} -> "
        f"{display_weight(progression.target_max, use_metric)}, "
        f"week {progression.current_week}/{progression.total_weeks}  [dim]{progression.id}[/dim]"
    )

    table = Table()
    table.add_column("Wk", justify="right")
    table.add_column("Day", justify="right")
    table.add_column("Date", style="cyan")
    table.add_column("Planned")
    table.add_column("Logged reps")
    table.add_column("Perf", justify="right")
    table.add_column("ID", style="dim")

    for s in progression.all_sessions():
        if week is not None and s.week_number != week:
            continue
        if s.completed:
            perf = f"{s.performance_percentage:.0f}%"
        elif s.paused:
            perf = "[yellow]paused[/yellow]"
        else:
            perf = ""
        date = f"[green]{s.date}[/green]" if s.completed else s.date
        table.add_row(
            str(s.week_number),
            str(s.day_number),
            date,
            _fmt_sets(s.sets, use_metric),
            _fmt_logged(s),
            perf,
            s.id[:8],
        )

    console.print(table)


def print_program(program: Program, use_metric: bool = False, week: int | None = None) -> None:
    """Print a program header, its exercises, and one row per workout instance."""
    console.print()
    console.print(f"[bold cyan]{program.name}[/bold cyan]  {program.template_kind}  {_fmt_status(program.status)}")
    console.print(f"Week {program.current_week}/{program.total_weeks}  [dim]{program.id}[/dim]")

    table = Table()
    table.add_column("#", justify="right", style="dim")
    table.add_column("Wk", justify="right")
    table.add_column("Date", style="cyan")
    table.add_column("Day", style="magenta")
    table.add_column("Exercise")
    table.add_column("Planned")
    table.add_column("Logged reps")

    last_number = None
    for s in program.all_sessions():
        if week is not None and s.week_number != week:
            continue
        first = s.session_number != last_number
        last_number = s.session_number
        day = program.training_day(s.training_day_id)
        table.add_row(
            str(s.session_number) if first else "",
            str(s.week_number) if first else "",
            (f"[green]{s.date}[/green]" if s.completed else s.date) if first else "",
            (day.name if day is not None else "") if first else "",
            program.exercise_name_for(s),
            _fmt_sets(s.sets, use_metric),
            _fmt_logged(s),
        )

    console.print(table)


def print_completion(result: CompletionResult) -> None:
    for outcome in result.outcomes:
        ev = outcome.evaluation
        console.print(f"[bold]{outcome.exercise_name}[/bold]: {ev.percentage:.0f}% of planned reps")
        console.print(f"  {ev.message}")
        if outcome.applied:
            print_info(f"  Adjusted {outcome.sessions_adjusted} upcoming session(s).")
    if result.advanced:
        print_success(f"Week complete. Now on week {result.current_week}.")


def print_upcoming(items: list[UpcomingWorkout], days: int, use_metric: bool = False) -> None:
    if not items:
        console.print(f"[yellow]No workouts in the next {days} days.[/yellow]")
        return

    table = Table(title=f"Upcoming workouts ({days} days)")
    table.add_column("Date", style="cyan")
    table.add_column("Schedule", style="magenta")
    table.add_column("Workout")
    table.add_column("Wk", justify="right")
    table.add_column("Planned", justify="right")

    for u in items:
        workout = u.label if u.session_number is None else f"#{u.session_number} {u.label}"
        planned = display_weight(u.planned_weight, use_metric) if u.planned_weight is not None else ""
        table.add_row(u.date, u.owner_name, workout, str(u.week_number), planned)

    console.print(table)


def print_plates(result: PlateResult, use_metric: bool = False) -> None:
    console.print(
        f"Target {display_weight(result.target_weight, use_metric)} on a "
        f"{display_weight(result.bar_weight, use_metric)} bar"
    )
    if result.plates:
        per_side = ", ".join(f"{p.per_side} x {p.plate_weight:g}" for p in result.plates)
        console.print(f"Per side: [bold]{per_side}[/bold]")
    else:
        console.print("Per side: [dim]empty bar[/dim]")
    if result.is_exact:
        print_success(f"Total: {display_weight(result.actual_weight, use_metric)}")
    else:
        print_warning(
            f"Cannot load exactly; rounded down to {display_weight(result.actual_weight, use_metric)}"
        )


def print_templates(templates: list[TemplateSpec]) -> None:
    table = Table(title="Templates")
    table.add_column("Kind", style="cyan")
    table.add_column("Name")
    table.add_column("Weeks", justify="right")
    table.add_column("Per week", justify="right")
    table.add_column("Program lifts")
    table.add_column("Description")

    for t in templates:
        table.add_row(
            t.kind,
            t.display_name,
            str(t.default_weeks),
            str(t.sessions_per_week),
            ", ".join(t.required_lifts) if t.is_program else "-",
            t.description,
        )

    console.print(table)


def print_settings(settings: Settings) -> None:
    table = Table(title="Progression settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("adjustment_mode", settings.adjustment_mode)
    table.add_row("thresholds (excellent/good/adjustment)",
                  f"{settings.excellent_threshold}/{settings.good_threshold}/{settings.adjustment_threshold}%")
    table.add_row("reduction_percent", f"{settings.reduction_percent:.1f}%")
    table.add_row("deload_percent", f"{settings.deload_percent:.1f}%")
    table.add_row("increments (lower/upper)",
                  f"{settings.lower_body_increment:g}/{settings.upper_body_increment:g} lbs")
    table.add_row("use_metric", "yes" if settings.use_metric else "no")
    deload = f"every {settings.auto_deload_frequency} weeks" if settings.auto_deload_enabled else "off"
    table.add_row("auto deload", deload)
    table.add_row("upcoming_workouts_days", str(settings.upcoming_workouts_days))
    console.print(table)

    for name, o in settings.exercises.items():
        state = "on" if o.use_custom_rules else "off"
        fields = [
            f"{k}={getattr(o, k)}"
            for k in ("excellent_threshold", "good_threshold", "adjustment_threshold",
                      "reduction_percent", "deload_percent", "weight_increment", "auto_deload_frequency")
            if getattr(o, k) is not None
        ]
        console.print(f"  [bold]{name}[/bold] (custom rules {state}): {', '.join(fields) or '-'}")


def print_stats(
    stats: list[ExerciseStat],
    volume: dict[str, float],
    prs: int,
    use_metric: bool = False,
) -> None:
    if not stats:
        console.print("[yellow]No completed sessions yet.[/yellow]")
        return

    total_volume = sum(volume.values())
    console.print(
        f"Workouts: {sum(s.sessions for s in stats)}   "
        f"Volume: {display_weight(total_volume, use_metric)}   PRs: {prs}"
    )

    table = Table(title="By exercise")
    table.add_column("Exercise", style="cyan")
    table.add_column("Sessions", justify="right")
    table.add_column("Volume", justify="right")
    table.add_column("Max", justify="right", style="bold")
    table.add_column("Avg perf", justify="right")

    for s in stats:
        table.add_row(
            s.name,
            str(s.sessions),
            display_weight(s.total_volume, use_metric),
            display_weight(s.max_weight, use_metric),
            f"{s.avg_performance:.0f}%",
        )

    console.print(table)


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")


def confirm_action(message: str) -> bool:
    """
    Prompt user for confirmation.

    Args:
        message: Confirmation message

    Returns:
        True if confirmed, False otherwise
    """
    response = console.input(f"{message} [y/N]: ")
    return response.lower() in ("y", "yes")

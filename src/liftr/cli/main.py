"""
CLI entry point using Typer.

Provides commands for progression and program management:
- create-progression / create-program: Generate a new schedule
- list / show: Inspect schedules
- log-set / pause / complete / complete-workout: Train and record
- recalculate / status / delete: Maintain schedules
- upcoming / stats / plates / settings / templates: Utilities
"""

import typer

from . import views
from .app import app
from .commands import analysis, schedules, workouts  # noqa: F401  (registers commands)


@app.callback(invoke_without_command=True)
def main_callback(ctx: typer.Context) -> None:
    """
    Strength progression and program scheduler. Run without a command for interactive mode.
    """
    if ctx.invoked_subcommand is not None:
        return

    views.console.print()
    views.console.print("[bold cyan]liftr[/bold cyan] - progression and program scheduler")
    views.console.print()

    menu = {
        "1": ("upcoming",  "Upcoming workouts", workouts.upcoming),
        "2": ("list",      "List schedules", schedules.list_schedules),
        "3": ("stats",     "Training stats", analysis.stats),
        "4": ("templates", "Available templates", schedules.templates),
        "5": ("settings",  "Progression settings", analysis.settings_cmd),
        "0": ("quit",      "Quit", None),
    }

    for key, (_, desc, _) in menu.items():
        views.console.print(f"  \\[{key}] {desc}")

    views.console.print()
    choice = views.console.input("Choose [1]: ").strip() or "1"

    if choice == "0":
        raise typer.Exit(0)
    if choice not in menu:
        views.print_error(f"Unknown choice: {choice}")
        raise typer.Exit(1)

    ctx.invoke(menu[choice][2])


if __name__ == "__main__":
    app()

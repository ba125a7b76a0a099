"""Analysis and utility commands: stats, plates, settings."""

import json
from dataclasses import asdict, replace
from typing import Annotated, Optional

import typer

from ...core.analytics import completed_sessions, count_prs, exercise_stats, volume_by_date
from ...core.config import DEFAULT_BAR_WEIGHT
from ...core.engine.config_loader import get_user_yaml_path, save_user_settings
from ...core.errors import ValidationError
from ...core.plates import calculate_plates
from ...core.settings import ADJUSTMENT_MODES, PRESETS, apply_preset
from .. import views
from ..app import JsonOption, StoreOption, app, get_settings, get_store


@app.command()
def stats(
    store_path: StoreOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show training volume, per-exercise maxima and PR count.
    """
    settings = get_settings()
    store = get_store(store_path)

    entries = completed_sessions(store.progressions(), store.programs())
    per_exercise = exercise_stats(entries)
    volume = volume_by_date(entries)
    prs = count_prs(entries)

    if json_out:
        print(json.dumps({
            "total_workouts": len(entries),
            "total_volume": sum(volume.values()),
            "prs": prs,
            "volume_by_date": volume,
            "exercises": [asdict(s) for s in per_exercise],
        }, indent=2))
        return

    views.print_stats(per_exercise, volume, prs, settings.use_metric)


@app.command()
def plates(
    target: Annotated[float, typer.Argument(help="Target weight (lbs)")],
    bar: Annotated[float, typer.Option("--bar", "-b", help="Bar weight (lbs)")] = DEFAULT_BAR_WEIGHT,
    collars: Annotated[float, typer.Option("--collars", help="Total collar weight (lbs)")] = 0.0,
    large: Annotated[bool, typer.Option("--large", help="Allow plates heavier than 45")] = False,
    json_out: JsonOption = False,
) -> None:
    """
    Work out which plates to load for a target weight.
    """
    settings = get_settings()
    result = calculate_plates(target, bar_weight=bar, collar_weight=collars, use_large_plates=large)
    if result is None:
        views.print_error(f"Target {target:g} is below the bar weight {bar:g}")
        raise typer.Exit(1)

    if json_out:
        data = asdict(result)
        data["total_plates"] = result.total_plates
        print(json.dumps(data, indent=2))
        return

    views.print_plates(result, settings.use_metric)


@app.command("settings")
def settings_cmd(
    preset: Annotated[
        Optional[str],
        typer.Option("--preset", help=f"Apply a preset: {', '.join(PRESETS)}"),
    ] = None,
    mode: Annotated[
        Optional[str],
        typer.Option("--mode", "-m", help=f"Adjustment mode: {', '.join(ADJUSTMENT_MODES)}"),
    ] = None,
    metric: Annotated[
        Optional[bool],
        typer.Option("--metric/--imperial", help="Display weights in kg (2.5 rounding)"),
    ] = None,
    auto_deload: Annotated[
        Optional[bool],
        typer.Option("--auto-deload/--no-auto-deload", help="Deload at the deload frequency"),
    ] = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show progression settings, or change them and save to the user settings file.
    """
    settings = get_settings()

    changes = {}
    if mode is not None:
        changes["adjustment_mode"] = mode
    if metric is not None:
        changes["use_metric"] = metric
    if auto_deload is not None:
        changes["auto_deload_enabled"] = auto_deload

    if preset is not None or changes:
        try:
            if preset is not None:
                settings = apply_preset(settings, preset)
            settings = replace(settings, **changes)
        except ValidationError as e:
            views.print_error(str(e))
            raise typer.Exit(1)
        try:
            path = save_user_settings(settings)
        except OSError as e:
            views.print_error(f"Cannot save settings: {e}")
            raise typer.Exit(1)
        views.print_success(f"Saved settings to {path}")
    elif not json_out:
        user_path = get_user_yaml_path()
        views.print_info(f"User settings: {user_path if user_path else 'none (bundled defaults)'}")

    if json_out:
        data = asdict(settings)
        print(json.dumps(data, indent=2))
        return

    views.print_settings(settings)

"""
YAML → Settings loader.

Loads progression settings from settings.yaml (bundled with the package)
and optionally merges user overrides from ~/.liftr/settings.yaml (or
$LIFTR_HOME/settings.yaml).

Usage:
    from liftr.core.engine.config_loader import load_settings
    settings = load_settings()
    rules = settings.rules_for("Squat")

If the bundled YAML cannot be parsed, the Python defaults from
settings.Settings are used.  If the user override file exists but has
parse errors, a warning is issued and the file is ignored.  Values that
parse but are invalid (e.g. thresholds out of order) raise ValidationError.
"""

from __future__ import annotations

import importlib.resources
import os
import warnings
from pathlib import Path
from typing import Any

import yaml

from ..settings import Settings, settings_from_dict, settings_to_dict

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file; return {} on read or parse errors."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as e:
        warnings.warn(f"Ignoring unreadable settings file {path}: {e}", stacklevel=2)
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        warnings.warn(f"Ignoring settings file {path}: top level is not a mapping", stacklevel=2)
        return {}
    return data


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_liftr_home() -> Path:
    """Return the per-user data directory ($LIFTR_HOME or ~/.liftr)."""
    env = os.environ.get("LIFTR_HOME")
    if env:
        return Path(env).expanduser()
    return Path.home() / ".liftr"


def get_bundled_yaml_path() -> Path | None:
    """Return the path to the bundled settings.yaml, or None if not found."""
    ref = importlib.resources.files("liftr").joinpath("settings.yaml")
    if not ref.is_file():
        return None
    with importlib.resources.as_file(ref) as p:
        return p


def get_user_yaml_path() -> Path | None:
    """Return the user's settings.yaml if it exists, else None."""
    p = get_liftr_home() / "settings.yaml"
    return p if p.exists() else None


def load_settings_config(user_path: Path | None = None) -> dict[str, Any]:
    """
    Load and merge raw settings configuration from YAML sources.

    Load order (later overrides earlier):
    1. Bundled src/liftr/settings.yaml
    2. ``user_path`` if given, else the user file in the liftr home dir

    Returns:
        Merged dict of config sections.  Empty dict if no YAML available.
    """
    config: dict[str, Any] = {}

    bundled = get_bundled_yaml_path()
    if bundled is not None:
        config = _deep_merge(config, _load_yaml_file(bundled))

    user = user_path if user_path is not None else get_user_yaml_path()
    if user is not None and user.exists():
        user_cfg = _load_yaml_file(user)
        if user_cfg:
            config = _deep_merge(config, user_cfg)

    return config


def load_settings(user_path: Path | None = None) -> Settings:
    """
    Load the effective Settings snapshot.

    Raises:
        ValidationError: If the merged configuration holds invalid values
    """
    config = load_settings_config(user_path)
    if not config:
        return Settings()
    return settings_from_dict(config)


def save_user_settings(settings: Settings, user_path: Path | None = None) -> Path:
    """Write a full settings snapshot to the user settings file; return its path."""
    path = user_path if user_path is not None else get_liftr_home() / "settings.yaml"
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        yaml.safe_dump(settings_to_dict(settings), fh, sort_keys=False)
    return path

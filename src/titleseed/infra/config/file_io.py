"""
Locates and parses the titleseed settings file.

A run reads at most one file: ``--config`` when given, else ``settings.toml``
or ``settings.json`` in the working directory, else the per-user settings
file. Without any of them the run uses built-in defaults.
"""

from __future__ import annotations

import json
import logging
import tomllib
from pathlib import Path
from typing import Any

from titleseed.infra.paths import DEFAULT_CONFIG_FILE, SETTING_PATH

logger = logging.getLogger(__name__)

LOCAL_CONFIG_NAMES = ("settings.toml", "settings.json")


def find_config_file(config_path: str | Path | None = None) -> Path | None:
    """Return the settings file a run should read, or None.

    Raises:
        FileNotFoundError: If ``config_path`` is given but is not a file.
    """
    if config_path:
        path = Path(config_path).expanduser().resolve()
        if not path.is_file():
            raise FileNotFoundError(f"Config file not found: {path}")
        return path

    for name in LOCAL_CONFIG_NAMES:
        candidate = Path.cwd() / name
        if candidate.is_file():
            return candidate.resolve()

    return SETTING_PATH if SETTING_PATH.is_file() else None


def read_config_file(path: Path) -> dict[str, Any]:
    """Parse a ``.toml`` or ``.json`` settings file.

    Raises:
        ValueError: On an unknown suffix, a parse error, or a non-table root.
    """
    match path.suffix.lower():
        case ".toml":
            try:
                data = tomllib.loads(path.read_text(encoding="utf-8"))
            except tomllib.TOMLDecodeError as e:
                raise ValueError(f"Invalid TOML in {path}: {e}") from e
        case ".json":
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON in {path}: {e}") from e
        case other:
            raise ValueError(f"Unsupported config file type {other!r}: {path}")

    if not isinstance(data, dict):
        raise ValueError(f"Settings in {path} must be a table, got {type(data).__name__}")
    return data


def load_config_or_default(config_path: str | Path | None = None) -> dict[str, Any]:
    """Load the settings for a run; an empty mapping when no file exists."""
    path = find_config_file(config_path)
    if path is None:
        logger.debug("No settings file found, using built-in defaults")
        return {}
    logger.debug("Loading settings from %s", path)
    return read_config_file(path)


def copy_default_config(target: Path) -> None:
    """Write the bundled sample settings to ``target``."""
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(DEFAULT_CONFIG_FILE.read_bytes())

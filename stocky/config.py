"""Configuration loading for Stocky."""

import copy
import logging
import os
from pathlib import Path
from typing import Optional

import toml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    "storage": {
        "db_path": None,
    },
    "game": {
        "auto_advance": True,
    },
    "simulation": {
        "interval_seconds": 5.0,
        "time_acceleration": 1.0,
        "hours_elapsed": 0.25,
        "seed": None,
    },
}


def get_config_dir() -> Path:
    """Config directory: $STOCKY_HOME, or ~/.config/stocky."""
    override = os.environ.get("STOCKY_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "stocky"


def get_config_path() -> Path:
    return get_config_dir() / "config.toml"


def load_config(config_path: Optional[Path] = None) -> dict:
    """Load configuration merged over the defaults.

    Args:
        config_path: Explicit config file; defaults to get_config_path().

    Returns:
        Configuration dictionary. Missing or unreadable files give the defaults.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    config_path = config_path or get_config_path()

    if not config_path.exists():
        return config

    try:
        loaded = toml.load(config_path)
    except (toml.TomlDecodeError, OSError) as e:
        logger.warning("Ignoring unreadable config %s: %s", config_path, e)
        return config

    for section, values in loaded.items():
        if isinstance(values, dict) and isinstance(config.get(section), dict):
            config[section].update(values)
        else:
            config[section] = values
    return config


def get_db_path(config: dict) -> Path:
    db_path = config.get("storage", {}).get("db_path")
    if db_path:
        return Path(db_path).expanduser()
    return get_config_dir() / "stocky.db"

"""Standard locations for showtape files."""

import os
from pathlib import Path

from platformdirs import user_cache_dir, user_config_dir, user_data_dir

APP_NAME = "showtape"


def get_config_dir() -> Path:
    """Config directory, overridable with SHOWTAPE_CONFIG_DIR."""
    override = os.environ.get("SHOWTAPE_CONFIG_DIR")
    if override:
        return Path(override).expanduser()
    return Path(user_config_dir(APP_NAME))


def get_config_file() -> Path:
    return get_config_dir() / "config.yaml"


def get_data_dir() -> Path:
    """Default root of the local object store."""
    return Path(user_data_dir(APP_NAME)) / "store"


def get_work_dir() -> Path:
    """Default parent directory for per-run capture directories."""
    return Path(user_cache_dir(APP_NAME)) / "captures"

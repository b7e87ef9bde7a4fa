"""Configuration manager for loading and saving showtape config."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from showtape.config.defaults import get_default_config_content
from showtape.config.schema import RecorderConfig
from showtape.utils.errors import ConfigError, ConfigNotFoundError, InvalidConfigError
from showtape.utils.paths import get_config_file


def _merge(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``overrides`` into ``base``; None values are ignored."""
    merged = dict(base)
    for key, value in overrides.items():
        if value is None:
            continue
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class ConfigManager:
    """Manages the showtape configuration file."""

    def __init__(self, config_file: Path | None = None) -> None:
        """Initialize the config manager.

        Args:
            config_file: Optional explicit config file. Defaults to config.yaml in
                the user config dir (or SHOWTAPE_CONFIG_DIR).
        """
        self.explicit = config_file is not None
        self.config_file = config_file or get_config_file()
        self.config_dir = self.config_file.parent

    def load_raw(self) -> dict[str, Any]:
        """Read the config file as a plain dict.

        Raises:
            ConfigNotFoundError: If an explicitly given config file doesn't exist
            InvalidConfigError: If the file is not a YAML mapping
        """
        if not self.config_file.exists():
            if self.explicit:
                raise ConfigNotFoundError(f"Config file not found: {self.config_file}")
            return {}

        try:
            with open(self.config_file) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise InvalidConfigError(f"Invalid YAML in {self.config_file}: {e}") from e

        if not isinstance(data, dict):
            raise InvalidConfigError(f"Expected a mapping in {self.config_file}")
        return data

    def load_config(self, overrides: dict[str, Any] | None = None) -> RecorderConfig:
        """Load and validate configuration, applying command-line overrides.

        Args:
            overrides: Values taking precedence over the file (None values ignored)

        Returns:
            Validated RecorderConfig instance

        Raises:
            ConfigNotFoundError: If an explicit config file doesn't exist
            InvalidConfigError: If required values are missing or invalid
        """
        data = _merge(self.load_raw(), overrides or {})
        try:
            return RecorderConfig(**data)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                for err in e.errors()
            )
            raise InvalidConfigError(
                f"Invalid configuration ({self.config_file}): {problems}"
            ) from e

    def save_config(self, config: RecorderConfig) -> None:
        """Save configuration.

        Args:
            config: RecorderConfig instance to save
        """
        data = config.model_dump(mode="json")

        self.config_dir.mkdir(parents=True, exist_ok=True)

        with open(self.config_file, "w") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)

    def init_config(self, force: bool = False) -> Path:
        """Write the commented default config file.

        Raises:
            ConfigError: If the file exists and force is False
        """
        if self.config_file.exists() and not force:
            raise ConfigError(
                f"Config file already exists: {self.config_file}. Use --force to overwrite."
            )

        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.config_file.write_text(get_default_config_content())
        return self.config_file

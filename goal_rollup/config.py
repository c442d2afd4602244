"""Configuration management for goal-rollup using YAML files."""

from pathlib import Path
from typing import Any

import structlog
import yaml

from goal_rollup.settings import EngineSettings

logger = structlog.get_logger()

CONFIG_DIR_NAME = ".goal-rollup"


def _config_file(base: Path) -> Path:
    return base / CONFIG_DIR_NAME / "config.yaml"


def _read_yaml(path: Path) -> dict[str, Any]:
    """Read one config file; a missing file is an empty config.

    Raises:
        ValueError: If the file cannot be read or does not hold a mapping
    """
    if not path.exists():
        logger.debug("Config file does not exist", config_file=str(path))
        return {}

    try:
        with open(path, "r") as f:
            config = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error("Failed to load config", config_file=str(path), error=str(e))
        raise ValueError(f"Failed to load config from {path}: {e}") from e
    if not isinstance(config, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    logger.debug("Config loaded", config_file=str(path), keys=list(config.keys()))
    return config


class Config:
    """Configuration manager using YAML file storage.

    Local config lives in .goal-rollup/config.yaml under the current
    directory, global config in ~/.goal-rollup/config.yaml. Reads through a
    local config fall back to the global file. Nothing is written to disk
    until a value is set.
    """

    def __init__(self, use_global: bool = False) -> None:
        """Initialize configuration manager.

        Args:
            use_global: If True, use global config only. If False, use local config with global fallback.
        """
        self.is_global = use_global
        self.config_file = _config_file(Path.home() if use_global else Path.cwd())
        self._config: dict[str, Any] = _read_yaml(self.config_file)

        self._global_config: dict[str, Any] = {}
        if not use_global:
            global_config_file = _config_file(Path.home())
            if global_config_file != self.config_file:
                try:
                    self._global_config = _read_yaml(global_config_file)
                except ValueError as e:
                    logger.warning("Ignoring unreadable global config", error=str(e))

        logger.debug("Config initialized", config_file=str(self.config_file), is_global=self.is_global)

    def _save(self) -> None:
        """Save configuration to YAML file."""
        try:
            self.config_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file, "w") as f:
                yaml.safe_dump(self._config, f, default_flow_style=False, sort_keys=False)
            logger.debug("Config saved successfully")
        except OSError as e:
            logger.error("Failed to save config", error=str(e))
            raise ValueError(f"Failed to save config to {self.config_file}: {e}") from e

    def get(self, key: str, default: str | None = None) -> Any:
        """Get a configuration value.

        For local config, checks local config first, then falls back to global config.

        Args:
            key: Configuration key
            default: Default value if key doesn't exist

        Returns:
            Configuration value or default
        """
        if key in self._config:
            logger.debug("Getting config value from local", key=key)
            return self._config[key]

        if not self.is_global and key in self._global_config:
            logger.debug("Getting config value from global", key=key)
            return self._global_config[key]

        logger.debug("Config value not found", key=key)
        return default

    def set(self, key: str, value: str) -> None:
        """Set a configuration value.

        Args:
            key: Configuration key
            value: Configuration value
        """
        logger.debug("Setting config value", key=key)
        self._config[key] = value
        self._save()

    def unset(self, key: str) -> None:
        """Remove a configuration value.

        Args:
            key: Configuration key
        """
        logger.debug("Unsetting config value", key=key)
        if key in self._config:
            del self._config[key]
            self._save()

    def list(self) -> dict[str, Any]:
        """List all configuration settings.

        For local config, merges global config with local config (local takes precedence).

        Returns:
            Dictionary of all config settings
        """
        if self.is_global:
            logger.debug("Listing global config values", count=len(self._config))
            return self._config.copy()
        merged = self._global_config.copy()
        merged.update(self._config)
        logger.debug("Listing merged config values", count=len(merged))
        return merged

    def engine_settings(self) -> EngineSettings:
        """Engine thresholds and limits, with `engine.*` keys overriding defaults."""
        return EngineSettings.from_config(self)


def get_config(use_global: bool = False) -> Config:
    """Get a configuration instance.

    Args:
        use_global: If True, return global config. If False, return local config with global fallback.

    Returns:
        Config instance
    """
    return Config(use_global=use_global)

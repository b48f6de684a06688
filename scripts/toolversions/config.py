"""
Configuration management for the tool version tracker.

Handles loading and accessing configuration from YAML files and environment variables.
"""

import copy
import os
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import yaml

from .exceptions import ConfigError


class Config:
    """Configuration manager for the tool version tracker."""

    # Default configuration values
    DEFAULTS: Dict[str, Any] = {
        "paths": {
            "base_dir": None,  # Set dynamically
            "output": "sites/devopsengineers/static/data/tool-versions.json",
            "logs": "logs",
        },
        "github": {
            "api_url": "https://api.github.com",
            "user_agent": "DevOps-Learning-Platform",
            "accept": "application/vnd.github.v3+json",
        },
        "fetch": {
            "timeout": 30,
            "max_attempts": 2,
            "backoff_seconds": 1.0,
            "max_concurrency": 4,
            "carry_forward": True,
        },
        "logging": {
            "level": "INFO",
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            "file_enabled": False,
        },
        # Tool registry override, e.g. {"kubernetes": {"repo": "kubernetes/kubernetes",
        # "type": "github-release"}}. None means use the built-in registry.
        "tools": None,
    }

    _instance: Optional["Config"] = None
    _config: Dict[str, Any] = {}
    _base_dir: Optional[Path] = None

    def __new__(cls) -> "Config":
        """Singleton pattern to ensure single configuration instance."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self) -> None:
        """Initialize configuration if not already done."""
        if self._initialized:
            return
        self._initialized = True
        self._config = copy.deepcopy(self.DEFAULTS)
        self._base_dir = self._find_base_dir()
        self._load_config_file()

    def _find_base_dir(self) -> Path:
        """Find the base directory of the repository."""
        env_base = os.environ.get("TOOLVERSIONS_BASE_DIR")
        if env_base:
            return Path(env_base)

        # scripts/toolversions/config.py -> scripts/toolversions -> scripts -> base
        current_file = Path(__file__).resolve()
        return current_file.parent.parent.parent

    def _load_config_file(self) -> None:
        """Load configuration from YAML file if it exists."""
        config_path = self._base_dir / "config" / "config.yaml"
        if config_path.exists():
            with open(config_path, "r", encoding="utf-8") as f:
                file_config = yaml.safe_load(f) or {}
                self._merge_config(file_config)

        self._config["paths"]["base_dir"] = str(self._base_dir)

    def _merge_config(self, new_config: Dict[str, Any]) -> None:
        """Deep merge new configuration into existing configuration."""
        for key, value in new_config.items():
            if key in self._config and isinstance(self._config[key], dict) and isinstance(value, dict):
                self._config[key].update(value)
            else:
                self._config[key] = value

    @property
    def base_dir(self) -> Path:
        """Get the base directory path."""
        return self._base_dir

    @property
    def output_path(self) -> Path:
        """Get the version document path.

        ``TOOLVERSIONS_OUTPUT_PATH`` takes precedence over the configured
        value. Relative paths resolve against the base directory.
        """
        raw = os.environ.get("TOOLVERSIONS_OUTPUT_PATH") or self._config["paths"]["output"]
        path = Path(raw)
        if not path.is_absolute():
            path = self._base_dir / path
        return path

    @property
    def logs_dir(self) -> Path:
        """Get the logs directory path."""
        return self._base_dir / self._config["paths"]["logs"]

    @property
    def github_token(self) -> Optional[str]:
        """Get the optional GitHub API token supplied by the environment."""
        return os.environ.get("GITHUB_TOKEN") or None

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value by key.

        Supports dot notation for nested keys (e.g., 'fetch.timeout').
        """
        keys = key.split(".")
        value = self._config
        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    def get_number(self, key: str, default: float, cast: Callable = float, minimum: float = 0) -> Any:
        """
        Get a numeric configuration value.

        A missing or null value falls back to ``default``.

        Raises:
            ConfigError: If the value is not a number or is below ``minimum``.
        """
        raw = self.get(key)
        if raw is None:
            return default
        if isinstance(raw, bool):
            raise ConfigError(f"'{key}' must be a number, got {raw!r}")
        try:
            value = cast(raw)
        except (TypeError, ValueError):
            raise ConfigError(f"'{key}' must be a number, got {raw!r}") from None
        if value < minimum:
            raise ConfigError(f"'{key}' must be at least {minimum}, got {raw!r}")
        return value

    def reload(self) -> None:
        """Reload configuration from file."""
        self._config = copy.deepcopy(self.DEFAULTS)
        self._load_config_file()


# Global configuration instance
config = Config()

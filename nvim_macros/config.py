"""
Configuration management for nvim-macros.
Handles defaults, the user config file and environment overrides.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import find_dotenv, load_dotenv

from nvim_macros.errors import ConfigError
from nvim_macros.formatters import DEFAULT_TIMEOUT, NO_FORMATTER, get_formatter
from nvim_macros.macros import validate_register

logger = logging.getLogger(__name__)

# Environment variable -> config key
ENV_OVERRIDES = {
    "NVIM_MACROS_FILE": "json_file_path",
    "NVIM_MACROS_FORMATTER": "json_formatter",
    "NVIM_MACROS_REGISTER": "default_macro_register",
    "NVIM_MACROS_FORMATTER_TIMEOUT": "formatter_timeout",
}


def load_env():
    """Load a .env file from the working directory or its parents, if any."""
    dotenv_path = find_dotenv(usecwd=True)
    if dotenv_path:
        load_dotenv(dotenv_path, override=False)


def default_config_dir() -> Path:
    home = os.getenv("NVIM_MACROS_HOME")
    if home:
        return Path(home).expanduser()
    return Path.home() / ".nvim-macros"


class Config:
    """Manages nvim-macros configuration and settings."""

    DEFAULT_CONFIG = {
        "json_file_path": None,  # <config_dir>/macros.json
        "default_macro_register": "q",
        "json_formatter": NO_FORMATTER,  # "none", "jq" or "yq"
        "formatter_timeout": DEFAULT_TIMEOUT,
    }

    def __init__(self, config_dir: Optional[str] = None, use_env: bool = True):
        """
        Initialize config system.

        Args:
            config_dir: Override default config directory
            use_env: Apply .env and NVIM_MACROS_* environment overrides
        """
        if use_env:
            load_env()

        if config_dir:
            self.config_dir = Path(config_dir).expanduser()
        else:
            self.config_dir = default_config_dir()

        self.config_file = self.config_dir / "config.json"
        # values read from or written to config.json; env overrides stay out
        self.persisted: Dict[str, Any] = {}
        self.settings = self._load_config()
        if use_env:
            self._load_env_vars()
        if not self.settings.get("json_file_path"):
            self.settings["json_file_path"] = str(self.config_dir / "macros.json")

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from file, merged over the defaults."""
        config = self.DEFAULT_CONFIG.copy()
        if not self.config_file.exists():
            return config
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                loaded = json.load(f)
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("Config file %s unreadable (%s), using defaults", self.config_file, exc)
            return config
        if not isinstance(loaded, dict):
            logger.warning("Config file %s is not an object, using defaults", self.config_file)
            return config

        for key, value in loaded.items():
            if key in config:
                config[key] = value
                self.persisted[key] = value
            else:
                logger.warning("Ignoring unknown config key in %s: %s", self.config_file, key)
        return config

    def _load_env_vars(self):
        """Apply NVIM_MACROS_* environment variables."""
        for env_name, key in ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if value:
                self.settings[key] = value

    @staticmethod
    def _validate(key: str, value: Any) -> Any:
        if key not in Config.DEFAULT_CONFIG:
            raise ConfigError(f"Invalid config key: {key}")
        if key == "json_formatter":
            get_formatter(value)
        elif key == "default_macro_register":
            validate_register(value)
            return value
        elif key == "formatter_timeout":
            try:
                value = float(value)
            except (TypeError, ValueError) as exc:
                raise ConfigError(f"Invalid formatter_timeout: {value!r}") from exc
            if value <= 0:
                raise ConfigError(f"formatter_timeout must be positive, got {value}")
        elif key == "json_file_path":
            if not value:
                raise ConfigError("json_file_path must not be empty")
            value = str(Path(value).expanduser())
        return value

    def setup(self, user_config: Optional[Dict[str, Any]] = None):
        """
        Apply user overrides.

        Raises:
            ConfigError: Unknown key or invalid value; nothing is applied
        """
        if not user_config:
            return
        validated = {key: self._validate(key, value) for key, value in user_config.items()}
        self.settings.update(validated)

    def save(self):
        """Save the persisted settings to file; env and setup() overrides are not written."""
        self.config_dir.mkdir(parents=True, exist_ok=True)
        with open(self.config_file, 'w', encoding='utf-8') as f:
            json.dump(self.persisted, f, indent=2)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value."""
        return self.settings.get(key, default)

    def set(self, key: str, value: Any):
        """Set a configuration value and save it to config.json."""
        value = self._validate(key, value)
        self.settings[key] = value
        self.persisted[key] = value
        self.save()

    def get_macros_path(self) -> Path:
        """Get the path to macros storage."""
        return Path(self.settings["json_file_path"]).expanduser()

    def get_formatter(self) -> str:
        """Get the configured formatter name (validated)."""
        name = self.settings.get("json_formatter") or NO_FORMATTER
        get_formatter(name)
        return name

    def storage_config(self) -> Dict[str, Any]:
        """Settings consumed by the storage factory."""
        return {
            "json_file_path": str(self.get_macros_path()),
            "json_formatter": self.get_formatter(),
            "formatter_timeout": self._validate("formatter_timeout", self.settings.get("formatter_timeout")),
        }

"""Configuration management and validation service.

Non-secret settings come from an optional ``config.yaml`` next to the
backend directory. The backpack.tf API key is only ever read from the
environment (``BACKPACK_TF_API_KEY``, optionally via a ``.env`` file).
The upstream timeout is fixed and not configurable.
"""

import os
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from dataclasses import dataclass

import yaml
from dotenv import load_dotenv

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

API_KEY_ENV_VAR = "BACKPACK_TF_API_KEY"

DEFAULT_UPSTREAM_BASE_URL = "https://backpack.tf/api"
DEFAULT_UPSTREAM_TIMEOUT_SECONDS = 10.0
TF2_APP_ID = 440

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config.yaml"


@dataclass
class ConfigValidationError:
    """Represents a configuration validation error."""
    path: str
    message: str


class ConfigValidationException(Exception):
    """Raised when config validation fails."""

    def __init__(self, errors: List[ConfigValidationError]):
        self.errors = errors
        messages = [f"{e.path}: {e.message}" for e in errors]
        super().__init__("Configuration validation failed:\n" + "\n".join(messages))


# Every key is optional. Leaves are (type, constraints).
CONFIG_SCHEMA = {
    "server": {
        "host": (str, {}),
        "port": (int, {"min": 1, "max": 65535}),
    },
    "cors": {
        "allowed_origins": (list, {"items": str}),
    },
    "upstream": {
        "base_url": (str, {}),
        "app_id": (int, {"min": 1}),
    },
    "logging": {
        "level": (str, {"options": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]}),
        "format": (str, {}),
    },
}


def _check(value: Any, schema: Any, path: str) -> List[ConfigValidationError]:
    """Recursively validate ``value`` against a CONFIG_SCHEMA node."""
    if isinstance(schema, dict):
        if not isinstance(value, dict):
            return [ConfigValidationError(path or "<root>", f"Expected dict, got {type(value).__name__}")]
        errors = []
        for key, item in value.items():
            child = f"{path}.{key}" if path else key
            if key not in schema:
                errors.append(ConfigValidationError(child, f"Unknown configuration key '{key}'"))
            else:
                errors.extend(_check(item, schema[key], child))
        return errors

    expected, rules = schema
    # bool is an int subclass
    if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
        return [ConfigValidationError(path, f"Expected {expected.__name__}, got {type(value).__name__}")]

    errors = []
    if "min" in rules and value < rules["min"]:
        errors.append(ConfigValidationError(path, f"Value {value} is below minimum {rules['min']}"))
    if "max" in rules and value > rules["max"]:
        errors.append(ConfigValidationError(path, f"Value {value} is above maximum {rules['max']}"))
    if "options" in rules and value not in rules["options"]:
        errors.append(ConfigValidationError(
            path, f"Value '{value}' not in allowed options: {rules['options']}"
        ))
    for index, item in enumerate(value if "items" in rules else []):
        if not isinstance(item, rules["items"]):
            errors.append(ConfigValidationError(
                f"{path}[{index}]", f"Expected {rules['items'].__name__}, got {type(item).__name__}"
            ))
    return errors


@dataclass(frozen=True)
class Settings:
    """Resolved runtime settings, built once at startup."""
    api_key: str = ""
    host: str = "0.0.0.0"
    port: int = 8080
    allowed_origins: Tuple[str, ...] = ("http://localhost:3000",)
    upstream_base_url: str = DEFAULT_UPSTREAM_BASE_URL
    app_id: int = TF2_APP_ID
    log_level: str = "INFO"
    log_format: Optional[str] = None

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)

    def require_api_key(self) -> str:
        """Return the API key or raise ConfigurationError if it is unset."""
        if not self.api_key:
            raise ConfigurationError(f"{API_KEY_ENV_VAR} not set")
        return self.api_key


class ConfigService:
    """Service for loading and validating configuration."""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or str(DEFAULT_CONFIG_PATH)
        self._config: Dict[str, Dict[str, Any]] = {}

    def load_and_validate(self) -> Dict[str, Any]:
        """Load and validate the configuration file.

        A missing file is not an error; defaults apply.

        Raises:
            ConfigValidationException: If the file is not valid YAML or fails the schema.
        """
        if not os.path.exists(self.config_path):
            logger.info(f"Config file not found at {self.config_path}, using defaults")
            self._config = {}
            return self._config

        try:
            with open(self.config_path, 'r') as f:
                config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigValidationException([ConfigValidationError("", f"Invalid YAML syntax: {e}")])

        errors = _check(config, CONFIG_SCHEMA, "")
        if errors:
            raise ConfigValidationException(errors)

        self._config = config
        logger.info(f"Configuration loaded and validated from {self.config_path}")
        return config

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """Get a validated value, e.g. get("server", "port", 8080)."""
        return self._config.get(section, {}).get(key, default)

    def build_settings(self, load_env_file: bool = True) -> Settings:
        """Combine the validated file config with the environment.

        Must be called after load_and_validate().
        """
        if load_env_file:
            load_dotenv()

        defaults = Settings()
        origins = self.get("cors", "allowed_origins")

        return Settings(
            api_key=os.environ.get(API_KEY_ENV_VAR, "").strip(),
            host=self.get("server", "host", defaults.host),
            port=self.get("server", "port", defaults.port),
            allowed_origins=tuple(origins) if origins is not None else defaults.allowed_origins,
            upstream_base_url=self.get("upstream", "base_url", defaults.upstream_base_url),
            app_id=self.get("upstream", "app_id", defaults.app_id),
            log_level=self.get("logging", "level", defaults.log_level),
            log_format=self.get("logging", "format", defaults.log_format),
        )


# Global config service instance
config_service = ConfigService()

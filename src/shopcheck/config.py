"""CLI configuration management.

Handles persistent configuration stored in ~/.shopcheck/config.yaml.
Precedence (highest to lowest): CLI flags, environment variables, config
file, defaults.
"""

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from .shared.logging import get_logger
from .shared.paths import SHOPCHECK_DIR

logger = get_logger(__name__)

# Default values
DEFAULT_SERVER = "http://localhost:4000/api"
DEFAULT_TIMEOUT = 30
DEFAULT_HEALTH_PATH = "/products?page=1&limit=1"
DEFAULT_RETURN_SCHEME = "ecommerceshop"
DEFAULT_PAYMENT_API = "https://api.stripe.com"

# Environment variable mappings
ENV_VARS = {
    "server": "SHOPCHECK_SERVER",
    "timeout": "SHOPCHECK_TIMEOUT",
    "client_type": "SHOPCHECK_CLIENT_TYPE",
    "health_path": "SHOPCHECK_HEALTH_PATH",
    "baas_url": "SHOPCHECK_BAAS_URL",
    "payment_api_url": "SHOPCHECK_PAYMENT_API_URL",
    "return_scheme": "SHOPCHECK_RETURN_SCHEME",
}

CONFIG_KEYS = list(ENV_VARS)


@dataclass
class CLIConfig:
    """CLI configuration."""

    server: str = DEFAULT_SERVER
    timeout: int = DEFAULT_TIMEOUT
    client_type: str | None = None
    health_path: str = DEFAULT_HEALTH_PATH
    baas_url: str | None = None
    payment_api_url: str = DEFAULT_PAYMENT_API
    return_scheme: str = DEFAULT_RETURN_SCHEME

    # Track where each value came from
    _sources: dict[str, str] = field(default_factory=dict)

    def get_source(self, key: str) -> str:
        """Get the source of a config value."""
        return self._sources.get(key, "default")

    def set(self, key: str, value: Any, source: str) -> None:
        """Set a value with type coercion and record its source."""
        if key not in CONFIG_KEYS:
            raise KeyError(key)
        if key == "timeout":
            value = int(value)
        elif value is not None:
            value = str(value)
        setattr(self, key, value)
        self._sources[key] = source

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self) if not f.name.startswith("_")}


def get_config_path() -> Path:
    """Get the CLI config file path.

    Returns:
        Path to ~/.shopcheck/config.yaml
    """
    return SHOPCHECK_DIR / "config.yaml"


def _read_config_file(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        return {}
    try:
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("config_file_unreadable", path=str(config_path), error=str(e))
        return {}
    if not isinstance(data, dict):
        logger.warning("config_file_not_a_mapping", path=str(config_path))
        return {}
    return data


def load_config(overrides: dict[str, Any] | None = None) -> CLIConfig:
    """Load CLI configuration.

    Args:
        overrides: Values given as CLI flags; None values are ignored

    Returns:
        CLIConfig with values and sources
    """
    config = CLIConfig()

    file_config = _read_config_file(get_config_path())
    for key in CONFIG_KEYS:
        if key in file_config:
            try:
                config.set(key, file_config[key], "config file")
            except ValueError:
                logger.warning("config_value_invalid", key=key, value=file_config[key])

    for key, env_var in ENV_VARS.items():
        if os.environ.get(env_var):
            try:
                config.set(key, os.environ[env_var], "environment")
            except ValueError:
                logger.warning("env_value_invalid", key=key, env_var=env_var)

    for key, value in (overrides or {}).items():
        if value is not None:
            config.set(key, value, "command line")

    return config


def save_config(key: str, value: Any) -> None:
    """Save a config value to the config file.

    Args:
        key: Config key (one of CONFIG_KEYS)
        value: Value to save
    """
    if key not in CONFIG_KEYS:
        raise KeyError(key)

    config_path = get_config_path()
    existing = _read_config_file(config_path)
    existing[key] = int(value) if key == "timeout" else value

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        yaml.dump(existing, f, default_flow_style=False)


def unset_config(key: str) -> bool:
    """Remove a config value from the config file.

    Returns:
        True if key was removed, False if not found
    """
    config_path = get_config_path()
    existing = _read_config_file(config_path)
    if key not in existing:
        return False

    del existing[key]

    with open(config_path, "w") as f:
        yaml.dump(existing, f, default_flow_style=False)

    return True

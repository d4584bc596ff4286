"""
Client configuration.

Settings shared by request/reply connections and event listeners,
loaded from YAML and validated with pydantic.
"""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, ValidationError, field_validator

from wmipc.ipc.models import DEFAULT_CAPABILITY, CapabilityLevel

CONFIG_ENV_VAR = "WMIPC_CONFIG"

LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


class ConfigurationError(Exception):
    """Raised when configuration is invalid."""

    pass


class ClientConfig(BaseModel):
    """Root configuration model."""

    # Fixed for the lifetime of every handle built from this config
    capability: CapabilityLevel = DEFAULT_CAPABILITY
    socket_path: str | None = None
    connect_timeout: float | None = None
    # Request/reply connections only; event listeners always block
    receive_timeout: float | None = None
    log_level: str = "warning"

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.lower()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level

    @field_validator("connect_timeout", "receive_timeout")
    @classmethod
    def _positive_timeout(cls, value: float | None) -> float | None:
        if value is not None and value <= 0:
            raise ValueError("timeouts must be positive")
        return value


def load_config(path: str | Path) -> ClientConfig:
    """
    Load a client configuration from a YAML file.

    Args:
        path: Path to the configuration file

    Returns:
        Validated configuration

    Raises:
        ConfigurationError: If the file is missing, empty or invalid
    """
    config_path = Path(path)

    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        with config_path.open("r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML syntax: {e}") from e

    if raw_config is None:
        raise ConfigurationError("Configuration file is empty")

    try:
        return ClientConfig.model_validate(raw_config)
    except ValidationError as e:
        raise ConfigurationError(f"Configuration validation failed: {e}") from e


def find_config_file(explicit_path: Path | None = None) -> Path | None:
    """
    Locate the configuration file.

    Search order:
    1. Explicit path from --config
    2. $WMIPC_CONFIG
    3. wmipc.yaml in current directory
    4. $XDG_CONFIG_HOME/wmipc/config.yaml

    Returns:
        The path found, or None when no file exists and none was requested

    Raises:
        ConfigurationError: If an explicitly requested file does not exist
    """
    if explicit_path is not None:
        if explicit_path.exists():
            return explicit_path
        raise ConfigurationError(f"Configuration file not found: {explicit_path}")

    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        if Path(env_path).exists():
            return Path(env_path)
        raise ConfigurationError(f"Configuration file from ${CONFIG_ENV_VAR} not found: {env_path}")

    config_home = Path(os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config")
    candidates = [
        Path("wmipc.yaml"),
        config_home / "wmipc" / "config.yaml",
    ]

    for candidate in candidates:
        if candidate.exists():
            return candidate

    return None

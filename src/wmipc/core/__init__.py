"""Client configuration."""

from wmipc.core.config import ClientConfig, ConfigurationError, find_config_file, load_config

__all__ = [
    "ClientConfig",
    "ConfigurationError",
    "find_config_file",
    "load_config",
]

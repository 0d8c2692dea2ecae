"""Application configuration helpers."""

from __future__ import annotations

from .engine import EngineDefaults, get_engine_defaults
from .env import env_float, env_str
from .errors import ConfigurationError
from .logging import configure_logging, parse_log_level
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "EngineDefaults",
    "StorageConfig",
    "configure_logging",
    "env_float",
    "env_str",
    "get_database_config",
    "get_engine_defaults",
    "get_storage_config",
    "parse_log_level",
]

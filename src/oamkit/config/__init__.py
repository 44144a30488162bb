"""Application configuration helpers."""

from __future__ import annotations

from .apiserver import ApiServerConfig, get_apiserver_config
from .env import require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .logging import configure_logging
from .reconcile import ReconcileConfig, get_reconcile_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "ApiServerConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "ReconcileConfig",
    "StorageConfig",
    "configure_logging",
    "get_apiserver_config",
    "get_database_config",
    "get_reconcile_config",
    "get_storage_config",
    "require_env_var",
    "require_env_vars",
]

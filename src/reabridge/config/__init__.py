"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_float_env, require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .graph import GraphConfig, get_graph_config
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .mapping import MappingConfig, get_mapping_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "GraphConfig",
    "MappingConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "configure_logging",
    "get_database_config",
    "get_graph_config",
    "get_mapping_config",
    "get_storage_config",
    "optional_float_env",
    "require_env_var",
    "require_env_vars",
]

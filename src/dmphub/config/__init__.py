"""Application configuration helpers."""

from __future__ import annotations

from .citation import CitationConfig, get_citation_config
from .env import env_seconds, optional_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .registry import RegistryConfig, get_registry_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "CacheConfig",
    "CitationConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "RateLimit",
    "RegistryConfig",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "configure_logging",
    "env_seconds",
    "get_citation_config",
    "get_database_config",
    "get_registry_config",
    "get_storage_config",
    "optional_env_var",
    "require_env_vars",
]

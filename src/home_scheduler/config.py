"""
Configuration module for the home task scheduler.

Single source of truth for:
- Scheduling defaults (horizon length, default task hours)
- Schedule cache sizing
- Azure Blob connection settings for the persistence helpers

All values can be overridden via environment variables in Azure / local.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Optional


def _get_env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


@dataclass
class Config:
    """
    Runtime configuration for the home task scheduler.

    All fields default from environment variables but can be overridden
    programmatically by constructing Config(...) manually if needed.
    """

    # Scheduling
    horizon_days: int = 90
    default_task_hours: float = 1.0

    # Schedule cache (used by the HTTP service)
    cache_ttl_seconds: float = 300.0
    cache_maxsize: int = 128

    log_level: str = "INFO"

    # Azure Blob Storage for CSV rosters / assignment exports
    azure_blob_connection_string: Optional[str] = None
    azure_blob_container_name: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Config":
        """
        Construct a Config object by reading environment variables.

        Environment variables (all optional):
        - HTS_HORIZON_DAYS        (int)
        - HTS_DEFAULT_TASK_HOURS  (float)
        - HTS_CACHE_TTL_SECONDS   (float)
        - HTS_CACHE_MAXSIZE       (int)
        - HTS_LOG_LEVEL
        - HTS_AZURE_BLOB_CONNECTION_STRING
        - HTS_AZURE_BLOB_CONTAINER_NAME
        """
        horizon_days = _get_env_int("HTS_HORIZON_DAYS", default=90)
        if horizon_days <= 0:
            horizon_days = 90

        return cls(
            horizon_days=horizon_days,
            default_task_hours=_get_env_float("HTS_DEFAULT_TASK_HOURS", default=1.0),
            cache_ttl_seconds=_get_env_float("HTS_CACHE_TTL_SECONDS", default=300.0),
            cache_maxsize=_get_env_int("HTS_CACHE_MAXSIZE", default=128),
            log_level=os.getenv("HTS_LOG_LEVEL", "INFO").upper(),
            azure_blob_connection_string=os.getenv(
                "HTS_AZURE_BLOB_CONNECTION_STRING"
            ),
            azure_blob_container_name=os.getenv(
                "HTS_AZURE_BLOB_CONTAINER_NAME"
            ),
        )


# Convenience singleton-style accessor if you want a shared config
_DEFAULT_CONFIG: Optional[Config] = None


def get_config(force_reload: bool = False) -> Config:
    """
    Return a process-wide Config instance.

    Use `force_reload=True` if environment variables changed at runtime
    and you want to refresh.
    """
    global _DEFAULT_CONFIG
    if _DEFAULT_CONFIG is None or force_reload:
        _DEFAULT_CONFIG = Config.from_env()
    return _DEFAULT_CONFIG

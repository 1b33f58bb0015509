"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_env_var
from .errors import ConfigurationError
from .logging import configure_logging
from .merge import (
    DANGLING_REFERENCES_ENV,
    LOG_LEVEL_ENV,
    MergeConfig,
    get_merge_config,
    parse_dangling_policy,
    parse_log_level,
)

__all__ = [
    "DANGLING_REFERENCES_ENV",
    "LOG_LEVEL_ENV",
    "ConfigurationError",
    "MergeConfig",
    "configure_logging",
    "get_merge_config",
    "optional_env_var",
    "parse_dangling_policy",
    "parse_log_level",
]

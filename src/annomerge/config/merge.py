"""Merge run configuration read from the environment."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Final

from annomerge.domain.merge import DanglingReferencePolicy

from .env import optional_env_var
from .errors import ConfigurationError

LOG_LEVEL_ENV: Final[str] = "ANNOMERGE_LOG_LEVEL"
DANGLING_REFERENCES_ENV: Final[str] = "ANNOMERGE_DANGLING_REFERENCES"
DEFAULT_LOG_LEVEL: Final[int] = logging.INFO


@dataclass(frozen=True, slots=True)
class MergeConfig:
    log_level: int = DEFAULT_LOG_LEVEL
    dangling_references: DanglingReferencePolicy = DanglingReferencePolicy.RAISE


def parse_log_level(value: str) -> int:
    level = logging.getLevelNamesMapping().get(value.strip().upper())
    if level is None:
        raise ConfigurationError(f"Unknown log level: {value}")
    return level


def parse_dangling_policy(value: str) -> DanglingReferencePolicy:
    try:
        return DanglingReferencePolicy(value.strip().lower())
    except ValueError as exc:
        choices = ", ".join(policy.value for policy in DanglingReferencePolicy)
        raise ConfigurationError(
            f"Invalid {DANGLING_REFERENCES_ENV} value {value!r} (expected one of: {choices})"
        ) from exc


def get_merge_config() -> MergeConfig:
    level_value = optional_env_var(LOG_LEVEL_ENV)
    policy_value = optional_env_var(DANGLING_REFERENCES_ENV)
    return MergeConfig(
        log_level=parse_log_level(level_value) if level_value else DEFAULT_LOG_LEVEL,
        dangling_references=(
            parse_dangling_policy(policy_value)
            if policy_value
            else DanglingReferencePolicy.RAISE
        ),
    )

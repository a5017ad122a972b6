"""Stable constants shared across the validator planes."""

from __future__ import annotations

from typing import Final

# Schema versions for persisted contracts.
CONFIG_SCHEMA_VERSION: Final[int] = 1

# Default file names.
DEFAULT_CONFIG_FILE: Final[str] = "map_validator.toml"
DEFAULT_OUTPUT_FILENAME: Final[str] = "lanelet2_validation_results.json"
DEFAULT_LOG_FILENAME: Final[str] = "map_validator.jsonl"

# Environment variable prefix for config overrides.
ENV_PREFIX: Final[str] = "MAP_VALIDATOR_"

# Synthetic issue messages emitted by the orchestrator.
MISSING_OR_CYCLIC_MESSAGE: Final[str] = "prerequisite missing or cyclic"
PREREQUISITES_FAILED_MESSAGE: Final[str] = "prerequisites did not pass"

# Synthetic requirement used when validating by checks filter only.
FILTER_REQUIREMENT_ID: Final[str] = "checks_filter"

__all__ = [
    "CONFIG_SCHEMA_VERSION",
    "DEFAULT_CONFIG_FILE",
    "DEFAULT_LOG_FILENAME",
    "DEFAULT_OUTPUT_FILENAME",
    "ENV_PREFIX",
    "FILTER_REQUIREMENT_ID",
    "MISSING_OR_CYCLIC_MESSAGE",
    "PREREQUISITES_FAILED_MESSAGE",
]

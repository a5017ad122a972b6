"""Logging setup for CLI runs."""

from map_validator.observability.logging import (
    LoggingConfig,
    StructuredLoggingHandle,
    configure_structlog,
    get_active_logging_handle,
    setup_logging,
    setup_structured_logging,
    shutdown_logging,
)

__all__ = [
    "LoggingConfig",
    "StructuredLoggingHandle",
    "configure_structlog",
    "get_active_logging_handle",
    "setup_logging",
    "setup_structured_logging",
    "shutdown_logging",
]

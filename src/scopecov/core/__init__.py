"""Core module exports."""

from scopecov.core.errors import (
    ConfigError,
    CoverageError,
    ErrorCode,
    ScopeCovError,
)
from scopecov.core.logging import (
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    set_run_id,
)

__all__ = [
    # Errors
    "ScopeCovError",
    "ConfigError",
    "CoverageError",
    "ErrorCode",
    # Logging
    "clear_run_id",
    "configure_logging",
    "get_logger",
    "get_run_id",
    "set_run_id",
]

"""Config module exports."""

from scopecov.config.loader import find_config_file, load_config
from scopecov.config.models import (
    CollectorConfig,
    LoggingConfig,
    LogOutputConfig,
    ScopeCovConfig,
)

__all__ = [
    "find_config_file",
    "load_config",
    "CollectorConfig",
    "LoggingConfig",
    "LogOutputConfig",
    "ScopeCovConfig",
]

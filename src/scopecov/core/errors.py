"""scopecov error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 7xxx: Coverage

The collection core itself follows a silent-skip policy (untracked paths and
out-of-range lines are dropped, LIFO violations return False). These errors
cover misuse that cannot be skipped: bad configuration and driver misuse.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_FILE_NOT_FOUND = 2004

    # Coverage (7xxx)
    DRIVER_RUNNING = 7001
    DRIVER_NOT_RUNNING = 7002


@dataclass(frozen=True, slots=True)
class ScopeCovError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'CONFIG_PARSE_ERROR')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(ScopeCovError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
            message=f"Config file not found: {path}",
            details={"path": path},
        )


class CoverageError(ScopeCovError):
    """Driver misuse during coverage collection."""

    @classmethod
    def driver_running(cls, driver: str) -> "CoverageError":
        return cls(
            code=ErrorCode.DRIVER_RUNNING,
            message=f"Driver {driver} is already running",
            details={"driver": driver},
        )

    @classmethod
    def driver_not_running(cls, driver: str) -> "CoverageError":
        return cls(
            code=ErrorCode.DRIVER_NOT_RUNNING,
            message=f"Driver {driver} is not running",
            details={"driver": driver},
        )

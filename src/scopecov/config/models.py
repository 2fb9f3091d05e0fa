"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (SCOPECOV__SECTION__KEY)
3. Repo YAML (.scopecov.yaml)
4. Global YAML (~/.config/scopecov/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    SCOPECOV__<SECTION>__<KEY>=<VALUE>

Examples:
    SCOPECOV__LOGGING__LEVEL=DEBUG
    SCOPECOV__COLLECTOR__INCLUDE=*.py
    SCOPECOV__COLLECTOR__PERCENT_PRECISION=1
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARN", "WARNING", "ERROR", "CRITICAL"]

DEFAULT_SYNTHETIC_PATTERNS: tuple[str, ...] = (
    "<string>",
    "<stdin>",
    "<frozen *>",
    "<doctest *>",
    "<ipython-input-*>",
)


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        SCOPECOV__LOGGING__LEVEL: Log level (DEBUG, INFO, WARN|WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every session start/stop and drain.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class CollectorConfig(BaseModel):
    """File scope and reporting options for a coverage collector.

    Env vars:
        SCOPECOV__COLLECTOR__INCLUDE: Glob selecting tracked files
        SCOPECOV__COLLECTOR__BASE: Directory export paths are relative to
        SCOPECOV__COLLECTOR__PREFIX: Instrumentation cache prefix to strip
        SCOPECOV__COLLECTOR__PERCENT_PRECISION: Decimal places for percentages
    """

    paths: list[str] = Field(
        default_factory=lambda: ["."],
        description="Files or directories scanned for tracked source files.",
    )
    include: str = Field(
        default="*.py",
        description="Glob a file name must match to be tracked.",
    )
    exclude: list[str] = Field(
        default_factory=list,
        description="Globs matched against file names and scan-relative paths.",
    )
    recursive: bool = Field(
        default=True,
        description="Descend into subdirectories of scanned directories.",
    )
    follow_symlinks: bool = Field(
        default=True,
        description="Follow symlinked directories while scanning.",
    )
    base: str | None = Field(
        default=None,
        description="Directory export paths are made relative to. Default: cwd.",
    )
    prefix: str | None = Field(
        default=None,
        description="Instrumentation cache directory prepended to reported paths. "
        "Stripped component-wise before matching tracked files.",
    )
    namespaces: bool = Field(
        default=True,
        description="Qualify metrics names with the file's dotted module path.",
    )
    synthetic_patterns: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SYNTHETIC_PATTERNS),
        description="Globs for driver-reported code with no backing file.",
    )
    percent_precision: int = Field(
        default=2,
        description="Decimal places percentages are rounded to.",
    )

    @field_validator("percent_precision")
    @classmethod
    def validate_precision(cls, v: int) -> int:
        if not (0 <= v <= 6):
            raise ValueError(f"Precision must be 0-6, got {v}")
        return v


class ScopeCovConfig(BaseModel):
    """Root configuration for scopecov.

    All settings can be configured via:
    1. Environment variables: SCOPECOV__SECTION__KEY
    2. YAML config files (repo or global)
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    collector: CollectorConfig = Field(default_factory=CollectorConfig)

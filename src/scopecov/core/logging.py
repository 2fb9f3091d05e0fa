"""Structured logging for scopecov.

structlog events are rendered by stdlib handlers, one per configured output,
so a measured run can log to the console at one level and to a JSON file at
another. Every event carries the id of the run that produced it once
``set_run_id()`` has been called.

Loggers are named after the component emitting the event
(``get_logger("coverage.stack")``); the name is bound as ``logger``.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import structlog

if TYPE_CHECKING:
    from scopecov.config.models import LoggingConfig, LogOutputConfig

_run_id: ContextVar[str | None] = ContextVar("scopecov_run_id", default=None)


def get_run_id() -> str | None:
    return _run_id.get()


def set_run_id(run_id: str | None = None) -> str:
    """Bind a run id to the current context, generating one if needed."""
    value = run_id or uuid4().hex[:12]
    _run_id.set(value)
    return value


def clear_run_id() -> None:
    _run_id.set(None)


def _inject_run_id(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    run_id = _run_id.get()
    if run_id is not None:
        event_dict.setdefault("run_id", run_id)
    return event_dict


def _level(name: str | None, fallback: int) -> int:
    """Numeric level for a level name; ``WARN`` is accepted for WARNING."""
    if not name:
        return fallback
    value = logging.getLevelName(name.upper())
    return value if isinstance(value, int) else fallback


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", key="timestamp"),
        _inject_run_id,  # type: ignore[list-item]
    ]


def _open_handler(destination: str) -> logging.Handler:
    if destination == "stdout":
        return logging.StreamHandler(sys.stdout)
    if destination == "stderr":
        return logging.StreamHandler(sys.stderr)
    path = Path(destination)
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, mode="a", encoding="utf-8")


def _formatter(
    output: LogOutputConfig, shared: list[structlog.types.Processor]
) -> logging.Formatter:
    renderer: structlog.types.Processor
    if output.format == "json":
        renderer = structlog.processors.JSONRenderer(sort_keys=True)
    else:
        stream = sys.stdout if output.destination == "stdout" else sys.stderr
        tty = output.destination in ("stdout", "stderr") and stream.isatty()
        renderer = structlog.dev.ConsoleRenderer(colors=tty, pad_event_to=0)
    return structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=shared)


def configure_logging(
    *,
    config: LoggingConfig | None = None,
    json_format: bool = False,
    level: str = "INFO",
) -> None:
    """Install structlog and one root handler per configured output.

    Args:
        config: Full logging configuration. When given, ``json_format`` and
            ``level`` are ignored.
        json_format: Render the single stderr output as JSON.
        level: Level of the single stderr output.
    """
    from scopecov.config.models import LoggingConfig, LogOutputConfig

    if config is None:
        output = LogOutputConfig(format="json" if json_format else "console")
        config = LoggingConfig(level=level, outputs=[output])

    base_level = _level(config.level, logging.INFO)
    shared = _shared_processors()

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(base_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Reconfigured per CLI invocation
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        if isinstance(handler, logging.FileHandler):
            handler.close()
    root.setLevel(base_level)

    for output in config.outputs:
        handler = _open_handler(output.destination)
        handler.setLevel(_level(output.level, base_level))
        handler.setFormatter(_formatter(output, shared))
        root.addHandler(handler)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Lazy logger; module-level loggers pick up later ``configure_logging`` calls."""
    if name:
        return structlog.get_logger(logger=name)  # type: ignore[no-any-return]
    return structlog.get_logger()  # type: ignore[no-any-return]

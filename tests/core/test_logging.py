"""Tests for structured logging."""

import json
import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
import structlog

from scopecov.config.models import LoggingConfig, LogOutputConfig
from scopecov.core.logging import (
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    set_run_id,
)


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    root = logging.getLogger()
    known, level = set(root.handlers), root.level
    structlog.reset_defaults()
    clear_run_id()
    yield
    for handler in root.handlers[:]:
        if handler not in known:
            root.removeHandler(handler)
            if isinstance(handler, logging.FileHandler):
                handler.close()
    root.setLevel(level)
    structlog.reset_defaults()
    clear_run_id()


def _json_lines(path: Path) -> list[dict[str, object]]:
    return [json.loads(line) for line in path.read_text().splitlines() if line]


def _file_config(path: Path, level: str = "INFO") -> LoggingConfig:
    return LoggingConfig(
        level=level,
        outputs=[LogOutputConfig(format="json", destination=str(path))],
    )


class TestRunId:
    """Run correlation id tests."""

    def test_given_run_id_when_set_then_can_retrieve(self) -> None:
        # Given
        run_id = "run-123"

        # When
        result = set_run_id(run_id)

        # Then
        assert result == run_id
        assert get_run_id() == run_id

    def test_given_no_id_when_set_then_generates_one(self) -> None:
        run_id = set_run_id()

        assert len(run_id) == 12
        assert get_run_id() == run_id

    def test_given_set_id_when_clear_then_removed(self) -> None:
        set_run_id("to-clear")

        clear_run_id()

        assert get_run_id() is None


class TestConfigureLogging:
    """Logging configuration tests."""

    def test_given_json_format_when_log_then_json_on_stderr(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        # Given
        configure_logging(json_format=True, level="INFO")

        # When
        get_logger("test").info("collector_started", depth=1)

        # Then
        line = capsys.readouterr().err.strip().splitlines()[-1]
        data = json.loads(line)
        assert data["event"] == "collector_started"
        assert data["depth"] == 1
        assert data["level"] == "info"
        assert data["logger"] == "test"
        assert "timestamp" in data

    def test_given_level_when_below_then_filtered(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        configure_logging(level="WARNING")

        get_logger().info("hidden")
        get_logger().warning("shown")

        err = capsys.readouterr().err
        assert "hidden" not in err
        assert "shown" in err

    def test_given_warn_alias_when_configured_then_warning_level(self, tmp_path: Path) -> None:
        log_file = tmp_path / "warn.log"
        configure_logging(config=_file_config(log_file, level="WARN"))

        get_logger().info("hidden")
        get_logger().warning("shown")

        assert [r["event"] for r in _json_lines(log_file)] == ["shown"]

    def test_given_config_when_configure_then_params_ignored(self, tmp_path: Path) -> None:
        log_file = tmp_path / "debug.log"

        configure_logging(config=_file_config(log_file, level="DEBUG"), level="ERROR")
        get_logger().debug("debug msg")

        assert [r["event"] for r in _json_lines(log_file)] == ["debug msg"]

    def test_given_outputs_with_levels_when_log_then_each_filters(self, tmp_path: Path) -> None:
        # Given
        debug_file = tmp_path / "debug.log"
        info_file = tmp_path / "nested" / "info.log"
        config = LoggingConfig(
            level="DEBUG",
            outputs=[
                LogOutputConfig(format="json", destination=str(info_file), level="INFO"),
                LogOutputConfig(format="json", destination=str(debug_file)),
            ],
        )

        # When
        configure_logging(config=config)
        get_logger().debug("debug only")
        get_logger().info("info msg")

        # Then
        assert [r["event"] for r in _json_lines(info_file)] == ["info msg"]
        assert [r["event"] for r in _json_lines(debug_file)] == ["debug only", "info msg"]

    def test_given_run_id_when_logging_then_attached(self, tmp_path: Path) -> None:
        log_file = tmp_path / "run.log"
        configure_logging(config=_file_config(log_file))
        set_run_id("abc123")

        get_logger("coverage.stack").info("collector_started", depth=1)

        record = _json_lines(log_file)[-1]
        assert record["run_id"] == "abc123"
        assert record["logger"] == "coverage.stack"

    def test_given_logger_created_before_configure_when_log_then_uses_config(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        # Given
        early = get_logger("coverage.scanner")
        log_file = tmp_path / "early.log"

        # When
        configure_logging(config=_file_config(log_file, level="INFO"))
        early.debug("scan_complete", files=1)
        early.info("scan_summary", files=1)

        # Then
        records = _json_lines(log_file)
        assert [r["event"] for r in records] == ["scan_summary"]
        assert records[0]["logger"] == "coverage.scanner"
        assert "scan_complete" not in capsys.readouterr().out

    def test_given_no_run_id_when_logging_then_absent(self, tmp_path: Path) -> None:
        log_file = tmp_path / "run.log"
        configure_logging(config=_file_config(log_file))

        get_logger().info("event")

        assert "run_id" not in _json_lines(log_file)[-1]

    def test_given_reconfigure_when_called_twice_then_single_handler(
        self, tmp_path: Path
    ) -> None:
        log_file = tmp_path / "once.log"
        configure_logging(config=_file_config(log_file))
        configure_logging(config=_file_config(log_file))

        get_logger().info("once")

        assert [r["event"] for r in _json_lines(log_file)] == ["once"]

    def test_given_stdlib_logger_when_logging_then_rendered(self, tmp_path: Path) -> None:
        log_file = tmp_path / "foreign.log"
        configure_logging(config=_file_config(log_file))

        logging.getLogger("thirdparty").warning("from stdlib")

        record = _json_lines(log_file)[-1]
        assert record["event"] == "from stdlib"
        assert record["level"] == "warning"

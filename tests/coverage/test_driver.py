"""Tests for the sys.settrace based driver."""

from __future__ import annotations

import inspect
import sys
from collections.abc import Iterator

import pytest

from scopecov.core.errors import CoverageError, ErrorCode
from scopecov.coverage.driver import _PACKAGE_DIR, CoverageDriver, TraceDriver


def _sample(n: int) -> int:
    total = 0
    for i in range(n):
        total += i
    return total


@pytest.fixture
def driver() -> Iterator[TraceDriver]:
    driver = TraceDriver()
    previous = sys.gettrace()
    yield driver
    if driver.running:
        driver.stop()
    sys.settrace(previous)


class TestTraceDriver:
    def test_is_a_coverage_driver(self, driver: TraceDriver) -> None:
        assert isinstance(driver, CoverageDriver)

    def test_counts_lines_of_called_function(self, driver: TraceDriver) -> None:
        first = _sample.__code__.co_firstlineno

        driver.start()
        _sample(3)
        hits = driver.stop()

        lines = hits[_sample.__code__.co_filename]
        assert lines[first + 1] == 1
        assert lines[first + 3] == 3
        assert lines[first + 4] == 1

    def test_traces_running_frame(self, driver: TraceDriver) -> None:
        driver.start()
        marker = inspect.currentframe().f_lineno  # type: ignore[union-attr]
        hits = driver.stop()

        assert hits[__file__][marker] == 1

    def test_stop_returns_delta(self, driver: TraceDriver) -> None:
        first = _sample.__code__.co_firstlineno

        driver.start()
        _sample(1)
        driver.stop()
        driver.start()
        _sample(2)
        hits = driver.stop()

        assert hits[_sample.__code__.co_filename][first + 3] == 2

    def test_nothing_recorded_after_stop(self, driver: TraceDriver) -> None:
        driver.start()
        driver.stop()
        _sample(2)
        driver.start()
        hits = driver.stop()

        assert _sample.__code__.co_filename not in hits or (
            _sample.__code__.co_firstlineno + 3 not in hits[_sample.__code__.co_filename]
        )

    def test_should_trace_filter(self) -> None:
        driver = TraceDriver(should_trace=lambda filename: False)
        previous = sys.gettrace()
        try:
            driver.start()
            _sample(2)
            hits = driver.stop()
        finally:
            sys.settrace(previous)

        assert hits == {}

    def test_scopecov_frames_not_traced(self, driver: TraceDriver) -> None:
        driver.start()
        _sample(1)
        hits = driver.stop()

        assert hits
        assert not any(path.startswith(_PACKAGE_DIR) for path in hits)

    def test_previous_trace_restored(self, driver: TraceDriver) -> None:
        def outer_trace(frame, event, arg):  # noqa: ANN001, ANN202, ARG001
            return None

        sys.settrace(outer_trace)
        driver.start()
        driver.stop()

        assert sys.gettrace() is outer_trace


class TestTraceDriverErrors:
    def test_start_twice(self, driver: TraceDriver) -> None:
        driver.start()

        with pytest.raises(CoverageError) as exc_info:
            driver.start()

        assert exc_info.value.code == ErrorCode.DRIVER_RUNNING
        assert driver.running

    def test_stop_while_idle(self, driver: TraceDriver) -> None:
        with pytest.raises(CoverageError) as exc_info:
            driver.stop()

        assert exc_info.value.code == ErrorCode.DRIVER_NOT_RUNNING

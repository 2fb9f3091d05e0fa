"""Coverage drivers: flat start/stop line-hit recorders.

A driver knows nothing about nesting. ``stop()`` returns the hits recorded
since the matching ``start()`` and forgets them, so a stop/start pair splits
a run into deltas without losing any lines. Nesting is the SessionStack's
job.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Callable
from types import FrameType
from typing import Any, Protocol, runtime_checkable

from scopecov.core.errors import CoverageError
from scopecov.coverage.models import CoverageMap

_PACKAGE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

TraceFn = Callable[[FrameType, str, Any], Any]


@runtime_checkable
class CoverageDriver(Protocol):
    """Records line hits between start() and stop()."""

    def start(self) -> None: ...

    def stop(self) -> CoverageMap:
        """Stop recording and return the hits recorded since start()."""
        ...


class TraceDriver:
    """Counts ``line`` trace events per file and line with ``sys.settrace``.

    Tracing applies to the calling thread. Frames already running when the
    driver starts (such as the body of a ``with collector.measure()`` block)
    are traced from their next line on. The previously installed trace
    function is restored on stop.

    Args:
        should_trace: Optional filter on ``co_filename``. Frames from scopecov
            itself are never traced.
    """

    def __init__(self, should_trace: Callable[[str], bool] | None = None) -> None:
        self._should_trace_fn = should_trace
        self._decisions: dict[str, bool] = {}
        self._hits: CoverageMap = {}
        self._previous: TraceFn | None = None
        self._running = False
        # Bound once so frames can be matched by identity on stop
        self._tracer: TraceFn = self._local_trace

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        if self._running:
            raise CoverageError.driver_running(type(self).__name__)
        self._running = True
        self._previous = sys.gettrace()
        frame: FrameType | None = sys._getframe(1)
        while frame is not None:
            if self._should_trace(frame.f_code.co_filename):
                frame.f_trace = self._tracer
            frame = frame.f_back
        sys.settrace(self._global_trace)

    def stop(self) -> CoverageMap:
        if not self._running:
            raise CoverageError.driver_not_running(type(self).__name__)
        sys.settrace(self._previous)
        self._previous = None
        self._running = False
        frame: FrameType | None = sys._getframe(1)
        while frame is not None:
            if frame.f_trace is self._tracer:
                frame.f_trace = None
            frame = frame.f_back
        hits, self._hits = self._hits, {}
        return hits

    def _should_trace(self, filename: str) -> bool:
        decision = self._decisions.get(filename)
        if decision is None:
            decision = not os.path.abspath(filename).startswith(_PACKAGE_DIR + os.sep)
            if decision and self._should_trace_fn is not None:
                decision = self._should_trace_fn(filename)
            self._decisions[filename] = decision
        return decision

    def _global_trace(self, frame: FrameType, event: str, arg: Any) -> TraceFn | None:  # noqa: ARG002
        if event == "call" and self._should_trace(frame.f_code.co_filename):
            return self._tracer
        return None

    def _local_trace(self, frame: FrameType, event: str, arg: Any) -> TraceFn:  # noqa: ARG002
        if event == "line":
            lines = self._hits.setdefault(frame.f_code.co_filename, {})
            lines[frame.f_lineno] = lines.get(frame.f_lineno, 0) + 1
        return self._tracer

"""Nested measurement sessions over a flat start/stop/drain driver.

Only the collector on top of the stack is measuring. Starting a nested
collector first drains the active collector's driver into that collector's
own store, so no interim data is lost, then hands measurement to the new
collector. Stopping the nested collector drains it, optionally folds the
drained delta into the parent, and resumes the parent's driver.

Stops must be strictly LIFO. A stop from a collector that is not on top is
refused (False) and leaves the stack untouched.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING

from scopecov.core.logging import get_logger

if TYPE_CHECKING:
    from scopecov.coverage.collector import Collector

log = get_logger("coverage.stack")


class SessionStack:
    """LIFO stack of active collectors.

    One stack is created per test run and handed to every collector of that
    run; there is no process-wide default.
    """

    def __init__(self) -> None:
        self._collectors: list[Collector] = []

    @property
    def active(self) -> Collector | None:
        return self._collectors[-1] if self._collectors else None

    def __len__(self) -> int:
        return len(self._collectors)

    def __contains__(self, collector: object) -> bool:
        return any(c is collector for c in self._collectors)

    def __iter__(self) -> Iterator[Collector]:
        return iter(list(self._collectors))

    def start(self, collector: Collector) -> bool:
        """Suspend the active collector (keeping its data) and start ``collector``."""
        parent = self.active
        if parent is not None:
            parent.add(parent.driver.stop())
            log.debug("collector_suspended", depth=len(self._collectors))
        self._collectors.append(collector)
        collector.driver.start()
        log.debug("collector_started", depth=len(self._collectors))
        return True

    def stop(self, collector: Collector, merge_to_parent: bool = True) -> bool:
        """Stop ``collector`` and resume its parent.

        Args:
            collector: Collector to stop. Must be on top of the stack.
            merge_to_parent: Also credit the parent with the hits collected
                since ``collector`` started. When False, they belong to
                ``collector`` only.

        Returns:
            False if ``collector`` is not the active collector.
        """
        if self.active is not collector:
            log.warning(
                "collector_stop_out_of_order",
                on_stack=collector in self,
                depth=len(self._collectors),
            )
            return False
        self._collectors.pop()
        collected = collector.driver.stop()
        collector.add(collected)

        parent = self.active
        if parent is None:
            log.debug("collector_stopped", depth=0)
            return True
        if merge_to_parent:
            parent.add(collected)
        parent.driver.start()
        log.debug(
            "collector_stopped",
            depth=len(self._collectors),
            merged_to_parent=merge_to_parent,
        )
        return True

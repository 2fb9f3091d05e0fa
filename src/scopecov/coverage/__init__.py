"""Nested-scope line coverage collection and metrics.

This package provides:
- Collectors: measurement sessions over a flat start/stop driver
- A LIFO session stack with merge-to-parent semantics
- Additive per-file hit accumulation
- Coverable-line filtering against a parsed structural tree
- Per-function metrics rolled up into class and namespace totals

Usage:
    from scopecov.coverage import Collector, SessionStack, TraceDriver

    stack = SessionStack()
    outer = Collector(driver=TraceDriver(), stack=stack, paths=["src"])
    inner = Collector(driver=TraceDriver(), stack=stack, paths=["src/pkg"])

    outer.start()
    inner.start()
    ...
    inner.stop(merge_to_parent=False)  # inner hits stay out of outer
    outer.stop()

    outer.export()                # {"src/pkg/mod.py": {3: 1, 4: 0}, ...}
    outer.metrics().get("pkg")    # rolled-up namespace node
"""

from scopecov.coverage.collector import Collector, module_name
from scopecov.coverage.driver import CoverageDriver, TraceDriver
from scopecov.coverage.filter import CoverableFilter, coverable_lines, filter_coverage
from scopecov.coverage.metrics import Metrics, MetricsAggregator, MetricsNode
from scopecov.coverage.models import CoverageMap, LineHits, MetricsEntry, percent
from scopecov.coverage.scanner import scan_files
from scopecov.coverage.stack import SessionStack
from scopecov.coverage.store import CoverageStore
from scopecov.coverage.structure import NodeKind, StructuralNode, StructuralTree

__all__ = [
    # Sessions
    "Collector",
    "SessionStack",
    "module_name",
    # Drivers
    "CoverageDriver",
    "TraceDriver",
    # Store
    "CoverageStore",
    "CoverageMap",
    "LineHits",
    # Filtering
    "CoverableFilter",
    "coverable_lines",
    "filter_coverage",
    # Metrics
    "Metrics",
    "MetricsAggregator",
    "MetricsEntry",
    "MetricsNode",
    "percent",
    # Structure
    "NodeKind",
    "StructuralNode",
    "StructuralTree",
    # Scanning
    "scan_files",
]

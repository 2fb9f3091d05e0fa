"""Coverage collector: one measurement session.

A collector owns a CoverageStore for its tracked files and a driver that
records line hits while the collector is the active session on its
SessionStack. Collectors nest: a measured test can start a collector of
its own for the code it calls, and the stack keeps the two sets of hits
apart (or folds the inner ones into the outer collector on request).

Usage::

    stack = SessionStack()
    collector = Collector(driver=TraceDriver(), stack=stack, paths=["src"])
    with collector.measure():
        run_tests()
    collector.export()   # {"pkg/mod.py": {3: 1, 4: 0, ...}, ...}
    collector.metrics()  # Metrics table keyed by qualified name
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from pathlib import Path, PurePath
from typing import TYPE_CHECKING

from scopecov.config.models import DEFAULT_SYNTHETIC_PATTERNS, CollectorConfig
from scopecov.core.logging import get_logger
from scopecov.coverage.driver import CoverageDriver
from scopecov.coverage.filter import CoverableFilter
from scopecov.coverage.metrics import Metrics, MetricsAggregator
from scopecov.coverage.models import DEFAULT_PRECISION, CoverageMap, LineHits
from scopecov.coverage.scanner import scan_files
from scopecov.coverage.stack import SessionStack
from scopecov.coverage.store import CoverageStore

if TYPE_CHECKING:
    from scopecov.parsing.base import StructureParser

log = get_logger("coverage.collector")


def module_name(file: str, base: str) -> str | None:
    """Dotted module path of ``file`` relative to ``base``.

    ``pkg/sub/mod.py`` -> ``pkg.sub.mod``; ``pkg/__init__.py`` -> ``pkg``.
    Files outside ``base`` use their stem.
    """
    path = PurePath(file)
    try:
        parts = list(path.relative_to(base).with_suffix("").parts)
    except ValueError:
        parts = [path.stem]
    if parts and parts[-1] == "__init__":
        parts.pop()
    return ".".join(parts) or None


class Collector:
    """A coverage measurement session.

    Args:
        driver: Records line hits between start() and stop().
        stack: Session stack shared by all collectors of a run.
        paths: Files or directories scanned for tracked files.
        files: Tracked files, used instead of scanning ``paths``.
        include: Glob a scanned file name must match.
        exclude: Globs removing scanned files.
        recursive: Scan subdirectories.
        follow_symlinks: Follow symlinked directories while scanning.
        base: Directory export paths are relative to (default: cwd).
        prefix: Instrumentation cache prefix stripped from reported paths.
        parser: Structure parser (default: PythonStructureParser).
        namespaces: Qualify metrics names with the file's module path.
        synthetic_patterns: Reported names with no backing file.
        precision: Decimal places of metrics percentages.
    """

    def __init__(
        self,
        *,
        driver: CoverageDriver,
        stack: SessionStack,
        paths: Iterable[str | Path] = (),
        files: Iterable[str | Path] | None = None,
        include: str = "*.py",
        exclude: Iterable[str] = (),
        recursive: bool = True,
        follow_symlinks: bool = True,
        base: str | Path | None = None,
        prefix: str | Path | None = None,
        parser: StructureParser | None = None,
        namespaces: bool = True,
        synthetic_patterns: Iterable[str] = DEFAULT_SYNTHETIC_PATTERNS,
        precision: int = DEFAULT_PRECISION,
    ) -> None:
        self.driver = driver
        self.stack = stack
        self._base = os.path.realpath(base if base is not None else Path.cwd())
        self._precision = precision

        if files is None:
            files = scan_files(
                paths,
                include=include,
                exclude=exclude,
                recursive=recursive,
                follow_symlinks=follow_symlinks,
            )
        self._store = CoverageStore(files, prefix=prefix, synthetic_patterns=synthetic_patterns)

        if parser is None:
            from scopecov.parsing.python import PythonStructureParser

            parser = PythonStructureParser()
        namespace_for = (lambda f: module_name(f, self._base)) if namespaces else None
        self._filter = CoverableFilter(parser, namespace_for)
        log.debug("collector_created", files=len(self._store.files), base=self._base)

    @classmethod
    def from_config(
        cls,
        config: CollectorConfig,
        *,
        driver: CoverageDriver,
        stack: SessionStack,
        parser: StructureParser | None = None,
    ) -> Collector:
        return cls(
            driver=driver,
            stack=stack,
            paths=config.paths,
            include=config.include,
            exclude=config.exclude,
            recursive=config.recursive,
            follow_symlinks=config.follow_symlinks,
            base=config.base,
            prefix=config.prefix,
            parser=parser,
            namespaces=config.namespaces,
            synthetic_patterns=config.synthetic_patterns,
            precision=config.percent_precision,
        )

    @property
    def base(self) -> str:
        return self._base

    @property
    def store(self) -> CoverageStore:
        return self._store

    @property
    def files(self) -> list[str]:
        return self._store.files

    def start(self) -> bool:
        """Become the active session, suspending the current one."""
        return self.stack.start(self)

    def stop(self, merge_to_parent: bool = True) -> bool:
        """Stop measuring. False if this collector is not the active session."""
        return self.stack.stop(self, merge_to_parent)

    @contextmanager
    def measure(self, merge_to_parent: bool = True) -> Iterator[Collector]:
        """Measure the body of a ``with`` block."""
        self.start()
        try:
            yield self
        finally:
            self.stop(merge_to_parent)

    def add(self, coverage: Mapping[str, Mapping[int, int]] | None) -> CoverageMap:
        """Merge raw driver output into this collector's store."""
        return self._store.merge(coverage)

    def relative(self, file: str) -> str:
        try:
            return PurePath(file).relative_to(self._base).as_posix()
        except ValueError:
            return PurePath(file).as_posix()

    def _tracked(self, file: str | Path) -> str:
        path = Path(file)
        if not path.is_absolute():
            path = Path(self._base) / path
        return os.path.realpath(path)

    def export(self, file: str | Path | None = None) -> dict[str, LineHits] | LineHits:
        """Coverable-line coverage.

        Without ``file``: relative path -> coverable line -> hits, for every
        tracked file. With ``file`` (absolute or relative to base): that
        file's coverable line -> hits, empty if it is not tracked.
        """
        if file is None:
            return {
                self.relative(path): self._filter.filter(path, hits)
                for path, hits in self._store.coverage.items()
            }
        path = self._tracked(file)
        if path not in self._store.coverage:
            return {}
        return self._filter.filter(path, self._store.coverage[path])

    def metrics(self) -> Metrics:
        """Metrics table of every tracked file's functions and methods."""
        metrics = Metrics(self._precision)
        aggregator = MetricsAggregator(metrics)
        for path, hits in self._store.coverage.items():
            tree = self._filter.tree(path)
            coverage = self._filter.filter(path, hits)
            aggregator.process_file(self.relative(path), tree, coverage)
        return metrics

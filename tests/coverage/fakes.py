"""Test doubles for the driver and parser collaborators."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from scopecov.coverage.models import CoverageMap
from scopecov.coverage.structure import NodeKind, StructuralTree


class FakeDriver:
    """Driver whose hits are scripted with record() and drained by stop()."""

    def __init__(self) -> None:
        self.running = False
        self.starts = 0
        self.stops = 0
        self._pending: CoverageMap = {}

    def record(self, file: str | Path, hits: dict[int, int]) -> None:
        lines = self._pending.setdefault(str(file), {})
        for line, value in hits.items():
            lines[line] = lines.get(line, 0) + value

    def start(self) -> None:
        self.running = True
        self.starts += 1

    def stop(self) -> CoverageMap:
        self.running = False
        self.stops += 1
        pending, self._pending = self._pending, {}
        return pending


class FixedParser:
    """Parser returning trees from a builder, counting calls."""

    def __init__(self, build: Callable[[str, str | None], StructuralTree]) -> None:
        self._build = build
        self.calls = 0
        self.namespaces: list[str | None] = []

    def parse(
        self,
        source: str,
        *,
        lines: bool = False,
        namespace: str | None = None,
    ) -> StructuralTree:
        self.calls += 1
        self.namespaces.append(namespace)
        tree = self._build(source, namespace)
        if lines:
            tree.index_lines()
        return tree


def statements_tree(source: str, coverable: set[int]) -> StructuralTree:
    """Flat tree with one coverable statement per listed line."""
    tree = StructuralTree(total_lines=len(source.splitlines()))
    for line in sorted(coverable):
        tree.add(NodeKind.STATEMENT, "stmt", line, line, coverable=True)
    return tree


def statements_parser(coverable: set[int]) -> FixedParser:
    return FixedParser(lambda source, _namespace: statements_tree(source, coverable))

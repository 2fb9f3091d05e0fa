"""Per-function coverage metrics and their namespace/class rollups.

MetricsAggregator walks a file's structural tree and computes one leaf
entry per named (non-closure) function or method over its inclusive line
span. Each line of the span is classified against the file's filtered
coverage:

- absent: not coverable (``ncloc``)
- present with hits: covered and coverable (``covered``, ``cloc``)
- present with 0 hits: coverable but never executed (``cloc``)

Leaves are registered in a Metrics table under their qualified name:
``ns\\Class::method()`` for methods, ``ns\\function()`` for free functions.
Namespace and class nodes of the table hold no counts of their own; their
data is always the sum of the leaf entries below them.

Closures are not entries. A closure inside a function is already inside
that function's span and counts towards it. Outside any function, the walk
passes through closures and groupings to reach the named functions and
classes they contain.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

from scopecov.coverage.models import DEFAULT_PRECISION, MetricsEntry
from scopecov.coverage.structure import NodeKind, StructuralNode, StructuralTree

NAMESPACE_SEPARATOR = "\\"
METHOD_SEPARATOR = "::"


class MetricsNode:
    """A namespace, class, function or method in the metrics hierarchy."""

    def __init__(self, name: str, kind: str, parent: MetricsNode | None = None) -> None:
        self.name = name
        self.kind = kind
        self.parent = parent
        self.children: dict[str, MetricsNode] = {}
        self.entry: MetricsEntry | None = None

    @property
    def is_leaf(self) -> bool:
        return self.entry is not None

    @property
    def qualified_name(self) -> str:
        if self.parent is None or self.parent.parent is None:
            return self.name
        separator = METHOD_SEPARATOR if self.kind == "method" else NAMESPACE_SEPARATOR
        return f"{self.parent.qualified_name}{separator}{self.name}"

    @property
    def data(self) -> MetricsEntry:
        """Counts of this node: the leaf entry, or the sum of all leaves below."""
        if self.entry is not None and not self.children:
            return self.entry
        total = MetricsEntry()
        for leaf in self.leaves():
            total.accumulate(leaf)
        return total

    @property
    def percent(self) -> float:
        return self.data.percent

    def leaves(self) -> Iterator[MetricsEntry]:
        if self.entry is not None:
            yield self.entry
        for child in self.children.values():
            yield from child.leaves()

    def child(self, name: str, kind: str) -> MetricsNode:
        node = self.children.get(name)
        if node is None:
            node = MetricsNode(name, kind, self)
            self.children[name] = node
        elif kind == "class" and node.kind == "namespace":
            # A nested class path (Outer\Inner) registers Outer as a namespace first
            node.kind = "class"
        return node

    def to_dict(self, precision: int = DEFAULT_PRECISION) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "type": self.kind,
            "metrics": self.data.to_dict(precision),
        }
        if self.children:
            result["children"] = {
                name: child.to_dict(precision) for name, child in self.children.items()
            }
        return result


def _split_name(name: str) -> list[tuple[str, str]]:
    """Split a qualified name into (segment, kind) pairs, outermost first."""
    if METHOD_SEPARATOR in name:
        owner, method = name.rsplit(METHOD_SEPARATOR, 1)
        parts = [p for p in owner.split(NAMESPACE_SEPARATOR) if p]
        segments = [(p, "namespace") for p in parts[:-1]]
        if parts:
            segments.append((parts[-1], "class"))
        segments.append((method, "method"))
        return segments
    parts = [p for p in name.split(NAMESPACE_SEPARATOR) if p]
    segments = [(p, "namespace") for p in parts[:-1]]
    if parts:
        kind = "function" if parts[-1].endswith("()") else "namespace"
        segments.append((parts[-1], kind))
    return segments


class Metrics:
    """Hierarchical metrics table keyed by qualified name.

    Args:
        precision: Decimal places percentages are rounded to on read.
    """

    def __init__(self, precision: int = DEFAULT_PRECISION) -> None:
        self.precision = precision
        self._root = MetricsNode("", "root")

    def add(self, name: str, entry: MetricsEntry) -> MetricsNode:
        """Register a leaf entry. Adding an existing name accumulates."""
        node = self._root
        for segment, kind in _split_name(name):
            node = node.child(segment, kind)
        if node.entry is None:
            node.entry = MetricsEntry(files=[])
        node.entry.accumulate(entry)
        if node.entry.line is None or (entry.line is not None and entry.line < node.entry.line):
            node.entry.line = entry.line
        return node

    def get(self, name: str = "") -> MetricsNode | None:
        """Node for a qualified name or any of its prefixes (``ns``, ``ns\\Class``)."""
        node = self._root
        for segment, _kind in _split_name(name):
            found = node.children.get(segment)
            if found is None:
                return None
            node = found
        return node

    def data(self, name: str = "") -> MetricsEntry | None:
        node = self.get(name)
        return node.data if node is not None else None

    def percent(self, name: str = "") -> float | None:
        entry = self.data(name)
        return entry.percent_at(self.precision) if entry is not None else None

    def totals(self) -> MetricsEntry:
        return self._root.data

    def children(self, name: str = "") -> list[MetricsNode]:
        node = self.get(name)
        return list(node.children.values()) if node is not None else []

    def leaves(self) -> Iterator[tuple[str, MetricsEntry]]:
        """(qualified name, entry) for every registered function and method."""
        stack = list(reversed(self._root.children.values()))
        while stack:
            node = stack.pop()
            if node.entry is not None:
                yield node.qualified_name, node.entry
            stack.extend(reversed(node.children.values()))

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def __len__(self) -> int:
        return sum(1 for _ in self.leaves())

    def to_dict(self) -> dict[str, Any]:
        return {
            "totals": self.totals().to_dict(self.precision),
            "children": {
                name: child.to_dict(self.precision)
                for name, child in self._root.children.items()
            },
        }


class MetricsAggregator:
    """Fills a Metrics table from structural trees and filtered coverage."""

    def __init__(self, metrics: Metrics) -> None:
        self.metrics = metrics

    def process_file(self, file: str, tree: StructuralTree, coverage: Mapping[int, int]) -> None:
        self._process_tree(file, tree, tree.top_level(), coverage, "")

    def _process_tree(
        self,
        file: str,
        tree: StructuralTree,
        nodes: list[StructuralNode],
        coverage: Mapping[int, int],
        path: str,
    ) -> None:
        for node in nodes:
            self._process_node(file, tree, node, coverage, path)

    def _process_node(
        self,
        file: str,
        tree: StructuralTree,
        node: StructuralNode,
        coverage: Mapping[int, int],
        path: str,
    ) -> None:
        if node.kind in (NodeKind.CLASS, NodeKind.NAMESPACE):
            path = f"{path}{NAMESPACE_SEPARATOR}{node.name}"
            self._process_tree(file, tree, tree.children(node), coverage, path)
        elif node.kind is NodeKind.FUNCTION and not node.is_closure:
            entry = self._process_function(file, node, coverage)
            separator = METHOD_SEPARATOR if node.is_method else NAMESPACE_SEPARATOR
            name = f"{path}{separator}{node.name}()".lstrip(NAMESPACE_SEPARATOR)
            self.metrics.add(name, entry)
        elif node.children:
            self._process_tree(file, tree, tree.children(node), coverage, path)

    def _process_function(
        self, file: str, node: StructuralNode, coverage: Mapping[int, int]
    ) -> MetricsEntry:
        entry = MetricsEntry(methods=1, files=[file], line=node.start)
        for line in range(node.start, node.stop + 1):
            self._process_line(line, coverage, entry)
        entry.loc = node.stop - node.start + 1
        if entry.covered:
            entry.cmethods = 1
        return entry

    @staticmethod
    def _process_line(line: int, coverage: Mapping[int, int], entry: MetricsEntry) -> None:
        # A file without coverable lines leaves its spans unclassified
        if not coverage:
            return
        if line not in coverage:
            entry.ncloc += 1
            return
        if coverage[line]:
            entry.covered += 1
        entry.cloc += 1

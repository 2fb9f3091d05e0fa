"""Structural model of a source file.

Parsers produce a StructuralTree: an index-addressed arena of tagged nodes.
Nodes refer to their parent and children by arena index, so the tree holds
no reference cycles and walks are plain list lookups.

The per-line index (``StructuralTree.lines``) maps every physical line to the
nodes whose span ends on that line. Coverable-line filtering reads only this
index; metrics aggregation walks ``roots`` and ``children``.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum


class NodeKind(str, Enum):
    """Tag of a structural node."""

    NAMESPACE = "namespace"
    CLASS = "class"
    FUNCTION = "function"
    STATEMENT = "statement"  # statements and transparent groupings


@dataclass(slots=True)
class StructuralNode:
    """A node of the structural tree.

    ``start`` and ``stop`` are 1-based and inclusive.
    """

    index: int
    kind: NodeKind
    name: str
    start: int
    stop: int
    coverable: bool = False
    is_method: bool = False
    is_closure: bool = False
    parent: int | None = None
    children: list[int] = field(default_factory=list)


@dataclass(slots=True)
class StructuralTree:
    """Arena of structural nodes for one source file."""

    total_lines: int
    nodes: list[StructuralNode] = field(default_factory=list)
    roots: list[int] = field(default_factory=list)
    lines: dict[int, list[int]] = field(default_factory=dict)

    def add(
        self,
        kind: NodeKind,
        name: str,
        start: int,
        stop: int,
        *,
        parent: int | None = None,
        coverable: bool = False,
        is_method: bool = False,
        is_closure: bool = False,
    ) -> StructuralNode:
        """Append a node to the arena and link it under ``parent``."""
        node = StructuralNode(
            index=len(self.nodes),
            kind=kind,
            name=name,
            start=start,
            stop=stop,
            coverable=coverable,
            is_method=is_method,
            is_closure=is_closure,
            parent=parent,
        )
        self.nodes.append(node)
        if parent is None:
            self.roots.append(node.index)
        else:
            self.nodes[parent].children.append(node.index)
        return node

    def node(self, index: int) -> StructuralNode:
        return self.nodes[index]

    def children(self, node: StructuralNode) -> list[StructuralNode]:
        return [self.nodes[i] for i in node.children]

    def top_level(self) -> list[StructuralNode]:
        return [self.nodes[i] for i in self.roots]

    def walk(self) -> Iterator[StructuralNode]:
        """Pre-order traversal over every node."""
        stack = list(reversed(self.roots))
        while stack:
            node = self.nodes[stack.pop()]
            yield node
            stack.extend(reversed(node.children))

    def index_lines(self) -> None:
        """Build the per-line index: line -> nodes whose span ends there.

        Every physical line gets an entry, empty when no node ends on it.
        Nodes are listed in pre-order, so the outermost node comes first.
        """
        lines: dict[int, list[int]] = {num: [] for num in range(1, self.total_lines + 1)}
        for node in self.walk():
            lines.setdefault(node.stop, []).append(node.index)
        self.lines = lines

    def nodes_ending_at(self, line: int) -> list[StructuralNode]:
        return [self.nodes[i] for i in self.lines.get(line, ())]

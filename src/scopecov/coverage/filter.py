"""Reduce raw line hits to the structurally coverable lines of a file."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from pathlib import Path
from typing import TYPE_CHECKING

from scopecov.coverage.models import LineHits
from scopecov.coverage.structure import StructuralTree

if TYPE_CHECKING:
    from scopecov.parsing.base import StructureParser

NamespaceFn = Callable[[str], str | None]


def coverable_lines(tree: StructuralTree) -> list[int]:
    """Lines where a coverable node's span ends, in line order."""
    result = []
    for num in sorted(tree.lines):
        for node in tree.nodes_ending_at(num):
            if node.coverable and node.stop == num:
                result.append(num)
                break
    return result


def filter_coverage(tree: StructuralTree, hits: Mapping[int, int]) -> LineHits:
    """Keep coverable lines only; coverable lines never hit report 0.

    Lines without a coverable node are omitted rather than reported as 0.
    """
    return {num: hits.get(num, 0) for num in coverable_lines(tree)}


class CoverableFilter:
    """Parses tracked files on demand and filters their coverage.

    Each file is parsed at most once per filter. A collector owns one filter,
    so export and metrics share the parses of that session only.

    Args:
        parser: Structure parser for the tracked sources.
        namespace_for: Optional callable giving the namespace a file's
            contents are qualified with (e.g. its dotted module path).
    """

    def __init__(self, parser: StructureParser, namespace_for: NamespaceFn | None = None) -> None:
        self._parser = parser
        self._namespace_for = namespace_for
        self._trees: dict[str, StructuralTree] = {}

    def tree(self, file: str) -> StructuralTree:
        """Parsed tree of ``file``, cached. Parse errors propagate."""
        if file in self._trees:
            return self._trees[file]
        source = Path(file).read_text(encoding="utf-8", errors="replace")
        namespace = self._namespace_for(file) if self._namespace_for else None
        tree = self._parser.parse(source, lines=True, namespace=namespace)
        self._trees[file] = tree
        return tree

    def is_cached(self, file: str) -> bool:
        return file in self._trees

    def filter(self, file: str, hits: Mapping[int, int]) -> LineHits:
        return filter_coverage(self.tree(file), hits)

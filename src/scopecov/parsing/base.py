"""Structure parser interface."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from scopecov.coverage.structure import StructuralTree


@runtime_checkable
class StructureParser(Protocol):
    """Builds the structural tree of a source text.

    Implementations are pure functions of the source. With ``lines=True``
    the tree's per-line index is filled. ``namespace`` (dotted) wraps the
    file's top-level nodes in nested namespace nodes.
    """

    def parse(
        self,
        source: str,
        *,
        lines: bool = False,
        namespace: str | None = None,
    ) -> StructuralTree: ...

"""Tree-sitter structure parser for Python sources.

Maps a Python module onto the structural model used for coverage:

- ``class`` -> CLASS node spanning the whole definition
- ``def`` / ``async def`` -> FUNCTION node spanning decorators, signature and
  body. A method when the nearest enclosing definition is a class, a closure
  when it is a function.
- simple statements -> a coverable STATEMENT node on the statement's first
  line, which is where line events are reported for it
- compound statements and their clauses -> a STATEMENT group spanning the
  construct, holding a coverable head node on the first line. ``else:`` and
  ``finally:`` heads execute nothing and are not coverable.

Declarations are not coverable: ``def``, ``class`` and decorator lines run
once at import, so counting them would credit functions that were never
called. Function docstrings, other bare string statements and
``global``/``nonlocal`` declarations compile to no code and are skipped as
well.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import tree_sitter
import tree_sitter_python

from scopecov.coverage.structure import NodeKind, StructuralTree

COMPOUND_STATEMENTS = frozenset(
    {
        "if_statement",
        "for_statement",
        "while_statement",
        "try_statement",
        "with_statement",
        "match_statement",
    }
)

CLAUSES = frozenset(
    {
        "elif_clause",
        "else_clause",
        "except_clause",
        "except_group_clause",
        "finally_clause",
        "case_clause",
    }
)

# Clause headers with no executable code of their own
SILENT_CLAUSES = frozenset({"else_clause", "finally_clause"})

DEFINITIONS = frozenset({"class_definition", "function_definition"})

SKIPPED = frozenset({"comment", "ERROR"})

# Compile-time declarations; no line event is ever reported for them
NO_CODE = frozenset({"global_statement", "nonlocal_statement"})


def _start(node: Any) -> int:
    return node.start_point[0] + 1


def _stop(node: Any) -> int:
    row, column = node.end_point
    # A node ending at column 0 ends with the previous line's newline
    if column == 0 and row > node.start_point[0]:
        return row
    return row + 1


def _is_bare_string(node: Any) -> bool:
    if node.type != "expression_statement" or node.named_child_count != 1:
        return False
    return node.named_children[0].type in ("string", "concatenated_string")


class _TreeBuilder:
    """Appends tree-sitter statements to a StructuralTree."""

    def __init__(self, tree: StructuralTree) -> None:
        self._tree = tree

    def body(
        self,
        statements: Iterable[Any],
        parent: int | None,
        scope: NodeKind | None,
        *,
        keep_docstring: bool = False,
    ) -> None:
        first = True
        for node in statements:
            if node.type in SKIPPED or node.type in NO_CODE:
                continue
            # Only module and class docstrings are stored (as __doc__)
            if _is_bare_string(node) and not (first and keep_docstring):
                first = False
                continue
            first = False
            self.statement(node, parent, scope)

    def statement(self, node: Any, parent: int | None, scope: NodeKind | None) -> None:
        if node.type == "decorated_definition":
            definition = node.child_by_field_name("definition")
            if definition is not None:
                self.definition(definition, _start(node), parent, scope)
        elif node.type in DEFINITIONS:
            self.definition(node, _start(node), parent, scope)
        elif node.type in COMPOUND_STATEMENTS or node.type in CLAUSES:
            self.compound(node, parent, scope)
        elif node.type not in SKIPPED:
            line = _start(node)
            self._tree.add(NodeKind.STATEMENT, node.type, line, line, parent=parent, coverable=True)

    def compound(self, node: Any, parent: int | None, scope: NodeKind | None) -> None:
        start = _start(node)
        group = self._tree.add(NodeKind.STATEMENT, node.type, start, _stop(node), parent=parent)
        if node.type not in SILENT_CLAUSES:
            self._tree.add(
                NodeKind.STATEMENT, node.type, start, start, parent=group.index, coverable=True
            )
        for child in node.named_children:
            if child.type == "block":
                self.body(child.named_children, group.index, scope)
            elif child.type in CLAUSES:
                self.compound(child, group.index, scope)

    def definition(self, node: Any, start: int, parent: int | None, scope: NodeKind | None) -> None:
        name_node = node.child_by_field_name("name")
        name = name_node.text.decode("utf-8") if name_node is not None else "<anonymous>"
        body = node.child_by_field_name("body")
        statements = body.named_children if body is not None else []

        if node.type == "class_definition":
            cls = self._tree.add(NodeKind.CLASS, name, start, _stop(node), parent=parent)
            self.body(statements, cls.index, NodeKind.CLASS, keep_docstring=True)
            return

        function = self._tree.add(
            NodeKind.FUNCTION,
            name,
            start,
            _stop(node),
            parent=parent,
            is_method=scope is NodeKind.CLASS,
            is_closure=scope is NodeKind.FUNCTION,
        )
        self.body(statements, function.index, NodeKind.FUNCTION)


class PythonStructureParser:
    """Structure parser for Python source text.

    Usage::

        parser = PythonStructureParser()
        tree = parser.parse(source, lines=True, namespace="pkg.mod")
    """

    def __init__(self) -> None:
        self._parser = tree_sitter.Parser()
        self._parser.language = tree_sitter.Language(tree_sitter_python.language())

    def parse(
        self,
        source: str,
        *,
        lines: bool = False,
        namespace: str | None = None,
    ) -> StructuralTree:
        tree = StructuralTree(total_lines=len(source.splitlines()))
        ts_tree = self._parser.parse(source.encode("utf-8"))

        parent: int | None = None
        if namespace:
            stop = max(tree.total_lines, 1)
            for part in namespace.split("."):
                parent = tree.add(NodeKind.NAMESPACE, part, 1, stop, parent=parent).index

        _TreeBuilder(tree).body(
            ts_tree.root_node.named_children, parent, None, keep_docstring=True
        )
        if lines:
            tree.index_lines()
        return tree

"""Python source parser producing labelled trees.

Uses the standard library ``ast`` module. Expression contexts (Load/Store/Del)
are dropped since they only duplicate information already in the parent.
"""

from __future__ import annotations

import ast
from pathlib import Path

from treematch_bench.errors import TreeSyntaxError
from treematch_bench.treediff.tree import Node, ParsedTree


def _label(node: ast.AST) -> str:
    """Extract the label carried by an AST node, or "" if it has none."""
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    if isinstance(node, ast.Constant):
        return repr(node.value)
    if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
        return node.name
    if isinstance(node, ast.arg):
        return node.arg
    if isinstance(node, ast.keyword):
        return node.arg or ""
    if isinstance(node, ast.alias):
        return node.name if node.asname is None else f"{node.name} as {node.asname}"
    if isinstance(node, ast.ImportFrom):
        return "." * node.level + (node.module or "")
    if isinstance(node, (ast.Global, ast.Nonlocal)):
        return ",".join(node.names)
    if isinstance(node, ast.ExceptHandler):
        return node.name or ""
    return ""


def to_tree(module: ast.AST) -> Node:
    """Convert an ``ast`` tree into an unindexed ``Node`` tree."""
    root = Node(type(module).__name__, _label(module), getattr(module, "lineno", 0))
    stack = [(module, root)]
    while stack:
        ast_node, tree_node = stack.pop()
        for child in ast.iter_child_nodes(ast_node):
            if isinstance(child, ast.expr_context):
                continue
            converted = tree_node.add_child(
                Node(type(child).__name__, _label(child), getattr(child, "lineno", 0))
            )
            stack.append((child, converted))
    return root


class PythonTreeParser:
    """Parses Python files into ``ParsedTree`` objects.

    Raises ``TreeSyntaxError`` for unreadable or unparseable input.
    ``MemoryError`` is left to propagate so callers can report it
    separately; running out of stack on deeply nested input is reported as
    ``MemoryError`` as well.
    """

    suffixes = (".py", ".pyi")

    def parse(self, path: str | Path) -> ParsedTree:
        path = Path(path)
        try:
            # UnicodeDecodeError is a ValueError
            source = path.read_bytes().decode("utf-8")
        except (OSError, ValueError) as exc:
            raise TreeSyntaxError(str(path), str(exc)) from exc
        return self.parse_string(source, name=str(path))

    def parse_string(self, source: str, name: str = "<string>") -> ParsedTree:
        try:
            module = ast.parse(source, filename=name)
        except (SyntaxError, ValueError) as exc:
            raise TreeSyntaxError(name, str(exc)) from exc
        except RecursionError as exc:
            raise MemoryError(f"{name}: {exc}") from exc
        return ParsedTree(to_tree(module), source=name)

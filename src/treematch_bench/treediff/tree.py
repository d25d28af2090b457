"""Labelled tree model shared by parsers, matchers and edit-script builders.

A ``Node`` has a type (e.g. ``FunctionDef``), an optional label (identifier,
constant, ...) and ordered children. Wrapping a root in ``ParsedTree``
indexes the tree: every node gets a pre-order ``id``, its subtree ``size``,
its ``height`` and a structural ``digest`` used for isomorphism tests.

All traversals are iterative so deep trees never hit the recursion limit.
"""

from __future__ import annotations

from collections import deque
from typing import Iterator


class Node:
    """One node of a labelled, ordered tree."""

    __slots__ = ("type", "label", "line", "children", "parent", "id", "size", "height", "digest")

    def __init__(self, type: str, label: str = "", line: int = 0) -> None:
        self.type = type
        self.label = label
        self.line = line
        self.children: list[Node] = []
        self.parent: Node | None = None
        self.id = -1
        self.size = 1
        self.height = 1
        self.digest = 0

    def add_child(self, child: Node) -> Node:
        child.parent = self
        self.children.append(child)
        return child

    @property
    def is_leaf(self) -> bool:
        return not self.children

    @property
    def is_root(self) -> bool:
        return self.parent is None

    @property
    def position(self) -> int:
        """Index of this node among its parent's children (0 for the root)."""
        if self.parent is None:
            return 0
        for i, sibling in enumerate(self.parent.children):
            if sibling is self:
                return i
        raise ValueError("node is not among its parent's children")

    def pre_order(self) -> Iterator[Node]:
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def post_order(self) -> Iterator[Node]:
        stack: list[tuple[Node, bool]] = [(self, False)]
        while stack:
            node, expanded = stack.pop()
            if expanded or not node.children:
                yield node
                continue
            stack.append((node, True))
            for child in reversed(node.children):
                stack.append((child, False))

    def breadth_first(self) -> Iterator[Node]:
        queue = deque([self])
        while queue:
            node = queue.popleft()
            yield node
            queue.extend(node.children)

    def descendants(self) -> Iterator[Node]:
        """All nodes below this one, in pre-order."""
        nodes = self.pre_order()
        next(nodes)
        return nodes

    def ancestors(self) -> Iterator[Node]:
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def contains(self, other: Node) -> bool:
        """True if ``other`` lies in this node's subtree (itself included).

        Relies on the pre-order ids assigned by ``ParsedTree``.
        """
        return self.id <= other.id < self.id + self.size

    def isomorphic_to(self, other: Node) -> bool:
        return self.digest == other.digest and self.size == other.size

    def __repr__(self) -> str:
        if self.label:
            return f"{self.type}({self.label!r})#{self.id}"
        return f"{self.type}#{self.id}"


class ParsedTree:
    """An indexed tree: ids, sizes, heights and digests are filled in."""

    def __init__(self, root: Node, source: str = "") -> None:
        self.root = root
        self.source = source
        self.nodes: list[Node] = []
        for i, node in enumerate(root.pre_order()):
            node.id = i
            self.nodes.append(node)
        for node in root.post_order():
            if node.children:
                node.size = 1 + sum(c.size for c in node.children)
                node.height = 1 + max(c.height for c in node.children)
            else:
                node.size = 1
                node.height = 1
            node.digest = hash((node.type, node.label, tuple(c.digest for c in node.children)))

    def __len__(self) -> int:
        return len(self.nodes)

    def __getitem__(self, node_id: int) -> Node:
        return self.nodes[node_id]

    def __repr__(self) -> str:
        return f"ParsedTree({self.source or self.root.type!r}, size={len(self.nodes)})"

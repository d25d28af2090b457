"""Node mappings between a source and a destination tree."""

from __future__ import annotations

from typing import Iterator

from treematch_bench.treediff.tree import Node, ParsedTree


class MappingStore:
    """One-to-one correspondence between nodes of two trees.

    ``src`` and ``dst`` are the roots the mapping was computed for; the edit
    script builder walks them.
    """

    def __init__(self, src: Node, dst: Node) -> None:
        self.src = src
        self.dst = dst
        self._src_to_dst: dict[Node, Node] = {}
        self._dst_to_src: dict[Node, Node] = {}

    def add(self, src: Node, dst: Node) -> None:
        self._src_to_dst[src] = dst
        self._dst_to_src[dst] = src

    def add_recursively(self, src: Node, dst: Node) -> None:
        """Map two isomorphic subtrees node by node."""
        for a, b in zip(src.pre_order(), dst.pre_order()):
            self.add(a, b)

    def has_src(self, node: Node) -> bool:
        return node in self._src_to_dst

    def has_dst(self, node: Node) -> bool:
        return node in self._dst_to_src

    def get_dst(self, node: Node) -> Node | None:
        return self._src_to_dst.get(node)

    def get_src(self, node: Node) -> Node | None:
        return self._dst_to_src.get(node)

    def is_mapping_allowed(self, src: Node, dst: Node) -> bool:
        return src.type == dst.type and not self.has_src(src) and not self.has_dst(dst)

    def __len__(self) -> int:
        return len(self._src_to_dst)

    def __iter__(self) -> Iterator[tuple[Node, Node]]:
        return iter(self._src_to_dst.items())

    def as_pairs(self) -> list[tuple[int, int]]:
        """Serialize as ``(src_id, dst_id)`` pairs, sorted by source id."""
        return sorted((a.id, b.id) for a, b in self._src_to_dst.items())

    @classmethod
    def from_pairs(
        cls, pairs: list[tuple[int, int]], src: ParsedTree, dst: ParsedTree,
    ) -> MappingStore:
        """Rebuild a mapping from id pairs against the given trees."""
        store = cls(src.root, dst.root)
        for src_id, dst_id in pairs:
            store.add(src[src_id], dst[dst_id])
        return store

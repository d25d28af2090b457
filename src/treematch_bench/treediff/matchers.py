"""Reference tree matchers.

All matchers are constructible without arguments, accept tuning options via
``configure(**options)`` and produce a ``MappingStore`` from ``match``.

The composite matchers follow the usual two-phase scheme:

1. Top-down: greedily map the largest isomorphic subtrees (at least
   ``min_height`` high), resolving ambiguous candidates by how well their
   parents already match.
2. Bottom-up: walk the source in post-order and map each unmapped container
   to the destination container sharing the most mapped descendants (dice
   coefficient), then try to recover mappings among their leftovers.

Phase 2 variants differ in their similarity threshold and in which recovery
they run:

* ``simple``: any overlap is enough, children recovered by unique
  (type, label) then unique type.
* ``classic``: dice >= ``bu_minsim``; LCS recovery over descendants, but only
  for subtrees smaller than ``bu_minsize``.
* ``hybrid``: like classic, falling back to the cheap children recovery for
  subtrees at or above ``bu_minsize``.
"""

from __future__ import annotations

import heapq
from collections import Counter, defaultdict
from typing import Any, Callable, Hashable

from treematch_bench.treediff.mapping import MappingStore
from treematch_bench.treediff.sequences import longest_common_subsequence
from treematch_bench.treediff.tree import Node


class Matcher:
    """Base class: option handling shared by all reference matchers."""

    defaults: dict[str, Any] = {}

    def __init__(self) -> None:
        self.options: dict[str, Any] = dict(self.defaults)

    def configure(self, **options: Any) -> None:
        """Set tuning options, converting values to each option's type.

        Raises KeyError for unknown options and ValueError for values that
        cannot be converted.
        """
        for key, value in options.items():
            if key not in self.defaults:
                raise KeyError(
                    f"{type(self).__name__} has no option {key!r}. "
                    f"Available: {sorted(self.defaults)}"
                )
            self.options[key] = type(self.defaults[key])(value)

    def match(self, src: Node, dst: Node) -> MappingStore:
        raise NotImplementedError


# ---------------------------------------------------------------------------
# Top-down phase
# ---------------------------------------------------------------------------


class _HeightQueue:
    """Priority list of nodes ordered by decreasing height."""

    def __init__(self, root: Node) -> None:
        self._heap: list[tuple[int, int, Node]] = []
        self.push(root)

    def push(self, node: Node) -> None:
        heapq.heappush(self._heap, (-node.height, node.id, node))

    def open(self, node: Node) -> None:
        for child in node.children:
            self.push(child)

    def peek_height(self) -> int:
        return -self._heap[0][0] if self._heap else -1

    def pop(self) -> list[Node]:
        """Pop every node sharing the current maximum height."""
        height = self.peek_height()
        level = []
        while self._heap and -self._heap[0][0] == height:
            level.append(heapq.heappop(self._heap)[2])
        return level


def _dice(src: Node, dst: Node, mappings: MappingStore) -> float:
    """Share of descendants of ``src`` mapped into the subtree of ``dst``."""
    total = (src.size - 1) + (dst.size - 1)
    if total == 0:
        return 0.0
    common = 0
    for node in src.descendants():
        partner = mappings.get_dst(node)
        if partner is not None and partner is not dst and dst.contains(partner):
            common += 1
    return 2.0 * common / total


def _parent_similarity(src: Node, dst: Node, mappings: MappingStore) -> float:
    if src.parent is None or dst.parent is None:
        return 0.0
    return _dice(src.parent, dst.parent, mappings)


def match_subtrees(src: Node, dst: Node, mappings: MappingStore, min_height: int) -> None:
    """Greedy top-down mapping of isomorphic subtrees."""
    src_queue, dst_queue = _HeightQueue(src), _HeightQueue(dst)
    candidates: list[tuple[Node, Node]] = []

    while min(src_queue.peek_height(), dst_queue.peek_height()) >= min_height:
        src_height, dst_height = src_queue.peek_height(), dst_queue.peek_height()
        if src_height != dst_height:
            if src_height > dst_height:
                for node in src_queue.pop():
                    src_queue.open(node)
            else:
                for node in dst_queue.pop():
                    dst_queue.open(node)
            continue

        src_level, dst_level = src_queue.pop(), dst_queue.pop()
        src_hit: set[Node] = set()
        dst_hit: set[Node] = set()
        for a in src_level:
            for b in dst_level:
                if a.isomorphic_to(b):
                    candidates.append((a, b))
                    src_hit.add(a)
                    dst_hit.add(b)
        for a in src_level:
            if a not in src_hit:
                src_queue.open(a)
        for b in dst_level:
            if b not in dst_hit:
                dst_queue.open(b)

    src_count = Counter(a for a, _ in candidates)
    dst_count = Counter(b for _, b in candidates)
    ambiguous = []
    for a, b in candidates:
        if src_count[a] == 1 and dst_count[b] == 1:
            mappings.add_recursively(a, b)
        else:
            ambiguous.append((a, b))

    ambiguous.sort(key=lambda p: (
        -_parent_similarity(p[0], p[1], mappings),
        abs(p[0].position - p[1].position),
        p[0].id,
        p[1].id,
    ))
    for a, b in ambiguous:
        if not mappings.has_src(a) and not mappings.has_dst(b):
            mappings.add_recursively(a, b)


# ---------------------------------------------------------------------------
# Recovery strategies
# ---------------------------------------------------------------------------


def _type_label(node: Node) -> Hashable:
    return (node.type, node.label)


def _type(node: Node) -> Hashable:
    return node.type


def recover_children(src: Node, dst: Node, mappings: MappingStore) -> None:
    """Map unmapped children with a unique (type, label), then a unique type.

    Newly mapped pairs are recovered in turn.
    """
    stack = [(src, dst)]
    while stack:
        a, b = stack.pop()
        for key in (_type_label, _type):
            left: dict[Hashable, list[Node]] = defaultdict(list)
            right: dict[Hashable, list[Node]] = defaultdict(list)
            for child in a.children:
                if not mappings.has_src(child):
                    left[key(child)].append(child)
            for child in b.children:
                if not mappings.has_dst(child):
                    right[key(child)].append(child)
            for k, nodes in left.items():
                others = right.get(k)
                if len(nodes) == 1 and others is not None and len(others) == 1:
                    mappings.add(nodes[0], others[0])
                    stack.append((nodes[0], others[0]))


def recover_lcs(src: Node, dst: Node, mappings: MappingStore) -> None:
    """Align unmapped descendants in post-order, by (type, label) then by type."""
    for key in (_type_label, _type):
        left = [n for n in src.post_order() if n is not src and not mappings.has_src(n)]
        right = [n for n in dst.post_order() if n is not dst and not mappings.has_dst(n)]
        for a, b in longest_common_subsequence(left, right, lambda x, y: key(x) == key(y)):
            mappings.add(a, b)


# ---------------------------------------------------------------------------
# Bottom-up phase
# ---------------------------------------------------------------------------


def _container_candidates(node: Node, mappings: MappingStore) -> list[Node]:
    """Unmapped, non-root destination ancestors of ``node``'s mapped descendants."""
    seen: set[Node] = set()
    found = []
    for descendant in node.descendants():
        partner = mappings.get_dst(descendant)
        if partner is None:
            continue
        ancestor = partner.parent
        while ancestor is not None and ancestor not in seen:
            seen.add(ancestor)
            if (
                ancestor.type == node.type
                and not ancestor.is_root
                and not mappings.has_dst(ancestor)
            ):
                found.append(ancestor)
            ancestor = ancestor.parent
    return found


Recovery = Callable[[Node, Node, MappingStore], None]


def match_containers(
    src: Node,
    dst: Node,
    mappings: MappingStore,
    min_sim: float,
    recovery: Callable[[Node, Node], Recovery | None],
) -> None:
    """Bottom-up mapping of containers; ``recovery`` picks the strategy per pair."""
    for node in src.post_order():
        if node.is_root:
            if not mappings.has_src(node) and not mappings.has_dst(dst):
                mappings.add(node, dst)
                recover = recovery(node, dst)
                if recover is not None:
                    recover(node, dst, mappings)
            break
        if node.is_leaf or mappings.has_src(node):
            continue

        best, best_sim = None, -1.0
        for candidate in _container_candidates(node, mappings):
            sim = _dice(node, candidate, mappings)
            if sim > best_sim:
                best, best_sim = candidate, sim
        if best is None or best_sim < min_sim or best_sim <= 0.0:
            continue

        recover = recovery(node, best)
        if recover is not None:
            recover(node, best, mappings)
        mappings.add(node, best)


# ---------------------------------------------------------------------------
# Matchers
# ---------------------------------------------------------------------------


class TopDownMatcher(Matcher):
    """Isomorphic subtree matching only, plus the two roots."""

    defaults = {"min_height": 2}

    def match(self, src: Node, dst: Node) -> MappingStore:
        mappings = MappingStore(src, dst)
        match_subtrees(src, dst, mappings, self.options["min_height"])
        if not mappings.has_src(src) and not mappings.has_dst(dst):
            mappings.add(src, dst)
        return mappings


class SimpleMatcher(Matcher):
    defaults = {"min_height": 2}

    def match(self, src: Node, dst: Node) -> MappingStore:
        mappings = MappingStore(src, dst)
        match_subtrees(src, dst, mappings, self.options["min_height"])
        match_containers(src, dst, mappings, 0.0, lambda a, b: recover_children)
        return mappings


class ClassicMatcher(Matcher):
    defaults = {"min_height": 2, "bu_minsim": 0.5, "bu_minsize": 1000}

    def match(self, src: Node, dst: Node) -> MappingStore:
        mappings = MappingStore(src, dst)
        match_subtrees(src, dst, mappings, self.options["min_height"])
        match_containers(
            src, dst, mappings, self.options["bu_minsim"], self._recovery,
        )
        return mappings

    def _recovery(self, src: Node, dst: Node) -> Recovery | None:
        if max(src.size, dst.size) < self.options["bu_minsize"]:
            return recover_lcs
        return None


class HybridMatcher(ClassicMatcher):
    defaults = {"min_height": 2, "bu_minsim": 0.5, "bu_minsize": 20}

    def _recovery(self, src: Node, dst: Node) -> Recovery | None:
        if max(src.size, dst.size) < self.options["bu_minsize"]:
            return recover_lcs
        return recover_children


class LcsMatcher(Matcher):
    """Aligns the pre-order node sequences of both trees by (type, label)."""

    def match(self, src: Node, dst: Node) -> MappingStore:
        mappings = MappingStore(src, dst)
        pairs = longest_common_subsequence(
            list(src.pre_order()),
            list(dst.pre_order()),
            lambda a, b: a.type == b.type and a.label == b.label,
        )
        for a, b in pairs:
            mappings.add(a, b)
        return mappings

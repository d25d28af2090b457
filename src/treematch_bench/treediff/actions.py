"""Edit actions and the edit-script builder.

``ChawatheScriptGenerator`` derives a simplified Chawathe edit script from a
mapping. Inserts, updates and moves are emitted in breadth-first order of
the destination tree, deletes in post-order of the source tree. Subtrees
that are inserted (or deleted) wholesale collapse into a single
``TREE_INSERT`` (``TREE_DELETE``) on their root.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from treematch_bench.treediff.mapping import MappingStore
from treematch_bench.treediff.sequences import longest_common_subsequence
from treematch_bench.treediff.tree import Node


class ActionKind(Enum):
    INSERT = "insert"
    DELETE = "delete"
    UPDATE = "update"
    MOVE = "move"
    TREE_INSERT = "tree-insert"
    TREE_DELETE = "tree-delete"


@dataclass(frozen=True)
class EditAction:
    """One edit on ``node``.

    For inserts ``node`` belongs to the destination tree; for every other
    kind it belongs to the source tree. ``parent``/``position`` give the
    destination location of inserts and moves, ``value`` the new label of
    an update.
    """

    kind: ActionKind
    node: Node
    value: str | None = None
    parent: Node | None = None
    position: int | None = None

    @property
    def subtree_size(self) -> int:
        return self.node.size

    def __str__(self) -> str:
        text = f"{self.kind.value} {self.node!r}"
        if self.kind is ActionKind.UPDATE:
            text += f" -> {self.value!r}"
        elif self.parent is not None:
            text += f" into {self.parent!r} at {self.position}"
        return text


def _fully_covered(root: Node, touched: set[Node]) -> set[Node]:
    """Nodes whose whole subtree is in ``touched``."""
    covered: set[Node] = set()
    for node in root.post_order():
        if node in touched and all(c in covered for c in node.children):
            covered.add(node)
    return covered


class ChawatheScriptGenerator:
    """Builds a simplified edit script from a ``MappingStore``."""

    def compute(self, mappings: MappingStore) -> list[EditAction]:
        actions: list[EditAction] = []
        misplaced: set[Node] = set()

        for node in mappings.dst.breadth_first():
            partner = mappings.get_src(node)
            if partner is None:
                actions.append(EditAction(
                    ActionKind.INSERT, node, parent=node.parent, position=node.position,
                ))
                continue
            if partner.label != node.label:
                actions.append(EditAction(ActionKind.UPDATE, partner, value=node.label))
            if node.parent is not None and (
                partner in misplaced or mappings.get_src(node.parent) is not partner.parent
            ):
                actions.append(EditAction(
                    ActionKind.MOVE, partner, parent=node.parent, position=node.position,
                ))
            misplaced.update(self._misaligned_children(partner, node, mappings))

        for node in mappings.src.post_order():
            if not mappings.has_src(node):
                actions.append(EditAction(ActionKind.DELETE, node))

        return self._simplify(actions, mappings)

    @staticmethod
    def _misaligned_children(src: Node, dst: Node, mappings: MappingStore) -> list[Node]:
        """Source children that stay under the same parent but change order."""
        src_children = [
            c for c in src.children
            if mappings.has_src(c) and mappings.get_dst(c).parent is dst
        ]
        dst_children = [
            c for c in dst.children
            if mappings.has_dst(c) and mappings.get_src(c).parent is src
        ]
        aligned = {
            a for a, _ in longest_common_subsequence(
                src_children, dst_children, lambda a, b: mappings.get_dst(a) is b,
            )
        }
        return [c for c in src_children if c not in aligned]

    @staticmethod
    def _simplify(actions: list[EditAction], mappings: MappingStore) -> list[EditAction]:
        inserted = {a.node for a in actions if a.kind is ActionKind.INSERT}
        deleted = {a.node for a in actions if a.kind is ActionKind.DELETE}
        whole_inserts = _fully_covered(mappings.dst, inserted)
        whole_deletes = _fully_covered(mappings.src, deleted)

        simplified: list[EditAction] = []
        for action in actions:
            if action.kind is ActionKind.INSERT:
                whole, tree_kind = whole_inserts, ActionKind.TREE_INSERT
            elif action.kind is ActionKind.DELETE:
                whole, tree_kind = whole_deletes, ActionKind.TREE_DELETE
            else:
                simplified.append(action)
                continue
            node = action.node
            if node.parent is not None and node.parent in whole:
                continue
            if node in whole and not node.is_leaf:
                simplified.append(EditAction(
                    tree_kind, node, parent=action.parent, position=action.position,
                ))
            else:
                simplified.append(action)
        return simplified

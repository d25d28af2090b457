"""Edit volume: weighted counters derived from an edit script.

Bulk actions are weighted by the size of the subtree they touch, so a tree
insert of N nodes counts as N inserts. The script size stays the plain
number of actions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from treematch_bench.results import CaseResult, EditCounts
from treematch_bench.treediff.actions import ActionKind, EditAction


def extract(actions: Iterable[EditAction]) -> EditCounts:
    """Count actions and weight inserts, deletes and moves by subtree size."""
    size = inserts = deletes = updates = moves = 0
    for action in actions:
        size += 1
        if action.kind is ActionKind.INSERT:
            inserts += 1
        elif action.kind is ActionKind.DELETE:
            deletes += 1
        elif action.kind is ActionKind.UPDATE:
            updates += 1
        elif action.kind is ActionKind.MOVE:
            moves += action.subtree_size
        elif action.kind is ActionKind.TREE_INSERT:
            inserts += action.subtree_size
        elif action.kind is ActionKind.TREE_DELETE:
            deletes += action.subtree_size
    return EditCounts(
        script_size=size,
        inserts=inserts,
        deletes=deletes,
        updates=updates,
        move_volume=moves,
    )


@dataclass
class EditVolume:
    """Mean script size and weighted counters over successful rows."""

    @property
    def name(self) -> str:
        return "edit_volume"

    def compute(self, rows: list[CaseResult]) -> dict[str, float]:
        counted = [r.counts for r in rows if r.ok and r.counts is not None]
        keys = ("mean_s", "mean_ni", "mean_nd", "mean_nu", "mean_nm")
        if not counted:
            return {k: 0.0 for k in keys}

        totals = [sum(values) for values in zip(*(c.as_tuple() for c in counted))]
        return {k: total / len(counted) for k, total in zip(keys, totals)}

"""Protocol definitions for treematch-bench.

Collaborators implement these protocols -- never subclass.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, Sequence, runtime_checkable

from treematch_bench.results import CaseResult
from treematch_bench.treediff.actions import EditAction
from treematch_bench.treediff.mapping import MappingStore
from treematch_bench.treediff.tree import Node, ParsedTree


@runtime_checkable
class TreeParser(Protocol):
    """Turns a source file into a tree.

    Raises TreeSyntaxError on malformed input and lets MemoryError escape.
    """

    def parse(self, path: str | Path) -> ParsedTree: ...


@runtime_checkable
class PairFinder(Protocol):
    """Lists the (before, after) file pairs of a corpus."""

    def compare(
        self, before_dir: str | Path, after_dir: str | Path,
    ) -> Sequence[tuple[Path, Path]]: ...


@runtime_checkable
class Matcher(Protocol):
    """A tree matching algorithm. May run for an unbounded time."""

    def match(self, src: Node, dst: Node) -> MappingStore: ...


@runtime_checkable
class EditScriptBuilder(Protocol):
    def compute(self, mappings: MappingStore) -> Sequence[EditAction]: ...


@runtime_checkable
class Metric(Protocol):
    """Aggregates report rows into summary stats."""

    @property
    def name(self) -> str: ...

    def compute(self, rows: list[CaseResult]) -> dict[str, float]: ...

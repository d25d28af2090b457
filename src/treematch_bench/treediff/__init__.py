"""Reference tree-diff collaborators: tree model, parser, pair finder, matchers, edit scripts."""

from treematch_bench.treediff.actions import ActionKind, ChawatheScriptGenerator, EditAction
from treematch_bench.treediff.mapping import MappingStore
from treematch_bench.treediff.matchers import (
    ClassicMatcher,
    HybridMatcher,
    LcsMatcher,
    SimpleMatcher,
    TopDownMatcher,
)
from treematch_bench.treediff.pairs import DirectoryComparator
from treematch_bench.treediff.parser import PythonTreeParser
from treematch_bench.treediff.tree import Node, ParsedTree

__all__ = [
    "ActionKind",
    "ChawatheScriptGenerator",
    "ClassicMatcher",
    "DirectoryComparator",
    "EditAction",
    "HybridMatcher",
    "LcsMatcher",
    "MappingStore",
    "Node",
    "ParsedTree",
    "PythonTreeParser",
    "SimpleMatcher",
    "TopDownMatcher",
]

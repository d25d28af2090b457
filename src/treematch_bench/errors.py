"""Exception types for treematch-bench.

Only configuration, report-stream and matcher-defect errors are fatal.
Per-case failures (unparseable inputs, timeouts, memory exhaustion) are
turned into skipped pairs or sentinel rows by the runner.
"""

from __future__ import annotations


class BenchmarkError(Exception):
    """Base for all treematch-bench errors."""


class ConfigurationError(BenchmarkError):
    """Raised at startup when a run cannot be configured (unknown algorithm,
    bad option, invalid settings, missing corpus folders)."""


class TreeSyntaxError(BenchmarkError):
    """Raised by a tree parser when an input file cannot be parsed."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class ReportWriteError(BenchmarkError):
    """Raised when the report stream cannot be opened or written."""


class MatchError(BenchmarkError):
    """Raised when a matcher fails with something other than a resource error."""

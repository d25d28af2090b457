"""Result data structures for treematch-bench."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Status(str, Enum):
    """Outcome of one (pair, configuration) match.

    Failure values are the literal tags written to the report.
    """

    SUCCESS = "OK"
    TIMEOUT = "TIMEOUT"
    OUT_OF_MEMORY = "OOM"


@dataclass(frozen=True)
class EditCounts:
    """Structural edit volume of one edit script."""

    script_size: int = 0
    inserts: int = 0
    deletes: int = 0
    updates: int = 0
    move_volume: int = 0

    def as_tuple(self) -> tuple[int, int, int, int, int]:
        return (self.script_size, self.inserts, self.deletes, self.updates, self.move_volume)


@dataclass
class CaseResult:
    """One (pair, configuration) row of the report.

    Timings are in nanoseconds. ``match_ns`` holds one sample per repeat;
    the first one is authoritative. ``counts`` is None unless the match
    succeeded.
    """

    case: str
    algorithm: str
    match_ns: list[int]
    parse_ns: int
    setup_ns: int
    status: Status = Status.SUCCESS
    counts: EditCounts | None = None

    @property
    def ok(self) -> bool:
        return self.status is Status.SUCCESS

    @property
    def match_time(self) -> int:
        """The authoritative (first) match time sample."""
        return self.match_ns[0] if self.match_ns else 0


@dataclass
class RunSummary:
    """Totals for one benchmark run."""

    total_pairs: int = 0
    processed: int = 0
    skipped: int = 0
    rows_written: int = 0
    elapsed: float = 0.0


@dataclass
class BenchmarkReport:
    """Report rows with a per-algorithm summary."""

    rows: list[CaseResult]
    summary: dict[str, dict[str, float]]  # algorithm -> metric -> value
    config: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_rows(cls, rows: list[CaseResult], metrics: list[Any] | None = None) -> BenchmarkReport:
        """Group rows by algorithm (first-seen order) and apply each metric."""
        if metrics is None:
            metrics = []

        by_algorithm: dict[str, list[CaseResult]] = {}
        for row in rows:
            by_algorithm.setdefault(row.algorithm, []).append(row)

        summary: dict[str, dict[str, float]] = {name: {} for name in by_algorithm}
        for metric in metrics:
            for name, algo_rows in by_algorithm.items():
                summary[name].update(metric.compute(algo_rows))

        return cls(
            rows=rows,
            summary=summary,
            config={
                "algorithms": list(by_algorithm),
                "metrics": [m.name for m in metrics],
                "num_cases": len({r.case for r in rows}),
                "num_rows": len(rows),
            },
        )

    def filter(self, **kwargs: Any) -> BenchmarkReport:
        """Filter rows by attribute values.

        Example: report.filter(algorithm="opt-20") returns only rows for that algorithm.
        """
        filtered = self.rows
        for key, value in kwargs.items():
            filtered = [r for r in filtered if getattr(r, key, None) == value]

        algorithms = {r.algorithm for r in filtered}
        summary = {a: v for a, v in self.summary.items() if a in algorithms}

        return BenchmarkReport(rows=filtered, summary=summary, config=self.config)

    def to_dataframe(self) -> Any:
        """Convert to pandas DataFrame. Requires pandas."""
        import pandas as pd

        records = []
        for row in self.rows:
            counts = row.counts or EditCounts()
            records.append({
                "case": row.case,
                "algorithm": row.algorithm,
                "status": row.status.value,
                "match_ns": row.match_time,
                "parse_ns": row.parse_ns,
                "setup_ns": row.setup_ns,
                "s": counts.script_size if row.ok else None,
                "ni": counts.inserts if row.ok else None,
                "nd": counts.deletes if row.ok else None,
                "nu": counts.updates if row.ok else None,
                "nm": counts.move_volume if row.ok else None,
            })
        return pd.DataFrame(records)

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(
            {
                "rows": [
                    {
                        "case": r.case,
                        "algorithm": r.algorithm,
                        "status": r.status.value,
                        "match_ns": r.match_ns,
                        "parse_ns": r.parse_ns,
                        "setup_ns": r.setup_ns,
                        "counts": list(r.counts.as_tuple()) if r.counts else None,
                    }
                    for r in self.rows
                ],
                "summary": self.summary,
                "config": self.config,
            },
            indent=2,
        )

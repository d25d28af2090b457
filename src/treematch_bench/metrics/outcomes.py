"""Outcome metrics: how often each configuration succeeds, times out or runs out of memory."""

from __future__ import annotations

from dataclasses import dataclass

from treematch_bench.results import CaseResult, Status


@dataclass
class OutcomeRates:
    @property
    def name(self) -> str:
        return "outcomes"

    def compute(self, rows: list[CaseResult]) -> dict[str, float]:
        counts = {status: 0 for status in Status}
        for r in rows:
            counts[r.status] += 1
        n = len(rows)

        return {
            "cases": float(n),
            "success_rate": counts[Status.SUCCESS] / n if n else 0.0,
            "timeouts": float(counts[Status.TIMEOUT]),
            "ooms": float(counts[Status.OUT_OF_MEMORY]),
        }

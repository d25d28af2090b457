"""Built-in metrics for treematch-bench."""

from treematch_bench.metrics.edit_volume import EditVolume, extract
from treematch_bench.metrics.latency import MatchLatency
from treematch_bench.metrics.outcomes import OutcomeRates

DEFAULT_METRICS = (OutcomeRates, MatchLatency, EditVolume)

__all__ = [
    "DEFAULT_METRICS",
    "EditVolume",
    "MatchLatency",
    "OutcomeRates",
    "extract",
]

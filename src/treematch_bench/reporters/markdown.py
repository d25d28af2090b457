"""Markdown comparison report."""

from __future__ import annotations

from treematch_bench.results import BenchmarkReport


def to_markdown(report: BenchmarkReport) -> str:
    """Generate a markdown comparison table from a BenchmarkReport."""
    if not report.summary:
        return "No results to report."

    algorithms = list(report.summary.keys())

    # Collect all metric names across algorithms
    all_metrics: list[str] = []
    for algo_metrics in report.summary.values():
        for m in algo_metrics:
            if m not in all_metrics:
                all_metrics.append(m)

    if not all_metrics:
        return "No metrics computed."

    lines: list[str] = []
    lines.append("# Matching Benchmark\n")

    header = "| Algorithm | " + " | ".join(all_metrics) + " |"
    sep = "|-----------|" + "|".join("-" * (len(m) + 2) for m in all_metrics) + "|"
    lines.append(header)
    lines.append(sep)

    for algorithm in algorithms:
        values = []
        for metric in all_metrics:
            v = report.summary[algorithm].get(metric)
            if v is None:
                values.append("-")
            elif isinstance(v, float) and v.is_integer():
                values.append(str(int(v)))
            elif isinstance(v, float):
                values.append(f"{v:.4f}")
            else:
                values.append(str(v))
        lines.append(f"| {algorithm} | " + " | ".join(values) + " |")

    lines.append("")

    if report.config:
        lines.append(
            f"*{report.config.get('num_rows', '?')} rows over "
            f"{report.config.get('num_cases', '?')} cases*"
        )

    return "\n".join(lines)

"""Built-in reporters for treematch-bench."""

from treematch_bench.reporters.csv_out import ReportWriter, format_row, read_report
from treematch_bench.reporters.json_out import to_json
from treematch_bench.reporters.markdown import to_markdown

__all__ = ["ReportWriter", "format_row", "read_report", "to_markdown", "to_json"]

"""Streaming semicolon-separated report.

One row per (case, algorithm), flushed as soon as it is written so that a
crash after row N leaves rows 1..N intact. Layout::

    case;algorithm;t[;t...];pt;st;s;ni;nd;nu;nm

``t`` repeats once per match measurement. Failed matches carry their status
tag (``TIMEOUT`` or ``OOM``) in all five structural columns.
"""

from __future__ import annotations

import csv
import io
from pathlib import Path
from typing import Any

from treematch_bench.errors import BenchmarkError, ReportWriteError
from treematch_bench.results import CaseResult, EditCounts, Status

DELIMITER = ";"
STRUCTURAL_COLUMNS = ["s", "ni", "nd", "nu", "nm"]


def header(repeats: int = 1) -> list[str]:
    return ["case", "algorithm"] + ["t"] * repeats + ["pt", "st"] + STRUCTURAL_COLUMNS


def format_row(result: CaseResult, repeats: int = 1) -> list[str]:
    """Render a CaseResult as report fields.

    Samples beyond ``repeats`` are dropped; samples never taken are written
    as 0.
    """
    samples = list(result.match_ns[:repeats])
    samples += [0] * (repeats - len(samples))

    if result.ok and result.counts is not None:
        structural = [str(v) for v in result.counts.as_tuple()]
    else:
        structural = [result.status.value] * len(STRUCTURAL_COLUMNS)

    return (
        [result.case, result.algorithm]
        + [str(s) for s in samples]
        + [str(result.parse_ns), str(result.setup_ns)]
        + structural
    )


def _parse_row(fields: list[str], repeats: int) -> CaseResult:
    if len(fields) != len(header(repeats)):
        raise ValueError(f"expected {len(header(repeats))} fields, got {len(fields)}")

    case, algorithm = fields[0], fields[1]
    samples = [int(v) for v in fields[2:2 + repeats]]
    parse_ns, setup_ns = int(fields[2 + repeats]), int(fields[3 + repeats])
    structural = fields[4 + repeats:]

    # trailing zeros are padding for samples that were never taken
    while len(samples) > 1 and samples[-1] == 0:
        samples.pop()

    tags = {s.value: s for s in Status if s is not Status.SUCCESS}
    if structural[0] in tags:
        return CaseResult(
            case=case, algorithm=algorithm, match_ns=samples,
            parse_ns=parse_ns, setup_ns=setup_ns, status=tags[structural[0]],
        )
    return CaseResult(
        case=case, algorithm=algorithm, match_ns=samples,
        parse_ns=parse_ns, setup_ns=setup_ns,
        counts=EditCounts(*(int(v) for v in structural)),
    )


def _complete_text(path: Path) -> str:
    """Report text up to and including the last newline."""
    text = path.read_text(encoding="utf-8")
    if text.endswith("\n"):
        return text
    cut = text.rfind("\n")
    return text[:cut + 1] if cut >= 0 else ""


def _parse_report(text: str, source: Any) -> tuple[list[str], list[CaseResult]]:
    records = list(csv.reader(io.StringIO(text), delimiter=DELIMITER))
    if not records:
        return [], []

    head = records[0]
    repeats = head.count("t")
    if repeats < 1 or head != header(repeats):
        raise BenchmarkError(f"{source} is not a treematch-bench report (header {head!r})")

    rows: list[CaseResult] = []
    for lineno, fields in enumerate(records[1:], start=2):
        try:
            rows.append(_parse_row(fields, repeats))
        except ValueError as exc:
            if lineno == len(records):
                break
            raise BenchmarkError(f"{source}:{lineno}: malformed row: {exc}") from exc
    return head, rows


def read_report(path: str | Path) -> list[CaseResult]:
    """Read a report back, ignoring a truncated or malformed last line."""
    path = Path(path)
    try:
        text = _complete_text(path)
    except OSError as exc:
        raise BenchmarkError(f"Cannot read report {path}: {exc}") from exc
    return _parse_report(text, path)[1]


class ReportWriter:
    """Append-only report sink.

    Args:
        path: Output file. Created or truncated, unless ``resume`` is set.
        repeats: Number of ``t`` columns.
        resume: Append to an existing report. A partial last line is cut
            off, the header must match ``repeats``, and the keys already
            present are exposed as ``completed`` (empty otherwise).
    """

    def __init__(self, path: str | Path, repeats: int = 1, resume: bool = False) -> None:
        self.path = Path(path)
        self.repeats = repeats
        self.rows_written = 0
        self.completed: set[tuple[str, str]] = set()

        try:
            if resume and self.path.exists():
                self._fh = self._reopen()
            else:
                self._fh = open(self.path, "w", encoding="utf-8", newline="")
                self._writer = csv.writer(self._fh, delimiter=DELIMITER, lineterminator="\n")
                self._write(header(repeats))
        except OSError as exc:
            raise ReportWriteError(f"Cannot open report {self.path}: {exc}") from exc

    def _reopen(self) -> Any:
        text = _complete_text(self.path)
        try:
            head, rows = _parse_report(text, self.path)
        except BenchmarkError as exc:
            raise ReportWriteError(f"Cannot resume: {exc}") from exc
        if head and head != header(self.repeats):
            raise ReportWriteError(
                f"Cannot resume {self.path}: it has {head.count('t')} timing "
                f"column(s), this run uses {self.repeats}"
            )
        self.completed = {(r.case, r.algorithm) for r in rows}

        with open(self.path, "r+", encoding="utf-8", newline="") as fh:
            fh.truncate(len(text.encode("utf-8")))

        fh = open(self.path, "a", encoding="utf-8", newline="")
        self._writer = csv.writer(fh, delimiter=DELIMITER, lineterminator="\n")
        if not head:
            self._fh = fh
            self._write(header(self.repeats))
        return fh

    def _write(self, fields: list[str]) -> None:
        self._writer.writerow(fields)
        self._fh.flush()

    def append(self, result: CaseResult) -> None:
        """Write one row and flush it."""
        try:
            self._write(format_row(result, self.repeats))
        except OSError as exc:
            raise ReportWriteError(f"Cannot write to report {self.path}: {exc}") from exc
        self.rows_written += 1

    def close(self) -> None:
        if not self._fh.closed:
            self._fh.close()

    def __enter__(self) -> ReportWriter:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

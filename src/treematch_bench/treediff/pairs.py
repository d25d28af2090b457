"""Corpus pair discovery: files present on both sides with differing content."""

from __future__ import annotations

import filecmp
from pathlib import Path


class DirectoryComparator:
    """Finds modified files between a ``before`` and an ``after`` directory.

    Files are matched by their path relative to each root. Only files that
    exist on both sides and whose bytes differ become pairs. Pairs are
    returned sorted by relative path so runs are reproducible.
    """

    def compare(self, before_dir: str | Path, after_dir: str | Path) -> list[tuple[Path, Path]]:
        before_dir = Path(before_dir)
        after_dir = Path(after_dir)
        before_files = self._relative_files(before_dir)
        after_files = self._relative_files(after_dir)

        pairs: list[tuple[Path, Path]] = []
        for rel in sorted(before_files & after_files):
            before, after = before_dir / rel, after_dir / rel
            if not filecmp.cmp(before, after, shallow=False):
                pairs.append((before, after))
        return pairs

    @staticmethod
    def _relative_files(root: Path) -> set[Path]:
        return {p.relative_to(root) for p in root.rglob("*") if p.is_file()}

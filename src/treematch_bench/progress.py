"""Progress display for the outer loop over corpus pairs."""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeElapsedColumn


class ProgressReporter:
    """Fixed-width progress bar on stderr, processed pairs over total.

    Purely observational: disabled when ``enabled`` is False or stderr is
    not a terminal, in which case only ``completed`` is tracked. The bar is
    refreshed by hand, so no refresh thread is running when match workers
    are forked.
    """

    def __init__(
        self,
        total: int,
        enabled: bool = True,
        console: Console | None = None,
        width: int = 50,
        description: str = "Matching",
    ) -> None:
        self.total = total
        self.completed = 0
        self.console = console or Console(stderr=True)
        self.enabled = enabled and self.console.is_terminal
        self.width = width
        self.description = description
        self._progress: Progress | None = None
        self._task: Any = None

    def __enter__(self) -> ProgressReporter:
        if self.enabled:
            self._progress = Progress(
                TextColumn("[progress.description]{task.description}"),
                BarColumn(bar_width=self.width),
                MofNCompleteColumn(),
                TimeElapsedColumn(),
                console=self.console,
                auto_refresh=False,
            )
            self._progress.start()
            self._task = self._progress.add_task(self.description, total=self.total)
            self._progress.refresh()
        return self

    def advance(self, steps: int = 1) -> None:
        self.completed += steps
        if self._progress is not None:
            self._progress.update(self._task, advance=steps)
            self._progress.refresh()

    def __exit__(self, *exc: Any) -> None:
        if self._progress is not None:
            self._progress.stop()
            self._progress = None

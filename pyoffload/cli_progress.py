"""CLI progress display for sync and verification runs.

This module provides a Rich-based progress bar that plugs into the
engines as their per-item progress callback.
"""

from typing import Any, Optional

from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)


class ItemProgressDisplay:
    """Rich progress bar advanced once per processed item.

    Examples:
        >>> with ItemProgressDisplay("Syncing attachments", total=120) as display:
        ...     engine.run(options, progress_callback=display.advance)
    """

    def __init__(self, description: str, total: Optional[int], enabled: bool = True):
        """Initialize the progress display.

        Args:
            description: Task description shown next to the bar
            total: Number of items expected (None if unknown)
            enabled: If False, the display is a no-op (quiet/JSON output)
        """
        self.description = description
        self.total = total
        self.enabled = enabled
        self._progress: Optional[Progress] = None
        self._task: Optional[TaskID] = None
        self.completed = 0

    def advance(self, _item: Any = None) -> None:
        """Advance the bar by one item."""
        self.completed += 1
        if self._progress is not None and self._task is not None:
            self._progress.advance(self._task)

    def __enter__(self) -> "ItemProgressDisplay":
        """Enter context manager - start progress display."""
        if not self.enabled:
            return self
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            transient=True,
            refresh_per_second=4,
        )
        self._progress.__enter__()
        self._task = self._progress.add_task(self.description, total=self.total)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit context manager - stop progress display."""
        if self._progress is not None:
            self._progress.__exit__(exc_type, exc_val, exc_tb)
            self._progress = None
            self._task = None

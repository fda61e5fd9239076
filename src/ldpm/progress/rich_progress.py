"""Rich-based progress reporter for terminal output."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TransferSpeedColumn,
)


if TYPE_CHECKING:
    from types import TracebackType

    from ldpm.core.ports import ProgressCallback


class RichProgressReporter:
    """Progress reporter showing one bar per package being fetched.

    Tasks are started from resolver worker threads, so bookkeeping is
    guarded by a lock. Packages without attachment sizes show a spinner
    instead of a bar. Output goes to stderr so ``ldpm cat`` stays pipeable.

    Example:
        with RichProgressReporter() as reporter:
            ldpm.install(["req-test@0.0.0"], dest, progress=reporter)
    """

    def __init__(self, console: Console | None = None, transient: bool = True) -> None:
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            DownloadColumn(),
            TransferSpeedColumn(),
            console=console or Console(stderr=True),
            transient=transient,
        )
        self._tasks: dict[str, TaskID] = {}
        self._lock = threading.Lock()
        self._started = False

    def __enter__(self) -> RichProgressReporter:
        self._ensure_started()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        with self._lock:
            if self._started:
                self._progress.stop()
                self._started = False

    def _ensure_started(self) -> None:
        with self._lock:
            if not self._started:
                self._progress.start()
                self._started = True

    def start_task(self, name: str, total: int) -> ProgressCallback:
        """Add a bar for a package fetch.

        Args:
            name: Package identifier being fetched.
            total: Total attachment bytes, 0 when unknown.

        Returns:
            A callback taking (bytes_fetched, total_bytes).
        """
        self._ensure_started()
        task_id = self._progress.add_task(name, total=total or None)
        with self._lock:
            self._tasks[name] = task_id

        def callback(fetched: int, total_bytes: int) -> None:
            self._progress.update(task_id, completed=fetched, total=total_bytes or None)

        return callback

    def finish_task(self, name: str) -> None:
        """Mark a package fetch as complete."""
        with self._lock:
            task_id = self._tasks.pop(name, None)
        if task_id is None:
            return
        task = self._progress.tasks[task_id]
        total = task.total if task.total is not None else task.completed
        self._progress.update(task_id, total=total, completed=total)

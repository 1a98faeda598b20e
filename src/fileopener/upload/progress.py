"""Rich progress display driven by controller snapshots."""

from __future__ import annotations

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from fileopener.models import Failed, InProgress, Succeeded, UploadState


class UploadProgressView:
    """Single-bar Rich progress display for one upload.

    Usage::

        with UploadProgressView("report.pdf") as view:
            controller.subscribe(view.update)
            await controller.start(selected)
    """

    def __init__(self, filename: str, console: Console | None = None) -> None:
        self._filename = filename
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}% Uploaded"),
            TimeElapsedColumn(),
            TextColumn("{task.fields[status]}", style="dim"),
            console=console,
            transient=False,
        )
        self._task: TaskID | None = None

    def start(self) -> None:
        self._progress.start()
        self._task = self._progress.add_task(
            f"[blue]{self._filename}", total=100, status="uploading..."
        )

    def stop(self) -> None:
        self._progress.stop()

    def __enter__(self) -> UploadProgressView:
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        self.stop()

    def update(self, state: UploadState) -> None:
        """Reflect *state* on the bar; non-upload states are ignored."""
        if self._task is None:
            return
        if isinstance(state, InProgress):
            self._progress.update(self._task, completed=state.percent)
        elif isinstance(state, Succeeded):
            self._progress.update(self._task, status="[green]opened[/green]")
        elif isinstance(state, Failed):
            self._progress.update(self._task, status="[red]failed[/red]")

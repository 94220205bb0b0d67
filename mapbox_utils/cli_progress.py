"""Console rendering and progress helpers for the mapbox-utils CLI."""
from __future__ import annotations

from typing import Any, Dict, Optional

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TaskID, TextColumn
from rich.table import Table

from .utils.events import STEP_COMPLETE, STEP_FAIL, STEP_PROGRESS, STEP_START, StepEvent


console = Console()


def render_configuration_summary(config: Dict[str, Any], target: Optional[Console] = None) -> None:
    """Render startup configuration summary."""
    out = target or console
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold cyan", justify="right")
    table.add_column(style="white")

    for key, value in config.items():
        rendered = "-" if value is None else str(value)
        table.add_row(key, rendered)

    panel = Panel(
        table,
        title="[bold green]mapbox-utils[/bold green]",
        subtitle="[dim]upload[/dim]",
        border_style="blue",
    )
    out.print(panel)


class StepProgressDisplay:
    """
    Spinner-per-step display for the upload workflow.

    A running step shows a spinner with its message; when it finishes the
    spinner is replaced by a check (or cross) line. On a non-terminal
    console only the finished lines are printed.
    """

    def __init__(self, target: Optional[Console] = None):
        self._console = target or console
        self._progress: Optional[Progress] = None
        self._task_id: Optional[TaskID] = None
        self._step: Optional[str] = None
        self.lines: list[str] = []

        if self._console.is_terminal:
            self._progress = Progress(
                SpinnerColumn(),
                TextColumn("{task.description}"),
                console=self._console,
                transient=True,
            )

    def attach(self, orchestrator: Any) -> None:
        orchestrator.on(STEP_START, self.on_step_start)
        orchestrator.on(STEP_PROGRESS, self.on_step_progress)
        orchestrator.on(STEP_COMPLETE, self.on_step_complete)
        orchestrator.on(STEP_FAIL, self.on_step_fail)

    def _stop_spinner(self) -> None:
        if self._progress is None or self._task_id is None:
            return
        self._progress.remove_task(self._task_id)
        self._progress.stop()
        self._task_id = None

    def _finish(self, symbol: str, color: str, message: str) -> None:
        self._stop_spinner()
        self._step = None
        line = f"{symbol} {message}"
        self.lines.append(line)
        self._console.print(f"[{color}]{symbol}[/{color}] {message}", highlight=False)

    def on_step_start(self, event: StepEvent) -> None:
        self._stop_spinner()
        self._step = event.step
        if self._progress is None:
            return
        self._progress.start()
        self._task_id = self._progress.add_task(event.message, total=None)

    def on_step_progress(self, event: StepEvent) -> None:
        if self._progress is not None and self._task_id is not None:
            self._progress.update(self._task_id, description=event.message)

    def on_step_complete(self, event: StepEvent) -> None:
        self._finish("✔", "green", event.message)

    def on_step_fail(self, event: StepEvent) -> None:
        self._finish("✖", "red", event.message)

    def close(self) -> None:
        self._stop_spinner()

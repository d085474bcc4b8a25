"""Terminal progress helpers with Rich-based rendering."""

from __future__ import annotations

from dataclasses import dataclass

from rich.console import Console
from rich.errors import LiveError
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.status import Status


@dataclass
class ProgressState:
    total: int
    success: int = 0
    failed: int = 0
    skipped: int = 0
    current: str | None = None


class ProgressReporter:
    """Render per-item progress for one stage and keep counters."""

    def __init__(self, enabled: bool = True, console: Console | None = None) -> None:
        self.enabled = enabled
        self._console = console
        self._progress: Progress | None = None
        self._task_id: TaskID | None = None
        self.state: ProgressState | None = None
        self._label: str = "pipeline"

    def set_label(self, label: str) -> None:
        self._label = label
        if self._progress is not None and self._task_id is not None:
            self._progress.update(self._task_id, stage=label)

    def start(self, total: int) -> None:
        self.state = ProgressState(total=total)
        if not self.enabled:
            return
        if self._console is None:
            self._console = Console()
        if not self._console.is_terminal:
            # 非交互环境回退为静默模式
            self.enabled = False
            return
        self._progress = Progress(
            SpinnerColumn(style="cyan"),
            TextColumn("[bold blue]{task.fields[stage]:<14}", justify="left"),
            BarColumn(bar_width=None, complete_style="green", finished_style="green"),
            TaskProgressColumn(show_speed=False),
            TimeElapsedColumn(),
            TextColumn("[green]✓{task.fields[success]:>3}", justify="right"),
            TextColumn("[red]✗{task.fields[failed]:>3}", justify="right"),
            TextColumn("[yellow]↺{task.fields[skipped]:>3}", justify="right"),
            TextColumn("[dim]{task.fields[current]}", justify="left"),
            expand=True,
            transient=True,
            console=self._console,
        )
        try:
            self._progress.start()
        except LiveError:
            # 同一控制台已存在活动进度条
            self.enabled = False
            self._progress = None
            return
        self._task_id = self._progress.add_task(
            self._label,
            total=total,
            stage=self._label,
            success=0,
            failed=0,
            skipped=0,
            current="",
        )

    def advance(
        self,
        success: bool = False,
        failed: bool = False,
        skipped: bool = False,
        current: str | None = None,
        step: int = 1,
    ) -> None:
        if not self.state:
            raise RuntimeError("ProgressReporter.start must be called before advance")
        if current:
            self.state.current = current
        if success:
            self.state.success += step
        if failed:
            self.state.failed += step
        if skipped:
            self.state.skipped += step
        if self._progress is not None and self._task_id is not None:
            display = self.state.current or ""
            if len(display) > 60:
                display = display[:57] + "..."
            self._progress.update(
                self._task_id,
                advance=step,
                success=self.state.success,
                failed=self.state.failed,
                skipped=self.state.skipped,
                current=display,
            )

    def close(self) -> None:
        if self._progress is not None:
            self._progress.stop()
            self._progress = None
        self._task_id = None


class ProgressActivity:
    """Indeterminate activity indicator using Rich Status spinner."""

    def __init__(self, enabled: bool = True, console: Console | None = None) -> None:
        self.enabled = enabled
        self.console = console or Console()
        self._status: Status | None = None

    def start(self, message: str) -> None:
        if not self.enabled or self._status is not None or not self.console.is_terminal:
            return
        self._status = self.console.status(message)
        self._status.start()

    def close(self) -> None:
        if self._status is not None:
            self._status.stop()
            self._status = None


__all__ = ["ProgressActivity", "ProgressReporter", "ProgressState"]

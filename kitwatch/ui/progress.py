"""Terminal progress row for a pipeline run."""

from __future__ import annotations

from dataclasses import dataclass
from threading import Lock

from rich.console import Console
from rich.errors import LiveError
from rich.progress import (
    BarColumn,
    Progress,
    ProgressColumn,
    SpinnerColumn,
    Task,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)
from rich.text import Text

from ..engine.results import CandidateResult, Outcome


@dataclass
class ProgressState:
    total: int | None
    reported: int = 0
    duplicate: int = 0
    failed: int = 0
    current_url: str | None = None

    @property
    def completed(self) -> int:
        return self.reported + self.duplicate + self.failed


class RateColumn(ProgressColumn):
    """Candidates processed per second."""

    def render(self, task: Task) -> Text:
        speed = task.finished_speed or task.speed
        if speed is None:
            return Text("", style="progress.percentage")
        return Text(f"{speed:.1f} url/s", style="progress.percentage")


class ProgressReporter:
    """Render progress and maintain counters for CLI feedback.

    Falls back to counting silently when stdout is not a terminal.
    """

    def __init__(self, enabled: bool = True, label: str = "kitwatch", console: Console | None = None) -> None:
        self.enabled = enabled
        self.label = label
        self._console = console
        self._progress: Progress | None = None
        self._task_id: TaskID | None = None
        self._lock = Lock()
        self.state: ProgressState | None = None

    def start(self, total: int | None = None) -> None:
        """Begin tracking; ``total=None`` shows a pulsing bar for unbounded feeds."""

        self.state = ProgressState(total=total)
        if not self.enabled:
            return
        console = self._console or Console()
        if not console.is_terminal:
            self.enabled = False
            return
        self._progress = Progress(
            SpinnerColumn(style="cyan"),
            TextColumn("[bold blue]{task.fields[label]:<14}", justify="left"),
            BarColumn(bar_width=None, complete_style="green", pulse_style="cyan"),
            TimeElapsedColumn(),
            RateColumn(),
            TextColumn("[red]kits {task.fields[reported]:>3}", justify="right"),
            TextColumn("[yellow]dup {task.fields[duplicate]:>3}", justify="right"),
            TextColumn("[dim]fail {task.fields[failed]:>3}", justify="right"),
            TextColumn("[dim]{task.fields[current_url]}", justify="left"),
            console=console,
            transient=True,
            expand=True,
        )
        try:
            self._progress.start()
        except LiveError:
            self.enabled = False
            self._progress = None
            return
        self._task_id = self._progress.add_task(
            "run",
            total=total,
            label=self.label,
            reported=0,
            duplicate=0,
            failed=0,
            current_url="",
        )

    def advance(self, result: CandidateResult) -> None:
        if self.state is None:
            raise RuntimeError("ProgressReporter.start must be called before advance")
        with self._lock:
            if result.outcome is Outcome.REPORTED:
                self.state.reported += 1
            elif result.outcome is Outcome.DUPLICATE:
                self.state.duplicate += 1
            else:
                self.state.failed += 1
            self.state.current_url = result.candidate.url
            if self._progress is None or self._task_id is None:
                return
            display_url = self.state.current_url
            if len(display_url) > 60:
                display_url = display_url[:57] + "..."
            self._progress.update(
                self._task_id,
                advance=1,
                reported=self.state.reported,
                duplicate=self.state.duplicate,
                failed=self.state.failed,
                current_url=display_url,
            )

    def close(self) -> None:
        if self._progress is not None:
            self._progress.stop()
            self._progress = None
        self._task_id = None

    def summary(self) -> dict[str, int]:
        if self.state is None:
            return {"reported": 0, "duplicate": 0, "failed": 0}
        return {
            "reported": self.state.reported,
            "duplicate": self.state.duplicate,
            "failed": self.state.failed,
        }


__all__ = ["ProgressReporter", "ProgressState", "RateColumn"]

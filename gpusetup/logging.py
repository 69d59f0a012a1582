from __future__ import annotations

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.theme import Theme


# NVIDIA-green accent over a dark palette, shared by the CLI and the GTK stylesheet
PALETTE = {
    "fg": "#d7dae0",
    "fg_muted": "#a0a0a0",
    "bg": "#0f0f23",
    "bg_alt": "#1a1a2e",
    "bg_offset": "#16213e",
    "nvidia": "#76b900",
    "green": "#28a745",
    "yellow": "#ffc107",
    "red": "#dc3545",
    "cyan": "#17a2b8",
    "console_fg": "#00ff00",
}

_theme = Theme(
    {
        "text": PALETTE["fg"],
        "muted": PALETTE["fg_muted"],
        "accent": PALETTE["nvidia"],
        "ok": PALETTE["green"],
        "warn": PALETTE["yellow"],
        "error": f"bold {PALETTE['red']}",
        "info": PALETTE["cyan"],
        "section": f"bold {PALETTE['nvidia']}",
    }
)

console = Console(theme=_theme, style=PALETTE["fg"])


def status_spinner(message: str):
    """Return a Rich status spinner context manager."""
    return console.status(f"[info]{message}[/]")


class StepProgress:
    """Percentage progress bar driven by installer updates."""

    def __init__(self, message: str, *, total: float = 100.0):
        self.message = message
        self.total = total
        self._progress: Progress | None = None
        self._task_id: int | None = None

    def __enter__(self) -> "StepProgress":
        self._progress = Progress(
            SpinnerColumn(style="accent"),
            TextColumn("{task.description}", markup=True),
            BarColumn(bar_width=None),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            console=console,
            transient=False,
        )
        self._progress.__enter__()
        self._task_id = self._progress.add_task(self.message, total=self.total)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._progress:
            self._progress.__exit__(exc_type, exc, tb)

    def update(self, completed: float, detail: str | None = None) -> None:
        """Move the bar to ``completed`` percent and optionally relabel it."""
        if not self._progress or self._task_id is None:
            return
        fields = {"completed": completed}
        if detail:
            fields["description"] = detail
        self._progress.update(self._task_id, **fields)

    def log(self, renderable: str) -> None:
        """Print above the live bar without tearing it."""
        if self._progress:
            self._progress.console.print(renderable)
        else:
            console.print(renderable)


def step_progress(message: str) -> StepProgress:
    """Return a StepProgress helper for consistent CLI progress indicators."""
    return StepProgress(message)

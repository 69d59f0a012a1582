from __future__ import annotations

import typer
from rich.markup import escape

from gpusetup import __version__
from gpusetup.configuration import ConfigurationError, get_config
from gpusetup.configuration.schema import GpuSetupConfig
from gpusetup.events import ProgressUpdate, StatusType
from gpusetup.logging import StepProgress, console

HELP_OPTION_NAMES = ("-h", "--help")
COMMAND_CONTEXT = {"help_option_names": []}

COMMAND_ALIASES = {
    "status": "detect",
    "setup": "install",
}

ALIAS_HELP_TEMPLATE = "Alias for {canonical}"


def load_cli_config() -> GpuSetupConfig:
    """Return the effective configuration or exit with a readable error."""
    try:
        return get_config()
    except ConfigurationError as exc:
        console.print(f"[error]{escape(str(exc))}[/]")
        raise typer.Exit(code=1)


def print_version() -> None:
    console.print(f"[bold]gpusetup[/bold] [accent]v{__version__}[/]")


def is_verbose_mode(ctx: typer.Context) -> bool:
    """Check if verbose mode is enabled from context."""
    return bool(ctx.obj and ctx.obj.get("verbose", False))


def format_update(update: ProgressUpdate) -> str:
    status = update.log_type
    return (
        f"[{status.style}]{escape(status.tag)}[/] "
        f"{escape(update.log_message or '')}"
    )


class ConsoleReporter:
    """Echo worker updates to the terminal, driving a StepProgress bar if given."""

    def __init__(self, bar: StepProgress | None = None, *, verbose: bool = True):
        self.bar = bar
        self.verbose = verbose

    def post(self, update: ProgressUpdate) -> None:
        if update.moves_bar and self.bar is not None:
            self.bar.update(
                update.progress, escape(update.message) if update.message else None
            )
        if not update.log_message:
            return
        if not self.verbose and update.log_type in (StatusType.INFO, StatusType.UNKNOWN):
            return
        line = format_update(update)
        if self.bar is not None:
            self.bar.log(line)
        else:
            console.print(line, highlight=False)

from __future__ import annotations

import sys

import typer
from rich.markup import escape

from gpusetup import __description__
from gpusetup.configuration import ConfigurationError
from gpusetup.installer import InstallError
from gpusetup.logging import console

from .commands import register as register_commands
from .commands.gui import launch_gui
from .common import COMMAND_CONTEXT, print_version
from .help import show_root_help

app = typer.Typer(
    name="gpusetup",
    help=__description__,
    context_settings=COMMAND_CONTEXT,
    rich_markup_mode="rich",
)

register_commands(app)


@app.callback(invoke_without_command=True)
def _root_command(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "-v",
        "--version",
        help="Show CLI version and exit.",
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False,
        "-V",
        "--verbose",
        help="Show every detection and command line, not just warnings and errors.",
    ),
    help_: bool = typer.Option(
        False,
        "--help",
        "-h",
        help="Show this message and exit.",
        is_eager=True,
    ),
) -> None:
    # Subcommands read the verbose flag from the context object
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    if version:
        print_version()
        raise typer.Exit()
    if help_:
        show_root_help(ctx)
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        launch_gui()


def main() -> None:
    try:
        app()
    except (ConfigurationError, InstallError) as exc:
        console.print(f"[error]{escape(str(exc))}[/]")
        sys.exit(1)


__all__ = ["app", "main"]

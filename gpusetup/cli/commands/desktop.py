"""Desktop launcher commands."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from gpusetup.desktop import desktop_entry_path, install_desktop_entry, uninstall_desktop_entry
from gpusetup.logging import console

from ..common import COMMAND_CONTEXT
from ..help import command_help_option, maybe_show_command_help, show_command_help
from ..type_defs import CommandMap


def _dir_option() -> Optional[Path]:
    return typer.Option(
        None,
        "--dir",
        "-d",
        help="Applications directory (default: $XDG_DATA_HOME/applications).",
        file_okay=False,
    )


def register(app: typer.Typer) -> CommandMap:
    desktop_app = typer.Typer(
        help="Manage the desktop menu entry.", context_settings=COMMAND_CONTEXT
    )

    @desktop_app.callback(invoke_without_command=True)
    def _desktop_root(
        ctx: typer.Context,
        help_: bool = command_help_option(),
    ) -> None:
        """Manage the desktop menu entry."""
        maybe_show_command_help(ctx, help_)
        if ctx.invoked_subcommand is None:
            show_command_help(ctx)

    @desktop_app.command(context_settings=COMMAND_CONTEXT)
    def install(
        ctx: typer.Context,
        help_: bool = command_help_option(),
        directory: Optional[Path] = _dir_option(),
    ) -> None:
        """Write the .desktop launcher for the setup window."""
        maybe_show_command_help(ctx, help_)
        path = install_desktop_entry(directory)
        console.print(f"[ok]Installed desktop entry: {path}[/]")

    @desktop_app.command(context_settings=COMMAND_CONTEXT)
    def uninstall(
        ctx: typer.Context,
        help_: bool = command_help_option(),
        directory: Optional[Path] = _dir_option(),
    ) -> None:
        """Remove the .desktop launcher."""
        maybe_show_command_help(ctx, help_)
        if uninstall_desktop_entry(directory):
            console.print(f"[ok]Removed desktop entry: {desktop_entry_path(directory)}[/]")
        else:
            console.print(f"[warn]No desktop entry at {desktop_entry_path(directory)}[/]")

    app.add_typer(desktop_app, name="desktop")

    return {
        "desktop": desktop_app,
        "desktop:install": install,
        "desktop:uninstall": uninstall,
    }

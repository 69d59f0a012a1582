from __future__ import annotations

import typer
from rich.markup import escape

from gpusetup.logging import console

from ..common import COMMAND_CONTEXT, load_cli_config
from ..help import command_help_option, maybe_show_command_help
from ..type_defs import CommandMap


def launch_gui() -> None:
    """Open the GTK window; PyGObject is only imported here."""
    config = load_cli_config()
    try:
        from gpusetup.gui import run_gui
    except (ImportError, ValueError) as exc:
        console.print(f"[error]Cannot start the GTK interface: {escape(str(exc))}[/]")
        console.print(
            "[info]Install PyGObject (pip install 'gpusetup\\[gui]' or apt install "
            "python3-gi gir1.2-gtk-3.0), or use 'gpusetup install'.[/]"
        )
        raise typer.Exit(code=1)
    run_gui(config)


def register(app: typer.Typer) -> CommandMap:
    @app.command(context_settings=COMMAND_CONTEXT)
    def gui(
        ctx: typer.Context,
        help_: bool = command_help_option(),
    ) -> None:
        """Open the graphical setup window."""
        maybe_show_command_help(ctx, help_)
        launch_gui()

    return {"gui": gui}

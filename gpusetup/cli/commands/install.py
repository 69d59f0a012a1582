"""Install command: run the driver/CUDA sequence from the terminal."""

from __future__ import annotations

from typing import Optional

import typer
from rich.markup import escape

from gpusetup import system, ui
from gpusetup.detection import SystemDetector
from gpusetup.installer import (
    CommandRunner,
    InstallError,
    Installer,
    InstallOptions,
    build_plan,
    verify_sudo_access,
)
from gpusetup.logging import console, status_spinner, step_progress

from ..common import COMMAND_CONTEXT, ConsoleReporter, is_verbose_mode, load_cli_config
from ..help import command_help_option, maybe_show_command_help
from ..type_defs import CommandMap


def register(app: typer.Typer) -> CommandMap:
    @app.command(context_settings=COMMAND_CONTEXT)
    def install(
        ctx: typer.Context,
        help_: bool = command_help_option(),
        driver: bool = typer.Option(
            True, "--driver/--no-driver", help="Install the NVIDIA driver."
        ),
        cuda: bool = typer.Option(
            False, "--cuda/--no-cuda", help="Install the CUDA toolkit."
        ),
        yes: bool = typer.Option(
            False, "--yes", "-y", help="Skip the confirmation prompt."
        ),
        dry_run: bool = typer.Option(
            False, "--dry-run", help="Print the commands without running them."
        ),
    ) -> None:
        """Install the NVIDIA driver and/or CUDA toolkit."""
        maybe_show_command_help(ctx, help_)
        verbose = is_verbose_mode(ctx)
        options = InstallOptions(driver=driver, cuda=cuda)
        try:
            options.validate()
        except InstallError as exc:
            console.print(f"[error]{escape(str(exc))}[/]")
            raise typer.Exit(code=1)

        config = load_cli_config()
        with status_spinner("Detecting system components..."):
            info = SystemDetector(config).run(ConsoleReporter(verbose=verbose))
        ui.show_system_status(info)

        if dry_run:
            try:
                plan = build_plan(options, info, config)
            except InstallError as exc:
                console.print(f"[error]{escape(str(exc))}[/]")
                raise typer.Exit(code=1)
            ui.show_plan(plan)
            return

        if system.is_wsl():
            console.print(
                "[error]Running in WSL. NVIDIA driver installation requires native Linux.[/]"
            )
            raise typer.Exit(code=1)
        if not info.gpu_detected:
            console.print("[error]No NVIDIA GPU detected; nothing to install.[/]")
            raise typer.Exit(code=1)

        if not yes and not ui.confirm_action(options.confirmation_text(), default=False):
            console.print("[info]Installation cancelled[/]")
            raise typer.Exit(code=0)

        password = _obtain_password(config.installer.use_sudo)
        runner = CommandRunner.from_config(config, password)
        installer = Installer(config, runner)

        with step_progress("Installing...") as bar:
            result = installer.run(options, info, ConsoleReporter(bar, verbose=verbose))

        if not result.success:
            if result.failed_command:
                console.print(
                    f"[error]Failed: {escape(result.failed_command)} "
                    f"(exit code {result.exit_code})[/]"
                )
            console.print(
                "[error]Installation failed. Ensure you have internet access "
                "and sufficient disk space.[/]"
            )
            raise typer.Exit(code=1)

        ui.success_panel("Installation completed successfully!")
        if result.reboot_recommended:
            ui.info_panel("Reboot the system to load the new driver.")

    return {"install": install}


def _obtain_password(use_sudo: bool) -> Optional[str]:
    if not use_sudo or system.is_root():
        return None
    password = ui.ask_password()
    if not verify_sudo_access(password):
        console.print("[error]Invalid password or insufficient privileges.[/]")
        raise typer.Exit(code=1)
    return password

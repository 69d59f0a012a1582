"""Detect command: probe the host and print the three status cards."""

from __future__ import annotations

import typer

from gpusetup import ui
from gpusetup.cuda import get_cuda_info_display
from gpusetup.detection import SystemDetector
from gpusetup.logging import console, status_spinner

from ..common import COMMAND_CONTEXT, ConsoleReporter, is_verbose_mode, load_cli_config
from ..help import command_help_option, maybe_show_command_help
from ..type_defs import CommandMap


def register(app: typer.Typer) -> CommandMap:
    @app.command(context_settings=COMMAND_CONTEXT)
    def detect(
        ctx: typer.Context,
        help_: bool = command_help_option(),
        json_output: bool = typer.Option(
            False, "--json", help="Print detection results as JSON."
        ),
    ) -> None:
        """Detect the NVIDIA GPU, driver and CUDA toolkit."""
        maybe_show_command_help(ctx, help_)
        config = load_cli_config()
        detector = SystemDetector(config)

        if json_output:
            info = detector.run()
            console.print_json(data=info.to_dict())
        else:
            reporter = ConsoleReporter(verbose=is_verbose_mode(ctx))
            with status_spinner("Detecting system components..."):
                info = detector.run(reporter)
            ui.show_system_status(info)
            if info.gpu_detected:
                cuda_line = get_cuda_info_display(
                    info.cuda_installed, info.cuda_version or "", info.compute_capability
                )
                console.print(f"CUDA: [muted]{cuda_line}[/]")

        if not info.gpu_detected:
            raise typer.Exit(code=1)

    return {"detect": detect}

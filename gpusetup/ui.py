"""UI utilities for consistently themed Rich console output."""

from __future__ import annotations

from typing import Sequence, Tuple

import typer
from rich import box
from rich.console import RenderableType
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from gpusetup.detection import SystemInfo, status_cards
from gpusetup.installer import InstallStep, describe_plan
from gpusetup.logging import PALETTE, console

DEFAULT_ROW_STYLES: Tuple[str, str] | None = None


def themed_table(
    *,
    title: str | None = None,
    show_header: bool = True,
    header_style: str | None = None,
    row_styles: Tuple[str, str] | None = DEFAULT_ROW_STYLES,
    box_style=box.SIMPLE_HEAD,
    pad_edge: bool = False,
    expand: bool = False,
) -> Table:
    """Return a Rich Table with shared palette + layout defaults."""
    return Table(
        title=title,
        show_header=show_header,
        header_style=header_style or f"bold {PALETTE['nvidia']}",
        style=PALETTE["fg"],
        row_styles=row_styles,
        box=box_style,
        pad_edge=pad_edge,
        expand=expand,
    )


def themed_grid(*, padding: Tuple[int, int] = (0, 3), expand: bool = False) -> Table:
    """Return a Rich grid table honoring the shared palette."""
    table = Table.grid(padding=padding, expand=expand)
    table.style = PALETTE["fg"]
    return table


def themed_panel(
    message: RenderableType,
    *,
    border_color: str,
    text_style: str | None = None,
) -> Panel:
    """Return a Rich Panel styled with the shared palette."""
    return Panel.fit(
        message, border_style=border_color, style=text_style or PALETTE["fg"]
    )


def show_system_status(info: SystemInfo) -> None:
    """Display the three status cards plus distribution details."""
    table = themed_table(title="[accent]System Status[/accent]")
    table.add_column("Check")
    table.add_column("Status")
    table.add_column("Details")
    for card in status_cards(info):
        table.add_row(
            card.title, f"[{card.status.style}]{escape(card.icon)}[/]", escape(card.text)
        )
    table.add_row(
        "Distribution",
        "[info]\\[INFO][/]"
        if info.distro_codename not in (None, "unknown")
        else "[warn]\\[WARN][/]",
        escape(info.distro_codename or "unknown"),
    )
    if info.compute_capability:
        major, minor = info.compute_capability
        table.add_row("Compute capability", "[info]\\[INFO][/]", f"{major}.{minor}")
    console.print(table)


def show_plan(plan: Sequence[InstallStep]) -> None:
    table = themed_table(title="[accent]Installation Plan[/accent]")
    table.add_column("#", justify="right")
    table.add_column("Step")
    table.add_column("Command", style="muted")
    for index, message, command in describe_plan(plan):
        table.add_row(str(index), message, command)
    console.print(table)


def success_panel(message: str) -> None:
    """Display a success message with standard styling."""
    console.print(f"[ok]{message}[/]")


def info_panel(message: str) -> None:
    """Display an info message with standard styling."""
    console.print(f"[info]{message}[/]")


def confirm_action(message: str, *, default: bool = False) -> bool:
    """Show a Rich-styled confirmation prompt and return the user's choice."""
    prompt = message.strip() or "Proceed?"
    try:
        return Confirm.ask(
            f"[accent]?[/] {prompt}",
            default=default,
            show_default=True,
            console=console,
        )
    except KeyboardInterrupt:  # pragma: no cover - interactive guard
        console.print("[warn]Prompt cancelled by user.[/]")
        raise typer.Abort() from None
    except EOFError:  # pragma: no cover - interactive guard
        console.print("[warn]No input detected; cancelling.[/]")
        raise typer.Abort() from None


def ask_password(message: str = "Password for sudo") -> str:
    """Hidden prompt for the administrator password."""
    try:
        return Prompt.ask(f"[accent]?[/] {message}", password=True, console=console)
    except KeyboardInterrupt:  # pragma: no cover - interactive guard
        console.print("[warn]Prompt cancelled by user.[/]")
        raise typer.Abort() from None
    except EOFError:  # pragma: no cover - interactive guard
        console.print("[warn]No input detected; cancelling.[/]")
        raise typer.Abort() from None

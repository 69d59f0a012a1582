"""Rich help rendering for the root command and every subcommand."""

from __future__ import annotations

import inspect

import click
import typer
from rich.console import Group
from rich.table import Table
from rich.text import Text

from gpusetup import __description__, ui
from gpusetup.logging import PALETTE, console

from .common import COMMAND_ALIASES, HELP_OPTION_NAMES


def command_help_option() -> bool:
    """Return the shared Typer option used to trigger command help."""

    return typer.Option(
        False,
        *HELP_OPTION_NAMES,
        help="Show this message and exit.",
        is_eager=True,
    )


def maybe_show_command_help(ctx: typer.Context, help_requested: bool) -> None:
    if help_requested:
        show_command_help(ctx)
        raise typer.Exit()


def _alias_groups() -> dict[str, list[str]]:
    groups: dict[str, list[str]] = {}
    for alias, canonical in COMMAND_ALIASES.items():
        groups.setdefault(canonical, []).append(alias)
    for aliases in groups.values():
        aliases.sort()
    return groups


COMMAND_ALIAS_GROUPS = _alias_groups()


def show_root_help(ctx: typer.Context) -> None:
    renderables: list = [Text(__description__, style=PALETTE["fg"])]
    usage_text = Text("  gpusetup [OPTIONS] COMMAND [ARGS]...", style=PALETTE["fg"])
    _append_section(renderables, "Usage", usage_text)
    _append_section(
        renderables,
        "",
        Text("  Run without a command to open the setup window.", style="muted"),
    )
    _append_section(renderables, "Commands", _build_table(command_help_rows(ctx), 4))
    _append_section(renderables, "Options", _build_table(option_help_rows(ctx), 3))
    _render_help_panel(renderables)


def show_command_help(ctx: typer.Context) -> None:
    """Render help for an individual command using the shared Rich theme."""
    command = ctx.command
    if command is None:
        return

    renderables: list = []
    description = _command_description(command)
    if description:
        renderables.append(Text(description, style=PALETTE["fg"]))

    usage = command.get_usage(ctx).strip()
    if usage.lower().startswith("usage:"):
        usage = usage[6:].strip()
    _append_section(renderables, "Usage", Text(f"  {usage}", style=PALETTE["fg"]))

    rows = command_help_rows(ctx)
    if rows:
        _append_section(renderables, "Commands", _build_table(rows, 4))
    rows = argument_help_rows(ctx)
    if rows:
        _append_section(renderables, "Arguments", _build_table(rows, 2))
    rows = option_help_rows(ctx)
    if rows:
        _append_section(renderables, "Options", _build_table(rows, 3))

    _render_help_panel(renderables)


def command_help_rows(ctx: typer.Context) -> list[tuple[str, ...]]:
    group = ctx.command
    if group is None or not hasattr(group, "list_commands"):
        return []
    rows = []
    for name in group.list_commands(ctx):
        command = group.get_command(ctx, name)
        if not command or command.hidden:
            continue
        rows.append(
            (
                name,
                ", ".join(COMMAND_ALIAS_GROUPS.get(name, [])),
                command_param_hint(command),
                _command_description(command),
            )
        )
    return rows


def option_help_rows(ctx: typer.Context) -> list[tuple[str, ...]]:
    if ctx.command is None:
        return []
    rows = []
    for param in ctx.command.params:
        if not _is_option(param):
            continue
        rows.append(
            (primary_long_option(param), format_short_options(param), (param.help or "").strip())
        )
    return rows


def argument_help_rows(ctx: typer.Context) -> list[tuple[str, ...]]:
    if ctx.command is None:
        return []
    return [
        (format_argument_hint(param), (getattr(param, "help", "") or "").strip())
        for param in ctx.command.params
        if _is_argument(param)
    ]


def command_param_hint(command: click.Command) -> str:
    arguments = [param for param in command.params if _is_argument(param)]
    if arguments:
        return format_argument_hint(arguments[0])
    options = [
        param
        for param in command.params
        if _is_option(param) and not _is_help_option(param)
    ]
    if options:
        return primary_long_option(options[0])
    return ""


def format_argument_hint(param: click.Argument) -> str:
    name = param.metavar or param.human_readable_name or param.name or ""
    if not name:
        return ""
    return f"<{name.replace('_', '-').strip().upper()}>"


def primary_long_option(param: click.Option) -> str:
    for opt in param.opts:
        if opt.startswith("--"):
            return opt
    return param.opts[0] if param.opts else ""


def format_short_options(param: click.Option) -> str:
    seen: list[str] = []
    for opt in list(param.opts) + list(param.secondary_opts):
        if opt.startswith("-") and not opt.startswith("--") and opt not in seen:
            seen.append(opt)
    return ", ".join(seen)


_COLUMN_STYLES = (
    {"style": f"bold {PALETTE['nvidia']}", "no_wrap": True},
    {"style": f"bold {PALETTE['cyan']}", "no_wrap": True},
    {"style": f"bold {PALETTE['yellow']}", "no_wrap": True},
    {"style": PALETTE["fg"]},
)


def _build_table(rows, columns: int) -> Table:
    table = ui.themed_grid(padding=(0, 3))
    styles = _COLUMN_STYLES[: columns - 1] + _COLUMN_STYLES[-1:]
    for column in styles:
        table.add_column(**column)
    for row in rows:
        table.add_row(*row)
    return table


def _append_section(renderables: list, title: str, body) -> None:
    if renderables:
        renderables.append(Text(""))
    if title:
        renderables.append(Text(title, style="section"))
    renderables.append(body)


def _render_help_panel(renderables: list) -> None:
    if not renderables:
        return
    panel = ui.themed_panel(
        Group(*renderables),
        border_color=PALETTE["fg_muted"],
        text_style=PALETTE["fg"],
    )
    console.print(panel)


def _command_description(command: click.Command | None) -> str:
    if command is None:
        return ""
    text = (getattr(command, "help", None) or getattr(command, "short_help", None) or "").strip()
    if text:
        return text.splitlines()[0].strip()
    callback = getattr(command, "callback", None)
    if callback:
        doc = inspect.getdoc(callback) or ""
        if doc:
            return doc.splitlines()[0].strip()
    return ""


# typer parameters need not subclass click.Option or click.Argument
def _is_option(param: click.Parameter) -> bool:
    return getattr(param, "param_type_name", None) == "option"


def _is_argument(param: click.Parameter) -> bool:
    return getattr(param, "param_type_name", None) == "argument"


def _is_help_option(param: click.Option) -> bool:
    option_names = set(param.opts) | set(param.secondary_opts)
    return any(opt in option_names for opt in HELP_OPTION_NAMES)

"""Configuration management commands."""

from __future__ import annotations

import json
from collections.abc import MutableMapping
from pathlib import Path
from typing import Any, Literal, Sequence

import tomlkit
import typer
from pydantic import ValidationError
from rich.markup import escape
from rich.syntax import Syntax

try:
    import tomllib  # Python 3.11+
except ImportError:  # pragma: no cover - Python <3.11
    import tomli as tomllib

from gpusetup import state, system
from gpusetup.configuration import (
    ConfigurationError,
    get_config,
    locate_config_file,
    merge_configs,
    reload_config,
)
from gpusetup.configuration.defaults import DEFAULT_CONFIG_DICT
from gpusetup.configuration.schema import GpuSetupConfig
from gpusetup.logging import console

from ..common import COMMAND_CONTEXT
from ..completions import config_key_completion
from ..help import command_help_option, maybe_show_command_help, show_command_help
from ..type_defs import CommandMap

ValueKind = Literal["auto", "str", "int", "float", "bool", "json"]
VALUE_KINDS = {"auto", "str", "int", "float", "bool", "json"}


def register(app: typer.Typer) -> CommandMap:
    config_app = typer.Typer(
        help="Manage gpusetup configuration.", context_settings=COMMAND_CONTEXT
    )

    @config_app.callback(invoke_without_command=True)
    def _config_root(
        ctx: typer.Context,
        help_: bool = command_help_option(),
    ) -> None:
        """Manage gpusetup configuration."""

        maybe_show_command_help(ctx, help_)
        if ctx.invoked_subcommand is None:
            show_command_help(ctx)

    @config_app.command(context_settings=COMMAND_CONTEXT)
    def init(
        ctx: typer.Context,
        help_: bool = command_help_option(),
        force: bool = typer.Option(
            False, "--force", "-f", help="Overwrite existing config file."
        ),
    ) -> None:
        """Create a default configuration file."""
        maybe_show_command_help(ctx, help_)
        config_path = state.default_config_path()
        if config_path.exists() and not force:
            console.print(f"[warn]Config file already exists: {config_path}[/]")
            console.print("[info]Use --force to overwrite.[/]")
            raise typer.Exit(code=1)

        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(_generate_default_toml(), encoding="utf-8")
        reload_config()
        console.print(f"[ok]Created config file: {config_path}[/]")

    @config_app.command(context_settings=COMMAND_CONTEXT)
    def show(
        ctx: typer.Context,
        help_: bool = command_help_option(),
        format: str = typer.Option(
            "toml",
            "--format",
            "-f",
            help="Output format (toml or json).",
        ),
    ) -> None:
        """Display the current configuration."""
        maybe_show_command_help(ctx, help_)
        try:
            config = get_config()
        except ConfigurationError as exc:
            console.print(f"[error]{escape(str(exc))}[/]")
            raise typer.Exit(code=1)

        format = format.lower()
        if format not in {"toml", "json"}:
            console.print(f"[error]Unsupported format: {escape(format)}[/]")
            raise typer.Exit(code=1)

        if format == "toml":
            config_path = locate_config_file()
            if config_path and config_path.exists():
                content = config_path.read_text(encoding="utf-8")
            else:
                content = _generate_default_toml()
            console.print(Syntax(content, "toml", theme="monokai", line_numbers=True))
            return

        console.print_json(json.dumps(config.to_dict(), indent=2))

    @config_app.command(context_settings=COMMAND_CONTEXT)
    def path(
        ctx: typer.Context,
        help_: bool = command_help_option(),
    ) -> None:
        """Show configuration file location."""
        maybe_show_command_help(ctx, help_)
        config_path = locate_config_file()
        if config_path:
            console.print(f"[ok]Config file: {config_path}[/]")
            console.print(f"[info]Exists: {config_path.exists()}[/]")
        else:
            console.print("[warn]No config file found (using defaults)[/]")
            console.print("[info]Create one with: gpusetup config init[/]")
            console.print(f"[info]Default location: {state.default_config_path()}[/]")

    @config_app.command(context_settings=COMMAND_CONTEXT)
    def validate(
        ctx: typer.Context,
        help_: bool = command_help_option(),
    ) -> None:
        """Validate the configuration file."""
        maybe_show_command_help(ctx, help_)
        try:
            config = reload_config()
        except ConfigurationError as exc:
            console.print("[error]Configuration is invalid:[/]")
            console.print(f"[error]{escape(str(exc))}[/]")
            raise typer.Exit(code=1)

        console.print("[ok]Configuration is valid[/]")
        _check_config_warnings(config)

    @config_app.command(context_settings=COMMAND_CONTEXT)
    def get(
        ctx: typer.Context,
        help_: bool = command_help_option(),
        key: str = typer.Argument(
            ...,
            help="Config key in dot notation",
            shell_complete=config_key_completion,
        ),
    ) -> None:
        """Print a specific configuration value."""
        maybe_show_command_help(ctx, help_)
        try:
            config = get_config()
        except ConfigurationError as exc:
            console.print(f"[error]{escape(str(exc))}[/]")
            raise typer.Exit(code=1)
        value = _get_nested_value(config.to_dict(), key)
        if value is None:
            console.print(f"[warn]Key not found: {escape(key)}[/]")
            raise typer.Exit(code=1)
        console.print(f"[ok]{escape(key)} = {escape(str(value))}[/]")

    @config_app.command(context_settings=COMMAND_CONTEXT)
    def set(
        ctx: typer.Context,
        help_: bool = command_help_option(),
        key: str = typer.Argument(
            ...,
            help="Config key in dot notation",
            shell_complete=config_key_completion,
        ),
        value: str = typer.Argument(..., help="New value"),
        value_type: str = typer.Option(
            "auto",
            "--type",
            "-t",
            help="Interpret VALUE using this type before validation.",
        ),
    ) -> None:
        """Update a specific configuration value."""
        maybe_show_command_help(ctx, help_)
        value_type_normalized = value_type.lower()
        if value_type_normalized not in VALUE_KINDS:
            console.print(f"[error]Unsupported type: {escape(value_type)}[/]")
            raise typer.Exit(code=1)
        # "12.6" must stay a string when the key is a string, not become a float
        if value_type_normalized == "auto" and isinstance(
            _get_nested_value(DEFAULT_CONFIG_DICT, key), str
        ):
            value_type_normalized = "str"

        try:
            coerced = _coerce_value(value, value_type_normalized)  # type: ignore[arg-type]
        except ValueError as exc:
            console.print(f"[error]{escape(str(exc))}[/]")
            raise typer.Exit(code=1)

        config_path, created = _ensure_config_file()
        if created:
            console.print(f"[info]Created config file at {config_path}[/]")

        try:
            document = tomlkit.parse(config_path.read_text(encoding="utf-8"))
        except (OSError, tomlkit.exceptions.ParseError) as exc:
            console.print(f"[error]Cannot read config: {escape(str(exc))}[/]")
            raise typer.Exit(code=1)

        try:
            _set_nested_value(document, key.split("."), coerced)
        except ValueError as exc:
            console.print(f"[error]{escape(str(exc))}[/]")
            raise typer.Exit(code=1)

        candidate = tomllib.loads(tomlkit.dumps(document))
        merged = merge_configs(DEFAULT_CONFIG_DICT, candidate)
        try:
            GpuSetupConfig.from_dict(merged)
        except ValidationError as exc:
            console.print(f"[error]Invalid value for {escape(key)}: {escape(str(exc))}[/]")
            console.print("[info]No changes were saved.[/]")
            raise typer.Exit(code=1)

        config_path.write_text(tomlkit.dumps(document), encoding="utf-8")
        reload_config()
        console.print(f"[ok]Updated {escape(key)} in {config_path}[/]")

    app.add_typer(config_app, name="config")

    return {
        "config": config_app,
        "config:init": init,
        "config:show": show,
        "config:path": path,
        "config:validate": validate,
        "config:get": get,
        "config:set": set,
    }


def _generate_default_toml() -> str:
    document = tomlkit.document()
    document.update(DEFAULT_CONFIG_DICT)
    return tomlkit.dumps(document)


def _get_nested_value(data: dict, path: str) -> Any:
    current: Any = data
    for part in path.split("."):
        if isinstance(current, dict):
            current = current.get(part)
        else:
            return None
    return current


def _ensure_config_file() -> tuple[Path, bool]:
    path = locate_config_file() or state.default_config_path()
    if path.exists():
        return path, False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(_generate_default_toml(), encoding="utf-8")
    return path, True


def _set_nested_value(
    document: MutableMapping[str, Any], dotted: Sequence[str], value: Any
) -> None:
    if not dotted or any(part == "" for part in dotted):
        raise ValueError("Key path cannot be empty")

    current = document
    for part in dotted[:-1]:
        if part not in current or not isinstance(current[part], MutableMapping):
            current[part] = tomlkit.table()
        current = current[part]

    current[dotted[-1]] = tomlkit.item(value)


def _coerce_value(raw: str, kind: ValueKind) -> Any:
    if kind == "auto":
        for candidate in ("bool", "int", "float", "json"):
            try:
                return _coerce_value(raw, candidate)  # type: ignore[arg-type]
            except ValueError:
                continue
        return raw
    if kind == "str":
        return raw
    if kind == "bool":
        normalized = raw.strip().lower()
        if normalized in {"true", "1", "yes", "on"}:
            return True
        if normalized in {"false", "0", "no", "off"}:
            return False
        raise ValueError(f"Cannot parse boolean value from '{raw}'")
    if kind == "int":
        try:
            return int(raw, 10)
        except ValueError as exc:
            raise ValueError(f"Cannot parse integer value from '{raw}'") from exc
    if kind == "float":
        try:
            return float(raw)
        except ValueError as exc:
            raise ValueError(f"Cannot parse float value from '{raw}'") from exc
    if kind == "json":
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Cannot parse JSON value from '{raw}': {exc}") from exc
    raise ValueError(f"Unsupported type: {kind}")


def _check_config_warnings(config: GpuSetupConfig) -> None:
    warnings: list[str] = []

    installer = config.installer
    unmapped = [
        codename
        for codename in installer.supported_distros + installer.eol_distros
        if codename not in config.repository.distro_map
    ]
    if unmapped:
        warnings.append(
            "No repository.distro_map entry for: "
            f"{', '.join(unmapped)} (the codename is used as the repository path)"
        )
    if not installer.use_sudo and not system.is_root():
        warnings.append(
            "installer.use_sudo is off; privileged steps will fail unless run as root"
        )
    if installer.cuda_package:
        warnings.append(
            f"installer.cuda_package overrides cuda_version ({installer.cuda_version})"
        )
    if installer.command_timeout is None:
        warnings.append("installer.command_timeout is unset; commands may hang forever")

    if warnings:
        console.print("\n[warn]Warnings:[/]")
        for warning in warnings:
            console.print(f"  [warn]![/warn]  {escape(warning)}")

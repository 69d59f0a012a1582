"""Shell completion helpers for the gpusetup CLI."""

from __future__ import annotations

from typing import Any, Iterable, List

import click
import typer
from click.shell_completion import CompletionItem

from gpusetup.configuration import ConfigurationError, get_config

CompletionList = List[CompletionItem]


def config_key_completion(
    ctx: typer.Context | None,  # noqa: ARG001 - required by Click shell completion
    param: click.Parameter | None,  # noqa: ARG001
    incomplete: str,
) -> CompletionList:
    """Suggest configuration keys in dot notation for config get/set commands."""

    try:
        data = get_config().to_dict()
    except ConfigurationError:
        data = {}

    keys = sorted(dict.fromkeys(flatten_keys(data)))
    return [CompletionItem(match) for match in _match_candidates(keys, incomplete)]


def _match_candidates(candidates: Iterable[str], needle: str) -> List[str]:
    term = (needle or "").lower()
    return [candidate for candidate in candidates if candidate.lower().startswith(term)]


def flatten_keys(value: Any, prefix: str | None = None) -> List[str]:
    """Dotted paths to every leaf; lists count as leaves."""
    if isinstance(value, dict):
        keys: List[str] = []
        for key, nested in value.items():
            keys.extend(flatten_keys(nested, f"{prefix}.{key}" if prefix else key))
        return keys
    return [prefix] if prefix else []

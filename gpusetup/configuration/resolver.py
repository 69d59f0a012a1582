"""Template resolution for configuration values."""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, Set

from .errors import ConfigurationError
from .schema import GpuSetupConfig

TEMPLATE_PATTERN = re.compile(r"\{\{([^}]+)\}\}")
MAX_RESOLUTION_DEPTH = 100

# Filled in per run from detection results, never from the config file
RUNTIME_NAMESPACES = frozenset({"system"})

_TEMPLATED_SECTIONS = ("repository", "installer")


def resolve_templates(config: GpuSetupConfig) -> GpuSetupConfig:
    """Resolve ``{{section.key}}`` references between configuration values."""
    data = config.to_dict()
    context = {key: value for key, value in data.items() if isinstance(value, dict)}

    for section in _TEMPLATED_SECTIONS:
        values = data.get(section, {})
        for key, value in list(values.items()):
            if isinstance(value, str) and "{{" in value:
                values[key] = _resolve_string(
                    value,
                    context,
                    location=f"{section}.{key}",
                    deferred=RUNTIME_NAMESPACES,
                )
                context[section][key] = values[key]

    return GpuSetupConfig.from_dict(data)


def render_template(template: str, context: Dict[str, Any]) -> str:
    """Fill runtime references such as ``{{system.repo_distro}}``."""
    return _resolve_string(template, context, location="template")


def _resolve_string(
    template: str,
    context: Dict[str, Any],
    *,
    location: str,
    deferred: Iterable[str] = (),
) -> str:
    deferred = frozenset(deferred)
    missing: list[str] = []
    seen_refs: Set[str] = set()
    iteration = 0

    current = template
    while "{{" in current:
        if iteration >= MAX_RESOLUTION_DEPTH:
            raise ConfigurationError(
                f"Circular reference or excessive nesting detected in {location}"
            )
        iteration += 1

        def _replace(match: re.Match[str]) -> str:
            path = match.group(1).strip()
            if path.split(".", 1)[0] in deferred:
                return match.group(0)
            if path == location:
                raise ConfigurationError(
                    f"Circular reference detected: {{{{{path}}}}} in {location}"
                )
            value = _lookup_path(path, context)
            if value is None:
                missing.append(path)
                return match.group(0)
            if isinstance(value, str) and "{{" in value:
                if path in seen_refs:
                    raise ConfigurationError(
                        f"Circular reference detected: {{{{{path}}}}} in {location}"
                    )
                seen_refs.add(path)
            return str(value)

        resolved = TEMPLATE_PATTERN.sub(_replace, current)
        if resolved == current:
            break
        current = resolved

    if missing:
        refs = ", ".join(sorted(set(missing)))
        raise ConfigurationError(
            f"Unknown template reference(s) [{refs}] in {location}"
        )
    return current


def _lookup_path(path: str, context: Dict[str, Any]) -> Any:
    keys = path.split(".")
    value: Any = context
    for key in keys:
        if isinstance(value, dict):
            value = value.get(key)
        elif isinstance(value, list):
            try:
                index = int(key)
                value = value[index] if 0 <= index < len(value) else None
            except (ValueError, IndexError):
                return None
        else:
            return None
    return value

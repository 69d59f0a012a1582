"""Configuration loading, merging, and caching."""

from __future__ import annotations

import copy
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

try:
    import tomllib  # Python 3.11+
except ImportError:  # pragma: no cover
    import tomli as tomllib

from gpusetup import state

from .defaults import DEFAULT_CONFIG_DICT
from .errors import ConfigurationError
from .resolver import resolve_templates
from .schema import GpuSetupConfig

CONFIG_ENV = "GPUSETUP_CONFIG"


def _resolve_and_register(path: Path) -> Path:
    resolved = path.expanduser().resolve()
    state.set_state_root(resolved.parent)
    return resolved


@lru_cache(maxsize=1)
def locate_config_file() -> Optional[Path]:
    """Locate the configuration file using the documented priority order."""
    env_override = os.environ.get(CONFIG_ENV)
    if env_override:
        path = Path(env_override).expanduser()
        if not path.exists():
            raise ConfigurationError(f"{CONFIG_ENV} points to missing file: {path}")
        return _resolve_and_register(path)

    home_env = os.environ.get(state.STATE_ROOT_ENV)
    if home_env:
        base = Path(home_env).expanduser()
        state.set_state_root(base)
        candidate = base / "config.toml"
        return candidate.resolve() if candidate.exists() else None

    xdg_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_home:
        candidate = Path(xdg_home).expanduser() / state.APP_DIR_NAME / "config.toml"
        if candidate.exists():
            return _resolve_and_register(candidate)

    candidate = Path.home() / ".config" / state.APP_DIR_NAME / "config.toml"
    if candidate.exists():
        return _resolve_and_register(candidate)

    return None


def load_toml(path: Path) -> Dict[str, Any]:
    """Load a TOML file with helpful error reporting."""
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Invalid TOML in {path}: {exc}") from exc
    except OSError as exc:  # pragma: no cover - file permission/path errors
        raise ConfigurationError(f"Cannot read config file {path}: {exc}") from exc


def merge_configs(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge dictionaries, returning a new dict."""
    result: Dict[str, Any] = copy.deepcopy(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def load_config() -> GpuSetupConfig:
    """Load, validate and resolve the effective configuration."""
    config_data = copy.deepcopy(DEFAULT_CONFIG_DICT)
    if config_path := locate_config_file():
        user_config = load_toml(config_path)
        config_data = merge_configs(config_data, user_config)
    try:
        config = GpuSetupConfig.from_dict(config_data)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc
    return resolve_templates(config)


_CONFIG_INSTANCE: Optional[GpuSetupConfig] = None


def set_config_instance(config: GpuSetupConfig) -> None:
    """Manually set the cached configuration instance."""
    global _CONFIG_INSTANCE
    _CONFIG_INSTANCE = config


def get_config() -> GpuSetupConfig:
    """Get the cached configuration object."""
    global _CONFIG_INSTANCE
    if _CONFIG_INSTANCE is None:
        _CONFIG_INSTANCE = load_config()
    return _CONFIG_INSTANCE


def reload_config() -> GpuSetupConfig:
    """Force reload configuration from disk."""
    global _CONFIG_INSTANCE
    locate_config_file.cache_clear()
    _CONFIG_INSTANCE = load_config()
    return _CONFIG_INSTANCE

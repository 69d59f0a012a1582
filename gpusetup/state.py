from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional, Union

STATE_ROOT_ENV = "GPUSETUP_HOME"
APP_DIR_NAME = "gpusetup"
_STATE_ROOT_OVERRIDE: Optional[Path] = None


@lru_cache(maxsize=1)
def state_root() -> Path:
    if _STATE_ROOT_OVERRIDE is not None:
        return _STATE_ROOT_OVERRIDE
    env = os.environ.get(STATE_ROOT_ENV)
    if env:
        return Path(env).expanduser().resolve()
    xdg_base = os.environ.get("XDG_CONFIG_HOME")
    if xdg_base:
        return Path(xdg_base).expanduser() / APP_DIR_NAME
    return Path.home() / ".config" / APP_DIR_NAME


def set_state_root(path: Union[str, os.PathLike[str]]) -> None:
    """Force the state root (config file, downloads) to live under ``path``."""

    global _STATE_ROOT_OVERRIDE
    _STATE_ROOT_OVERRIDE = Path(path).expanduser().resolve()
    state_root.cache_clear()


def clear_state_root_override() -> None:
    """Reset any previously forced state root path."""

    global _STATE_ROOT_OVERRIDE
    _STATE_ROOT_OVERRIDE = None
    state_root.cache_clear()


def default_config_path() -> Path:
    return state_root() / "config.toml"


def downloads_dir() -> Path:
    """Scratch space for the repository keyring package.

    Only ``GPUSETUP_HOME`` relocates it; the config file location does not.
    """
    home_env = os.environ.get(STATE_ROOT_ENV)
    if home_env:
        path = Path(home_env).expanduser().resolve() / "downloads"
    else:
        cache_base = os.environ.get("XDG_CACHE_HOME")
        base = Path(cache_base).expanduser() if cache_base else Path.home() / ".cache"
        path = base / APP_DIR_NAME
    path.mkdir(parents=True, exist_ok=True)
    return path


def applications_dir() -> Path:
    data_home = os.environ.get("XDG_DATA_HOME")
    base = Path(data_home).expanduser() if data_home else Path.home() / ".local" / "share"
    return base / "applications"

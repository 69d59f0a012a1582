"""Configuration loading for gpusetup."""

from .errors import ConfigurationError
from .loader import (
    get_config,
    load_config,
    load_toml,
    locate_config_file,
    merge_configs,
    reload_config,
    set_config_instance,
)
from .schema import GpuSetupConfig

__all__ = [
    "ConfigurationError",
    "GpuSetupConfig",
    "get_config",
    "load_config",
    "load_toml",
    "locate_config_file",
    "merge_configs",
    "reload_config",
    "set_config_instance",
]

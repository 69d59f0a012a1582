from __future__ import annotations


class ConfigurationError(ValueError):
    """Raised when the configuration file cannot be loaded or validated."""

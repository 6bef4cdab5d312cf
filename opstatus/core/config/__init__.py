"""Config module: loading and managing configuration."""

from opstatus.core.config.loader import (
    deep_merge,
    get_config,
    reload_config,
)

__all__ = [
    "get_config",
    "deep_merge",
    "reload_config",
]

"""
Configuration loader.

Loads YAML config files and provides unified access.
Supports:
- Example files overridden by local files (storage.yaml over storage.example.yaml)
- Environment variable substitution (${VAR} and ${VAR:-default})
- Deep merge of all files into one dict
"""

import logging
import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_DIR = Path(__file__).parent.parent.parent.parent / "config"

CONFIG_FILES = [
    "storage.example.yaml",
    "storage.yaml",
    "tracking.example.yaml",
    "tracking.yaml",
]


ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")


def _expand(match: re.Match) -> str:
    name, default = match.group(1), match.group(2)
    return os.environ.get(name, default or "")


def _substitute_env_vars(obj: Any) -> Any:
    """Replace every ${VAR} or ${VAR:-default} in string values, recursively."""
    if isinstance(obj, str):
        return ENV_VAR_PATTERN.sub(_expand, obj)
    if isinstance(obj, dict):
        return {key: _substitute_env_vars(value) for key, value in obj.items()}
    if isinstance(obj, list):
        return [_substitute_env_vars(item) for item in obj]
    return obj


def load_yaml(path: Path) -> dict[str, Any]:
    """Load a single YAML file."""
    if not path.exists():
        logger.warning(f"Config file not found: {path}")
        return {}

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    return _substitute_env_vars(data)


def deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dictionaries. Override takes precedence."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


@lru_cache(maxsize=1)
def get_config(config_dir: str | None = None) -> dict[str, Any]:
    """Load and merge all config files."""
    base_dir = Path(config_dir) if config_dir else CONFIG_DIR

    config: dict[str, Any] = {}

    for filename in CONFIG_FILES:
        file_path = base_dir / filename
        if file_path.exists():
            file_config = load_yaml(file_path)
            config = deep_merge(config, file_config)
            logger.debug(f"Loaded config: {filename}")

    return config


def reload_config() -> dict[str, Any]:
    """Force reload config (clears cache)."""
    get_config.cache_clear()
    return get_config()


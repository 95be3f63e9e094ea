"""Configuration utility functions."""

import os
from copy import deepcopy
from pathlib import Path
from typing import Any
from typing import TypeVar


T = TypeVar('T', bound=dict[str, Any])

PACKAGE_CONFIG_DIR = Path(__file__).resolve().parent

def deep_merge(base: T, override: T) -> T:
    """Merge ``override`` into a copy of ``base``; nested mappings merge key by key.

    Neither argument is modified.
    """
    merged = deepcopy(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = deepcopy(value)
    return merged

def config_dir_path(config_dir: str | Path | None = None) -> Path:
    """Directory holding ``config.yaml`` and ``courts.yaml``.

    Falls back to ``COURTSCHED_CONFIG_DIR`` and then to the sample
    configuration shipped with the package.
    """
    chosen = config_dir or os.getenv("COURTSCHED_CONFIG_DIR") or PACKAGE_CONFIG_DIR
    return Path(chosen).expanduser()

def resolve_path(path: str | Path, base_dir: str | Path | None = None, create: bool = False) -> Path:
    """Resolve ``path`` against ``base_dir`` when relative, optionally creating it."""
    resolved = Path(path).expanduser()
    if not resolved.is_absolute() and base_dir is not None:
        resolved = Path(base_dir) / resolved
    if create:
        resolved.mkdir(parents=True, exist_ok=True)
    return resolved

def get_config_paths(config_dir: str | Path | None = None) -> dict[str, Path]:
    """Paths of the global settings file and the courts file."""
    base_path = config_dir_path(config_dir)
    return {
        'config': base_path / 'config.yaml',
        'courts': base_path / 'courts.yaml'
    }

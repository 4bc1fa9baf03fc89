"""Interpreter configuration loading with user config and override support.

Settings are read from a YAML file. The file is located by, in order:
- An explicit path passed to ``load_config``
- The EUCALYPTUS_CONFIG environment variable
- The user config file (~/.config/eucalyptus/config.yaml)

When no file is found the defaults are used.

Example config.yaml:
    max_call_depth: 256
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, fields, replace
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

__all__ = [
    "EUCALYPTUS_CONFIG",
    "DEFAULT_MAX_CALL_DEPTH",
    "InterpreterConfig",
    "load_config",
    "user_config_path",
    "clear_cache",
]

# Environment variable name for a custom config file
EUCALYPTUS_CONFIG = "EUCALYPTUS_CONFIG"

DEFAULT_MAX_CALL_DEPTH = 128


@dataclass(frozen=True)
class InterpreterConfig:
    """Interpreter settings.

    Attributes:
        max_call_depth: Nesting depth of function calls before evaluation
            fails with a stack overflow error
        filename: Name reported in source locations
    """
    max_call_depth: int = DEFAULT_MAX_CALL_DEPTH
    filename: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.max_call_depth, bool) or not isinstance(self.max_call_depth, int):
            raise ValueError(f"max_call_depth must be an integer, got {self.max_call_depth!r}")
        if self.max_call_depth < 1:
            raise ValueError(f"max_call_depth must be positive, got {self.max_call_depth}")

    def with_filename(self, filename: Optional[str]) -> InterpreterConfig:
        """Copy of this config reporting locations in ``filename``."""
        return replace(self, filename=filename)


def clear_cache() -> None:
    """Clear the cached configuration.

    Call this after editing the config file or changing EUCALYPTUS_CONFIG.
    """
    _load_config_cached.cache_clear()


def user_config_path() -> Path:
    """Location of the per-user config file."""
    if sys.platform == "win32":
        config_base = Path(os.environ.get("APPDATA", "~")).expanduser()
    else:
        config_base = Path.home() / ".config"
    return config_base / "eucalyptus" / "config.yaml"


def _find_config_file() -> Optional[Path]:
    env_path = os.environ.get(EUCALYPTUS_CONFIG)
    if env_path:
        path = Path(env_path).expanduser()
        if not path.exists():
            raise FileNotFoundError(f"{EUCALYPTUS_CONFIG} points to a missing file: {path}")
        return path

    user_config = user_config_path()
    if user_config.is_file():
        return user_config
    return None


def _load_yaml(path: Path) -> Dict[str, Any]:
    """Load and validate a YAML config file."""
    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid config format in {path}: expected mapping at root")

    known = {f.name for f in fields(InterpreterConfig)}
    unknown = sorted(str(key) for key in data if key not in known)
    if unknown:
        raise ValueError(f"Unknown config keys in {path}: {', '.join(unknown)}")
    return data


@lru_cache(maxsize=8)
def _load_config_cached(path_str: Optional[str], env_value: Optional[str]) -> InterpreterConfig:
    """Cached loading; the environment value is part of the key."""
    if path_str is not None:
        path = Path(path_str).expanduser()
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
    else:
        path = _find_config_file()

    if path is None:
        return InterpreterConfig()
    return InterpreterConfig(**_load_yaml(path))


def load_config(path: Optional[Union[str, Path]] = None) -> InterpreterConfig:
    """Load interpreter settings.

    Args:
        path: Optional explicit config file; takes precedence over the
            environment variable and the user config file

    Returns:
        InterpreterConfig, with defaults for settings the file omits

    Raises:
        FileNotFoundError: If an explicitly named file does not exist
        ValueError: If the file is malformed or has unknown keys
    """
    path_str = str(path) if path is not None else None
    return _load_config_cached(path_str, os.environ.get(EUCALYPTUS_CONFIG))

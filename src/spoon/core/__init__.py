"""Configuration for spoon."""

from .config import (
    LaunchAlias,
    SpoonConfig,
    SpoonSettings,
    load_config,
    save_config,
)

__all__ = [
    "LaunchAlias",
    "SpoonConfig",
    "SpoonSettings",
    "load_config",
    "save_config",
]

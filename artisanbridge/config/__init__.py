"""Configuration helpers for the Artisan bridge."""

from . import logging, settings  # noqa: F401  # pyright: ignore[reportUnusedImport]
from .model import RuntimeConfig
from .settings import ConfigError, load_runtime_config

__all__ = ["ConfigError", "RuntimeConfig", "load_runtime_config"]

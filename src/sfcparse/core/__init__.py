"""Shared runtime plumbing: configuration and logging."""

from __future__ import annotations

from .config import ConfigError, ScriptSettings, SfcConfig, TemplateSettings, load_config
from .logging import Logger, configure_logging, get_logger

__all__ = [
    "ConfigError",
    "ScriptSettings",
    "SfcConfig",
    "TemplateSettings",
    "load_config",
    "Logger",
    "configure_logging",
    "get_logger",
]

"""Configuration utilities for Plugintester."""

from .loader import (
    Config,
    EditionSettings,
    FrameworkSettings,
    LoggingSettings,
    TesterSettings,
    load_config,
)

__all__ = [
    "Config",
    "EditionSettings",
    "FrameworkSettings",
    "LoggingSettings",
    "TesterSettings",
    "load_config",
]

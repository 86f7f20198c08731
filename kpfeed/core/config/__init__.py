"""Configuration management module."""

from kpfeed.core.config.settings import (
    ConfigManager,
    CursorConfig,
    FeedConfig,
    FetchConfig,
    LoggingConfig,
    OutputConfig,
    load_config_from_env,
)

__all__ = [
    "ConfigManager",
    "FeedConfig",
    "FetchConfig",
    "CursorConfig",
    "OutputConfig",
    "LoggingConfig",
    "load_config_from_env",
]

"""
Configuration loader.

App config: reads config.yaml, validates it against a JSON Schema, resolves env overrides.
"""

from config.loader import (
    AlertingConfig,
    AppConfig,
    BacktestConfig,
    ConfigError,
    DataConfig,
    JournalConfig,
    OutputConfig,
    load_config,
)

__all__ = [
    "AlertingConfig",
    "AppConfig",
    "BacktestConfig",
    "ConfigError",
    "DataConfig",
    "JournalConfig",
    "OutputConfig",
    "load_config",
]

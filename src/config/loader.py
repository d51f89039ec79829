"""
Config loader: YAML file -> JSON Schema validation -> frozen dataclass tree.

Environment variables override file values where set:
  - GAUNTLET_TICK_FOLDER  -> data.tick_folder
  - GAUNTLET_WEBHOOK_URL  -> alerting.webhook_url
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml

logger = logging.getLogger("gauntlet.config")


class ConfigError(Exception):
    """Raised when the config file is not a mapping or fails schema validation."""


CONFIG_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "data": {
            "type": "object",
            "properties": {
                "tick_folder": {"type": "string"},
                "file_pattern": {"type": "string"},
            },
            "additionalProperties": False,
        },
        "backtest": {
            "type": "object",
            "properties": {
                "account": {"type": "string", "minLength": 1},
                "bar_interval_seconds": {"type": "integer", "minimum": 1},
                "exchange_filter": {"type": "string"},
                "strategy": {"type": "string"},
                "strategy_params": {"type": "object"},
            },
            "additionalProperties": False,
        },
        "journal": {
            "type": "object",
            "properties": {
                "path": {"type": "string"},
                "echo_stdout": {"type": "boolean"},
            },
            "additionalProperties": False,
        },
        "output": {
            "type": "object",
            "properties": {
                "directory": {"type": "string"},
                "unique_names": {"type": "boolean"},
                "trades_csv": {"type": "boolean"},
                "orders_csv": {"type": "boolean"},
                "indicators_csv": {"type": "boolean"},
            },
            "additionalProperties": False,
        },
        "alerting": {
            "type": "object",
            "properties": {
                "structured_logs": {"type": "boolean"},
                "webhook_url": {"type": "string"},
            },
            "additionalProperties": False,
        },
    },
    "additionalProperties": False,
}


@dataclass(frozen=True)
class DataConfig:
    tick_folder: str = "data/ticks"
    file_pattern: str = "*.csv"


@dataclass(frozen=True)
class BacktestConfig:
    account: str = "DEFAULT"
    bar_interval_seconds: int = 300
    exchange_filter: str = ""
    strategy: str = ""
    strategy_params: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class JournalConfig:
    path: str = "data/journal.jsonl"
    echo_stdout: bool = False


@dataclass(frozen=True)
class OutputConfig:
    directory: str = "data/output"
    unique_names: bool = True
    trades_csv: bool = True
    orders_csv: bool = True
    indicators_csv: bool = True


@dataclass(frozen=True)
class AlertingConfig:
    structured_logs: bool = True
    webhook_url: str = ""


@dataclass(frozen=True)
class AppConfig:
    data: DataConfig = DataConfig()
    backtest: BacktestConfig = BacktestConfig()
    journal: JournalConfig = JournalConfig()
    output: OutputConfig = OutputConfig()
    alerting: AlertingConfig = AlertingConfig()


def _validate(raw: dict[str, Any]) -> None:
    try:
        jsonschema.validate(instance=raw, schema=CONFIG_SCHEMA)
    except jsonschema.ValidationError as exc:
        where = "/".join(str(p) for p in exc.absolute_path) or "<root>"
        raise ConfigError(f"Config validation failed at {where}: {exc.message}") from exc


def load_config(path: str | Path = "config.yaml") -> AppConfig:
    """
    Load configuration from a YAML file.

    Every section is optional; missing keys take the dataclass defaults.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f)

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file must be a YAML mapping, got {type(raw).__name__}")
    _validate(raw)

    d_raw = raw.get("data", {})
    data_cfg = DataConfig(
        tick_folder=os.environ.get("GAUNTLET_TICK_FOLDER") or d_raw.get("tick_folder", DataConfig.tick_folder),
        file_pattern=d_raw.get("file_pattern", DataConfig.file_pattern),
    )

    bt_raw = raw.get("backtest", {})
    bt_cfg = BacktestConfig(
        account=bt_raw.get("account", "DEFAULT"),
        bar_interval_seconds=int(bt_raw.get("bar_interval_seconds", 300)),
        exchange_filter=str(bt_raw.get("exchange_filter", "")),
        strategy=str(bt_raw.get("strategy", "")),
        strategy_params=dict(bt_raw.get("strategy_params", {})),
    )

    j_raw = raw.get("journal", {})
    j_cfg = JournalConfig(
        path=j_raw.get("path", "data/journal.jsonl"),
        echo_stdout=bool(j_raw.get("echo_stdout", False)),
    )

    o_raw = raw.get("output", {})
    o_cfg = OutputConfig(
        directory=o_raw.get("directory", "data/output"),
        unique_names=bool(o_raw.get("unique_names", True)),
        trades_csv=bool(o_raw.get("trades_csv", True)),
        orders_csv=bool(o_raw.get("orders_csv", True)),
        indicators_csv=bool(o_raw.get("indicators_csv", True)),
    )

    a_raw = raw.get("alerting", {})
    a_cfg = AlertingConfig(
        structured_logs=bool(a_raw.get("structured_logs", True)),
        webhook_url=os.environ.get("GAUNTLET_WEBHOOK_URL") or str(a_raw.get("webhook_url", "")),
    )

    logger.debug("Loaded config from %s", config_path)
    return AppConfig(
        data=data_cfg,
        backtest=bt_cfg,
        journal=j_cfg,
        output=o_cfg,
        alerting=a_cfg,
    )
